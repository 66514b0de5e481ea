import logging
import os

from .gbx import Gbx

logger = logging.getLogger(__name__)


def parse_bytes(raw_bytes):
    """Use this for in-memory reading"""
    return Gbx.read_from(raw_bytes).parse()


def parse_file(file_path):
    file_path = os.path.abspath(file_path)
    logger.debug("parsing %s", file_path)

    with open(file_path, "rb") as f:
        return parse_bytes(f.read())
