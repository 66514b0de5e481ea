import logging
from dataclasses import dataclass, field

import lzo

from . import runtime_params
from .classes import parse_class
from .cursor import BodyCursor
from .errors import (
    DecompressionError,
    InputTooLargeError,
    NotCompressedError,
    NotGbxError,
    annotate,
)
from .gbx_enums import GBX_MAGIC, Compression
from .gbx_structs import GbxCompressedBody, GbxHeader

logger = logging.getLogger(__name__)


@dataclass
class HeaderChunk:
    id: int
    size: int
    heavy: bool
    data_start: int = 0
    data: bytes = b""


@dataclass
class Header:
    version: int
    byte_format: object
    ref_table_compression: object
    body_compression: object
    class_id: int
    chunks: list = field(default_factory=list)
    num_nodes: int = 0
    num_external_nodes: int = 0


def parse_header(cursor):
    # too short to even hold the magic
    if len(cursor) < len(GBX_MAGIC):
        raise NotGbxError(cursor.read_bytes(len(cursor))).add_context("Parsing header")

    with annotate("Parsing header"):
        raw = cursor.parse(GbxHeader)

    logger.debug("version %d, class id %08x", raw.version, raw.class_id)
    logger.debug("num header chunks %d", raw.num_header_chunks)

    chunks = []
    for entry, chunk_data in zip(raw.entries, raw.chunks_data):
        chunk = HeaderChunk(
            id=entry.id,
            size=entry.meta.size,
            heavy=entry.meta.heavy,
            data_start=chunk_data.data_start,
            data=chunk_data.data,
        )
        logger.debug("header chunk %03x, %d bytes at %d", chunk.id, chunk.size, chunk.data_start)
        chunks.append(chunk)

    logger.debug("num nodes %d, num external nodes %d", raw.num_nodes, raw.num_external_nodes)

    return Header(
        version=raw.version,
        byte_format=raw.byte_format,
        ref_table_compression=raw.ref_table_compression,
        body_compression=raw.body_compression,
        class_id=raw.class_id,
        chunks=chunks,
        num_nodes=raw.num_nodes,
        num_external_nodes=raw.num_external_nodes,
    )


def read_body(cursor, header):
    """Decompresses the node body following the header"""
    if header.body_compression != Compression.COMPRESSED:
        raise NotCompressedError()

    with annotate("Reading body sizes"):
        body = cursor.parse(GbxCompressedBody)
    logger.debug("uncompressed size %d", body.uncompressed_size)
    logger.debug("compressed size %d", body.compressed_size)

    if body.uncompressed_size > runtime_params.max_body_size:
        raise DecompressionError(f"Uncompressed body size {body.uncompressed_size} is too large")

    payload = body.compressed_body
    if len(payload) >= body.compressed_size:
        payload = payload[: body.compressed_size]

    try:
        return lzo.decompress(payload, False, body.uncompressed_size)
    except lzo.error as e:
        raise DecompressionError(f"Could not decompress: {e}").add_context("Decompressing body") from e


class Gbx:
    """A decoded container: header plus decompressed node body.

    `data` is the raw input, header chunk payloads are read back from it.
    """

    def __init__(self, data, header, body):
        self.data = data
        self.header = header
        self.body = body

    @classmethod
    def read_from(cls, data):
        data = bytes(data)
        if runtime_params.max_input_size and len(data) > runtime_params.max_input_size:
            raise InputTooLargeError(len(data), runtime_params.max_input_size)

        cursor = BodyCursor(data)
        header = parse_header(cursor)
        body = read_body(cursor, header)
        return cls(data, header, body)

    def parse(self):
        """Decodes the root class from the body, then replays the header chunks on it"""
        root = parse_class(BodyCursor(self.body), self.header.class_id)

        # one session for all header chunks
        cursor = BodyCursor(self.data)
        for chunk in self.header.chunks:
            logger.debug("Parsing header chunk %08x", self.header.class_id | chunk.id)
            cursor.seek(chunk.data_start)
            with annotate(f"Parsing header chunk {chunk.id:03x}"):
                root.parse_one(cursor, self.header.class_id | chunk.id)

        return root


def decode_container(data):
    return Gbx.read_from(data)


def parse(container):
    return container.parse()
