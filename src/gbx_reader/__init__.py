from .classes import (
    ClassInstance,
    CtnBlockSkin,
    CtnChallenge,
    CtnChallengeParameters,
    CtnCollectorList,
    CtnGhost,
    WaypointSpecialProperty,
    class_registry,
    parse_class,
)
from .cursor import BodyCursor
from .errors import GbxError
from .gbx import Gbx, Header, HeaderChunk, decode_container, parse
from .gbx_structs import Block, Collector, Meta
from .parser import parse_bytes, parse_file
