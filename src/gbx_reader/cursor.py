import io
import logging

from construct import (
    Bytes,
    ConstructError,
    Float32l,
    Int8ul,
    Int16ul,
    Int32sl,
    Int32ul,
    Int64ul,
)

from . import runtime_params
from .classes import class_registry, parse_class
from .errors import (
    GbxStreamError,
    InvalidLookbackStringError,
    InvalidNodeRefError,
    InvalidStringError,
    InvalidUtf8Error,
    NodeDepthError,
    annotate,
    from_construct_error,
)
from .gbx_enums import (
    COLLECTION_PLACEHOLDER,
    LAST_CHUNK_ID,
    NO_NODE,
    NO_STRING,
    UNASSIGNED,
)
from .gbx_structs import GbxMeta, GbxUInt128

logger = logging.getLogger(__name__)


class BodyCursor:
    """Decode session of one node body.

    Reads little-endian primitives from an immutable buffer and owns the
    per-node state: the lookback string table and the node reference cache.
    A sub-node gets its own BodyCursor sharing the same stream, starting
    where the reference was read; positions are relative to that start.
    """

    def __init__(self, data, depth=0, stream=None):
        self.data = bytes(data) if stream is None else data
        self.stream = io.BytesIO(self.data) if stream is None else stream
        self.start = self.stream.tell()
        self.depth = depth

        self.lookback_version = None
        self.strings = []
        self.nodes = {}
        # first-occurrence sub-node decodes
        self.node_parses = 0

    def __len__(self):
        return len(self.data) - self.start

    @property
    def position(self):
        return self.stream.tell() - self.start

    @property
    def remaining(self):
        return len(self.data) - self.stream.tell()

    def parse(self, subcon):
        try:
            return subcon.parse_stream(self.stream, cursor=self)
        except ConstructError as e:
            raise from_construct_error(e) from e

    # primitives

    def read_u8(self):
        return self.parse(Int8ul)

    def read_u16(self):
        return self.parse(Int16ul)

    def read_u32(self):
        return self.parse(Int32ul)

    def read_i32(self):
        return self.parse(Int32sl)

    def read_u64(self):
        return self.parse(Int64ul)

    def read_u128(self):
        return self.parse(GbxUInt128)

    def read_f32(self):
        return self.parse(Float32l)

    def read_bytes(self, count):
        return self.parse(Bytes(count))

    def read_vec2(self):
        return (self.read_f32(), self.read_f32())

    def read_int3(self):
        return (self.read_u32(), self.read_u32(), self.read_u32())

    def read_byte3(self):
        return (self.read_u8(), self.read_u8(), self.read_u8())

    def peek_u32(self):
        position = self.stream.tell()
        try:
            return self.read_u32()
        finally:
            self.stream.seek(position)

    def seek(self, position):
        self.seek_relative(position - self.position)

    def seek_relative(self, delta):
        target = self.stream.tell() + delta
        if target < self.start or target > len(self.data):
            raise GbxStreamError(f"seek to {target - self.start} out of bounds (length {len(self)})")
        self.stream.seek(target)

    def read_string(self):
        with annotate("Reading string length"):
            count = self.read_u32()
        start = self.position
        end = start + count
        if end > len(self):
            raise InvalidStringError(start, end)

        raw = self.stream.read(count)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidUtf8Error().add_context("Reading string data") from e

    # lookback strings

    def read_lookback_string(self):
        if self.lookback_version is None:
            with annotate("Reading lookback version"):
                self.lookback_version = self.read_u32()

        with annotate("Reading lookback index"):
            index = self.read_u32()
        if index == NO_STRING:
            return ""

        flags = index >> 30
        idx = index & 0x3FFF

        if idx == 0 and flags in (1, 2):
            with annotate("Reading first occurrence of lookback string"):
                string = self.read_string()
            logger.debug("new string %r", string)
            self.strings.append(string)
            return string

        if idx == 0x3FFF:
            if flags == 2:
                return UNASSIGNED
            elif flags == 3:
                return ""
            raise InvalidLookbackStringError(index)

        if flags == 0:
            logger.debug("collection id %d is not resolved", idx)
            return COLLECTION_PLACEHOLDER

        # back-reference, out of range ones are tolerated
        if 1 <= idx <= len(self.strings):
            return self.strings[idx - 1]
        return ""

    def read_meta(self):
        return self.parse(GbxMeta)

    # node references

    def read_node_ref(self):
        with annotate("Reading node reference index"):
            index = self.read_i32()

        if index == NO_NODE:
            return None

        if index in self.nodes:
            return self.nodes[index]

        if index < 0:
            raise InvalidNodeRefError(index)

        with annotate("Reading node reference class ID"):
            class_id = self.read_u32()

        if self.depth + 1 > runtime_params.max_node_depth:
            raise NodeDepthError(runtime_params.max_node_depth)

        cursor = BodyCursor(self.data, self.depth + 1, self.stream)
        node = parse_class(cursor, class_id)
        self.node_parses += 1
        logger.debug("read %d bytes of %08x", cursor.position, class_id)

        self.nodes[index] = node
        return node

    def expect_node_ref(self, class_id):
        return class_registry[class_id].coerce(self.read_node_ref())

    # unsupported chunks

    def force_skip(self, chunk_id):
        """Skip bytes until the next chunk of the same class, or the final FACADE01 ending the buffer."""
        skipped = 0
        while True:
            with annotate(f"Force skipping chunk {chunk_id:08x}"):
                next_chunk_id = self.peek_u32()
            if (next_chunk_id & 0xFFFFFF00) == (chunk_id & 0xFFFFFF00):
                break
            if next_chunk_id == LAST_CHUNK_ID and self.remaining == 4:
                logger.warning("Reached end of file early")
                break
            self.stream.seek(1, io.SEEK_CUR)
            skipped += 1

        logger.warning("Force skipped chunk %08x (%d bytes)", chunk_id, skipped)
        return skipped
