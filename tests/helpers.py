import lzo
from construct import Float32l, Int8ul, Int16ul, Int32sl, Int32ul, Int64ul

from gbx_reader.gbx_enums import LAST_CHUNK_ID


def u8(value):
    return Int8ul.build(value)


def u16(value):
    return Int16ul.build(value)


def u32(value):
    return Int32ul.build(value)


def i32(value):
    return Int32sl.build(value)


def u64(value):
    return Int64ul.build(value)


def f32(value):
    return Float32l.build(value)


def string(value):
    raw = value.encode("utf-8")
    return u32(len(raw)) + raw


def end():
    return u32(LAST_CHUNK_ID)


def chunk(chunk_id, payload=b""):
    return u32(chunk_id) + payload


def skippable_chunk(chunk_id, payload):
    return u32(chunk_id) + b"PIKS" + u32(len(payload)) + payload


def file_ref(path, version=2):
    out = u8(version)
    if version >= 3:
        out += b"\x00" * 32
    out += string(path)
    if (path and version >= 1) or version >= 3:
        out += string("")
    return out


class Lookback:
    """Writes lookback strings the way one decode session expects them"""

    def __init__(self, version=3):
        self.version = version
        self.version_written = False
        self.strings = []

    def _prefix(self):
        if self.version_written:
            return b""
        self.version_written = True
        return u32(self.version)

    def __call__(self, value):
        prefix = self._prefix()
        if value in self.strings:
            return prefix + u32(0x40000000 | (self.strings.index(value) + 1))
        self.strings.append(value)
        return prefix + u32(0x40000000) + string(value)

    def raw(self, index):
        return self._prefix() + u32(index)

    def meta(self, id, collection, author):
        return self(id) + self(collection) + self(author)


def container(class_id, body, header_chunks=(), version=6, byte_format=b"B", body_compression=b"C", num_nodes=2):
    """Builds a whole file around an uncompressed node body.

    `header_chunks` is a list of (chunk_id, payload) or (chunk_id, payload, heavy).
    """
    out = b"GBX" + u16(version) + byte_format + b"U" + body_compression
    if version >= 4:
        out += b"R"
    out += u32(class_id)

    entries = b""
    payloads = b""
    for header_chunk in header_chunks:
        chunk_id, payload = header_chunk[:2]
        heavy = header_chunk[2] if len(header_chunk) > 2 else False
        entries += u32(chunk_id) + u32(len(payload) | (0x80000000 if heavy else 0))
        payloads += payload
    user_data = u32(len(header_chunks)) + entries + payloads

    if version >= 6:
        out += u32(len(user_data))
    out += user_data
    out += u32(num_nodes) + u32(0)

    compressed = lzo.compress(body, 1, False)
    return out + u32(len(body)) + u32(len(compressed)) + compressed
