import pytest

from gbx_reader.cursor import BodyCursor
from gbx_reader.errors import (
    GbxStreamError,
    InvalidByteFormatError,
    InvalidCompressionStateError,
    NoHeaderChunksError,
    NotGbxError,
    VersionNotSupportedError,
)
from gbx_reader.gbx import Gbx, parse_header
from gbx_reader.gbx_enums import CLASS_CHALLENGE, ByteFormat, Compression
from helpers import container, end, string, u16, u32

HEADER_CHUNKS = [
    (0x03043004, u32(6)),
    (0x03043005, string("<header/>")),
    (0x03043007, b"\x00" * 10, True),
]


def header_of(data):
    return parse_header(BodyCursor(data))


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"GB",
        b"XYZ" + b"\x06\x00BUCR" + b"\x00" * 32,
        b"gbx" + b"\x06\x00BUCR" + b"\x00" * 32,
    ],
)
def test_not_gbx(data):
    with pytest.raises(NotGbxError):
        Gbx.read_from(data)


def test_not_gbx_reads_nothing_more():
    cursor = BodyCursor(b"PNG\x06\x00BUCR")
    with pytest.raises(NotGbxError):
        parse_header(cursor)
    assert cursor.position == 3


@pytest.mark.parametrize("version", [0, 1, 2])
def test_unsupported_version(version):
    data = b"GBX" + u16(version) + b"BUCR" + u32(CLASS_CHALLENGE)
    with pytest.raises(VersionNotSupportedError) as excinfo:
        Gbx.read_from(data)
    assert excinfo.value.version == version


def test_no_header_chunks():
    with pytest.raises(NoHeaderChunksError):
        Gbx.read_from(container(CLASS_CHALLENGE, end(), header_chunks=[]))


def test_invalid_byte_format():
    with pytest.raises(InvalidByteFormatError) as excinfo:
        Gbx.read_from(container(CLASS_CHALLENGE, end(), HEADER_CHUNKS, byte_format=b"X"))
    assert excinfo.value.value == ord("X")


def test_invalid_compression():
    with pytest.raises(InvalidCompressionStateError) as excinfo:
        Gbx.read_from(container(CLASS_CHALLENGE, end(), HEADER_CHUNKS, body_compression=b"Z"))
    assert excinfo.value.value == ord("Z")
    assert "Parsing header" in excinfo.value.context


def test_header_fields():
    data = container(CLASS_CHALLENGE, end(), HEADER_CHUNKS, num_nodes=5)
    header = header_of(data)

    assert header.version == 6
    assert header.byte_format is ByteFormat.BINARY
    assert header.ref_table_compression is Compression.UNCOMPRESSED
    assert header.body_compression is Compression.COMPRESSED
    assert header.class_id == CLASS_CHALLENGE
    assert header.num_nodes == 5
    assert header.num_external_nodes == 0

    assert [chunk.id for chunk in header.chunks] == [0x004, 0x005, 0x007]
    assert [chunk.size for chunk in header.chunks] == [4, 13, 10]
    assert [chunk.heavy for chunk in header.chunks] == [False, False, True]


def test_header_chunk_offsets():
    data = container(CLASS_CHALLENGE, end(), HEADER_CHUNKS)
    header = header_of(data)

    starts = [chunk.data_start for chunk in header.chunks]
    assert starts[1] == starts[0] + 4
    assert starts[2] == starts[1] + 13
    for chunk, (_, payload, *_) in zip(header.chunks, HEADER_CHUNKS):
        assert data[chunk.data_start : chunk.data_start + chunk.size] == payload
        assert chunk.data == payload


@pytest.mark.parametrize("version", [3, 4, 5, 6])
def test_optional_fields_by_version(version):
    header = header_of(container(CLASS_CHALLENGE, end(), HEADER_CHUNKS, version=version))
    assert header.version == version
    assert header.class_id == CLASS_CHALLENGE
    assert [chunk.id for chunk in header.chunks] == [0x004, 0x005, 0x007]


def test_text_format_is_accepted():
    header = header_of(container(CLASS_CHALLENGE, end(), HEADER_CHUNKS, byte_format=b"T"))
    assert header.byte_format is ByteFormat.TEXT


def test_truncated_header_chunk():
    data = container(CLASS_CHALLENGE, end(), [(0x03043005, string("<header/>"))])
    # cut inside the header chunk payload
    cut = data[: data.index(b"<header") + 3]
    with pytest.raises(GbxStreamError) as excinfo:
        Gbx.read_from(cut)
    assert excinfo.value.context[-1] == "Parsing header"
