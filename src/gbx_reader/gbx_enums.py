from enum import Enum

GBX_MAGIC = b"GBX"
MIN_VERSION = 3

LAST_CHUNK_ID = 0xFACADE01
# b"PIKS" read as a little-endian u32
SKIP_MARKER = 0x534B4950

NO_STRING = 0xFFFFFFFF
NO_BLOCK = 0xFFFFFFFF
NO_NODE = -1

UNASSIGNED = "Unassigned"
COLLECTION_PLACEHOLDER = "TODO: collections"

CLASS_COLLECTOR_LIST = 0x0301B000  # CGameCtnCollectorList
CLASS_CHALLENGE = 0x03043000  # CGameCtnChallenge
CLASS_BLOCK_SKIN = 0x03059000  # CGameCtnBlockSkin
CLASS_CHALLENGE_PARAMETERS = 0x0305B000  # CGameCtnChallengeParameters
CLASS_GHOST = 0x03092000  # CGameCtnGhost
CLASS_WAYPOINT_SPECIAL_PROPERTY = 0x2E009000  # CGameWaypointSpecialProperty

CHUNK_MEDIA_TRACKER = 0x03043049

CLASS_WRAP = {
    0x21080000: 0x03043000,  # CGameCtnChallenge (VSkipper)
    0x2108D000: 0x03093000,  # CGameCtnReplayRecord (VSkipper)
    0x24003000: 0x03043000,  # CGameCtnChallenge
    0x2400C000: 0x0305B000,  # CGameCtnChallengeParameters
    0x2401B000: 0x03092000,  # CGameCtnGhost
    0x2403A000: 0x03059000,  # CGameCtnBlockSkin
    0x2403C000: 0x0301B000,  # CGameCtnCollectorList
    0x2403F000: 0x03093000,  # CGameCtnReplayRecord
    0x24061000: 0x03078000,  # CGameCtnMediaTrack
    0x24062000: 0x03078000,  # CGameCtnMediaTrack
    0x24076000: 0x03079000,  # CGameCtnMediaClip
    0x2407E000: 0x03093000,  # CGameCtnReplayRecord
}


def class_wrap(class_id):
    return CLASS_WRAP.get(class_id, class_id)


def wrap_chunk_id(full_chunk_id):
    return class_wrap(full_chunk_id & 0xFFFFF000) + (full_chunk_id & 0xFFF)


class ByteFormat(Enum):
    TEXT = ord("T")
    BINARY = ord("B")


class Compression(Enum):
    COMPRESSED = ord("C")
    UNCOMPRESSED = ord("U")
