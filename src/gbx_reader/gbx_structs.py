from dataclasses import dataclass

from construct import (
    Adapter,
    Array,
    BitsInteger,
    BitStruct,
    Byte,
    Bytes,
    BytesInteger,
    ByteSwapped,
    ExprAdapter,
    Flag,
    Float32l,
    GreedyBytes,
    If,
    IfThenElse,
    Int8ul,
    Int16ul,
    Int32sl,
    Int32ul,
    Int64ul,
    PrefixedArray,
    StopIf,
    Struct,
    Tell,
    this,
)

from .errors import (
    InvalidByteFormatError,
    InvalidCompressionStateError,
    NoHeaderChunksError,
    NotGbxError,
    VersionNotSupportedError,
)
from .gbx_enums import (
    CHUNK_MEDIA_TRACKER,
    CLASS_BLOCK_SKIN,
    CLASS_CHALLENGE_PARAMETERS,
    CLASS_COLLECTOR_LIST,
    CLASS_GHOST,
    CLASS_WAYPOINT_SPECIAL_PROPERTY,
    GBX_MAGIC,
    MIN_VERSION,
    NO_BLOCK,
    ByteFormat,
    Compression,
)
from .my_construct import (
    BlockArray,
    ForceSkip,
    GbxIf,
    GbxPascalString,
    GbxValidator,
    LookbackString,
    NodeRef,
    StrictEnum,
)


@dataclass(frozen=True)
class Meta:
    id: str
    collection: str
    author: str


@dataclass(frozen=True)
class Collector:
    ident: Meta
    count: int


@dataclass
class Block:
    name: str
    direction: int
    coords: tuple
    flags: int
    author: str = None
    skin: object = None
    waypoint_property: object = None


class ATuple(Adapter):
    def _decode(self, obj, context, path):
        return tuple(obj)


GbxString = GbxPascalString()
GbxLookbackString = LookbackString()
GbxFloat = Float32l
GbxVec2 = ATuple(GbxFloat[2])
GbxInt3 = ATuple(Int32ul[3])
GbxInt3Byte = ATuple(Int8ul[3])
GbxBool = ExprAdapter(Int32ul, lambda obj, ctx: obj != 0, lambda obj, ctx: 1 if obj else 0)
GbxUInt128 = BytesInteger(16, swapped=True)


class AGbxMeta(Adapter):
    def _decode(self, obj, context, path):
        return Meta(id=obj.id, collection=obj.collection, author=obj.author)


GbxMeta = AGbxMeta(
    Struct(
        "id" / GbxLookbackString,
        "collection" / GbxLookbackString,
        "author" / GbxLookbackString,
    )
)


def GbxNodeRef(expected_class_id=None):
    return NodeRef(expected_class_id)


def GbxForceSkip(chunk_id):
    return ForceSkip(chunk_id)


class AGbxFileRef(Adapter):
    def _decode(self, obj, context, path):
        return obj.filePath


GbxFileRef = AGbxFileRef(
    Struct(
        "version" / Int8ul,
        "checksum" / If(this.version >= 3, Bytes(32)),
        "filePath" / GbxString,
        "locatorUrl"
        / If(
            lambda this: (len(this.filePath) > 0 and this.version >= 1) or this.version >= 3,
            GbxString,
        ),
    )
)


# Header

GbxHeaderChunkEntry = Struct(
    "id" / ExprAdapter(Int32ul, lambda obj, ctx: obj & 0xFFF, lambda obj, ctx: obj),
    "meta"
    / ByteSwapped(
        BitStruct(
            "heavy" / Flag,
            "size" / BitsInteger(31),
        )
    ),
)

GbxHeaderChunkData = Struct(
    "data_start" / Tell,
    "data" / Bytes(lambda this: this._.entries[this._index].meta.size),
)

GbxHeader = Struct(
    "magic" / GbxValidator(Bytes(3), lambda obj: obj == GBX_MAGIC, NotGbxError),
    "version" / GbxValidator(Int16ul, lambda obj: obj >= MIN_VERSION, VersionNotSupportedError),
    "byte_format" / StrictEnum(Byte, ByteFormat, InvalidByteFormatError),
    "ref_table_compression" / StrictEnum(Byte, Compression, InvalidCompressionStateError),
    "body_compression" / StrictEnum(Byte, Compression, InvalidCompressionStateError),
    "u01" / If(this.version >= 4, Byte),
    "class_id" / Int32ul,
    "user_data_size" / If(this.version >= 6, Int32ul),
    "num_header_chunks" / GbxValidator(Int32ul, lambda obj: obj > 0, lambda obj: NoHeaderChunksError()),
    "entries" / Array(this.num_header_chunks, GbxHeaderChunkEntry),
    # payloads follow the descriptors, in declaration order
    "chunks_data" / Array(this.num_header_chunks, GbxHeaderChunkData),
    "num_nodes" / Int32ul,
    "num_external_nodes" / Int32ul,
)

GbxCompressedBody = Struct(
    "uncompressed_size" / Int32ul,
    "compressed_size" / Int32ul,
    "compressed_body" / GreedyBytes,
)


# Body chunks

body_chunks = {}

# 0301B CGameCtnCollectorList


class AGbxCollector(Adapter):
    def _decode(self, obj, context, path):
        return Collector(ident=obj.ident, count=obj.count)


# each entry is a meta followed by a count, reading the meta alone misaligns real files
body_chunks[0x0301B000] = Struct(
    "block_set" / PrefixedArray(Int32ul, AGbxCollector(Struct("ident" / GbxMeta, "count" / Int32ul))),
)

# 03043 CGameCtnChallenge


class AGbxBlockInstance(Adapter):
    def _decode(self, obj, context, path):
        if obj.flags == NO_BLOCK:
            return None

        skin_params = obj.get("skin_params")
        return Block(
            name=obj.name,
            direction=obj.direction,
            coords=obj.coords,
            flags=obj.flags,
            author=skin_params.author if skin_params is not None else None,
            skin=skin_params.skin if skin_params is not None else None,
            waypoint_property=obj.get("waypoint_property"),
        )


GbxBlockInstance = AGbxBlockInstance(
    Struct(
        "name" / GbxLookbackString,
        "direction" / Byte,
        "coords" / GbxInt3Byte,
        "flags" / IfThenElse(this._.version == 0, Int16ul, Int32ul),
        StopIf(this.flags == NO_BLOCK),
        "skin_params"
        / If(
            lambda this: this.flags & 0x8000,
            Struct(
                "author" / GbxLookbackString,
                "skin" / GbxNodeRef(CLASS_BLOCK_SKIN),
            ),
        ),
        "waypoint_property" / If(lambda this: this.flags & 0x100000, GbxNodeRef(CLASS_WAYPOINT_SPECIAL_PROPERTY)),
    )
)

body_chunks[0x03043002] = Struct(  # map info 1
    "version" / Int8ul,
    "map_info" / GbxIf(this.version <= 2, GbxMeta),
    "map_name" / GbxIf(this.version <= 2, GbxString),
    "u01" / Int32ul,
    "bronze_time" / GbxIf(this.version >= 1, Int32ul),
    "silver_time" / GbxIf(this.version >= 1, Int32ul),
    "gold_time" / GbxIf(this.version >= 1, Int32ul),
    "author_time" / GbxIf(this.version >= 1, Int32ul),
    "u02" / GbxIf(this.version == 2, Int8ul),
    "cost" / GbxIf(this.version >= 4, Int32ul),
    "is_lap_race" / GbxIf(this.version >= 5, GbxBool),
    "is_multilap" / GbxIf(this.version == 6, GbxBool),
    "play_mode" / GbxIf(this.version >= 7, Int32ul),
    "u03" / GbxIf(this.version >= 9, Int32ul),
    "author_score" / GbxIf(this.version >= 10, Int32ul),
    "editor_mode" / GbxIf(this.version >= 11, Int32ul),
    "u04" / GbxIf(this.version >= 12, Int32ul),
    "nb_checkpoints" / GbxIf(this.version >= 13, Int32ul),
    "nb_laps" / GbxIf(this.version >= 13, Int32ul),
)
body_chunks[0x03043003] = Struct(  # map info 2
    "version" / Int8ul,
    "map_info" / GbxMeta,
    "map_name" / GbxString,
    "kind_in_header" / Int8ul,
    StopIf(this.version < 1),
    "u01" / Int32ul,
    "password" / GbxString,
    StopIf(this.version < 2),
    "decoration" / GbxMeta,
    StopIf(this.version < 3),
    "map_coord_origin" / GbxVec2,
    StopIf(this.version < 4),
    "map_coord_target" / GbxVec2,
    StopIf(this.version < 5),
    "pack_mask" / GbxUInt128,
    StopIf(this.version < 6),
    "map_type" / GbxString,
    "map_style" / GbxString,
    StopIf(this.version < 8),
    "lightmap_cache_uid" / Int64ul,
    StopIf(this.version < 9),
    "lightmap_version" / Int8ul,
    StopIf(this.version < 11),
    "title_id" / GbxLookbackString,
)
body_chunks[0x03043004] = Struct(
    "header_version" / Int32ul,
)
body_chunks[0x03043005] = Struct(
    "xml_data" / GbxString,
)
body_chunks[0x03043007] = Struct(
    "version" / Int32ul,
    "thumbnail_size" / Int32ul,
    "thumbnail_start_tag" / Bytes(len(b"<Thumbnail.jpg>")),
    "thumbnail_data" / Bytes(this.thumbnail_size),
    "thumbnail_end_tag" / Bytes(len(b"</Thumbnail.jpg>")),
    "comments_start_tag" / Bytes(len(b"<Comments>")),
    "comments" / GbxString,
    "comments_end_tag" / Bytes(len(b"</Comments>")),
)
body_chunks[0x03043008] = Struct(
    "version" / Int32ul,
    "author_version" / Int32ul,
    "author_login" / GbxString,
    "author_nickname" / GbxString,
    "author_zone" / GbxString,
    "author_extra_info" / GbxString,
)
body_chunks[0x0304300D] = Struct(
    "vehicle_model" / GbxMeta,
)
body_chunks[0x03043011] = Struct(
    "block_stock" / GbxNodeRef(CLASS_COLLECTOR_LIST),
    "challenge_parameters" / GbxNodeRef(CLASS_CHALLENGE_PARAMETERS),
    "map_kind" / Int32ul,
)
body_chunks[0x0304301F] = Struct(  # block data
    "map_info" / GbxMeta,
    "map_name" / GbxString,
    "decoration" / GbxMeta,
    "size" / GbxInt3,
    "need_unlock" / GbxBool,
    "version" / Int32ul,
    "num_blocks" / Int32ul,
    "blocks" / BlockArray(this.num_blocks, GbxBlockInstance),
)
body_chunks[0x03043022] = Struct(
    "u01" / Int32ul,
)
body_chunks[0x03043024] = Struct(
    "custom_music_pack_desc" / GbxFileRef,
)
body_chunks[0x03043025] = Struct(
    "map_coord_origin" / GbxVec2,
    "map_coord_target" / GbxVec2,
)
body_chunks[0x0304302A] = Struct(
    "u01" / GbxBool,  # simple editor
)
body_chunks[CHUNK_MEDIA_TRACKER] = Struct(
    "skipped" / GbxForceSkip(CHUNK_MEDIA_TRACKER),
)

# 03059 CGameCtnBlockSkin

body_chunks[0x03059000] = Struct("text" / GbxString, "u01" / GbxString)
body_chunks[0x03059001] = Struct("text" / GbxString, "pack_desc" / GbxFileRef)
body_chunks[0x03059002] = Struct(
    "text" / GbxString,
    "pack_desc" / GbxFileRef,
    "parent_pack_desc" / GbxFileRef,
)
body_chunks[0x03059003] = Struct(
    "version" / Int32ul,
    "foreground_pack_desc" / GbxFileRef,
)

# 0305B CGameCtnChallengeParameters

body_chunks[0x0305B001] = Struct(
    "tip1" / GbxString,
    "tip2" / GbxString,
    "tip3" / GbxString,
    "tip4" / GbxString,
)
body_chunks[0x0305B004] = Struct(
    "bronze_time" / Int32ul,
    "silver_time" / Int32ul,
    "gold_time" / Int32ul,
    "author_time" / Int32ul,
    "u01" / Int32ul,
)
body_chunks[0x0305B008] = Struct(
    "time_limit" / Int32ul,
    "author_score" / Int32ul,
)
body_chunks[0x0305B00A] = Struct(
    "tip" / GbxString,
    "bronze_time" / Int32ul,
    "silver_time" / Int32ul,
    "gold_time" / Int32ul,
    "author_time" / Int32ul,
    "time_limit" / Int32ul,
    "author_score" / Int32ul,
)
body_chunks[0x0305B00D] = Struct(
    "validation_ghost" / GbxNodeRef(CLASS_GHOST),
)

# 03092 CGameCtnGhost

body_chunks[0x03092005] = Struct("race_time" / Int32ul)
body_chunks[0x03092008] = Struct("respawns" / Int32ul)
body_chunks[0x0309200A] = Struct("stunt_score" / Int32ul)
body_chunks[0x0309200C] = Struct("u01" / Int32sl)
body_chunks[0x0309200E] = Struct("ghost_uid" / Int32sl)
body_chunks[0x0309200F] = Struct("ghost_login" / GbxString)
body_chunks[0x03092010] = Struct("validate_challenge_uid" / GbxLookbackString)
body_chunks[0x03092015] = Struct("ghost_nickname" / GbxString)
body_chunks[0x0309201C] = Struct("u01" / Bytes(32))

# 2E009 CGameWaypointSpecialProperty

body_chunks[0x2E009000] = Struct(
    "version" / Int32ul,
    "spawn" / GbxIf(this.version == 1, Int32ul),
    "tag" / GbxIf(this.version != 1, GbxString),
    "order" / Int32ul,
)
