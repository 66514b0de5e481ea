import logging
from dataclasses import dataclass, field, fields
from typing import ClassVar

from .errors import IncorrectTypeError, InvalidChunkForClassError, InvalidClassError, annotate
from .gbx_enums import (
    CLASS_BLOCK_SKIN,
    CLASS_CHALLENGE,
    CLASS_CHALLENGE_PARAMETERS,
    CLASS_COLLECTOR_LIST,
    CLASS_GHOST,
    CLASS_WAYPOINT_SPECIAL_PROPERTY,
    LAST_CHUNK_ID,
    SKIP_MARKER,
    class_wrap,
    wrap_chunk_id,
)
from .gbx_structs import body_chunks
from .my_construct import UNREAD

logger = logging.getLogger(__name__)

class_registry = {}


def register_class(cls):
    """Registers a ClassInstance subclass and collects its chunk layouts from `body_chunks`"""
    cls.chunks = {
        chunk_id: layout
        for chunk_id, layout in body_chunks.items()
        if chunk_id & 0xFFFFF000 == cls.CLASS_ID
    }
    class_registry[cls.CLASS_ID] = cls
    return cls


def parse_class(cursor, class_id):
    cls = class_registry.get(class_wrap(class_id))
    if cls is None:
        raise InvalidClassError(class_id)

    instance = cls()
    with annotate(f"Parsing class {class_id:08x}"):
        instance.parse_full(cursor)
    return instance


@dataclass
class ClassInstance:
    CLASS_ID: ClassVar[int] = 0
    chunks: ClassVar[dict] = {}

    @classmethod
    def supports(cls, chunk_id):
        return chunk_id in cls.chunks

    @classmethod
    def coerce(cls, node):
        if node is not None and not isinstance(node, cls):
            raise IncorrectTypeError(wanted=cls.CLASS_ID, had=node.CLASS_ID)
        return node

    def apply(self, values):
        # fields cut by StopIf are missing, fields gated out by GbxIf are UNREAD
        for f in fields(self):
            value = values.get(f.name, UNREAD)
            if value is not UNREAD:
                setattr(self, f.name, value)

    def handle_chunk(self, cursor, chunk_id):
        layout = self.chunks.get(chunk_id)
        if layout is None:
            raise InvalidChunkForClassError(chunk_id, self.CLASS_ID)

        with annotate(f"Handling chunk {chunk_id:08x} for class {self.CLASS_ID:08x}"):
            values = cursor.parse(layout)
        self.apply(values)

    def parse_one(self, cursor, full_chunk_id):
        chunk_id = wrap_chunk_id(full_chunk_id)
        logger.debug("chunk %08x (%08x) at %d", chunk_id, full_chunk_id, cursor.position)

        if cursor.peek_u32() == SKIP_MARKER:
            cursor.read_u32()
            with annotate(f"Reading size of skippable chunk {chunk_id:08x}"):
                size = cursor.read_u32()
            if not self.supports(chunk_id):
                logger.warning("Skipping chunk %08x (%d bytes)", chunk_id, size)
                cursor.seek_relative(size)
                return

        self.handle_chunk(cursor, chunk_id)

    def parse_full(self, cursor):
        while True:
            with annotate("Reading chunk ID"):
                full_chunk_id = cursor.read_u32()
            if full_chunk_id == LAST_CHUNK_ID:
                return self
            self.parse_one(cursor, full_chunk_id)


@register_class
@dataclass
class CtnCollectorList(ClassInstance):
    CLASS_ID: ClassVar[int] = CLASS_COLLECTOR_LIST

    block_set: list = field(default_factory=list)


@register_class
@dataclass
class CtnBlockSkin(ClassInstance):
    CLASS_ID: ClassVar[int] = CLASS_BLOCK_SKIN

    text: str = None
    pack_desc: str = None
    parent_pack_desc: str = None
    foreground_pack_desc: str = None


@register_class
@dataclass
class WaypointSpecialProperty(ClassInstance):
    CLASS_ID: ClassVar[int] = CLASS_WAYPOINT_SPECIAL_PROPERTY

    order: int = None
    spawn: int = None
    tag: str = None


@register_class
@dataclass
class CtnGhost(ClassInstance):
    CLASS_ID: ClassVar[int] = CLASS_GHOST

    race_time: int = None
    respawns: int = None
    stunt_score: int = None
    ghost_uid: int = None
    ghost_login: str = None
    validate_challenge_uid: str = None
    ghost_nickname: str = None


@register_class
@dataclass
class CtnChallengeParameters(ClassInstance):
    CLASS_ID: ClassVar[int] = CLASS_CHALLENGE_PARAMETERS

    tip: str = None
    tip1: str = None
    tip2: str = None
    tip3: str = None
    tip4: str = None
    bronze_time: int = None
    silver_time: int = None
    gold_time: int = None
    author_time: int = None
    time_limit: int = None
    author_score: int = None
    validation_ghost: CtnGhost = None


@register_class
@dataclass
class CtnChallenge(ClassInstance):
    CLASS_ID: ClassVar[int] = CLASS_CHALLENGE

    map_info: object = None
    map_name: str = None
    vehicle_model: object = None
    decoration: object = None
    block_stock: CtnCollectorList = None
    challenge_parameters: CtnChallengeParameters = None
    map_kind: int = None
    size: tuple = None
    need_unlock: bool = None
    blocks: list = None

    # map info
    bronze_time: int = None
    silver_time: int = None
    gold_time: int = None
    author_time: int = None
    cost: int = None
    is_lap_race: bool = None
    play_mode: int = None
    author_score: int = None
    editor_mode: int = None
    nb_checkpoints: int = None
    nb_laps: int = None
    password: str = None
    map_type: str = None
    map_style: str = None
    map_coord_origin: tuple = None
    map_coord_target: tuple = None
    title_id: str = None

    header_version: int = None
    xml_data: str = None
    thumbnail_data: bytes = None
    comments: str = None

    author_login: str = None
    author_nickname: str = None
    author_zone: str = None
    author_extra_info: str = None

    custom_music_pack_desc: str = None
