from construct import (
    Adapter,
    Construct,
    IfThenElse,
    ListContainer,
    SizeofError,
    Subconstruct,
    evaluate,
)


def get_cursor(context):
    return context._params.cursor


class GbxValidator(Adapter):
    r"""
    Same as ExprValidator but raises a typed error built from the offending value

    :param subcon: Construct instance, subcon to parse
    :param validator: lambda that takes the parsed value and returns True when it is valid
    :param error: callable that takes the parsed value and returns the exception to raise

    Example::

        >>> d = GbxValidator(Int16ul, lambda v: v >= 3, VersionNotSupportedError)
        >>> d.parse(b"\x02\x00")
        VersionNotSupportedError: GBX version 2 not supported
    """

    def __init__(self, subcon, validator, error):
        super().__init__(subcon)
        self.validator = validator
        self.error = error

    def _decode(self, obj, context, path):
        if not self.validator(obj):
            raise self.error(obj)
        return obj


class StrictEnum(Adapter):
    r"""
    Maps a raw value onto a python Enum, unknown values are an error instead of being passed through
    """

    def __init__(self, subcon, enum_type, error):
        super().__init__(subcon)
        self.enum_type = enum_type
        self.error = error

    def _decode(self, obj, context, path):
        try:
            return self.enum_type(obj)
        except ValueError:
            raise self.error(obj) from None


class GbxPascalString(Construct):
    r"""
    u32 length followed by utf-8 bytes, bounds checked against the whole session buffer
    """

    def _parse(self, stream, context, path):
        return get_cursor(context).read_string()


class LookbackString(Construct):
    r"""
    String interned in the session lookback table, see BodyCursor.read_lookback_string
    """

    def _parse(self, stream, context, path):
        return get_cursor(context).read_lookback_string()


class NodeRef(Construct):
    r"""
    Index of a node of the session, parsed on its first occurrence and shared afterwards

    :param expected_class_id: optional, int, the referenced node must be of this class
    """

    def __init__(self, expected_class_id=None):
        super().__init__()
        self.expected_class_id = expected_class_id

    def _parse(self, stream, context, path):
        cursor = get_cursor(context)
        if self.expected_class_id is None:
            return cursor.read_node_ref()
        return cursor.expect_node_ref(self.expected_class_id)


class ForceSkip(Construct):
    r"""
    Skips bytes one at a time until the next chunk of the same class (or the final FACADE01)

    Used for chunks whose layout is too irregular to be described. Parses to the number of skipped bytes.
    """

    def __init__(self, chunk_id):
        super().__init__()
        self.chunk_id = chunk_id

    def _parse(self, stream, context, path):
        return get_cursor(context).force_skip(self.chunk_id)


class BlockArray(Subconstruct):
    r"""
    Repeats subcon following the block counting rules of the map block data

    Elements parsed to None are placeholders: they are dropped and don't count. At least one element is parsed, even if
    count is 0. Once count is reached, parsing goes on while the next u32 has one of its 2 upper bits set.

    :param count: integer or context lambda, number of real elements
    :param subcon: Construct instance, subcon used to parse each element
    """

    def __init__(self, count, subcon):
        super().__init__(subcon)
        self.count = count

    def _parse(self, stream, context, path):
        count = evaluate(self.count, context)
        cursor = get_cursor(context)
        obj = ListContainer()
        while True:
            e = self.subcon._parsereport(stream, context, path)
            if e is not None:
                obj.append(e)
            if len(obj) >= count:
                break
        while cursor.peek_u32() & 0xC0000000:
            e = self.subcon._parsereport(stream, context, path)
            if e is not None:
                obj.append(e)
        return obj

    def _sizeof(self, context, path):
        raise SizeofError("cannot calculate size, amount depends on actual data", path=path)


class Unread:
    def __repr__(self):
        return "UNREAD"


UNREAD = Unread()


class UnreadField(Construct):
    r"""
    Consumes nothing and parses to UNREAD
    """

    def _parse(self, stream, context, path):
        return UNREAD

    def _build(self, obj, stream, context, path):
        return obj

    def _sizeof(self, context, path):
        return 0


def GbxIf(condfunc, subcon):
    r"""
    Same as If but a false condition parses to UNREAD instead of None

    Chunk fields behind a version gate use it, so that a gated out field is told apart from a field read as None (an
    absent node reference) when the chunk is applied to its instance.
    """
    return IfThenElse(condfunc, subcon, UnreadField())
