from contextlib import contextmanager

from construct import ConstructError, StreamError


class GbxError(Exception):
    """Base of every decode failure.

    `context` is the trail of operations the error went through on its way
    out, innermost first. It is informational only.
    """

    message = "GBX decoding error"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.context = []

    @property
    def root_message(self):
        return super().__str__()

    def add_context(self, context):
        self.context.append(context)
        return self

    def __str__(self):
        return "\n  ".join([self.root_message, *self.context])


# transport


class GbxStreamError(GbxError):
    message = "I/O error"


# format validity


class FormatError(GbxError):
    message = "Invalid GBX format"


class NotGbxError(FormatError):
    def __init__(self, magic=b""):
        self.magic = magic
        super().__init__("Not a GBX file")


class VersionNotSupportedError(FormatError):
    def __init__(self, version):
        self.version = version
        super().__init__(f"GBX version {version} not supported")


class NoHeaderChunksError(FormatError):
    message = "No header chunks"


class InvalidByteFormatError(FormatError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid byte format {value}")


class InvalidCompressionStateError(FormatError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid compression state {value}")


class NotCompressedError(FormatError):
    message = "Not compressed - uncompressed gbx bodies are not supported"


class DecompressionError(FormatError):
    message = "Could not decompress"


class InputTooLargeError(FormatError):
    def __init__(self, size, limit):
        self.size = size
        self.limit = limit
        super().__init__(f"Input of {size} bytes exceeds {limit} bytes")


# structural corruption


class CorruptionError(GbxError):
    message = "Corrupted data"


class InvalidLookbackStringError(CorruptionError):
    def __init__(self, index=None):
        self.index = index
        super().__init__("Invalid lookback string, file may be corrupted")


class InvalidNodeRefError(CorruptionError):
    def __init__(self, index=None):
        self.index = index
        super().__init__(f"Invalid node reference {index}")


class NodeDepthError(CorruptionError):
    def __init__(self, depth):
        self.depth = depth
        super().__init__(f"Node references nested deeper than {depth} levels")


class InvalidStringError(CorruptionError):
    def __init__(self, start, end):
        self.start = start
        self.end = end
        super().__init__(f"Invalid string from {start:08x} to {end:08x}")


class InvalidUtf8Error(CorruptionError):
    message = "Invalid UTF-8"


# schema mismatch


class SchemaError(GbxError):
    message = "Unexpected class or chunk"


class InvalidClassError(SchemaError):
    def __init__(self, class_id):
        self.class_id = class_id
        super().__init__(f"Could not parse class with ID {class_id:08x}")


class IncorrectTypeError(SchemaError):
    def __init__(self, wanted, had):
        self.wanted = wanted
        self.had = had
        super().__init__(f"Wanted to parse class ID {wanted:08x}, had class ID {had:08x} instead")


class InvalidChunkForClassError(SchemaError):
    def __init__(self, chunk_id, class_id):
        self.chunk_id = chunk_id
        self.class_id = class_id
        super().__init__(f"Invalid chunk {chunk_id:08x} for class {class_id:08x}")


def from_construct_error(error):
    # construct prefixes its message with an "Error in path" line, only the last line is kept
    lines = str(error).splitlines()
    message = lines[-1] if lines else None
    if isinstance(error, StreamError):
        return GbxStreamError(message)
    return CorruptionError(message)


@contextmanager
def annotate(context):
    """Append `context` to any GbxError raised inside the block.

    Raw construct errors are converted on the way, so nothing but GbxError
    leaves an annotated block.
    """
    try:
        yield
    except GbxError as e:
        e.add_context(context)
        raise
    except ConstructError as e:
        raise from_construct_error(e).add_context(context) from e
