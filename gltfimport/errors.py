"""
Error taxonomy for the glTF import pipeline.

Every failure surfaces as a subclass of GltfError so callers can catch
one family (container, schema, validation, loader, accessor) or everything.
"""


class GltfError(Exception):
    """Base exception for all import and decode errors."""


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------

class ContainerError(GltfError):
    """Raised when the binary container framing is malformed."""


class MagicMismatch(ContainerError):
    pass


class VersionUnsupported(ContainerError):
    def __init__(self, version: int):
        super().__init__(f"Unsupported container version: {version}")
        self.version = version


class UnexpectedChunkType(ContainerError):
    def __init__(self, chunk_type: int, offset: int):
        tag = chunk_type.to_bytes(4, "little")
        super().__init__(f"Unexpected chunk type {tag!r} at byte {offset}")
        self.chunk_type = chunk_type
        self.offset = offset


class ChunkLengthOverflow(ContainerError):
    def __init__(self, declared: int, remaining: int, offset: int):
        super().__init__(
            f"Chunk at byte {offset} declares {declared} bytes "
            f"but only {remaining} remain"
        )
        self.declared = declared
        self.remaining = remaining
        self.offset = offset


class TruncatedInput(ContainerError):
    pass


class SegmentTooLarge(ContainerError):
    def __init__(self, segment: str, declared: int, limit: int):
        super().__init__(f"{segment} segment of {declared} bytes exceeds limit of {limit}")
        self.segment = segment
        self.declared = declared
        self.limit = limit


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

class SchemaError(GltfError):
    """Raised when the JSON document does not match the glTF schema."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class InvalidJson(SchemaError):
    pass


class MissingField(SchemaError):
    def __init__(self, path: str):
        super().__init__("missing required field", path)


class TypeMismatch(SchemaError):
    def __init__(self, path: str, expected: str, value):
        super().__init__(f"expected {expected}, got {type(value).__name__}", path)
        self.expected = expected
        self.value = value


class EnumOutOfRange(SchemaError):
    def __init__(self, path: str, value):
        super().__init__(f"value {value!r} is not allowed", path)
        self.value = value


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationError(GltfError):
    """Raised when a parsed document breaks a structural rule."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class IndexOutOfBounds(ValidationError):
    def __init__(self, path: str, index: int, length: int):
        super().__init__(f"index {index} out of bounds for array of length {length}", path)
        self.index = index
        self.length = length


class Cycle(ValidationError):
    def __init__(self, path: str, chain: list[int]):
        joined = " -> ".join(str(n) for n in chain)
        super().__init__(f"node hierarchy contains a cycle: {joined}", path)
        self.chain = chain


class LengthMismatch(ValidationError):
    def __init__(self, path: str, expected: int, actual: int):
        super().__init__(f"expected {expected} bytes, got {actual}", path)
        self.expected = expected
        self.actual = actual


class InvalidValue(ValidationError):
    pass


class RangeExceeded(ValidationError):
    pass


class LimitExceeded(ValidationError):
    def __init__(self, path: str, value: int, limit: int):
        super().__init__(f"{value} exceeds configured limit of {limit}", path)
        self.value = value
        self.limit = limit


class UnsupportedExtension(ValidationError):
    def __init__(self, name: str):
        super().__init__(f"required extension {name!r} is not supported", "extensionsRequired")
        self.name = name


class InvalidUri(ValidationError):
    pass


class ValidationFailed(ValidationError):
    """All errors found by a collect-all validation run."""

    def __init__(self, errors: list[ValidationError]):
        lines = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"{len(errors)} validation error(s):\n{lines}")
        self.errors = errors


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class LoaderError(GltfError):
    """Raised when the caller-supplied loader cannot produce a URI's bytes."""

    def __init__(self, uri: str, message: str):
        super().__init__(f"{uri}: {message}")
        self.uri = uri


# ---------------------------------------------------------------------------
# Accessor decode
# ---------------------------------------------------------------------------

class AccessorError(GltfError):
    """Raised by read_accessor when an accessor cannot be decoded."""

    def __init__(self, message: str, accessor: int | None = None):
        prefix = f"accessors[{accessor}]: " if accessor is not None else ""
        super().__init__(prefix + message)
        self.accessor = accessor


class OutOfBounds(AccessorError):
    pass


class UnsupportedComponentCombination(AccessorError):
    pass


class SparseIndexOutOfOrder(AccessorError):
    def __init__(self, accessor: int, position: int, previous: int, current: int):
        super().__init__(
            f"sparse index {current} at position {position} does not follow {previous}",
            accessor,
        )
        self.position = position
        self.previous = previous
        self.current = current


class InvalidStride(AccessorError):
    pass
