"""
Container parser — splits .glb / .gltf input into a JSON segment and an
optional binary payload segment.

Binary layout (little endian):
  header: magic "glTF" | version u32 (= 2) | total length u32
  chunks: length u32 | type u32 | payload, padded to 4 bytes
The first chunk is JSON; at most one BIN chunk may follow.
"""

import enum
import logging
import struct
from dataclasses import dataclass

from gltfimport.config import DEFAULT_CONFIG, ImportConfig
from gltfimport.errors import (
    ChunkLengthOverflow,
    MagicMismatch,
    SegmentTooLarge,
    TruncatedInput,
    UnexpectedChunkType,
    VersionUnsupported,
)

logger = logging.getLogger(__name__)

GLB_MAGIC = b"glTF"
GLB_VERSION = 2
HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8

CHUNK_TYPE_JSON = 0x4E4F534A  # b"JSON"
CHUNK_TYPE_BIN = 0x004E4942  # b"BIN\0"

_HEADER = struct.Struct("<4sII")
_CHUNK_HEADER = struct.Struct("<II")

_UTF8_BOM = b"\xef\xbb\xbf"
_JSON_WHITESPACE = b" \t\r\n"


@dataclass(frozen=True)
class Container:
    json: bytes
    binary: bytes | None = None


class _State(enum.Enum):
    EXPECT_MAGIC = enum.auto()
    EXPECT_JSON_CHUNK_HEADER = enum.auto()
    READ_JSON_CHUNK = enum.auto()
    EXPECT_OPTIONAL_BIN_CHUNK_HEADER = enum.auto()
    READ_BIN_CHUNK = enum.auto()
    DONE = enum.auto()


def _align4(n: int) -> int:
    return (n + 3) & ~3


def is_plain_json(data: bytes) -> bool:
    """True when the input looks like a JSON text rather than a container."""
    head = data[len(_UTF8_BOM):] if data.startswith(_UTF8_BOM) else data
    return head.lstrip(_JSON_WHITESPACE)[:1] == b"{"


def parse_container(data: bytes, config: ImportConfig = DEFAULT_CONFIG) -> Container:
    """Split raw input into its JSON segment and optional binary segment.

    Plain JSON text passes through unchanged with no binary segment. Anything
    that is neither JSON nor starts with the container magic is rejected.
    """
    data = bytes(data)
    if not data.startswith(GLB_MAGIC):
        if is_plain_json(data):
            if len(data) > config.max_json_bytes:
                raise SegmentTooLarge("JSON", len(data), config.max_json_bytes)
            return Container(json=data)
        raise MagicMismatch(f"Input is neither JSON nor a glTF container (magic {data[:4]!r})")
    return _ContainerReader(data, config).run()


class _ContainerReader:
    """Walks the container header and chunks one state at a time."""

    def __init__(self, data: bytes, config: ImportConfig):
        self.data = data
        self.config = config
        self.end = len(data)
        self.offset = 0
        self.chunk_length = 0
        self.json: bytes | None = None
        self.binary: bytes | None = None

    def run(self) -> Container:
        state = _State.EXPECT_MAGIC
        while state is not _State.DONE:
            state = getattr(self, f"_{state.name.lower()}")()
        return Container(json=self.json, binary=self.binary)

    # -- states --------------------------------------------------------------

    def _expect_magic(self) -> _State:
        if len(self.data) < HEADER_SIZE:
            raise TruncatedInput(f"Container header needs {HEADER_SIZE} bytes, got {len(self.data)}")
        magic, version, length = _HEADER.unpack_from(self.data, 0)
        if magic != GLB_MAGIC:
            raise MagicMismatch(f"Invalid container magic {magic!r}")
        if version != GLB_VERSION:
            raise VersionUnsupported(version)
        if length > len(self.data):
            raise TruncatedInput(f"Container declares {length} bytes but input has {len(self.data)}")
        if length < HEADER_SIZE + CHUNK_HEADER_SIZE:
            raise TruncatedInput(f"Container length {length} leaves no room for a JSON chunk")
        if length < len(self.data):
            logger.debug("Ignoring %d trailing bytes after container", len(self.data) - length)
        self.end = length
        self.offset = HEADER_SIZE
        return _State.EXPECT_JSON_CHUNK_HEADER

    def _expect_json_chunk_header(self) -> _State:
        chunk_type = self._read_chunk_header()
        if chunk_type != CHUNK_TYPE_JSON:
            raise UnexpectedChunkType(chunk_type, self.offset - CHUNK_HEADER_SIZE)
        if self.chunk_length > self.config.max_json_bytes:
            raise SegmentTooLarge("JSON", self.chunk_length, self.config.max_json_bytes)
        return _State.READ_JSON_CHUNK

    def _read_json_chunk(self) -> _State:
        self.json = self._take_payload()
        logger.debug("JSON chunk: %d bytes", len(self.json))
        return _State.EXPECT_OPTIONAL_BIN_CHUNK_HEADER

    def _expect_optional_bin_chunk_header(self) -> _State:
        while self.offset < self.end:
            start = self.offset
            chunk_type = self._read_chunk_header()
            if chunk_type == CHUNK_TYPE_BIN and self.binary is None:
                if self.chunk_length > self.config.max_binary_bytes:
                    raise SegmentTooLarge("BIN", self.chunk_length, self.config.max_binary_bytes)
                return _State.READ_BIN_CHUNK
            if chunk_type in (CHUNK_TYPE_JSON, CHUNK_TYPE_BIN):
                raise UnexpectedChunkType(chunk_type, start)
            logger.warning(
                "Skipping unknown chunk type %r at byte %d",
                chunk_type.to_bytes(4, "little"), start,
            )
            self._take_payload()
        return _State.DONE

    def _read_bin_chunk(self) -> _State:
        self.binary = self._take_payload()
        logger.debug("BIN chunk: %d bytes", len(self.binary))
        return _State.EXPECT_OPTIONAL_BIN_CHUNK_HEADER

    # -- helpers -------------------------------------------------------------

    def _read_chunk_header(self) -> int:
        if self.offset + CHUNK_HEADER_SIZE > self.end:
            raise TruncatedInput(f"Missing chunk header at byte {self.offset}")
        self.chunk_length, chunk_type = _CHUNK_HEADER.unpack_from(self.data, self.offset)
        self.offset += CHUNK_HEADER_SIZE
        remaining = self.end - self.offset
        if self.chunk_length > remaining:
            raise ChunkLengthOverflow(self.chunk_length, remaining, self.offset - CHUNK_HEADER_SIZE)
        return chunk_type

    def _take_payload(self) -> bytes:
        payload = self.data[self.offset:self.offset + self.chunk_length]
        self.offset = min(self.end, self.offset + _align4(self.chunk_length))
        return payload


def write_container(json_segment: bytes, binary: bytes | None = None) -> bytes:
    """Pack a JSON segment and optional binary payload into a glTF container."""
    json_chunk = json_segment + b" " * (_align4(len(json_segment)) - len(json_segment))
    chunks = [(CHUNK_TYPE_JSON, json_chunk)]
    if binary is not None:
        chunks.append((CHUNK_TYPE_BIN, binary + b"\0" * (_align4(len(binary)) - len(binary))))

    total = HEADER_SIZE + sum(CHUNK_HEADER_SIZE + len(payload) for _, payload in chunks)
    out = bytearray(_HEADER.pack(GLB_MAGIC, GLB_VERSION, total))
    for chunk_type, payload in chunks:
        out += _CHUNK_HEADER.pack(len(payload), chunk_type)
        out += payload
    return bytes(out)
