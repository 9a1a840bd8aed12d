"""
Buffer resolver — turns each Buffer descriptor into its bytes.

Sources, in order: the container's binary segment (first buffer, no URI),
an inline data URI, or the caller's loader for anything else.
"""

import base64
import binascii
import logging
from pathlib import Path
from typing import Callable
from urllib.parse import unquote, unquote_to_bytes

from gltfimport.config import DEFAULT_CONFIG, ImportConfig
from gltfimport.document import Document
from gltfimport.errors import GltfError, InvalidUri, LengthMismatch, LimitExceeded, LoaderError

logger = logging.getLogger(__name__)

Loader = Callable[[str], bytes]

# a BIN chunk is padded to 4 bytes, so it may exceed the buffer's byteLength by up to 3
_MAX_BIN_PADDING = 3


def decode_data_uri(uri: str, path: str = "") -> tuple[bytes, str | None]:
    """Decode a data: URI into (payload, media type)."""
    header, sep, payload = uri.partition(",")
    if not header.startswith("data:") or not sep:
        raise InvalidUri(f"malformed data URI {uri[:40]!r}", path)
    params = header[len("data:"):].split(";")
    media_type = params[0] or None
    try:
        if "base64" in params[1:]:
            return base64.b64decode(payload, validate=True), media_type
        return unquote_to_bytes(payload), media_type
    except (binascii.Error, ValueError) as e:
        raise InvalidUri(f"invalid data URI payload: {e}", path) from e


def load_uri(uri: str, loader: Loader | None, path: str = "") -> bytes:
    """Run the caller's loader, wrapping whatever it raises in LoaderError."""
    if loader is None:
        raise LoaderError(uri, "external URI but no loader was supplied")
    try:
        data = loader(uri)
    except GltfError:
        raise
    except Exception as e:
        raise LoaderError(uri, str(e) or type(e).__name__) from e
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise LoaderError(uri, f"loader returned {type(data).__name__}, expected bytes")
    return bytes(data)


def resolve_buffer(
    document: Document,
    index: int,
    binary: bytes | None,
    loader: Loader | None = None,
    config: ImportConfig = DEFAULT_CONFIG,
) -> bytes:
    """Return the bytes backing buffers[index]; length always equals byteLength."""
    buffer = document.buffers[index]
    path = f"buffers[{index}]"
    declared = buffer.byte_length
    if declared > config.max_buffer_bytes:
        raise LimitExceeded(f"{path}.byteLength", declared, config.max_buffer_bytes)

    if buffer.uri is None:
        if index != 0 or binary is None:
            raise InvalidUri("buffer has no uri and no binary segment is available", path)
        data = binary
        if declared <= len(data) <= declared + _MAX_BIN_PADDING:
            data = data[:declared]
        source = "binary segment"
    elif buffer.uri.startswith("data:"):
        data, _ = decode_data_uri(buffer.uri, f"{path}.uri")
        source = "data uri"
    else:
        data = load_uri(buffer.uri, loader, f"{path}.uri")
        source = buffer.uri

    if len(data) != declared:
        raise LengthMismatch(path, declared, len(data))
    logger.debug("Resolved %s from %s (%d bytes)", path, source, len(data))
    return data


def resolve_buffers(
    document: Document,
    binary: bytes | None,
    loader: Loader | None = None,
    config: ImportConfig = DEFAULT_CONFIG,
) -> tuple[bytes, ...]:
    return tuple(
        resolve_buffer(document, i, binary, loader, config)
        for i in range(len(document.buffers))
    )


# ---------------------------------------------------------------------------
# File-system loader
# ---------------------------------------------------------------------------

class FileLoader:
    """Loads relative URIs from a base directory, refusing paths that escape it."""

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir).resolve()

    def __call__(self, uri: str) -> bytes:
        if "://" in uri:
            raise PermissionError(f"Only relative file URIs are supported: {uri}")
        resolved = (self.base_dir / unquote(uri)).resolve()
        if not resolved.is_relative_to(self.base_dir):
            raise PermissionError(f"Path escapes base directory: {uri}")
        return resolved.read_bytes()
