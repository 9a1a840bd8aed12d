"""
Import pipeline — raw bytes in, validated Document and buffer bytes out.

Steps: container split, JSON deserialization, validation, buffer resolution.
Any failure propagates as a GltfError; nothing partial is returned.
"""

import logging
from pathlib import Path
from typing import NamedTuple

from gltfimport.buffers import FileLoader, Loader, resolve_buffers
from gltfimport.config import DEFAULT_CONFIG, ImportConfig
from gltfimport.container import parse_container
from gltfimport.document import Document
from gltfimport.validation import validate

logger = logging.getLogger(__name__)


class ImportResult(NamedTuple):
    document: Document
    buffers: tuple[bytes, ...]


def import_gltf(data: bytes, loader: Loader | None = None,
                config: ImportConfig | None = None) -> ImportResult:
    """Run the full pipeline over .gltf or .glb bytes."""
    config = config or DEFAULT_CONFIG
    container = parse_container(data, config)
    document = Document.from_json(container.json)
    validate(document, config)
    buffers = resolve_buffers(document, container.binary, loader, config)
    logger.info(
        "Imported glTF %s: %d scenes, %d nodes, %d meshes, %d accessors, %d buffers (%d bytes)",
        document.asset.version, len(document.scenes), len(document.nodes),
        len(document.meshes), len(document.accessors), len(buffers),
        sum(len(b) for b in buffers),
    )
    return ImportResult(document, buffers)


def import_file(path: Path | str, config: ImportConfig | None = None) -> ImportResult:
    """Import a file from disk, resolving external URIs next to it."""
    path = Path(path)
    return import_gltf(path.read_bytes(), FileLoader(path.parent), config)
