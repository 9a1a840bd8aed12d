"""gltfimport — validated glTF 2.0 loading and typed accessor decoding."""

from gltfimport.buffers import FileLoader, Loader, resolve_buffer, resolve_buffers
from gltfimport.config import DEFAULT_CONFIG, ImportConfig, load_config
from gltfimport.container import Container, parse_container, write_container
from gltfimport.decode import AccessorSequence, read_accessor
from gltfimport.document import Document, Index
from gltfimport.errors import (
    AccessorError,
    ContainerError,
    GltfError,
    LoaderError,
    SchemaError,
    ValidationError,
)
from gltfimport.images import ImageData, read_image
from gltfimport.importer import ImportResult, import_file, import_gltf
from gltfimport.primitives import (
    read_animation_sampler,
    read_colors,
    read_indices,
    read_inverse_bind_matrices,
    read_joints,
    read_morph_targets,
    read_normals,
    read_positions,
    read_tangents,
    read_tex_coords,
    read_weights,
)
from gltfimport.validation import validate

__version__ = "0.1.0"

__all__ = [
    "AccessorError", "AccessorSequence", "Container", "ContainerError", "DEFAULT_CONFIG",
    "Document", "FileLoader", "GltfError", "ImageData", "ImportConfig", "ImportResult",
    "Index", "Loader", "LoaderError", "SchemaError", "ValidationError", "import_file",
    "import_gltf", "load_config", "parse_container", "read_accessor", "read_animation_sampler",
    "read_colors", "read_image", "read_indices", "read_inverse_bind_matrices", "read_joints",
    "read_morph_targets", "read_normals", "read_positions", "read_tangents", "read_tex_coords",
    "read_weights", "resolve_buffer", "resolve_buffers", "validate", "write_container",
]
