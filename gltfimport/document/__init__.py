"""
Document model — typed, immutable view of a glTF JSON segment.

Entities live in flat tuples on Document and refer to each other only through
Index values. Nothing here checks that an index is in range; that is the
validator's job.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from gltfimport.document import fields as f
from gltfimport.document.animation import (
    Animation,
    AnimationSampler,
    Channel,
    ChannelTarget,
    Interpolation,
    TargetPath,
)
from gltfimport.document.buffer import (
    Accessor,
    AccessorType,
    Buffer,
    BufferTarget,
    BufferView,
    ComponentType,
    Sparse,
    SparseIndices,
    SparseValues,
    element_size,
)
from gltfimport.document.index import Index
from gltfimport.document.material import (
    DEFAULT_MATERIAL,
    DEFAULT_SAMPLER,
    AlphaMode,
    Image,
    MagFilter,
    Material,
    MimeType,
    MinFilter,
    PbrMetallicRoughness,
    Sampler,
    Texture,
    TextureInfo,
    WrappingMode,
)
from gltfimport.document.mesh import Mesh, Mode, Primitive
from gltfimport.document.scene import Camera, CameraType, Node, Orthographic, Perspective, Scene, Skin
from gltfimport.errors import InvalidJson, TypeMismatch

logger = logging.getLogger(__name__)

# (document attribute, JSON key, entity type), in the order validation visits them
COLLECTIONS = (
    ("buffers", "buffers", Buffer),
    ("buffer_views", "bufferViews", BufferView),
    ("accessors", "accessors", Accessor),
    ("images", "images", Image),
    ("samplers", "samplers", Sampler),
    ("textures", "textures", Texture),
    ("materials", "materials", Material),
    ("meshes", "meshes", Mesh),
    ("cameras", "cameras", Camera),
    ("skins", "skins", Skin),
    ("nodes", "nodes", Node),
    ("scenes", "scenes", Scene),
    ("animations", "animations", Animation),
)


@dataclass(frozen=True)
class Asset:
    version: str
    min_version: str | None = None
    generator: str | None = None
    copyright: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Asset":
        return cls(
            version=f.required(data, "version", path, "string"),
            min_version=f.optional(data, "minVersion", path, "string"),
            generator=f.optional(data, "generator", path, "string"),
            copyright=f.optional(data, "copyright", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )


@dataclass(frozen=True)
class Document:
    asset: Asset
    scene: Index["Scene"] | None = None
    scenes: tuple[Scene, ...] = ()
    nodes: tuple[Node, ...] = ()
    meshes: tuple[Mesh, ...] = ()
    accessors: tuple[Accessor, ...] = ()
    buffer_views: tuple[BufferView, ...] = ()
    buffers: tuple[Buffer, ...] = ()
    materials: tuple[Material, ...] = ()
    textures: tuple[Texture, ...] = ()
    images: tuple[Image, ...] = ()
    samplers: tuple[Sampler, ...] = ()
    cameras: tuple[Camera, ...] = ()
    skins: tuple[Skin, ...] = ()
    animations: tuple[Animation, ...] = ()
    extensions_used: tuple[str, ...] = ()
    extensions_required: tuple[str, ...] = ()
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, segment: bytes | str | dict) -> "Document":
        """Build a Document from a JSON segment, raw text or an already parsed dict."""
        if isinstance(segment, (bytes, bytearray, memoryview)):
            try:
                segment = bytes(segment).decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise InvalidJson(f"JSON segment is not valid UTF-8: {e}") from e
        if isinstance(segment, str):
            try:
                segment = json.loads(segment)
            except json.JSONDecodeError as e:
                raise InvalidJson(f"Malformed JSON: {e}") from e
        if not isinstance(segment, dict):
            raise TypeMismatch("<root>", "object", segment)

        root = segment
        arrays = {
            attr: f.children(root, key, "", entity.from_json)
            for attr, key, entity in COLLECTIONS
        }
        document = cls(
            asset=f.child(root, "asset", "", Asset.from_json, is_required=True),
            scene=f.index(root, "scene", ""),
            extensions_used=f.strings(root, "extensionsUsed", ""),
            extensions_required=f.strings(root, "extensionsRequired", ""),
            extensions=f.extensions(root, ""),
            extras=f.extras(root),
            **arrays,
        )
        logger.debug(
            "Parsed document: %d nodes, %d meshes, %d accessors, %d buffers",
            len(document.nodes), len(document.meshes),
            len(document.accessors), len(document.buffers),
        )
        return document

    # ------------------------------------------------------------------
    # Traversal helpers
    # ------------------------------------------------------------------

    def entities(self) -> Iterator[tuple[str, Any]]:
        """Yield (path, entity) for every top-level entity in validation order."""
        for attr, key, _ in COLLECTIONS:
            for i, entity in enumerate(getattr(self, attr)):
                yield f"{key}[{i}]", entity

    def default_scene(self) -> Scene | None:
        if self.scene is not None:
            return self.scene.get(self.scenes)
        return self.scenes[0] if self.scenes else None

    def root_nodes(self, scene: Scene | None = None) -> tuple[Node, ...]:
        scene = scene if scene is not None else self.default_scene()
        if scene is None:
            return ()
        return tuple(index.get(self.nodes) for index in scene.nodes)

    def parents(self) -> dict[int, int]:
        """Map each child node index to its parent node index."""
        result = {}
        for parent, node in enumerate(self.nodes):
            for child in node.children:
                result[int(child)] = parent
        return result

    def texture_sampler(self, texture: Texture) -> Sampler:
        if texture.sampler is None:
            return DEFAULT_SAMPLER
        return texture.sampler.get(self.samplers)

    def primitive_material(self, primitive: Primitive) -> Material:
        if primitive.material is None:
            return DEFAULT_MATERIAL
        return primitive.material.get(self.materials)


__all__ = [
    "Accessor", "AccessorType", "AlphaMode", "Animation", "AnimationSampler", "Asset",
    "Buffer", "BufferTarget", "BufferView", "Camera", "CameraType", "Channel",
    "ChannelTarget", "ComponentType", "COLLECTIONS", "DEFAULT_MATERIAL", "DEFAULT_SAMPLER",
    "Document", "Image", "Index", "Interpolation", "MagFilter", "Material", "Mesh",
    "MimeType", "MinFilter", "Mode", "Node", "Orthographic", "PbrMetallicRoughness",
    "Perspective", "Primitive", "Sampler", "Scene", "Skin", "Sparse", "SparseIndices",
    "SparseValues", "TargetPath", "Texture", "TextureInfo", "WrappingMode", "element_size",
]
