"""
Materials, textures, images and samplers.

DEFAULT_SAMPLER and DEFAULT_MATERIAL are the values glTF prescribes when a
texture has no sampler or a primitive has no material.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from gltfimport.document import fields as f
from gltfimport.document.index import Index
from gltfimport.errors import InvalidValue


# ---------------------------------------------------------------------------
# Samplers
# ---------------------------------------------------------------------------

class MagFilter(enum.IntEnum):
    NEAREST = 9728
    LINEAR = 9729


class MinFilter(enum.IntEnum):
    NEAREST = 9728
    LINEAR = 9729
    NEAREST_MIPMAP_NEAREST = 9984
    LINEAR_MIPMAP_NEAREST = 9985
    NEAREST_MIPMAP_LINEAR = 9986
    LINEAR_MIPMAP_LINEAR = 9987


class WrappingMode(enum.IntEnum):
    CLAMP_TO_EDGE = 33071
    MIRRORED_REPEAT = 33648
    REPEAT = 10497


@dataclass(frozen=True)
class Sampler:
    mag_filter: MagFilter | None = None
    min_filter: MinFilter | None = None
    wrap_s: WrappingMode = WrappingMode.REPEAT
    wrap_t: WrappingMode = WrappingMode.REPEAT
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Sampler":
        return cls(
            mag_filter=f.enum_value(data, "magFilter", path, MagFilter),
            min_filter=f.enum_value(data, "minFilter", path, MinFilter),
            wrap_s=f.enum_value(data, "wrapS", path, WrappingMode, default=WrappingMode.REPEAT),
            wrap_t=f.enum_value(data, "wrapT", path, WrappingMode, default=WrappingMode.REPEAT),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        pass

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        return iter(())


DEFAULT_SAMPLER = Sampler()


# ---------------------------------------------------------------------------
# Images and textures
# ---------------------------------------------------------------------------

class MimeType(str, enum.Enum):
    JPEG = "image/jpeg"
    PNG = "image/png"


@dataclass(frozen=True)
class Image:
    uri: str | None = None
    mime_type: MimeType | None = None
    buffer_view: Index | None = None
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Image":
        return cls(
            uri=f.optional(data, "uri", path, "string"),
            mime_type=f.enum_value(data, "mimeType", path, MimeType),
            buffer_view=f.index(data, "bufferView", path),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        if (self.uri is None) == (self.buffer_view is None):
            ctx.report(InvalidValue("exactly one of uri and bufferView must be set", path))
        if self.buffer_view is not None and self.mime_type is None:
            ctx.report(InvalidValue("mimeType is required with bufferView", f.join(path, "mimeType")))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        if self.buffer_view is not None:
            yield f.join(path, "bufferView"), "buffer_views", self.buffer_view


@dataclass(frozen=True)
class Texture:
    sampler: Index["Sampler"] | None = None
    source: Index["Image"] | None = None
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Texture":
        return cls(
            sampler=f.index(data, "sampler", path),
            source=f.index(data, "source", path),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        pass

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        if self.sampler is not None:
            yield f.join(path, "sampler"), "samplers", self.sampler
        if self.source is not None:
            yield f.join(path, "source"), "images", self.source


@dataclass(frozen=True)
class TextureInfo:
    index: Index["Texture"]
    tex_coord: int = 0
    # normalTexture.scale / occlusionTexture.strength; 1.0 otherwise
    scale: float = 1.0
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "TextureInfo":
        scale = f.optional(data, "scale", path, "number")
        if scale is None:
            scale = f.optional(data, "strength", path, "number", 1.0)
        return cls(
            index=f.index(data, "index", path, is_required=True),
            tex_coord=f.optional(data, "texCoord", path, "int", 0),
            scale=scale,
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        if self.tex_coord < 0:
            ctx.report(InvalidValue("texCoord must not be negative", f.join(path, "texCoord")))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        yield f.join(path, "index"), "textures", self.index


# ---------------------------------------------------------------------------
# Materials
# ---------------------------------------------------------------------------

class AlphaMode(str, enum.Enum):
    OPAQUE = "OPAQUE"
    MASK = "MASK"
    BLEND = "BLEND"


@dataclass(frozen=True)
class PbrMetallicRoughness:
    base_color_factor: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    base_color_texture: TextureInfo | None = None
    metallic_factor: float = 1.0
    roughness_factor: float = 1.0
    metallic_roughness_texture: TextureInfo | None = None

    @classmethod
    def from_json(cls, data: dict, path: str) -> "PbrMetallicRoughness":
        return cls(
            base_color_factor=f.numbers(data, "baseColorFactor", path, length=4,
                                        default=(1.0, 1.0, 1.0, 1.0)),
            base_color_texture=f.child(data, "baseColorTexture", path, TextureInfo.from_json),
            metallic_factor=f.optional(data, "metallicFactor", path, "number", 1.0),
            roughness_factor=f.optional(data, "roughnessFactor", path, "number", 1.0),
            metallic_roughness_texture=f.child(data, "metallicRoughnessTexture", path,
                                               TextureInfo.from_json),
        )


@dataclass(frozen=True)
class Material:
    pbr_metallic_roughness: PbrMetallicRoughness = field(default_factory=PbrMetallicRoughness)
    normal_texture: TextureInfo | None = None
    occlusion_texture: TextureInfo | None = None
    emissive_texture: TextureInfo | None = None
    emissive_factor: tuple[float, float, float] = (0.0, 0.0, 0.0)
    alpha_mode: AlphaMode = AlphaMode.OPAQUE
    alpha_cutoff: float = 0.5
    double_sided: bool = False
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Material":
        pbr = f.child(data, "pbrMetallicRoughness", path, PbrMetallicRoughness.from_json)
        return cls(
            pbr_metallic_roughness=pbr or PbrMetallicRoughness(),
            normal_texture=f.child(data, "normalTexture", path, TextureInfo.from_json),
            occlusion_texture=f.child(data, "occlusionTexture", path, TextureInfo.from_json),
            emissive_texture=f.child(data, "emissiveTexture", path, TextureInfo.from_json),
            emissive_factor=f.numbers(data, "emissiveFactor", path, length=3, default=(0.0, 0.0, 0.0)),
            alpha_mode=f.enum_value(data, "alphaMode", path, AlphaMode, default=AlphaMode.OPAQUE),
            alpha_cutoff=f.optional(data, "alphaCutoff", path, "number", 0.5),
            double_sided=f.optional(data, "doubleSided", path, "bool", False),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def texture_infos(self, path: str) -> Iterator[tuple[str, TextureInfo]]:
        pbr = self.pbr_metallic_roughness
        slots = (
            ("pbrMetallicRoughness.baseColorTexture", pbr.base_color_texture),
            ("pbrMetallicRoughness.metallicRoughnessTexture", pbr.metallic_roughness_texture),
            ("normalTexture", self.normal_texture),
            ("occlusionTexture", self.occlusion_texture),
            ("emissiveTexture", self.emissive_texture),
        )
        for key, info in slots:
            if info is not None:
                yield f"{path}.{key}", info

    def validate(self, ctx, path: str) -> None:
        pbr = self.pbr_metallic_roughness
        for key, value in (("metallicFactor", pbr.metallic_factor), ("roughnessFactor", pbr.roughness_factor)):
            if not 0.0 <= value <= 1.0:
                ctx.report(InvalidValue(f"{key} must be in [0, 1]", f"{path}.pbrMetallicRoughness.{key}"))
        if self.alpha_cutoff < 0:
            ctx.report(InvalidValue("alphaCutoff must not be negative", f.join(path, "alphaCutoff")))
        for info_path, info in self.texture_infos(path):
            info.validate(ctx, info_path)

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        for info_path, info in self.texture_infos(path):
            yield from info.references(info_path)


DEFAULT_MATERIAL = Material()
