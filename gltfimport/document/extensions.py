"""
Typed decoders for a few well-known extensions.

Extension payloads are kept as raw JSON on every entity; these helpers read
the ones the pipeline understands into dataclasses on request.
"""

import enum
from dataclasses import dataclass
from typing import Any, Mapping

from gltfimport.document import fields as f
from gltfimport.document.index import Index

TEXTURE_TRANSFORM = "KHR_texture_transform"
EMISSIVE_STRENGTH = "KHR_materials_emissive_strength"
LIGHTS_PUNCTUAL = "KHR_lights_punctual"


@dataclass(frozen=True)
class TextureTransform:
    offset: tuple[float, float] = (0.0, 0.0)
    rotation: float = 0.0
    scale: tuple[float, float] = (1.0, 1.0)
    tex_coord: int | None = None

    @classmethod
    def from_json(cls, data: dict, path: str) -> "TextureTransform":
        return cls(
            offset=f.numbers(data, "offset", path, length=2, default=(0.0, 0.0)),
            rotation=f.optional(data, "rotation", path, "number", 0.0),
            scale=f.numbers(data, "scale", path, length=2, default=(1.0, 1.0)),
            tex_coord=f.optional(data, "texCoord", path, "int"),
        )


@dataclass(frozen=True)
class EmissiveStrength:
    emissive_strength: float = 1.0

    @classmethod
    def from_json(cls, data: dict, path: str) -> "EmissiveStrength":
        return cls(emissive_strength=f.optional(data, "emissiveStrength", path, "number", 1.0))


class LightType(str, enum.Enum):
    DIRECTIONAL = "directional"
    POINT = "point"
    SPOT = "spot"


@dataclass(frozen=True)
class Light:
    type: LightType
    color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    intensity: float = 1.0
    range: float | None = None
    inner_cone_angle: float = 0.0
    outer_cone_angle: float = 0.7853981633974483
    name: str | None = None

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Light":
        spot = f.optional(data, "spot", path, "object", {})
        spot_path = f.join(path, "spot")
        return cls(
            type=f.enum_value(data, "type", path, LightType, is_required=True),
            color=f.numbers(data, "color", path, length=3, default=(1.0, 1.0, 1.0)),
            intensity=f.optional(data, "intensity", path, "number", 1.0),
            range=f.optional(data, "range", path, "number"),
            inner_cone_angle=f.optional(spot, "innerConeAngle", spot_path, "number", 0.0),
            outer_cone_angle=f.optional(spot, "outerConeAngle", spot_path, "number",
                                        0.7853981633974483),
            name=f.optional(data, "name", path, "string"),
        )


@dataclass(frozen=True)
class NodeLight:
    light: Index["Light"]

    @classmethod
    def from_json(cls, data: dict, path: str) -> "NodeLight":
        return cls(light=f.index(data, "light", path, is_required=True))


def _decode(extensions: Mapping[str, Any], name: str, path: str, build):
    data = extensions.get(name)
    if data is None:
        return None
    return build(f.obj(data, f"{path}.extensions.{name}"), f"{path}.extensions.{name}")


def texture_transform(info, path: str = "textureInfo") -> TextureTransform | None:
    return _decode(info.extensions, TEXTURE_TRANSFORM, path, TextureTransform.from_json)


def emissive_strength(material, path: str = "material") -> float:
    decoded = _decode(material.extensions, EMISSIVE_STRENGTH, path, EmissiveStrength.from_json)
    return 1.0 if decoded is None else decoded.emissive_strength


def lights(document) -> tuple[Light, ...]:
    """Lights declared on the document root by KHR_lights_punctual."""
    data = document.extensions.get(LIGHTS_PUNCTUAL)
    if data is None:
        return ()
    return f.children(f.obj(data, f"extensions.{LIGHTS_PUNCTUAL}"), "lights",
                      f"extensions.{LIGHTS_PUNCTUAL}", Light.from_json)


def node_light(node, path: str = "node") -> Index | None:
    decoded = _decode(node.extensions, LIGHTS_PUNCTUAL, path, NodeLight.from_json)
    return None if decoded is None else decoded.light
