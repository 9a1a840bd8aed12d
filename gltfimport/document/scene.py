"""Scenes, nodes, cameras and skins."""

import enum
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from gltfimport.document import fields as f
from gltfimport.document.index import Index
from gltfimport.errors import InvalidValue

IDENTITY_MATRIX = (
    1.0, 0.0, 0.0, 0.0,
    0.0, 1.0, 0.0, 0.0,
    0.0, 0.0, 1.0, 0.0,
    0.0, 0.0, 0.0, 1.0,
)


@dataclass(frozen=True)
class Scene:
    nodes: tuple[Index["Node"], ...] = ()
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Scene":
        return cls(
            nodes=f.index_list(data, "nodes", path),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        if len(set(self.nodes)) != len(self.nodes):
            ctx.report(InvalidValue("root nodes must be unique", f.join(path, "nodes")))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        for i, node in enumerate(self.nodes):
            yield f"{path}.nodes[{i}]", "nodes", node


@dataclass(frozen=True)
class Node:
    children: tuple[Index["Node"], ...] = ()
    camera: Index["Camera"] | None = None
    mesh: Index | None = None
    skin: Index["Skin"] | None = None
    matrix: tuple[float, ...] | None = None
    translation: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)
    scale: tuple[float, float, float] = (1.0, 1.0, 1.0)
    weights: tuple[float, ...] | None = None
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Node":
        return cls(
            children=f.index_list(data, "children", path),
            camera=f.index(data, "camera", path),
            mesh=f.index(data, "mesh", path),
            skin=f.index(data, "skin", path),
            matrix=f.numbers(data, "matrix", path, length=16),
            translation=f.numbers(data, "translation", path, length=3, default=(0.0, 0.0, 0.0)),
            rotation=f.numbers(data, "rotation", path, length=4, default=(0.0, 0.0, 0.0, 1.0)),
            scale=f.numbers(data, "scale", path, length=3, default=(1.0, 1.0, 1.0)),
            weights=f.numbers(data, "weights", path),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    @property
    def local_matrix(self) -> tuple[float, ...]:
        """Column-major local transform; the identity when no matrix was given."""
        return self.matrix if self.matrix is not None else IDENTITY_MATRIX

    def validate(self, ctx, path: str) -> None:
        if len(set(self.children)) != len(self.children):
            ctx.report(InvalidValue("children must be unique", f.join(path, "children")))
        if self.skin is not None and self.mesh is None:
            ctx.report(InvalidValue("a skinned node must reference a mesh", f.join(path, "skin")))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        for i, child in enumerate(self.children):
            yield f"{path}.children[{i}]", "nodes", child
        if self.camera is not None:
            yield f.join(path, "camera"), "cameras", self.camera
        if self.mesh is not None:
            yield f.join(path, "mesh"), "meshes", self.mesh
        if self.skin is not None:
            yield f.join(path, "skin"), "skins", self.skin


class CameraType(str, enum.Enum):
    PERSPECTIVE = "perspective"
    ORTHOGRAPHIC = "orthographic"


@dataclass(frozen=True)
class Perspective:
    yfov: float
    znear: float
    zfar: float | None = None
    aspect_ratio: float | None = None

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Perspective":
        return cls(
            yfov=f.required(data, "yfov", path, "number"),
            znear=f.required(data, "znear", path, "number"),
            zfar=f.optional(data, "zfar", path, "number"),
            aspect_ratio=f.optional(data, "aspectRatio", path, "number"),
        )


@dataclass(frozen=True)
class Orthographic:
    xmag: float
    ymag: float
    zfar: float
    znear: float

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Orthographic":
        return cls(
            xmag=f.required(data, "xmag", path, "number"),
            ymag=f.required(data, "ymag", path, "number"),
            zfar=f.required(data, "zfar", path, "number"),
            znear=f.required(data, "znear", path, "number"),
        )


@dataclass(frozen=True)
class Camera:
    type: CameraType
    perspective: Perspective | None = None
    orthographic: Orthographic | None = None
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Camera":
        camera_type = f.enum_value(data, "type", path, CameraType, is_required=True)
        return cls(
            type=camera_type,
            perspective=f.child(data, "perspective", path, Perspective.from_json,
                                is_required=camera_type is CameraType.PERSPECTIVE),
            orthographic=f.child(data, "orthographic", path, Orthographic.from_json,
                                 is_required=camera_type is CameraType.ORTHOGRAPHIC),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        if self.perspective is not None:
            p = self.perspective
            sub = f.join(path, "perspective")
            if p.yfov <= 0:
                ctx.report(InvalidValue("yfov must be positive", f.join(sub, "yfov")))
            if p.znear <= 0:
                ctx.report(InvalidValue("znear must be positive", f.join(sub, "znear")))
            if p.zfar is not None and p.zfar <= p.znear:
                ctx.report(InvalidValue("zfar must be greater than znear", f.join(sub, "zfar")))
            if p.aspect_ratio is not None and p.aspect_ratio <= 0:
                ctx.report(InvalidValue("aspectRatio must be positive", f.join(sub, "aspectRatio")))
        if self.orthographic is not None:
            o = self.orthographic
            sub = f.join(path, "orthographic")
            if o.xmag == 0 or o.ymag == 0:
                ctx.report(InvalidValue("xmag and ymag must not be zero", sub))
            if o.znear < 0:
                ctx.report(InvalidValue("znear must not be negative", f.join(sub, "znear")))
            if o.zfar <= o.znear:
                ctx.report(InvalidValue("zfar must be greater than znear", f.join(sub, "zfar")))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        return iter(())


@dataclass(frozen=True)
class Skin:
    joints: tuple[Index["Node"], ...]
    inverse_bind_matrices: Index | None = None
    skeleton: Index["Node"] | None = None
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Skin":
        return cls(
            joints=f.index_list(data, "joints", path, is_required=True),
            inverse_bind_matrices=f.index(data, "inverseBindMatrices", path),
            skeleton=f.index(data, "skeleton", path),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        if not self.joints:
            ctx.report(InvalidValue("a skin needs at least one joint", f.join(path, "joints")))
        elif len(set(self.joints)) != len(self.joints):
            ctx.report(InvalidValue("joints must be unique", f.join(path, "joints")))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        for i, joint in enumerate(self.joints):
            yield f"{path}.joints[{i}]", "nodes", joint
        if self.inverse_bind_matrices is not None:
            yield f.join(path, "inverseBindMatrices"), "accessors", self.inverse_bind_matrices
        if self.skeleton is not None:
            yield f.join(path, "skeleton"), "nodes", self.skeleton
