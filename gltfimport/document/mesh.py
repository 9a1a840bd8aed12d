"""Meshes and their primitives."""

import enum
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from gltfimport.document import fields as f
from gltfimport.document.index import Index
from gltfimport.errors import InvalidValue


class Mode(enum.IntEnum):
    POINTS = 0
    LINES = 1
    LINE_LOOP = 2
    LINE_STRIP = 3
    TRIANGLES = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6


@dataclass(frozen=True)
class Primitive:
    attributes: Mapping[str, Index] = field(hash=False)
    indices: Index | None = None
    material: Index | None = None
    mode: Mode = Mode.TRIANGLES
    targets: tuple[Mapping[str, Index], ...] = field(default=(), hash=False)
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Primitive":
        targets = f.optional(data, "targets", path, "array", [])
        sub = f.join(path, "targets")
        return cls(
            attributes=f.index_map(data, "attributes", path, is_required=True),
            indices=f.index(data, "indices", path),
            material=f.index(data, "material", path),
            mode=f.enum_value(data, "mode", path, Mode, default=Mode.TRIANGLES),
            targets=tuple(
                f.as_index_map(t, f.join(sub, i))
                for i, t in enumerate(targets)
            ),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def get(self, semantic: str) -> Index | None:
        return self.attributes.get(semantic)

    def validate(self, ctx, path: str) -> None:
        if not self.attributes:
            ctx.report(InvalidValue("a primitive needs at least one attribute", f.join(path, "attributes")))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        for semantic, accessor in self.attributes.items():
            yield f"{path}.attributes.{semantic}", "accessors", accessor
        if self.indices is not None:
            yield f.join(path, "indices"), "accessors", self.indices
        if self.material is not None:
            yield f.join(path, "material"), "materials", self.material
        for i, target in enumerate(self.targets):
            for semantic, accessor in target.items():
                yield f"{path}.targets[{i}].{semantic}", "accessors", accessor


@dataclass(frozen=True)
class Mesh:
    primitives: tuple[Primitive, ...]
    weights: tuple[float, ...] | None = None
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Mesh":
        return cls(
            primitives=f.children(data, "primitives", path, Primitive.from_json, is_required=True),
            weights=f.numbers(data, "weights", path),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        if not self.primitives:
            ctx.report(InvalidValue("a mesh needs at least one primitive", f.join(path, "primitives")))
        for i, primitive in enumerate(self.primitives):
            primitive.validate(ctx, f"{path}.primitives[{i}]")
            if self.weights is not None and len(primitive.targets) != len(self.weights):
                ctx.report(InvalidValue(
                    f"{len(primitive.targets)} morph targets but {len(self.weights)} weights",
                    f"{path}.primitives[{i}].targets",
                ))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        for i, primitive in enumerate(self.primitives):
            yield from primitive.references(f"{path}.primitives[{i}]")
