"""
Buffers, buffer views and accessors.

Also owns the element layout rules shared by the validator and the decoder:
component sizes, type multiplicities and matrix column padding.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from gltfimport.document import fields as f
from gltfimport.document.index import Index
from gltfimport.errors import InvalidValue, LimitExceeded


class ComponentType(enum.IntEnum):
    I8 = 5120
    U8 = 5121
    I16 = 5122
    U16 = 5123
    U32 = 5125
    F32 = 5126

    @property
    def size(self) -> int:
        return _COMPONENT_SIZES[self]

    @property
    def struct_format(self) -> str:
        return _COMPONENT_FORMATS[self]

    @property
    def is_signed(self) -> bool:
        return self in (ComponentType.I8, ComponentType.I16)

    @property
    def is_float(self) -> bool:
        return self is ComponentType.F32

    @property
    def max_value(self) -> int:
        """Largest representable integer, the divisor for normalization."""
        return (1 << (self.size * 8 - (1 if self.is_signed else 0))) - 1


_COMPONENT_SIZES = {
    ComponentType.I8: 1, ComponentType.U8: 1,
    ComponentType.I16: 2, ComponentType.U16: 2,
    ComponentType.U32: 4, ComponentType.F32: 4,
}

_COMPONENT_FORMATS = {
    ComponentType.I8: "b", ComponentType.U8: "B",
    ComponentType.I16: "h", ComponentType.U16: "H",
    ComponentType.U32: "I", ComponentType.F32: "f",
}

SPARSE_INDEX_TYPES = frozenset({ComponentType.U8, ComponentType.U16, ComponentType.U32})


class AccessorType(str, enum.Enum):
    SCALAR = "SCALAR"
    VEC2 = "VEC2"
    VEC3 = "VEC3"
    VEC4 = "VEC4"
    MAT2 = "MAT2"
    MAT3 = "MAT3"
    MAT4 = "MAT4"

    @property
    def columns(self) -> int:
        return _SHAPES[self][0]

    @property
    def rows(self) -> int:
        return _SHAPES[self][1]

    @property
    def components(self) -> int:
        return self.columns * self.rows

    @property
    def is_matrix(self) -> bool:
        return self.columns > 1


# (columns, rows); scalars and vectors are a single column
_SHAPES = {
    AccessorType.SCALAR: (1, 1),
    AccessorType.VEC2: (1, 2),
    AccessorType.VEC3: (1, 3),
    AccessorType.VEC4: (1, 4),
    AccessorType.MAT2: (2, 2),
    AccessorType.MAT3: (3, 3),
    AccessorType.MAT4: (4, 4),
}


class BufferTarget(enum.IntEnum):
    ARRAY_BUFFER = 34962
    ELEMENT_ARRAY_BUFFER = 34963


def column_stride(component_type: ComponentType, accessor_type: AccessorType) -> int:
    """Byte distance between matrix columns; columns start on 4-byte boundaries."""
    size = component_type.size * accessor_type.rows
    if accessor_type.is_matrix:
        return (size + 3) & ~3
    return size


def element_size(component_type: ComponentType, accessor_type: AccessorType) -> int:
    """Tightly packed size of one element, including matrix column padding."""
    return column_stride(component_type, accessor_type) * accessor_type.columns


def span(count: int, stride: int, size: int) -> int:
    """Bytes covered by `count` elements: the last one only needs its own size."""
    if count <= 0:
        return 0
    return (count - 1) * stride + size


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Buffer:
    byte_length: int
    uri: str | None = None
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Buffer":
        return cls(
            byte_length=f.required(data, "byteLength", path, "int"),
            uri=f.optional(data, "uri", path, "string"),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        if self.byte_length < 0:
            ctx.report(InvalidValue("byteLength must not be negative", f.join(path, "byteLength")))
        if self.byte_length > ctx.config.max_buffer_bytes:
            ctx.report(LimitExceeded(f.join(path, "byteLength"), self.byte_length,
                                     ctx.config.max_buffer_bytes))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        return iter(())


@dataclass(frozen=True)
class BufferView:
    buffer: Index["Buffer"]
    byte_length: int
    byte_offset: int = 0
    byte_stride: int | None = None
    target: BufferTarget | None = None
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "BufferView":
        return cls(
            buffer=f.index(data, "buffer", path, is_required=True),
            byte_length=f.required(data, "byteLength", path, "int"),
            byte_offset=f.optional(data, "byteOffset", path, "int", 0),
            byte_stride=f.optional(data, "byteStride", path, "int"),
            target=f.enum_value(data, "target", path, BufferTarget),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    def validate(self, ctx, path: str) -> None:
        if self.byte_offset < 0:
            ctx.report(InvalidValue("byteOffset must not be negative", f.join(path, "byteOffset")))
        if self.byte_length < 0:
            ctx.report(InvalidValue("byteLength must not be negative", f.join(path, "byteLength")))
        if self.byte_stride is not None and (
            not 4 <= self.byte_stride <= 252 or self.byte_stride % 4
        ):
            ctx.report(InvalidValue(
                f"byteStride {self.byte_stride} must be a multiple of 4 in [4, 252]",
                f.join(path, "byteStride"),
            ))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        yield f.join(path, "buffer"), "buffers", self.buffer


@dataclass(frozen=True)
class SparseIndices:
    buffer_view: Index["BufferView"]
    component_type: ComponentType
    byte_offset: int = 0
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "SparseIndices":
        return cls(
            buffer_view=f.index(data, "bufferView", path, is_required=True),
            component_type=f.enum_value(data, "componentType", path, ComponentType, is_required=True),
            byte_offset=f.optional(data, "byteOffset", path, "int", 0),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )


@dataclass(frozen=True)
class SparseValues:
    buffer_view: Index["BufferView"]
    byte_offset: int = 0
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "SparseValues":
        return cls(
            buffer_view=f.index(data, "bufferView", path, is_required=True),
            byte_offset=f.optional(data, "byteOffset", path, "int", 0),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )


@dataclass(frozen=True)
class Sparse:
    count: int
    indices: SparseIndices
    values: SparseValues
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Sparse":
        return cls(
            count=f.required(data, "count", path, "int"),
            indices=f.child(data, "indices", path, SparseIndices.from_json, is_required=True),
            values=f.child(data, "values", path, SparseValues.from_json, is_required=True),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )


@dataclass(frozen=True)
class Accessor:
    component_type: ComponentType
    count: int
    type: AccessorType
    buffer_view: Index["BufferView"] | None = None
    byte_offset: int = 0
    normalized: bool = False
    min: tuple[float, ...] | None = None
    max: tuple[float, ...] | None = None
    sparse: Sparse | None = None
    name: str | None = None
    extensions: Mapping[str, Any] = field(default_factory=f.empty_map, hash=False)
    extras: Any = field(default=None, hash=False)

    @classmethod
    def from_json(cls, data: dict, path: str) -> "Accessor":
        return cls(
            component_type=f.enum_value(data, "componentType", path, ComponentType, is_required=True),
            count=f.required(data, "count", path, "int"),
            type=f.enum_value(data, "type", path, AccessorType, is_required=True),
            buffer_view=f.index(data, "bufferView", path),
            byte_offset=f.optional(data, "byteOffset", path, "int", 0),
            normalized=f.optional(data, "normalized", path, "bool", False),
            min=f.numbers(data, "min", path),
            max=f.numbers(data, "max", path),
            sparse=f.child(data, "sparse", path, Sparse.from_json),
            name=f.optional(data, "name", path, "string"),
            extensions=f.extensions(data, path),
            extras=f.extras(data),
        )

    @property
    def element_size(self) -> int:
        return element_size(self.component_type, self.type)

    def validate(self, ctx, path: str) -> None:
        if self.count < 0:
            ctx.report(InvalidValue("count must not be negative", f.join(path, "count")))
        elif self.count > ctx.config.max_accessor_count:
            ctx.report(LimitExceeded(f.join(path, "count"), self.count, ctx.config.max_accessor_count))
        if self.byte_offset < 0:
            ctx.report(InvalidValue("byteOffset must not be negative", f.join(path, "byteOffset")))
        elif self.byte_offset % self.component_type.size:
            ctx.report(InvalidValue(
                f"byteOffset {self.byte_offset} is not a multiple of the component size",
                f.join(path, "byteOffset"),
            ))
        for key, bound in (("min", self.min), ("max", self.max)):
            if bound is not None and len(bound) != self.type.components:
                ctx.report(InvalidValue(
                    f"expected {self.type.components} values, got {len(bound)}", f.join(path, key),
                ))
        if self.sparse is not None:
            self._validate_sparse(ctx, f.join(path, "sparse"))

    def _validate_sparse(self, ctx, path: str) -> None:
        sparse = self.sparse
        if sparse.count < 1 or sparse.count > self.count:
            ctx.report(InvalidValue(
                f"sparse count {sparse.count} must be in [1, {self.count}]", f.join(path, "count"),
            ))
        elif sparse.count > ctx.config.max_sparse_count:
            ctx.report(LimitExceeded(f.join(path, "count"), sparse.count, ctx.config.max_sparse_count))
        if sparse.indices.component_type not in SPARSE_INDEX_TYPES:
            ctx.report(InvalidValue(
                "sparse indices must use an unsigned integer component type",
                f.join(path, "indices.componentType"),
            ))
        for key, offset in (("indices", sparse.indices.byte_offset), ("values", sparse.values.byte_offset)):
            if offset < 0:
                ctx.report(InvalidValue("byteOffset must not be negative", f"{path}.{key}.byteOffset"))

    def references(self, path: str) -> Iterator[tuple[str, str, Index]]:
        if self.buffer_view is not None:
            yield f.join(path, "bufferView"), "buffer_views", self.buffer_view
        if self.sparse is not None:
            yield f"{path}.sparse.indices.bufferView", "buffer_views", self.sparse.indices.buffer_view
            yield f"{path}.sparse.values.bufferView", "buffer_views", self.sparse.values.buffer_view
