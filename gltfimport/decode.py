"""
Accessor decoder — typed, lazy element sequences over resolved buffer bytes.

read_accessor() does every bounds and ordering check up front, so iterating
the returned sequence can no longer fail. Elements are decoded on demand from
the immutable buffer bytes; reading the same sequence twice gives the same
result, and sequences can be shared between threads.

Element shapes: SCALAR -> number, VECn -> tuple, MATn -> tuple of column tuples.
"""

import bisect
import logging
import struct
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from gltfimport.document import Document
from gltfimport.document.buffer import (
    SPARSE_INDEX_TYPES,
    AccessorType,
    ComponentType,
    column_stride,
    element_size,
    span,
)
from gltfimport.errors import (
    InvalidStride,
    OutOfBounds,
    SparseIndexOutOfOrder,
    UnsupportedComponentCombination,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Element layout
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ElementLayout:
    component_type: ComponentType
    accessor_type: AccessorType
    normalized: bool = False

    def __post_init__(self):
        # cached on the frozen instance; decode() runs once per element
        column = struct.Struct("<" + self.component_type.struct_format * self.accessor_type.rows)
        object.__setattr__(self, "_column", column)

    @property
    def size(self) -> int:
        return element_size(self.component_type, self.accessor_type)

    @property
    def column_stride(self) -> int:
        return column_stride(self.component_type, self.accessor_type)

    @property
    def dtype(self) -> np.dtype:
        return np.dtype("<" + self.component_type.struct_format)

    @property
    def shape(self) -> tuple[int, ...]:
        t = self.accessor_type
        if t is AccessorType.SCALAR:
            return ()
        if t.is_matrix:
            return (t.columns, t.rows)
        return (t.rows,)

    def _convert(self, values: tuple) -> tuple:
        if not self.normalized:
            return values
        divisor = self.component_type.max_value
        if self.component_type.is_signed:
            return tuple(max(v / divisor, -1.0) for v in values)
        return tuple(v / divisor for v in values)

    def decode(self, data: memoryview, offset: int):
        t = self.accessor_type
        if t.is_matrix:
            step = self.column_stride
            return tuple(
                self._convert(self._column.unpack_from(data, offset + c * step))
                for c in range(t.columns)
            )
        values = self._convert(self._column.unpack_from(data, offset))
        return values[0] if t is AccessorType.SCALAR else values

    def zero(self):
        t = self.accessor_type
        value = 0.0 if self.normalized or self.component_type.is_float else 0
        column = (value,) * t.rows
        if t.is_matrix:
            return (column,) * t.columns
        return value if t is AccessorType.SCALAR else column


def check_combination(index: int, layout: ElementLayout) -> None:
    if layout.normalized and layout.component_type in (ComponentType.F32, ComponentType.U32):
        raise UnsupportedComponentCombination(
            f"normalized is not allowed for {layout.component_type.name} components", index,
        )
    if layout.normalized and layout.accessor_type.is_matrix:
        raise UnsupportedComponentCombination(
            f"normalized is not allowed for {layout.accessor_type.value}", index,
        )


# ---------------------------------------------------------------------------
# Byte ranges
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Strided:
    data: memoryview
    base: int
    stride: int


def _strided_range(document: Document, buffers, accessor_index: int, view_index: int,
                   byte_offset: int, count: int, size: int, what: str) -> _Strided:
    if not 0 <= view_index < len(document.buffer_views):
        raise OutOfBounds(f"{what} references missing bufferView {view_index}", accessor_index)
    view = document.buffer_views[view_index]
    if not 0 <= view.buffer < len(buffers):
        raise OutOfBounds(f"bufferView {view_index} references missing buffer {view.buffer}",
                          accessor_index)
    blob = buffers[view.buffer]
    if view.byte_offset < 0 or view.byte_offset + view.byte_length > len(blob):
        raise OutOfBounds(
            f"bufferView {view_index} range [{view.byte_offset}, "
            f"{view.byte_offset + view.byte_length}) exceeds buffer of {len(blob)} bytes",
            accessor_index,
        )

    stride = view.byte_stride or size
    if stride < size:
        raise InvalidStride(f"byteStride {stride} is smaller than the {size}-byte element",
                            accessor_index)
    end = byte_offset + span(count, stride, size)
    if byte_offset < 0 or end > view.byte_length:
        raise OutOfBounds(
            f"{what} needs bytes [{byte_offset}, {end}) but bufferView {view_index} "
            f"has {view.byte_length}",
            accessor_index,
        )
    data = memoryview(blob)[view.byte_offset:view.byte_offset + view.byte_length]
    return _Strided(data=data, base=byte_offset, stride=stride)


# ---------------------------------------------------------------------------
# Sequence
# ---------------------------------------------------------------------------

class AccessorSequence(Sequence):
    """Lazy, restartable view of an accessor's elements."""

    def __init__(self, index: int, count: int, layout: ElementLayout,
                 source: _Strided | None = None,
                 sparse_indices: tuple[int, ...] = (),
                 sparse_values: tuple = ()):
        self.index = index
        self.count = count
        self.layout = layout
        self._source = source
        self._sparse_indices = sparse_indices
        self._sparse_values = sparse_values

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return (f"AccessorSequence(accessor={self.index}, count={self.count}, "
                f"type={self.layout.accessor_type.value}, "
                f"component={self.layout.component_type.name})")

    def _base(self, i: int):
        if self._source is None:
            return self.layout.zero()
        return self.layout.decode(self._source.data, self._source.base + i * self._source.stride)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return [self[i] for i in range(*item.indices(self.count))]
        if item < 0:
            item += self.count
        if not 0 <= item < self.count:
            raise IndexError(f"accessor element {item} out of range for count {self.count}")
        k = bisect.bisect_left(self._sparse_indices, item)
        if k < len(self._sparse_indices) and self._sparse_indices[k] == item:
            return self._sparse_values[k]
        return self._base(item)

    def __iter__(self):
        # single linear merge of the base sequence with the sorted overrides
        overrides = iter(zip(self._sparse_indices, self._sparse_values))
        pending = next(overrides, None)
        for i in range(self.count):
            if pending is not None and pending[0] == i:
                yield pending[1]
                pending = next(overrides, None)
            else:
                yield self._base(i)

    @property
    def sparse_indices(self) -> tuple[int, ...]:
        return self._sparse_indices

    def to_numpy(self) -> np.ndarray:
        """Decode every element into a numpy array of shape (count, *element_shape)."""
        layout = self.layout
        shape = (self.count,) + layout.shape
        out_dtype = np.float32 if layout.normalized else layout.dtype

        if self._source is None or self.count == 0:
            out = np.zeros(shape, dtype=out_dtype)
        else:
            raw = _strided_array(self._source, self.count, layout).reshape(shape)
            out = _normalize(raw, layout) if layout.normalized else raw.copy()

        if self._sparse_indices:
            out[np.asarray(self._sparse_indices, dtype=np.intp)] = np.asarray(
                self._sparse_values, dtype=out_dtype,
            )
        return out


def _strided_array(source: _Strided, count: int, layout: ElementLayout) -> np.ndarray:
    size = layout.size
    raw = np.frombuffer(source.data, dtype=np.uint8, count=span(count, source.stride, size),
                        offset=source.base)
    rows = np.lib.stride_tricks.as_strided(
        raw, shape=(count, size), strides=(source.stride, 1), writeable=False,
    )
    column_bytes = layout.component_type.size * layout.accessor_type.rows
    step = layout.column_stride
    # drop matrix column padding before reinterpreting the bytes
    columns = [rows[:, c * step:c * step + column_bytes] for c in range(layout.accessor_type.columns)]
    packed = np.ascontiguousarray(np.concatenate(columns, axis=1))
    return packed.view(layout.dtype)


def _normalize(values: np.ndarray, layout: ElementLayout) -> np.ndarray:
    result = values.astype(np.float32) / np.float32(layout.component_type.max_value)
    if layout.component_type.is_signed:
        result = np.maximum(result, np.float32(-1.0))
    return result


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def read_accessor(document: Document, buffers, accessor_index: int) -> AccessorSequence:
    """Decode accessors[accessor_index] against resolved buffer bytes.

    Raises OutOfBounds, InvalidStride, UnsupportedComponentCombination or
    SparseIndexOutOfOrder; never a partially decoded sequence.
    """
    if not 0 <= accessor_index < len(document.accessors):
        raise OutOfBounds(f"no accessor {accessor_index} in document with "
                          f"{len(document.accessors)} accessors")
    accessor = document.accessors[accessor_index]
    layout = ElementLayout(accessor.component_type, accessor.type, accessor.normalized)
    check_combination(accessor_index, layout)

    source = None
    if accessor.buffer_view is not None:
        source = _strided_range(document, buffers, accessor_index, accessor.buffer_view,
                                accessor.byte_offset, accessor.count, layout.size, "accessor")

    sparse_indices: tuple[int, ...] = ()
    sparse_values: tuple = ()
    if accessor.sparse is not None:
        sparse_indices, sparse_values = _read_sparse(document, buffers, accessor_index, layout)

    logger.debug(
        "Accessor %d: %d x %s/%s stride=%s sparse=%d",
        accessor_index, accessor.count, accessor.type.value, accessor.component_type.name,
        source.stride if source else None, len(sparse_indices),
    )
    return AccessorSequence(accessor_index, accessor.count, layout, source,
                            sparse_indices, sparse_values)


def _read_sparse(document: Document, buffers, accessor_index: int,
                 layout: ElementLayout) -> tuple[tuple[int, ...], tuple]:
    accessor = document.accessors[accessor_index]
    sparse = accessor.sparse
    index_type = sparse.indices.component_type
    if index_type not in SPARSE_INDEX_TYPES:
        raise UnsupportedComponentCombination(
            f"sparse indices cannot use {index_type.name} components", accessor_index,
        )
    index_layout = ElementLayout(index_type, AccessorType.SCALAR)

    index_source = _strided_range(document, buffers, accessor_index, sparse.indices.buffer_view,
                                  sparse.indices.byte_offset, sparse.count, index_layout.size,
                                  "sparse indices")
    value_source = _strided_range(document, buffers, accessor_index, sparse.values.buffer_view,
                                  sparse.values.byte_offset, sparse.count, layout.size,
                                  "sparse values")

    indices = []
    previous = -1
    for k in range(sparse.count):
        current = index_layout.decode(index_source.data, index_source.base + k * index_source.stride)
        if current <= previous:
            raise SparseIndexOutOfOrder(accessor_index, k, previous, current)
        if current >= accessor.count:
            raise OutOfBounds(f"sparse index {current} exceeds count {accessor.count}", accessor_index)
        indices.append(current)
        previous = current

    values = tuple(
        layout.decode(value_source.data, value_source.base + k * value_source.stride)
        for k in range(sparse.count)
    )
    return tuple(indices), values
