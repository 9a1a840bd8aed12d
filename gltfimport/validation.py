"""
Validator — local per-entity checks, then a whole-graph pass.

Phase 1 asks every entity to check itself (entity.validate). Phase 2 collects
every Index the document holds (entity.references) and bounds-checks them in
one pass, then checks byte ranges and walks the node hierarchy for cycles.
"""

import logging

from gltfimport.config import DEFAULT_CONFIG, ImportConfig
from gltfimport.document import Document
from gltfimport.document import extensions as ext
from gltfimport.document.buffer import span
from gltfimport.errors import (
    Cycle,
    GltfError,
    IndexOutOfBounds,
    InvalidValue,
    RangeExceeded,
    UnsupportedExtension,
    ValidationError,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

_WHITE, _GREY, _BLACK = 0, 1, 2


class ValidationContext:
    """Ambient state handed to every entity's validate()."""

    def __init__(self, document: Document, config: ImportConfig = DEFAULT_CONFIG):
        self.document = document
        self.config = config
        self.errors: list[ValidationError] = []

    @property
    def fail_fast(self) -> bool:
        return not self.config.collect_all_errors

    def report(self, error: ValidationError) -> None:
        if self.fail_fast:
            raise error
        self.errors.append(error)

    def in_bounds(self, path: str, collection: str, index: int) -> bool:
        length = len(getattr(self.document, collection))
        if 0 <= index < length:
            return True
        self.report(IndexOutOfBounds(path, int(index), length))
        return False


def validate(document: Document, config: ImportConfig = DEFAULT_CONFIG) -> None:
    """Validate a document in place.

    In fail-fast mode the first error is raised. In collect-all mode every
    error is gathered and raised together as ValidationFailed.
    """
    ctx = ValidationContext(document, config)
    _validate_local(ctx)
    valid_refs = _validate_references(ctx)
    if valid_refs:
        _validate_ranges(ctx)
        _validate_hierarchy(ctx)
        _validate_lights(ctx)
    if ctx.errors:
        logger.debug("Validation found %d error(s)", len(ctx.errors))
        raise ValidationFailed(ctx.errors)


# ---------------------------------------------------------------------------
# Phase 1: local
# ---------------------------------------------------------------------------

def _validate_local(ctx: ValidationContext) -> None:
    document = ctx.document
    used = set(document.extensions_used)
    for name in document.extensions_required:
        if name not in used:
            ctx.report(InvalidValue(f"{name!r} is required but not listed in extensionsUsed",
                                    "extensionsRequired"))
        if name not in ctx.config.supported_extensions:
            ctx.report(UnsupportedExtension(name))

    for path, entity in document.entities():
        entity.validate(ctx, path)


# ---------------------------------------------------------------------------
# Phase 2: global
# ---------------------------------------------------------------------------

def _validate_references(ctx: ValidationContext) -> bool:
    """Bounds-check every Index in one pass. False when any is out of range."""
    document = ctx.document
    ok = True
    if document.scene is not None:
        ok &= ctx.in_bounds("scene", "scenes", document.scene)
    checked = 0
    for path, entity in document.entities():
        for ref_path, collection, index in entity.references(path):
            ok &= ctx.in_bounds(ref_path, collection, index)
            checked += 1
    logger.debug("Checked %d references", checked)
    return ok


def _validate_ranges(ctx: ValidationContext) -> None:
    document = ctx.document
    for i, view in enumerate(document.buffer_views):
        buffer = view.buffer.get(document.buffers)
        if view.byte_offset + view.byte_length > buffer.byte_length:
            ctx.report(RangeExceeded(
                f"view [{view.byte_offset}, {view.byte_offset + view.byte_length}) "
                f"exceeds buffer length {buffer.byte_length}",
                f"bufferViews[{i}]",
            ))

    for i, accessor in enumerate(document.accessors):
        path = f"accessors[{i}]"
        size = accessor.element_size
        if accessor.buffer_view is not None:
            _check_view_range(ctx, path, accessor.buffer_view, accessor.byte_offset,
                              accessor.count, size)
        sparse = accessor.sparse
        if sparse is not None:
            _check_view_range(ctx, f"{path}.sparse.indices", sparse.indices.buffer_view,
                              sparse.indices.byte_offset, sparse.count,
                              sparse.indices.component_type.size)
            _check_view_range(ctx, f"{path}.sparse.values", sparse.values.buffer_view,
                              sparse.values.byte_offset, sparse.count, size)


def _check_view_range(ctx: ValidationContext, path: str, view_index, byte_offset: int,
                      count: int, size: int) -> None:
    view = view_index.get(ctx.document.buffer_views)
    stride = size
    if view.byte_stride is not None:
        if view.byte_stride < size:
            ctx.report(RangeExceeded(
                f"byteStride {view.byte_stride} is smaller than the element size {size}",
                f"bufferViews[{int(view_index)}].byteStride",
            ))
            return
        stride = view.byte_stride
    end = byte_offset + span(count, stride, size)
    if end > view.byte_length:
        ctx.report(RangeExceeded(
            f"needs {end} bytes but bufferViews[{int(view_index)}] has {view.byte_length}",
            path,
        ))


def _validate_hierarchy(ctx: ValidationContext) -> None:
    """Reject node graphs with cycles or nodes shared between parents.

    Iterative three-colour DFS started from every node, so cycles that no
    root can reach are still found.
    """
    nodes = ctx.document.nodes
    parent_of: dict[int, int] = {}
    shared: list[tuple[int, int]] = []
    for parent, node in enumerate(nodes):
        for child in node.children:
            child = int(child)
            if child in parent_of and parent_of[child] != parent:
                shared.append((child, parent))
            parent_of.setdefault(child, parent)

    colour = [_WHITE] * len(nodes)
    roots = [i for i in range(len(nodes)) if i not in parent_of]
    for start in roots + list(range(len(nodes))):
        if colour[start] != _WHITE:
            continue
        stack = [(start, iter(nodes[start].children))]
        chain = [start]
        colour[start] = _GREY
        while stack:
            current, pending = stack[-1]
            child = next(pending, None)
            if child is None:
                colour[current] = _BLACK
                stack.pop()
                chain.pop()
                continue
            child = int(child)
            if colour[child] == _GREY:
                cycle = chain[chain.index(child):] + [child]
                ctx.report(Cycle(f"nodes[{current}].children", cycle))
                continue
            if colour[child] == _WHITE:
                colour[child] = _GREY
                chain.append(child)
                stack.append((child, iter(nodes[child].children)))

    for child, parent in shared:
        ctx.report(InvalidValue(
            f"node {child} has more than one parent ({parent_of[child]} and {parent})",
            f"nodes[{parent}].children",
        ))


def _validate_lights(ctx: ValidationContext) -> None:
    document = ctx.document
    if not any(ext.LIGHTS_PUNCTUAL in node.extensions for node in document.nodes):
        return
    try:
        count = len(ext.lights(document))
    except GltfError as e:
        ctx.report(InvalidValue(str(e), f"extensions.{ext.LIGHTS_PUNCTUAL}"))
        return
    for i, node in enumerate(document.nodes):
        path = f"nodes[{i}]"
        try:
            light = ext.node_light(node, path)
        except GltfError as e:
            ctx.report(InvalidValue(str(e), f"{path}.extensions.{ext.LIGHTS_PUNCTUAL}"))
            continue
        if light is not None and not 0 <= light < count:
            ctx.report(IndexOutOfBounds(f"{path}.extensions.{ext.LIGHTS_PUNCTUAL}.light",
                                        int(light), count))
