"""
Semantic readers built on read_accessor.

Attribute helpers return None when a primitive lacks the attribute. Colors
always come back as RGBA floats; everything else keeps the accessor's shape.
"""

from gltfimport.decode import AccessorSequence, read_accessor
from gltfimport.document import Animation, Document, Primitive, Skin
from gltfimport.document.scene import IDENTITY_MATRIX


def _attribute(document: Document, buffers, primitive: Primitive,
               semantic: str) -> AccessorSequence | None:
    index = primitive.get(semantic)
    if index is None:
        return None
    return read_accessor(document, buffers, index)


def read_positions(document: Document, buffers, primitive: Primitive) -> AccessorSequence | None:
    return _attribute(document, buffers, primitive, "POSITION")


def read_normals(document: Document, buffers, primitive: Primitive) -> AccessorSequence | None:
    return _attribute(document, buffers, primitive, "NORMAL")


def read_tangents(document: Document, buffers, primitive: Primitive) -> AccessorSequence | None:
    return _attribute(document, buffers, primitive, "TANGENT")


def read_tex_coords(document: Document, buffers, primitive: Primitive,
                    set_index: int = 0) -> AccessorSequence | None:
    return _attribute(document, buffers, primitive, f"TEXCOORD_{set_index}")


def read_joints(document: Document, buffers, primitive: Primitive,
                set_index: int = 0) -> AccessorSequence | None:
    return _attribute(document, buffers, primitive, f"JOINTS_{set_index}")


def read_weights(document: Document, buffers, primitive: Primitive,
                 set_index: int = 0) -> list[tuple[float, ...]] | None:
    weights = _attribute(document, buffers, primitive, f"WEIGHTS_{set_index}")
    if weights is None:
        return None
    return [tuple(float(w) for w in element) for element in weights]


def read_colors(document: Document, buffers, primitive: Primitive,
                set_index: int = 0) -> list[tuple[float, float, float, float]] | None:
    """COLOR_n as RGBA floats; VEC3 colors get an alpha of 1.0."""
    colors = _attribute(document, buffers, primitive, f"COLOR_{set_index}")
    if colors is None:
        return None
    result = []
    for element in colors:
        rgba = tuple(float(c) for c in element)
        result.append(rgba + (1.0,) if len(rgba) == 3 else rgba)
    return result


def read_indices(document: Document, buffers, primitive: Primitive) -> AccessorSequence | None:
    if primitive.indices is None:
        return None
    return read_accessor(document, buffers, primitive.indices)


def read_morph_targets(document: Document, buffers,
                       primitive: Primitive) -> list[dict[str, AccessorSequence]]:
    return [
        {semantic: read_accessor(document, buffers, index) for semantic, index in target.items()}
        for target in primitive.targets
    ]


def read_inverse_bind_matrices(document: Document, buffers, skin: Skin) -> list:
    """One column-major 4x4 matrix per joint; identity when the skin omits them."""
    if skin.inverse_bind_matrices is None:
        identity = tuple(IDENTITY_MATRIX[c * 4:c * 4 + 4] for c in range(4))
        return [identity] * len(skin.joints)
    return list(read_accessor(document, buffers, skin.inverse_bind_matrices))


def read_animation_sampler(document: Document, buffers, animation: Animation,
                           sampler_index: int) -> tuple[AccessorSequence, AccessorSequence]:
    """Keyframe times and output values of one animation sampler."""
    sampler = animation.samplers[sampler_index]
    return (
        read_accessor(document, buffers, sampler.input),
        read_accessor(document, buffers, sampler.output),
    )
