import pytest

from gltfimport.config import ImportConfig
from gltfimport.document import Document
from gltfimport.errors import (
    Cycle,
    IndexOutOfBounds,
    InvalidValue,
    LimitExceeded,
    RangeExceeded,
    UnsupportedExtension,
    ValidationFailed,
)
from gltfimport.validation import validate
from tests.helpers import F32, I8, U8, U16, floats, gltf_json, pack, single_accessor

COLLECT_ALL = ImportConfig(collect_all_errors=True)


def _validated(doc: dict, config: ImportConfig = ImportConfig()) -> Document:
    document = Document.from_json(doc)
    validate(document, config)
    return document


def test_triangle_is_valid(triangle_doc):
    doc, _ = triangle_doc
    _validated(doc)


def test_every_index_in_bounds_after_validation(triangle_doc):
    doc, _ = triangle_doc
    document = _validated(doc)
    for path, entity in document.entities():
        for _, collection, index in entity.references(path):
            assert 0 <= index < len(getattr(document, collection))


def test_mesh_index_out_of_bounds():
    doc = gltf_json(nodes=[{"mesh": 3}])
    with pytest.raises(IndexOutOfBounds) as info:
        _validated(doc)
    assert info.value.path == "nodes[0].mesh"
    assert info.value.index == 3
    assert info.value.length == 0


def test_negative_index_out_of_bounds():
    doc = gltf_json(scenes=[{"nodes": [-1]}], nodes=[{}])
    with pytest.raises(IndexOutOfBounds):
        _validated(doc)


def test_default_scene_out_of_bounds():
    with pytest.raises(IndexOutOfBounds) as info:
        _validated(gltf_json(scene=0))
    assert info.value.path == "scene"


def test_attribute_accessor_out_of_bounds(triangle_doc):
    doc, _ = triangle_doc
    doc["meshes"][0]["primitives"][0]["attributes"]["NORMAL"] = 9
    with pytest.raises(IndexOutOfBounds) as info:
        _validated(doc)
    assert info.value.path == "meshes[0].primitives[0].attributes.NORMAL"


def test_cycle_is_rejected():
    doc = gltf_json(nodes=[{"children": [1]}, {"children": [2]}, {"children": [0]}])
    with pytest.raises(Cycle) as info:
        _validated(doc)
    assert info.value.chain[0] == info.value.chain[-1]
    assert sorted(set(info.value.chain)) == [0, 1, 2]


def test_self_parenting_node_is_a_cycle():
    with pytest.raises(Cycle):
        _validated(gltf_json(nodes=[{"children": [0]}]))


def test_cycle_below_root_is_found():
    doc = gltf_json(nodes=[{"children": [1]}, {"children": [2]}, {"children": [1]}])
    with pytest.raises(Cycle) as info:
        _validated(doc)
    assert info.value.chain == [1, 2, 1]


def test_shared_child_is_rejected():
    doc = gltf_json(nodes=[{"children": [2]}, {"children": [2]}, {}])
    with pytest.raises(InvalidValue):
        _validated(doc)


def test_sparse_count_larger_than_count():
    data = floats(0, 0, 0) + b"\0" * 4
    doc = single_accessor(data, {
        "componentType": F32, "count": 1, "type": "VEC3",
        "sparse": {"count": 2, "indices": {"bufferView": 0, "componentType": 5121},
                   "values": {"bufferView": 0}},
    })
    with pytest.raises(InvalidValue) as info:
        _validated(doc)
    assert info.value.path == "accessors[0].sparse.count"


def test_sparse_indices_must_be_unsigned():
    data = floats(0, 0, 0)
    doc = single_accessor(data, {
        "componentType": F32, "count": 1, "type": "VEC3",
        "sparse": {"count": 1, "indices": {"bufferView": 0, "componentType": I8},
                   "values": {"bufferView": 0}},
    })
    with pytest.raises(InvalidValue):
        _validated(doc)


def test_stride_smaller_than_element():
    data = floats(*range(9))
    doc = single_accessor(data, {"componentType": F32, "count": 2, "type": "VEC3"}, byte_stride=8)
    with pytest.raises(RangeExceeded):
        _validated(doc)


def test_stride_must_be_multiple_of_four():
    data = floats(*range(9))
    doc = single_accessor(data, {"componentType": F32, "count": 2, "type": "SCALAR"}, byte_stride=6)
    with pytest.raises(InvalidValue):
        _validated(doc)


def test_accessor_range_uses_last_element_size():
    # 3 elements of 12 bytes at stride 16 need 2 * 16 + 12 = 44 bytes, not 48
    data = b"\0" * 44
    doc = single_accessor(data, {"componentType": F32, "count": 3, "type": "VEC3"}, byte_stride=16)
    _validated(doc)


def test_accessor_range_exceeds_view():
    data = floats(*range(8))
    doc = single_accessor(data, {"componentType": F32, "count": 3, "type": "VEC3"})
    with pytest.raises(RangeExceeded) as info:
        _validated(doc)
    assert info.value.path == "accessors[0]"


def test_view_exceeds_buffer():
    doc = gltf_json(
        buffers=[{"byteLength": 8}],
        bufferViews=[{"buffer": 0, "byteOffset": 4, "byteLength": 8}],
    )
    with pytest.raises(RangeExceeded):
        _validated(doc)


def test_misaligned_accessor_offset():
    data = b"\0" * 16
    doc = single_accessor(data, {"componentType": U16, "count": 1, "type": "SCALAR", "byteOffset": 1})
    with pytest.raises(InvalidValue):
        _validated(doc)


def test_negative_count():
    doc = gltf_json(accessors=[{"componentType": F32, "count": -1, "type": "SCALAR"}])
    with pytest.raises(InvalidValue):
        _validated(doc)


def test_accessor_count_limit():
    doc = gltf_json(accessors=[{"componentType": F32, "count": 100, "type": "SCALAR"}])
    with pytest.raises(LimitExceeded):
        _validated(doc, ImportConfig(max_accessor_count=10))


def test_image_needs_exactly_one_source():
    with pytest.raises(InvalidValue):
        _validated(gltf_json(images=[{}]))


def test_camera_rules():
    doc = gltf_json(cameras=[{"type": "perspective", "perspective": {"yfov": 1.0, "znear": 1.0, "zfar": 0.5}}])
    with pytest.raises(InvalidValue) as info:
        _validated(doc)
    assert info.value.path == "cameras[0].perspective.zfar"


def test_animation_channel_sampler_is_local():
    doc = gltf_json(
        nodes=[{}],
        accessors=[{"componentType": F32, "count": 1, "type": "SCALAR"}],
        animations=[{
            "channels": [{"sampler": 1, "target": {"node": 0, "path": "scale"}}],
            "samplers": [{"input": 0, "output": 0}],
        }],
    )
    with pytest.raises(IndexOutOfBounds) as info:
        _validated(doc)
    assert info.value.path == "animations[0].channels[0].sampler"


def test_unsupported_required_extension():
    doc = gltf_json(extensionsUsed=["KHR_draco_mesh_compression"],
                    extensionsRequired=["KHR_draco_mesh_compression"])
    with pytest.raises(UnsupportedExtension) as info:
        _validated(doc)
    assert info.value.name == "KHR_draco_mesh_compression"


def test_supported_required_extension_passes():
    doc = gltf_json(extensionsUsed=["KHR_texture_transform"],
                    extensionsRequired=["KHR_texture_transform"])
    _validated(doc)


def test_node_light_out_of_bounds():
    doc = gltf_json(
        extensions={"KHR_lights_punctual": {"lights": [{"type": "point"}]}},
        nodes=[{"extensions": {"KHR_lights_punctual": {"light": 2}}}],
    )
    with pytest.raises(IndexOutOfBounds):
        _validated(doc)


def test_collect_all_reports_every_error():
    doc = gltf_json(
        buffers=[{"byteLength": -1}],
        nodes=[{"mesh": 0}, {"camera": 5}],
        images=[{}],
    )
    with pytest.raises(ValidationFailed) as info:
        _validated(doc, COLLECT_ALL)
    kinds = [type(e) for e in info.value.errors]
    assert kinds.count(IndexOutOfBounds) == 2
    assert kinds.count(InvalidValue) == 2


def test_fail_fast_raises_first_error_only():
    doc = gltf_json(nodes=[{"mesh": 0}, {"camera": 5}])
    with pytest.raises(IndexOutOfBounds) as info:
        _validated(doc)
    assert info.value.path == "nodes[0].mesh"


def _sparse_only(index_length: int, value_length: int, count: int = 2, sparse_count: int = 2) -> dict:
    """SCALAR F32 accessor without a base view; views 0 and 1 hold sparse indices and values."""
    data = pack("B", *range(index_length)) + b"\0" * (-index_length % 4) + b"\0" * value_length
    index_view = {"buffer": 0, "byteOffset": 0, "byteLength": index_length}
    value_view = {"buffer": 0, "byteOffset": len(data) - value_length, "byteLength": value_length}
    return gltf_json(
        buffers=[{"byteLength": len(data)}],
        bufferViews=[index_view, value_view],
        accessors=[{
            "componentType": F32, "count": count, "type": "SCALAR",
            "sparse": {"count": sparse_count, "indices": {"bufferView": 0, "componentType": U8},
                       "values": {"bufferView": 1}},
        }],
    )


def test_sparse_block_within_views():
    _validated(_sparse_only(index_length=2, value_length=8))


def test_sparse_count_limit():
    with pytest.raises(LimitExceeded) as info:
        _validated(_sparse_only(index_length=2, value_length=8), ImportConfig(max_sparse_count=1))
    assert info.value.path == "accessors[0].sparse.count"
    assert info.value.limit == 1


def test_sparse_values_exceed_view():
    with pytest.raises(RangeExceeded) as info:
        _validated(_sparse_only(index_length=2, value_length=4))
    assert info.value.path == "accessors[0].sparse.values"


def test_sparse_indices_exceed_view():
    with pytest.raises(RangeExceeded) as info:
        _validated(_sparse_only(index_length=1, value_length=8))
    assert info.value.path == "accessors[0].sparse.indices"
