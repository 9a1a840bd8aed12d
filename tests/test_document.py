import pytest

from gltfimport.document import (
    DEFAULT_MATERIAL,
    DEFAULT_SAMPLER,
    AccessorType,
    AlphaMode,
    ComponentType,
    Document,
    Index,
    Mode,
    WrappingMode,
    element_size,
)
from gltfimport.document import extensions as ext
from gltfimport.errors import EnumOutOfRange, InvalidJson, MissingField, TypeMismatch
from tests.helpers import encode, gltf_json


def test_parses_triangle(triangle_doc):
    doc, _ = triangle_doc
    document = Document.from_json(encode(doc))
    assert document.asset.version == "2.0"
    assert document.scene == 0
    primitive = document.meshes[0].primitives[0]
    assert primitive.mode is Mode.TRIANGLES
    assert isinstance(primitive.attributes["POSITION"], Index)
    accessor = document.accessors[0]
    assert accessor.component_type is ComponentType.F32
    assert accessor.type is AccessorType.VEC3
    assert accessor.max == (1.0, 1.0, 0.0)
    assert document.buffer_views[0].byte_stride == 12


def test_missing_asset():
    with pytest.raises(MissingField) as info:
        Document.from_json(b"{}")
    assert info.value.path == "asset"


def test_missing_nested_field_reports_path():
    doc = gltf_json(accessors=[{"componentType": 5126, "type": "VEC3"}])
    with pytest.raises(MissingField) as info:
        Document.from_json(doc)
    assert info.value.path == "accessors[0].count"


def test_enum_out_of_range():
    doc = gltf_json(accessors=[{"componentType": 5124, "count": 1, "type": "SCALAR"}])
    with pytest.raises(EnumOutOfRange) as info:
        Document.from_json(doc)
    assert info.value.path == "accessors[0].componentType"
    assert info.value.value == 5124


def test_type_mismatch_rejects_bool_for_int():
    doc = gltf_json(buffers=[{"byteLength": True}])
    with pytest.raises(TypeMismatch):
        Document.from_json(doc)


def test_malformed_json():
    with pytest.raises(InvalidJson):
        Document.from_json(b'{"asset": ')


def test_root_must_be_object():
    with pytest.raises(TypeMismatch):
        Document.from_json(b"[]")


def test_unknown_fields_ignored_and_extras_kept():
    doc = gltf_json(
        nodes=[{"futureField": 1, "extras": {"tag": "x"}, "extensions": {"EXT_a": {"b": 1}}}],
    )
    node = Document.from_json(doc).nodes[0]
    assert node.extras == {"tag": "x"}
    assert node.extensions == {"EXT_a": {"b": 1}}


def test_defaults():
    doc = gltf_json(
        samplers=[{}],
        materials=[{}],
        meshes=[{"primitives": [{"attributes": {"POSITION": 0}}]}],
        textures=[{"source": 0}],
    )
    document = Document.from_json(doc)
    assert document.samplers[0].wrap_s is WrappingMode.REPEAT
    assert document.materials[0].alpha_mode is AlphaMode.OPAQUE
    assert document.materials[0].alpha_cutoff == 0.5
    assert document.materials[0].pbr_metallic_roughness.base_color_factor == (1.0, 1.0, 1.0, 1.0)
    primitive = document.meshes[0].primitives[0]
    assert document.primitive_material(primitive) is DEFAULT_MATERIAL
    assert document.texture_sampler(document.textures[0]) is DEFAULT_SAMPLER


def test_scene_helpers():
    doc = gltf_json(
        scenes=[{"nodes": [0]}],
        nodes=[{"children": [1, 2]}, {}, {"name": "leaf"}],
    )
    document = Document.from_json(doc)
    assert document.default_scene() is document.scenes[0]
    assert document.root_nodes() == (document.nodes[0],)
    assert document.parents() == {1: 0, 2: 0}


def test_matrix_element_size_includes_column_padding():
    assert element_size(ComponentType.F32, AccessorType.VEC3) == 12
    assert element_size(ComponentType.U8, AccessorType.MAT2) == 8
    assert element_size(ComponentType.U8, AccessorType.MAT3) == 12
    assert element_size(ComponentType.I16, AccessorType.MAT3) == 24
    assert element_size(ComponentType.F32, AccessorType.MAT4) == 64


def test_texture_info_and_transform_extension():
    doc = gltf_json(materials=[{
        "normalTexture": {"index": 0, "texCoord": 1, "scale": 0.5},
        "occlusionTexture": {"index": 0, "strength": 0.25},
        "emissiveTexture": {
            "index": 0,
            "extensions": {"KHR_texture_transform": {"offset": [0.5, 0], "scale": [2, 2]}},
        },
        "extensions": {"KHR_materials_emissive_strength": {"emissiveStrength": 4}},
    }])
    material = Document.from_json(doc).materials[0]
    assert material.normal_texture.tex_coord == 1
    assert material.normal_texture.scale == 0.5
    assert material.occlusion_texture.scale == 0.25
    transform = ext.texture_transform(material.emissive_texture)
    assert transform.offset == (0.5, 0.0)
    assert transform.scale == (2.0, 2.0)
    assert transform.rotation == 0.0
    assert ext.emissive_strength(material) == 4.0
    assert ext.texture_transform(material.normal_texture) is None


def test_lights_extension():
    doc = gltf_json(
        extensions={"KHR_lights_punctual": {"lights": [
            {"type": "spot", "spot": {"outerConeAngle": 0.5}, "intensity": 3},
        ]}},
        nodes=[{"extensions": {"KHR_lights_punctual": {"light": 0}}}],
    )
    document = Document.from_json(doc)
    (light,) = ext.lights(document)
    assert light.type is ext.LightType.SPOT
    assert light.outer_cone_angle == 0.5
    assert light.intensity == 3.0
    assert ext.node_light(document.nodes[0]) == 0


def test_camera_requires_matching_projection():
    doc = gltf_json(cameras=[{"type": "perspective"}])
    with pytest.raises(MissingField) as info:
        Document.from_json(doc)
    assert info.value.path == "cameras[0].perspective"


def test_animation_parsing():
    doc = gltf_json(animations=[{
        "channels": [{"sampler": 0, "target": {"node": 0, "path": "rotation"}}],
        "samplers": [{"input": 0, "output": 1, "interpolation": "STEP"}],
    }])
    animation = Document.from_json(doc).animations[0]
    assert animation.channels[0].target.path.value == "rotation"
    assert animation.samplers[0].interpolation.value == "STEP"


def test_extension_and_extras_payloads_are_read_only():
    doc = gltf_json(
        nodes=[{"extensions": {"KHR_lights_punctual": {"light": 0}}, "extras": {"tags": ["a", "b"]}}],
        meshes=[{"primitives": [{"attributes": {"POSITION": 0}, "targets": [{"POSITION": 1}]}]}],
    )
    document = Document.from_json(doc)
    node = document.nodes[0]
    with pytest.raises(TypeError):
        node.extensions["KHR_lights_punctual"]["light"] = 5
    with pytest.raises(TypeError):
        node.extensions["EXT_other"] = {}
    with pytest.raises(TypeError):
        document.meshes[0].primitives[0].targets[0]["POSITION"] = Index(7)
    assert node.extras["tags"] == ("a", "b")
    assert ext.node_light(node) == 0
    assert hash(document) == hash(Document.from_json(doc))
