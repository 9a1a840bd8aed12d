import dataclasses
import json
import logging

import pytest

from gltfimport import (
    ImportConfig,
    LoaderError,
    import_file,
    import_gltf,
    parse_container,
    read_accessor,
    write_container,
)
from gltfimport.document import Document, Index
from gltfimport.errors import Cycle, MagicMismatch, ValidationFailed
from tests.helpers import TRIANGLE_POSITIONS, data_uri, encode, glb


def test_import_glb(triangle_glb):
    result = import_gltf(triangle_glb)
    assert len(result.buffers) == 1
    assert len(result.buffers[0]) == result.document.buffers[0].byte_length
    positions = read_accessor(result.document, result.buffers, 0)
    assert list(positions) == list(TRIANGLE_POSITIONS)


def test_import_json_with_data_uri(triangle_doc):
    doc, binary = triangle_doc
    doc["buffers"][0]["uri"] = data_uri(binary)
    result = import_gltf(encode(doc))
    assert result.buffers == (binary,)


def test_reencoded_container_gives_equal_document(triangle_glb):
    first = import_gltf(triangle_glb)
    container = parse_container(triangle_glb)
    rewritten = write_container(json.dumps(json.loads(container.json)).encode(), container.binary)
    second = import_gltf(rewritten)
    assert second.document == first.document
    assert second.buffers == first.buffers


def test_corrupted_magic(triangle_glb):
    with pytest.raises(MagicMismatch):
        import_gltf(b"fTlg" + triangle_glb[4:])


def test_validation_runs_before_buffers(triangle_doc):
    doc, binary = triangle_doc
    doc["nodes"] = [{"children": [0]}]
    with pytest.raises(Cycle):
        import_gltf(glb(doc, binary))


def test_collect_all_mode(triangle_doc):
    doc, binary = triangle_doc
    doc["nodes"] = [{"mesh": 4, "camera": 2}]
    with pytest.raises(ValidationFailed) as info:
        import_gltf(glb(doc, binary), config=ImportConfig(collect_all_errors=True))
    assert len(info.value.errors) == 2


def test_indices_in_bounds_after_import(triangle_glb):
    document = import_gltf(triangle_glb).document
    for path, entity in document.entities():
        for _, collection, index in entity.references(path):
            assert 0 <= index < len(getattr(document, collection))


def test_external_buffer_needs_loader(triangle_doc):
    doc, _ = triangle_doc
    doc["buffers"][0]["uri"] = "triangle.bin"
    with pytest.raises(LoaderError):
        import_gltf(encode(doc))


def test_import_file_resolves_relative_uris(tmp_path, triangle_doc, caplog):
    doc, binary = triangle_doc
    doc["buffers"][0]["uri"] = "triangle.bin"
    (tmp_path / "triangle.bin").write_bytes(binary)
    path = tmp_path / "triangle.gltf"
    path.write_bytes(encode(doc))
    with caplog.at_level(logging.INFO, logger="gltfimport.importer"):
        result = import_file(path)
    assert result.buffers == (binary,)
    assert isinstance(result.document, Document)
    assert "Imported glTF 2.0" in caplog.text


def test_imported_document_is_read_only(triangle_glb):
    document = import_gltf(triangle_glb).document
    primitive = document.meshes[0].primitives[0]
    with pytest.raises(TypeError):
        primitive.attributes["POSITION"] = Index(99)
    with pytest.raises(dataclasses.FrozenInstanceError):
        primitive.indices = Index(0)
    assert primitive.attributes["POSITION"] == 0
    assert hash(primitive) == hash(import_gltf(triangle_glb).document.meshes[0].primitives[0])
