import pytest

from gltfimport.buffers import FileLoader, decode_data_uri, resolve_buffer, resolve_buffers
from gltfimport.config import ImportConfig
from gltfimport.document import Document
from gltfimport.errors import InvalidUri, LengthMismatch, LimitExceeded, LoaderError
from tests.helpers import data_uri, gltf_json


def _document(*buffers: dict) -> Document:
    return Document.from_json(gltf_json(buffers=list(buffers)))


def test_binary_segment_backs_first_buffer():
    document = _document({"byteLength": 4})
    assert resolve_buffer(document, 0, b"\1\2\3\4") == b"\1\2\3\4"


def test_binary_segment_padding_is_trimmed():
    document = _document({"byteLength": 5})
    assert resolve_buffer(document, 0, b"\1\2\3\4\5\0\0\0") == b"\1\2\3\4\5"


def test_binary_segment_too_short():
    document = _document({"byteLength": 8})
    with pytest.raises(LengthMismatch) as info:
        resolve_buffer(document, 0, b"\1\2\3\4")
    assert info.value.expected == 8
    assert info.value.actual == 4


def test_missing_uri_without_binary_segment():
    document = _document({"byteLength": 4})
    with pytest.raises(InvalidUri):
        resolve_buffer(document, 0, None)


def test_missing_uri_on_second_buffer():
    document = _document({"byteLength": 4}, {"byteLength": 4})
    with pytest.raises(InvalidUri):
        resolve_buffers(document, b"\0\0\0\0")


def test_base64_data_uri():
    document = _document({"byteLength": 3, "uri": data_uri(b"abc")})
    assert resolve_buffer(document, 0, None) == b"abc"


def test_percent_encoded_data_uri():
    data, media_type = decode_data_uri("data:text/plain,a%20b")
    assert data == b"a b"
    assert media_type == "text/plain"


def test_malformed_data_uri():
    with pytest.raises(InvalidUri):
        decode_data_uri("data:application/octet-stream;base64,@@@")
    with pytest.raises(InvalidUri):
        decode_data_uri("data:no-comma")


def test_data_uri_length_mismatch():
    document = _document({"byteLength": 4, "uri": data_uri(b"abc")})
    with pytest.raises(LengthMismatch):
        resolve_buffer(document, 0, None)


def test_loader_receives_uri():
    calls = []

    def loader(uri):
        calls.append(uri)
        return b"\0" * 6

    document = _document({"byteLength": 6, "uri": "mesh.bin"})
    assert resolve_buffers(document, None, loader) == (b"\0" * 6,)
    assert calls == ["mesh.bin"]


def test_loader_failure_is_wrapped():
    def loader(uri):
        raise FileNotFoundError(uri)

    document = _document({"byteLength": 6, "uri": "missing.bin"})
    with pytest.raises(LoaderError) as info:
        resolve_buffer(document, 0, None, loader)
    assert info.value.uri == "missing.bin"
    assert isinstance(info.value.__cause__, FileNotFoundError)


def test_loader_must_return_bytes():
    document = _document({"byteLength": 2, "uri": "a.bin"})
    with pytest.raises(LoaderError):
        resolve_buffer(document, 0, None, lambda uri: "ab")


def test_external_uri_without_loader():
    document = _document({"byteLength": 6, "uri": "mesh.bin"})
    with pytest.raises(LoaderError):
        resolve_buffer(document, 0, None)


def test_buffer_limit_checked_before_loading():
    def loader(uri):
        raise AssertionError("loader must not be called")

    document = _document({"byteLength": 1024, "uri": "big.bin"})
    with pytest.raises(LimitExceeded):
        resolve_buffer(document, 0, None, loader, ImportConfig(max_buffer_bytes=512))


def test_file_loader_reads_relative_paths(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "my mesh.bin").write_bytes(b"xyz")
    loader = FileLoader(tmp_path)
    assert loader("sub/my%20mesh.bin") == b"xyz"


def test_file_loader_refuses_escape(tmp_path):
    loader = FileLoader(tmp_path / "inner")
    with pytest.raises(PermissionError):
        loader("../secret.bin")
    with pytest.raises(PermissionError):
        loader("https://example.com/mesh.bin")


def test_file_loader_error_becomes_loader_error(tmp_path):
    document = _document({"byteLength": 4, "uri": "../outside.bin"})
    with pytest.raises(LoaderError):
        resolve_buffer(document, 0, None, FileLoader(tmp_path))
