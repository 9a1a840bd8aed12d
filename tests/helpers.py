"""Builders for small glTF documents and containers used across the tests."""

import base64
import json
import struct

from gltfimport.container import write_container

F32 = 5126
U8 = 5121
I8 = 5120
U16 = 5123
I16 = 5122
U32 = 5125


def pack(fmt: str, *values) -> bytes:
    return struct.pack("<" + fmt * len(values), *values)


def floats(*values: float) -> bytes:
    return pack("f", *values)


def data_uri(data: bytes, media_type: str = "application/octet-stream") -> str:
    return f"data:{media_type};base64," + base64.b64encode(data).decode("ascii")


def gltf_json(**overrides) -> dict:
    doc = {"asset": {"version": "2.0"}}
    doc.update(overrides)
    return doc


def encode(doc: dict) -> bytes:
    return json.dumps(doc).encode("utf-8")


def glb(doc: dict, binary: bytes | None = None) -> bytes:
    return write_container(encode(doc), binary)


def single_accessor(data: bytes, accessor: dict, *, byte_stride: int | None = None,
                    view_offset: int = 0, embed: bool = False) -> dict:
    """A document with one buffer, one view covering it and the given accessor."""
    view = {"buffer": 0, "byteOffset": view_offset, "byteLength": len(data) - view_offset}
    if byte_stride is not None:
        view["byteStride"] = byte_stride
    buffer = {"byteLength": len(data)}
    if not embed:
        buffer["uri"] = data_uri(data)
    accessor = dict(accessor)
    accessor.setdefault("bufferView", 0)
    return gltf_json(buffers=[buffer], bufferViews=[view], accessors=[accessor])


TRIANGLE_POSITIONS = ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))


def triangle() -> tuple[dict, bytes]:
    """One mesh, one node, one scene; positions and u16 indices in a single buffer."""
    positions = floats(*(c for p in TRIANGLE_POSITIONS for c in p))
    indices = pack("H", 0, 1, 2) + b"\0\0"
    binary = positions + indices
    doc = gltf_json(
        scene=0,
        scenes=[{"nodes": [0]}],
        nodes=[{"mesh": 0, "name": "tri"}],
        meshes=[{"primitives": [{"attributes": {"POSITION": 0}, "indices": 1}]}],
        buffers=[{"byteLength": len(binary)}],
        bufferViews=[
            {"buffer": 0, "byteOffset": 0, "byteLength": 36, "byteStride": 12, "target": 34962},
            {"buffer": 0, "byteOffset": 36, "byteLength": 6, "target": 34963},
        ],
        accessors=[
            {"bufferView": 0, "componentType": F32, "count": 3, "type": "VEC3",
             "min": [0, 0, 0], "max": [1, 1, 0]},
            {"bufferView": 1, "componentType": U16, "count": 3, "type": "SCALAR"},
        ],
    )
    return doc, binary
