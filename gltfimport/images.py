"""
Image payload extraction.

Only raw encoded bytes and the declared (or sniffed) MIME type are returned;
pixel decoding belongs to an image codec.
"""

import logging
from dataclasses import dataclass

from gltfimport.buffers import Loader, decode_data_uri, load_uri
from gltfimport.document import Document
from gltfimport.errors import OutOfBounds

logger = logging.getLogger(__name__)

_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
)


@dataclass(frozen=True)
class ImageData:
    data: bytes
    mime_type: str | None


def sniff_mime_type(data: bytes) -> str | None:
    for signature, mime in _SIGNATURES:
        if data.startswith(signature):
            return mime
    return None


def read_image(document: Document, buffers, image_index: int,
               loader: Loader | None = None) -> ImageData:
    """Return the encoded bytes of images[image_index]."""
    image = document.images[image_index]
    path = f"images[{image_index}]"
    declared = image.mime_type.value if image.mime_type is not None else None

    if image.buffer_view is not None:
        view = image.buffer_view.get(document.buffer_views)
        blob = buffers[view.buffer]
        end = view.byte_offset + view.byte_length
        if end > len(blob):
            raise OutOfBounds(f"{path}: bufferView range ends at {end}, buffer has {len(blob)} bytes")
        data = bytes(blob[view.byte_offset:end])
    elif image.uri.startswith("data:"):
        data, media_type = decode_data_uri(image.uri, f"{path}.uri")
        declared = declared or media_type
    else:
        data = load_uri(image.uri, loader, f"{path}.uri")

    mime_type = declared or sniff_mime_type(data)
    logger.debug("Read %s: %d bytes (%s)", path, len(data), mime_type)
    return ImageData(data=data, mime_type=mime_type)
