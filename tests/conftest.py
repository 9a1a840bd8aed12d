import pytest

from tests.helpers import glb, triangle


@pytest.fixture
def triangle_doc():
    return triangle()


@pytest.fixture
def triangle_glb(triangle_doc):
    doc, binary = triangle_doc
    return glb(doc, binary)
