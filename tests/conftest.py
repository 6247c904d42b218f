import os

os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

import pytest

from images import encode_png, make_gradient


@pytest.fixture
def gradient():
    return make_gradient(100, 80)


@pytest.fixture
def png_bytes(gradient):
    return encode_png(gradient)
