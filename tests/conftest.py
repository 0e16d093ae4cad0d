import pytest

from helpers import FakeEngine, make_block_image


@pytest.fixture
def block_image():
    return make_block_image()


@pytest.fixture
def fake_engine():
    return FakeEngine()
