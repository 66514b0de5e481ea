import pytest

from gbx_reader.cursor import BodyCursor
from helpers import Lookback


@pytest.fixture
def lookback():
    return Lookback()


@pytest.fixture
def make_cursor():
    def _make_cursor(*parts):
        return BodyCursor(b"".join(parts))

    return _make_cursor
