import pytest
import sqlite3
from PIL import Image

from media_dedup.database.schema import init_schema
from media_dedup.database.ops import DBOperations


@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    # writer threads share the connection
    c = sqlite3.connect(":memory:", check_same_thread=False)
    init_schema(c)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture
def db_ops(conn):
    """Returns a DBOperations instance attached to the in-memory DB."""
    return DBOperations(conn, show_progress=False)


@pytest.fixture
def make_image():
    """Writes a small real image; `size` changes the pixel count and so the file size."""
    def _make(path, size=(10, 10), color="red", fmt=None):
        path.parent.mkdir(parents=True, exist_ok=True)
        with Image.new("RGB", size, color=color) as im:
            im.save(path, format=fmt)
        return path
    return _make
