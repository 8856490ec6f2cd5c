"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

MEDIA_COLUMNS = (
    "name", "size", "datetime", "exif_datetime_original", "mime_type", "mime_subtype",
    "mime_value", "extension", "count", "file_size_mismatch", "common_path",
    "common_ancestor", "filepath", "exif_json",
)

DUPLICATE_COLUMNS = ("datetime", "name", "size", "filepath")


def init_schema(conn: sqlite3.Connection):
    """
    Applies the schema to the database.
    Idempotent: safe to run on every startup.
    """
    with conn:
        # 1. Version Tracking (For future migrations)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. One row per base name
        conn.execute("""
        CREATE TABLE IF NOT EXISTS media (
            name                    TEXT PRIMARY KEY,
            size                    INTEGER,
            datetime                TEXT,             -- mtime of the first sighting
            exif_datetime_original  TEXT,
            mime_type               TEXT,
            mime_subtype            TEXT,
            mime_value              TEXT,
            extension               TEXT,
            count                   INTEGER,          -- > 1 means duplicate occurrences
            file_size_mismatch      INTEGER NOT NULL DEFAULT 0,
            common_path             TEXT,             -- common suffix of the duplicate paths
            common_ancestor         TEXT,
            filepath                TEXT,             -- JSON list of occurrences
            exif_json               TEXT
        );
        """)

        # 3. One row per duplicate path
        conn.execute("""
        CREATE TABLE IF NOT EXISTS duplicates (
            datetime    TEXT,
            name        TEXT NOT NULL,
            size        INTEGER,
            filepath    TEXT PRIMARY KEY
        );
        """)

        # 4. Indices
        conn.execute("CREATE INDEX IF NOT EXISTS idx_media_mime ON media(mime_type);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_media_count ON media(count);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_duplicates_name ON duplicates(name);")

    logging.debug("Database schema initialized.")
