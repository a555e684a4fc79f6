"""SQL query builders for Aethereal Drift."""

TRANSMISSION_COLUMNS = (
    "id, timestamp, observer_lat, observer_lon, phantom_lat, phantom_lon, "
    "anchors, text, voice, style"
)


def build_insert_transmission() -> str:
    return """
    INSERT INTO transmissions
        (timestamp, observer_lat, observer_lon, phantom_lat, phantom_lon,
         anchors, text, voice, style)
    VALUES
        (:timestamp, :observer_lat, :observer_lon, :phantom_lat, :phantom_lon,
         :anchors, :text, :voice, :style)
    """


def build_recent_transmissions_query() -> str:
    """Build query for the newest transmissions first."""
    return f"""
    SELECT {TRANSMISSION_COLUMNS}
    FROM transmissions
    ORDER BY timestamp DESC, id DESC
    LIMIT :limit
    """


def build_all_transmissions_query() -> str:
    """Build query for every transmission, oldest first."""
    return f"""
    SELECT {TRANSMISSION_COLUMNS}
    FROM transmissions
    ORDER BY timestamp, id
    """


def build_vec_table_ddl(dimensions: int) -> str:
    """Build DDL for the transmission text vector table."""
    return f"""
    CREATE VIRTUAL TABLE IF NOT EXISTS transmission_vec
    USING vec0(embedding float[{dimensions}])
    """


def build_similarity_query() -> str:
    """Build query for transmissions closest to a query vector.

    Uses sqlite-vec virtual table for KNN search.
    """
    return """
    SELECT t.id, t.timestamp, t.observer_lat, t.observer_lon, t.phantom_lat,
           t.phantom_lon, t.anchors, t.text, t.voice, t.style, tv.distance
    FROM transmission_vec tv
    JOIN transmissions t ON tv.rowid = t.id
    WHERE tv.embedding MATCH :query_vector
      AND k = :limit
    ORDER BY tv.distance
    """
