SCHEMA_SQL = r"""
-- One JSON document per storage key (whole-snapshot overwrite on save)
CREATE TABLE IF NOT EXISTS snapshots (
  storage_key TEXT PRIMARY KEY,
  payload TEXT NOT NULL,
  updated_at TEXT NOT NULL              -- ISO datetime
);
"""
