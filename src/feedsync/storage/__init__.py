"""Storage backends."""

from feedsync.storage.sqlite import SQLiteStorage, decode_timestamp, encode_timestamp

__all__ = [
    "SQLiteStorage",
    "decode_timestamp",
    "encode_timestamp",
]
