"""Stream records: list, fetch, create, merge-update, delete."""

from .crud import create_stream, delete_stream, get_stream, list_streams, update_stream

__all__ = [
    "create_stream",
    "delete_stream",
    "get_stream",
    "list_streams",
    "update_stream",
]
