from __future__ import annotations

from typing import Any, List, Optional

from stream_catalog.db import STREAMS, DocumentStore
from stream_catalog.models import Stream, StreamCreate, StreamUpdate


async def list_streams(store: DocumentStore) -> List[Stream]:
    return [Stream.from_doc(d) for d in await store.find_all(STREAMS)]


async def get_stream(store: DocumentStore, stream_id: Any) -> Optional[Stream]:
    doc = await store.find_by_id(STREAMS, stream_id)
    return Stream.from_doc(doc) if doc is not None else None


async def create_stream(store: DocumentStore, payload: StreamCreate) -> Stream:
    doc = await store.insert(STREAMS, payload.model_dump())
    return Stream.from_doc(doc)


async def update_stream(store: DocumentStore, stream_id: Any, payload: StreamUpdate) -> Optional[Stream]:
    """Merge the supplied fields into the stored stream.

    Last write wins: there is no version check against concurrent updates.
    """
    doc = await store.update_by_id(STREAMS, stream_id, payload.changes())
    return Stream.from_doc(doc) if doc is not None else None


async def delete_stream(store: DocumentStore, stream_id: Any) -> bool:
    return await store.delete_by_id(STREAMS, stream_id)
