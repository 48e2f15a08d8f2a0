from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Request

from formforge.config import STORAGE_BACKEND
from formforge.db import AsyncSessionLocal
from formforge.storage import FormStorage, MemoryFormStorage, ObjectStorage, SqlFormStorage, object_storage


async def get_form_storage(request: Request) -> AsyncGenerator[FormStorage, None]:
    if STORAGE_BACKEND == "memory":
        store = getattr(request.app.state, "memory_storage", None)
        if store is None:
            store = MemoryFormStorage()
            request.app.state.memory_storage = store
        yield store
        return

    async with AsyncSessionLocal() as session:
        yield SqlFormStorage(session)


def get_object_storage() -> ObjectStorage:
    return object_storage
