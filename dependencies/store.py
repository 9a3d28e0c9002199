# dependencies/store.py

from fastapi import HTTPException, Request

from core.store import Store


def get_store(request: Request) -> Store:
    """Persistence handle attached to the app by create_app()."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(500, "Store not configured")
    return store
