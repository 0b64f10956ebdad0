"""
FastAPI dependencies for application-scoped resources.

The document store and persistence dispatcher are created in the
application lifespan and kept on ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from alucbam.core.tasks import PersistenceDispatcher
from alucbam.db.store import DocumentStore


def get_document_store(request: Request) -> DocumentStore:
    store: DocumentStore | None = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Persistence is not initialized",
        )
    return store


def get_dispatcher(request: Request) -> PersistenceDispatcher:
    dispatcher: PersistenceDispatcher | None = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Persistence is not initialized",
        )
    return dispatcher


StoreDep = Annotated[DocumentStore, Depends(get_document_store)]
DispatcherDep = Annotated[PersistenceDispatcher, Depends(get_dispatcher)]
