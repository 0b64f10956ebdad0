"""Tenant-scoped document store.

Collections are named lists of JSON-compatible records (``facilities``,
``cbamReports``, ``suppliers``). Callers scope every query to the owning
user with ``where={"userId": ...}``.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alucbam.core.logging import get_logger
from alucbam.db.models import StoredDocument

logger = get_logger(__name__)

FACILITIES = "facilities"
CBAM_REPORTS = "cbamReports"
SUPPLIERS = "suppliers"

OWNER_FIELD = "userId"


class DocumentNotFoundError(LookupError):
    """Raised when an update targets a record that does not exist."""


class DocumentStore(Protocol):
    """Persistence contract used by the report and supplier services."""

    async def list(
        self,
        collection: str,
        where: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]: ...

    async def create(self, collection: str, record: Mapping[str, Any]) -> dict[str, Any]: ...

    async def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None: ...


def _matches(record: Mapping[str, Any], where: Mapping[str, Any] | None) -> bool:
    if not where:
        return True
    return all(record.get(key) == value for key, value in where.items())


def _ordered(
    records: list[dict[str, Any]],
    order_by: str | None,
    descending: bool,
) -> list[dict[str, Any]]:
    if order_by is None:
        return records
    # Records lacking the field sort last regardless of direction
    present = [r for r in records if r.get(order_by) is not None]
    missing = [r for r in records if r.get(order_by) is None]
    present.sort(key=lambda r: r[order_by], reverse=descending)
    return present + missing


def _require_id(record: Mapping[str, Any]) -> str:
    record_id = record.get("id")
    if not isinstance(record_id, str) or not record_id:
        raise ValueError("record must carry a non-empty string 'id'")
    return record_id


class InMemoryDocumentStore:
    """Process-local store for development and tests.

    Records are deep-copied on the way in and out so callers can never
    mutate stored state by accident.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    async def list(
        self,
        collection: str,
        where: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        records = [
            copy.deepcopy(record)
            for record in self._collections.get(collection, {}).values()
            if _matches(record, where)
        ]
        return _ordered(records, order_by, descending)

    async def create(self, collection: str, record: Mapping[str, Any]) -> dict[str, Any]:
        record_id = _require_id(record)
        stored = copy.deepcopy(dict(record))
        self._collections.setdefault(collection, {})[record_id] = stored
        return copy.deepcopy(stored)

    async def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise DocumentNotFoundError(f"{collection}/{record_id} not found")
        record.update(copy.deepcopy(dict(fields)))


class SqlDocumentStore:
    """Document store backed by the ``documents`` table.

    Usage::

        store = SqlDocumentStore(await init_db())
        await store.create("facilities", {"id": "f-1", "userId": "u-1", ...})
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list(
        self,
        collection: str,
        where: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        query = select(StoredDocument).where(StoredDocument.collection == collection)
        owner = (where or {}).get(OWNER_FIELD)
        if owner is not None:
            query = query.where(StoredDocument.owner_id == str(owner))

        async with self._session_factory() as session:
            result = await session.execute(query)
            rows = result.scalars().all()

        records = [dict(row.payload) for row in rows if _matches(row.payload, where)]
        return _ordered(records, order_by, descending)

    async def create(self, collection: str, record: Mapping[str, Any]) -> dict[str, Any]:
        record_id = _require_id(record)
        payload = dict(record)
        owner = payload.get(OWNER_FIELD)
        async with self._session_factory() as session:
            session.add(
                StoredDocument(
                    collection=collection,
                    id=record_id,
                    owner_id=str(owner) if owner is not None else None,
                    payload=payload,
                )
            )
            await session.commit()
        logger.debug("document_created", collection=collection, id=record_id)
        return payload

    async def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        async with self._session_factory() as session:
            row = await session.get(StoredDocument, (collection, record_id))
            if row is None:
                raise DocumentNotFoundError(f"{collection}/{record_id} not found")
            # Reassign so the JSON column is flagged dirty
            row.payload = {**row.payload, **dict(fields)}
            if OWNER_FIELD in fields:
                owner = fields[OWNER_FIELD]
                row.owner_id = str(owner) if owner is not None else None
            await session.commit()
        logger.debug("document_updated", collection=collection, id=record_id)
