"""
Shared test configuration and fixtures.

Provides an in-memory cloud document store so hybrid storage can be
exercised without Cosmos DB. The fake can be told to fail on chosen
operations to drive the local fallback paths.
"""

import copy
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest

from smello_project_storage.exceptions import ProjectNotFoundError, StorageConnectionError
from smello_project_storage.id_utils import generate_project_id
from smello_project_storage.models import Epic, Product, ProjectData, UserStory
from smello_project_storage.storage import (
    HybridProjectStore,
    JsonFileKeyValueStore,
    LocalProjectStore,
    ProjectDocumentStore,
)
from smello_project_storage.timestamps import parse_timestamp

TEST_USER = "user-123"


class InMemoryDocumentStore(ProjectDocumentStore):
    """
    In-memory document store for testing without Cosmos DB.

    Timestamps come from a fake clock that advances one second per write,
    so ordering by ``updatedAt`` is deterministic.
    """

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.failing: set[str] = set()
        self.reject_every_nth_create: int | None = None
        self.calls: list[str] = []
        self.closed = False
        self._creates = 0
        self._clock = 1_700_000_000

    def fail(self, *operations: str) -> None:
        """Make the named operations raise a connection error."""
        self.failing.update(operations)

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failing:
            raise StorageConnectionError("memory://cloud", RuntimeError(f"{operation} failed"))

    def _tick(self) -> dict[str, int]:
        self._clock += 1
        return {"seconds": self._clock, "nanos": 0}

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self.collections.setdefault(name, {})

    async def create_document(
        self,
        collection: str,
        fields: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        self._check("create_document")
        self._creates += 1
        n = self.reject_every_nth_create
        if n and self._creates % n == 0:
            raise StorageConnectionError("memory://cloud", RuntimeError("create rejected"))

        doc_id = document_id or fields.get("id") or generate_project_id()
        now = self._tick()
        self._collection(collection)[doc_id] = copy.deepcopy(
            {**fields, "id": doc_id, "createdAt": now, "updatedAt": now}
        )
        return doc_id

    async def get_document(self, collection: str, document_id: str) -> dict[str, Any] | None:
        self._check("get_document")
        doc = self._collection(collection).get(document_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def update_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> None:
        self._check("update_document")
        docs = self._collection(collection)
        if document_id not in docs:
            raise ProjectNotFoundError(document_id)
        docs[document_id].update(copy.deepcopy(fields))
        docs[document_id]["updatedAt"] = self._tick()

    async def delete_document(self, collection: str, document_id: str) -> None:
        self._check("delete_document")
        docs = self._collection(collection)
        if document_id not in docs:
            raise ProjectNotFoundError(document_id)
        del docs[document_id]

    async def query_documents(
        self,
        collection: str,
        filters: dict[str, Any],
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        self._check("query_documents")
        results = [
            copy.deepcopy(doc)
            for doc in self._collection(collection).values()
            if all(doc.get(key) == value for key, value in filters.items())
        ]
        if order_by:
            results.sort(key=lambda d: parse_timestamp(d.get(order_by)), reverse=descending)
        return results

    async def close(self) -> None:
        self.closed = True


def make_draft(
    name: str = "Acme Invoicing",
    description: str = "Invoicing for freelancers",
    epic_count: int = 1,
) -> ProjectData:
    """Build a project draft with a few epics and stories."""
    epics = [
        Epic(
            id=f"E{i}",
            title=f"Epic {i}",
            user_stories=[
                UserStory(
                    id=f"E{i}-S1",
                    description="As a freelancer I want to send an invoice",
                    acceptance_criteria=["Invoice has a due date"],
                    edge_cases=["Client has no email"],
                    validations=["Amount is positive"],
                )
            ],
        )
        for i in range(1, epic_count + 1)
    ]
    return ProjectData(
        product=Product(name=name, description=description, sector="fintech"),
        epics=epics,
    )


@pytest.fixture
def local_path(tmp_path: Path) -> Path:
    """Path of the local projects file."""
    return tmp_path / "smello" / "projects.json"


@pytest.fixture
def local_store(local_path: Path) -> LocalProjectStore:
    """Local project store backed by a temporary file."""
    return LocalProjectStore(JsonFileKeyValueStore(local_path))


@pytest.fixture
def cloud() -> InMemoryDocumentStore:
    """In-memory cloud document store."""
    return InMemoryDocumentStore()


@pytest.fixture
async def store(
    local_store: LocalProjectStore,
    cloud: InMemoryDocumentStore,
) -> AsyncIterator[HybridProjectStore]:
    """Hybrid store over the temporary local store and the in-memory cloud."""
    hybrid = HybridProjectStore(local=local_store, cloud=cloud)
    yield hybrid
    await hybrid.close()


@pytest.fixture
def user_id() -> str:
    """Signed-in user identity."""
    return TEST_USER


@pytest.fixture
def draft_factory():
    """Factory for project drafts."""
    return make_draft
