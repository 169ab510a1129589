"""
Integration tests for hybrid storage against a real Cosmos DB.

These tests require a real Cosmos DB connection and are marked as integration tests.
Run with: pytest -m integration tests/test_cosmos_integration.py

Environment variables required:
- SMELLO_COSMOS_ENDPOINT: Cosmos DB endpoint URL

Authentication (one of):
- SMELLO_COSMOS_KEY with SMELLO_COSMOS_AUTH_METHOD=key
- Azure identity: DefaultAzureCredential (for identity-based auth)

Optional:
- SMELLO_COSMOS_DATABASE: Database name (default: smello-db)
- SMELLO_COSMOS_CONTAINER: Container name (default: projects)
"""

import os
import uuid
from dataclasses import replace

import pytest

from smello_project_storage import HybridProjectStore, LocalProjectStore, StorageConfig
from smello_project_storage.storage import CosmosProjectStore

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not os.environ.get("SMELLO_COSMOS_ENDPOINT"),
        reason="SMELLO_COSMOS_ENDPOINT not set",
    ),
]


@pytest.fixture
def test_user_id():
    """Generate unique user ID for test isolation."""
    return f"test-user-{uuid.uuid4().hex[:8]}"


@pytest.fixture
async def live_store(tmp_path):
    config = replace(
        StorageConfig.from_environment(), local_path=str(tmp_path / "projects.json")
    )
    store = HybridProjectStore(
        local=LocalProjectStore.at_path(config.resolved_local_path()),
        cloud=CosmosProjectStore(config),
    )
    yield store
    await store.close()


async def test_project_lifecycle(live_store, test_user_id, draft_factory):
    saved = await live_store.save_project(
        draft_factory(description=f"integration {test_user_id}"), user_id=test_user_id
    )
    assert saved.synced_to_cloud is True

    try:
        loaded = await live_store.load_project(saved.id, user_id=test_user_id)
        assert loaded == saved

        updated = await live_store.update_project(
            saved.id, {"name": "Renamed"}, user_id=test_user_id
        )
        assert updated.name == "Renamed"
        assert updated.updated_at >= saved.updated_at

        listed = await live_store.list_projects(test_user_id)
        assert [p.id for p in listed] == [saved.id]
    finally:
        await live_store.delete_project(saved.id, user_id=test_user_id)

    assert await live_store.load_project(saved.id, user_id=test_user_id) is None


async def test_migrate_local_projects(live_store, test_user_id, draft_factory):
    local = await live_store.save_project(draft_factory(description="migrate me"), user_id=None)

    try:
        assert await live_store.migrate_to_cloud(test_user_id) == 1
        migrated = await live_store.load_project(local.id, user_id=test_user_id)
        assert migrated.synced_to_cloud is True
        assert migrated.epics == local.epics
    finally:
        await live_store.delete_project(local.id, user_id=test_user_id)
