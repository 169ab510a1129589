"""
Project storage backends.

Provides local file storage, a Cosmos DB document store, and the hybrid
store that routes between them per call.

Authentication Methods:
    For Cosmos DB, multiple authentication methods are supported:
    - KEY: Connection string or key (not recommended for production)
    - DEFAULT_CREDENTIAL: Azure DefaultAzureCredential (recommended)
    - MANAGED_IDENTITY: Azure Managed Identity
    - SERVICE_PRINCIPAL: Service Principal with client secret

Example:
    >>> from smello_project_storage.storage import HybridProjectStore, StorageConfig
    >>> config = StorageConfig(
    ...     cosmos_endpoint="https://example.documents.azure.com:443/",
    ...     local_path="~/.smello/projects.json",
    ... )
    >>> store = HybridProjectStore.create(config)
    >>> projects = await store.list_projects(user_id="user-123")
"""

from .base import (
    PROJECTS_COLLECTION,
    CosmosAuthMethod,
    ProjectDocumentStore,
    StorageConfig,
)
from .cosmos import CosmosProjectStore
from .hybrid import HybridProjectStore
from .local import STORAGE_KEY, JsonFileKeyValueStore, LocalProjectStore

__all__ = [
    # Configuration
    "StorageConfig",
    "CosmosAuthMethod",
    "PROJECTS_COLLECTION",
    "STORAGE_KEY",
    # Storage implementations
    "ProjectDocumentStore",
    "JsonFileKeyValueStore",
    "LocalProjectStore",
    "CosmosProjectStore",
    "HybridProjectStore",
]
