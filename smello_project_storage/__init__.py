"""
Smello Project Storage

Hybrid project storage for product-management tooling: epics, user stories
and generated artifacts, kept in Cosmos DB for signed-in users and in a
local JSON store otherwise.

Usage:

    >>> from smello_project_storage import HybridProjectStore, ProjectData, Product, StorageConfig
    >>> async with HybridProjectStore.create(StorageConfig.from_environment()) as store:
    ...     draft = ProjectData(product=Product(name="Acme", description="Invoices"))
    ...     project = await store.save_project(draft, user_id=current_user_id)
    ...     project.synced_to_cloud  # True when saved to the cloud store
    ...
    ...     await store.update_project(project.id, {"name": "Acme Pro"}, user_id=current_user_id)
    ...     projects = await store.list_projects(current_user_id)

Signed-out usage passes ``user_id=None``; every operation then uses local
storage. After sign-in, ``migrate_to_cloud(user_id)`` copies local projects
into the cloud store.
"""

from .artifacts import ProjectArtifacts, ProjectArtifactsManager

# Exceptions
from .exceptions import (
    AuthenticationError,
    ProjectNotFoundError,
    ProjectStorageError,
    StorageConnectionError,
    StorageIOError,
    SyncError,
    ValidationError,
)
from .logging_utils import configure_structured_logging, operation_logger

# Data model
from .models import (
    Artifact,
    ArtifactKind,
    Blueprints,
    Epic,
    PrdDocument,
    Product,
    Project,
    ProjectData,
    StoryOptionalFields,
    UserStory,
)

# Storage
from .storage import (
    CosmosAuthMethod,
    CosmosProjectStore,
    HybridProjectStore,
    JsonFileKeyValueStore,
    LocalProjectStore,
    ProjectDocumentStore,
    StorageConfig,
)

__version__ = "0.1.0"

__all__ = [
    # Storage
    "HybridProjectStore",
    "LocalProjectStore",
    "JsonFileKeyValueStore",
    "CosmosProjectStore",
    "ProjectDocumentStore",
    "StorageConfig",
    "CosmosAuthMethod",
    # Artifacts
    "ProjectArtifactsManager",
    "ProjectArtifacts",
    # Data model
    "Project",
    "ProjectData",
    "Product",
    "Epic",
    "UserStory",
    "StoryOptionalFields",
    "PrdDocument",
    "Blueprints",
    "Artifact",
    "ArtifactKind",
    # Exceptions
    "ProjectStorageError",
    "ProjectNotFoundError",
    "ValidationError",
    "StorageIOError",
    "StorageConnectionError",
    "AuthenticationError",
    "SyncError",
    # Logging
    "configure_structured_logging",
    "operation_logger",
]
