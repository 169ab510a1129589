"""
Storage configuration and the cloud document store interface.

Defines the contract that cloud backends must implement for the
hybrid project store.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

PROJECTS_COLLECTION = "projects"

DEFAULT_SETTINGS_PATH = Path.home() / ".smello" / "settings.yaml"


class CosmosAuthMethod(Enum):
    """Authentication method for Cosmos DB.

    KEY: Use connection string or key (not recommended for production)
    DEFAULT_CREDENTIAL: Use Azure DefaultAzureCredential (recommended)
        - Works with Azure CLI, Managed Identity, Environment variables, etc.
    MANAGED_IDENTITY: Use Azure Managed Identity explicitly
    SERVICE_PRINCIPAL: Use Service Principal with client_id/client_secret
    """

    KEY = "key"
    DEFAULT_CREDENTIAL = "default_credential"
    MANAGED_IDENTITY = "managed_identity"
    SERVICE_PRINCIPAL = "service_principal"


def _parse_auth_method(value: str | None) -> CosmosAuthMethod:
    try:
        return CosmosAuthMethod((value or "default_credential").lower())
    except ValueError:
        return CosmosAuthMethod.DEFAULT_CREDENTIAL


@dataclass
class StorageConfig:
    """Configuration for project storage.

    Configuration can be provided directly, via environment variables,
    or via the ``storage`` section of ``~/.smello/settings.yaml``.

    Environment Variables:
        SMELLO_COSMOS_ENDPOINT: Cosmos DB endpoint URL
        SMELLO_COSMOS_KEY: Cosmos DB key (if using key auth)
        SMELLO_COSMOS_DATABASE: Database name (default: smello-db)
        SMELLO_COSMOS_CONTAINER: Container name (default: projects)
        SMELLO_COSMOS_AUTH_METHOD: Auth method (default: default_credential)
        SMELLO_LOCAL_STORAGE_PATH: Path of the local projects file
        AZURE_TENANT_ID: Azure tenant ID (for service principal)
        AZURE_CLIENT_ID: Azure client ID (for service principal/managed identity)
        AZURE_CLIENT_SECRET: Azure client secret (for service principal)

    Attributes:
        cosmos_endpoint: Cosmos DB endpoint URL; cloud storage is disabled when unset
        cosmos_auth_method: Authentication method (default: DEFAULT_CREDENTIAL)
        cosmos_key: Cosmos DB key (only for KEY auth method)
        cosmos_database: Cosmos DB database name
        cosmos_container: Cosmos DB container holding project documents

        azure_tenant_id: Azure tenant ID (for SERVICE_PRINCIPAL)
        azure_client_id: Azure client/app ID (for SERVICE_PRINCIPAL/MANAGED_IDENTITY)
        azure_client_secret: Azure client secret (for SERVICE_PRINCIPAL)

        local_path: Path of the local projects file
    """

    # Cosmos DB connection settings
    cosmos_endpoint: str | None = None
    cosmos_auth_method: CosmosAuthMethod = CosmosAuthMethod.DEFAULT_CREDENTIAL
    cosmos_key: str | None = None  # Only used if auth_method is KEY
    cosmos_database: str = "smello-db"
    cosmos_container: str = PROJECTS_COLLECTION

    # Azure AD authentication settings (for SERVICE_PRINCIPAL)
    azure_tenant_id: str | None = None
    azure_client_id: str | None = None
    azure_client_secret: str | None = None

    # Local storage settings
    local_path: str | None = None

    @property
    def cloud_enabled(self) -> bool:
        """True when a cloud endpoint is configured."""
        return bool(self.cosmos_endpoint)

    def resolved_local_path(self) -> Path:
        """Path of the local projects file (default: ~/.smello/projects.json)."""
        if self.local_path:
            return Path(self.local_path).expanduser()
        return Path.home() / ".smello" / "projects.json"

    @classmethod
    def from_environment(cls) -> StorageConfig:
        """Create configuration from environment variables.

        Returns:
            StorageConfig populated from environment variables
        """
        return cls(
            cosmos_endpoint=os.environ.get("SMELLO_COSMOS_ENDPOINT"),
            cosmos_auth_method=_parse_auth_method(os.environ.get("SMELLO_COSMOS_AUTH_METHOD")),
            cosmos_key=os.environ.get("SMELLO_COSMOS_KEY"),
            cosmos_database=os.environ.get("SMELLO_COSMOS_DATABASE", "smello-db"),
            cosmos_container=os.environ.get("SMELLO_COSMOS_CONTAINER", PROJECTS_COLLECTION),
            azure_tenant_id=os.environ.get("AZURE_TENANT_ID"),
            azure_client_id=os.environ.get("AZURE_CLIENT_ID"),
            azure_client_secret=os.environ.get("AZURE_CLIENT_SECRET"),
            local_path=os.environ.get("SMELLO_LOCAL_STORAGE_PATH"),
        )

    @classmethod
    def from_file(cls, path: Path | None = None) -> StorageConfig:
        """Create configuration from a YAML settings file.

        Configuration in ~/.smello/settings.yaml:

        ```yaml
        storage:
          cosmos_endpoint: "https://example.documents.azure.com:443/"
          cosmos_auth_method: default_credential
          cosmos_database: smello-db
          cosmos_container: projects
          local_path: "~/.smello/projects.json"
        ```

        A missing file or missing ``storage`` section yields the defaults
        (local-only storage). Unrecognized keys are logged and ignored.

        Args:
            path: Settings file path. Defaults to ~/.smello/settings.yaml

        Returns:
            StorageConfig populated from the file
        """
        settings_path = path or DEFAULT_SETTINGS_PATH
        if not settings_path.exists():
            return cls()

        content = yaml.safe_load(settings_path.read_text()) or {}
        section: dict[str, Any] = content.get("storage") or {}

        known = set(cls.__dataclass_fields__)
        unknown = sorted(key for key in section if key not in known)
        if unknown:
            logger.warning(
                f"Ignoring unknown storage settings in {settings_path}: {', '.join(unknown)}"
            )

        kwargs = {key: value for key, value in section.items() if key in known}
        if "cosmos_auth_method" in kwargs:
            kwargs["cosmos_auth_method"] = _parse_auth_method(kwargs["cosmos_auth_method"])
        return cls(**kwargs)


class ProjectDocumentStore(ABC):
    """Abstract interface for the cloud document store.

    Documents are plain dictionaries. Implementations assign store-native
    ``createdAt``/``updatedAt`` timestamps of the form
    ``{"seconds": int, "nanos": int}``.
    """

    @abstractmethod
    async def create_document(
        self,
        collection: str,
        fields: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        """Create a document.

        Args:
            collection: Collection (container) name
            fields: Document fields
            document_id: Optional id; one is minted when omitted.
                An existing document with the same id is replaced.

        Returns:
            The document id

        Raises:
            ProjectStorageError: If the write fails
        """
        ...

    @abstractmethod
    async def get_document(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Fetch a document by id.

        Returns:
            The document, or None if it does not exist
        """
        ...

    @abstractmethod
    async def update_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> None:
        """Merge ``fields`` into an existing document and stamp ``updatedAt``.

        Raises:
            ProjectNotFoundError: If the document does not exist
        """
        ...

    @abstractmethod
    async def delete_document(self, collection: str, document_id: str) -> None:
        """Hard-delete a document.

        Raises:
            ProjectNotFoundError: If the document does not exist
        """
        ...

    @abstractmethod
    async def query_documents(
        self,
        collection: str,
        filters: dict[str, Any],
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Query documents whose fields equal every value in ``filters``.

        Args:
            collection: Collection (container) name
            filters: Field name -> required value
            order_by: Optional field to sort by
            descending: Sort direction

        Returns:
            Matching documents
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the store connection and cleanup resources."""
        ...
