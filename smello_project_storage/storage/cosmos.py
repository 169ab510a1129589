"""
Cosmos DB project document store.

Stores project documents in Azure Cosmos DB, one container per collection.

Supports multiple authentication methods:
- Key-based authentication (if org policy allows)
- Azure AD via DefaultAzureCredential (recommended)
- Azure Managed Identity
- Service Principal
"""

from __future__ import annotations

import logging
import re
from typing import Any

from azure.cosmos import PartitionKey
from azure.cosmos.aio import ContainerProxy, CosmosClient, DatabaseProxy
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from ..exceptions import (
    AuthenticationError,
    ProjectNotFoundError,
    StorageConnectionError,
    StorageIOError,
)
from ..id_utils import generate_project_id
from ..timestamps import parse_timestamp, to_store_timestamp, utc_now
from .base import PROJECTS_COLLECTION, CosmosAuthMethod, ProjectDocumentStore, StorageConfig

logger = logging.getLogger(__name__)

_FIELD_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Fields holding store-native {seconds, nanos} timestamps
_TIMESTAMP_FIELDS = {"createdAt", "updatedAt"}

# Containers are partitioned on the document id; point operations pass the id as partition value
PARTITION_KEY_PATH = "/id"

# Cosmos system properties stripped from returned documents
_SYSTEM_FIELDS = {"_rid", "_self", "_etag", "_attachments", "_ts"}


def _get_credential(config: StorageConfig) -> Any:
    """Get the appropriate credential based on auth method.

    Args:
        config: Storage configuration with auth settings

    Returns:
        Credential object for Cosmos DB authentication

    Raises:
        AuthenticationError: If credential cannot be created
    """
    endpoint = config.cosmos_endpoint or "cosmos"
    auth_method = config.cosmos_auth_method

    if auth_method == CosmosAuthMethod.KEY:
        if not config.cosmos_key:
            raise AuthenticationError(endpoint, "cosmos_key required for KEY authentication")
        return config.cosmos_key

    if auth_method == CosmosAuthMethod.DEFAULT_CREDENTIAL:
        from azure.identity.aio import DefaultAzureCredential

        return DefaultAzureCredential()

    if auth_method == CosmosAuthMethod.MANAGED_IDENTITY:
        from azure.identity.aio import ManagedIdentityCredential

        # If client_id is provided, use user-assigned managed identity
        if config.azure_client_id:
            return ManagedIdentityCredential(client_id=config.azure_client_id)
        return ManagedIdentityCredential()

    if auth_method == CosmosAuthMethod.SERVICE_PRINCIPAL:
        if not all([config.azure_tenant_id, config.azure_client_id, config.azure_client_secret]):
            raise AuthenticationError(
                endpoint,
                "azure_tenant_id, azure_client_id, and azure_client_secret "
                "required for SERVICE_PRINCIPAL authentication",
            )
        from azure.identity.aio import ClientSecretCredential

        return ClientSecretCredential(
            tenant_id=config.azure_tenant_id,
            client_id=config.azure_client_id,
            client_secret=config.azure_client_secret,
        )

    raise AuthenticationError(endpoint, f"Unsupported auth method: {auth_method}")


def _check_field_name(name: str) -> str:
    if not _FIELD_NAME_RE.match(name):
        raise ValueError(f"Invalid document field name: {name!r}")
    return name


class CosmosProjectStore(ProjectDocumentStore):
    """Cosmos DB document store for projects.

    The ``projects`` collection maps to ``config.cosmos_container``; any
    other collection maps to a container of the same name. Containers are
    partitioned on ``/id`` so point reads and deletes need only the
    document id; per-user listings are cross-partition queries.

    Calls are made exactly once. Failures are translated into package
    exceptions and left to the caller (the hybrid store falls back to
    local storage).

    Document schema (projects):
    {
        "id": "proj_...",
        "userId": "{user_id}",
        "name": "...",
        "description": "...",
        "product": {...},
        "epics": [...],
        "archived": false,
        "createdAt": {"seconds": int, "nanos": int},
        "updatedAt": {"seconds": int, "nanos": int},
        ...artifact fields...
    }
    """

    def __init__(self, config: StorageConfig) -> None:
        """Initialize Cosmos DB storage.

        Args:
            config: Storage configuration with Cosmos connection info
        """
        if not config.cosmos_endpoint:
            raise StorageConnectionError("cosmos", ValueError("Cosmos endpoint is required"))

        self.config = config
        self._credential: Any = None
        self._client: CosmosClient | None = None
        self._database: DatabaseProxy | None = None
        self._containers: dict[str, ContainerProxy] = {}
        self._initialized = False

    async def _ensure_initialized(self) -> None:
        """Ensure client and database are initialized."""
        if self._initialized:
            return

        endpoint = self.config.cosmos_endpoint or "cosmos"
        self._credential = _get_credential(self.config)

        try:
            client = CosmosClient(endpoint, credential=self._credential)
            self._client = client
            self._database = await client.create_database_if_not_exists(
                id=self.config.cosmos_database
            )
            self._initialized = True
            logger.info(
                f"Connected to Cosmos DB: {endpoint} "
                f"(database={self.config.cosmos_database}, "
                f"auth={self.config.cosmos_auth_method.value})"
            )
        except CosmosHttpResponseError as e:
            if e.status_code in (401, 403):
                raise AuthenticationError(
                    endpoint,
                    "Ensure your identity has 'Cosmos DB Data Contributor' role. " f"Error: {e}",
                ) from e
            raise StorageConnectionError(endpoint, e) from e
        except Exception as e:
            raise StorageConnectionError(endpoint, e) from e

    async def _container(self, collection: str) -> ContainerProxy:
        await self._ensure_initialized()

        name = self.config.cosmos_container if collection == PROJECTS_COLLECTION else collection
        if name not in self._containers:
            if self._database is None:
                raise StorageConnectionError(
                    self.config.cosmos_endpoint or "cosmos",
                    RuntimeError("Cosmos database is not initialized"),
                )
            self._containers[name] = await self._database.create_container_if_not_exists(
                id=name,
                partition_key=PartitionKey(path=PARTITION_KEY_PATH),
            )
        return self._containers[name]

    def _wrap_error(self, operation: str, error: Exception) -> Exception:
        if isinstance(error, CosmosHttpResponseError) and error.status_code in (401, 403):
            return AuthenticationError(self.config.cosmos_endpoint or "cosmos", str(error))
        return StorageIOError(operation, path=self.config.cosmos_endpoint, cause=error)

    async def create_document(
        self,
        collection: str,
        fields: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        """Create (or replace) a document, stamping both timestamps."""
        container = await self._container(collection)

        doc_id = document_id or fields.get("id") or generate_project_id()
        now = to_store_timestamp()
        body = {**fields, "id": doc_id, "createdAt": now, "updatedAt": now}

        try:
            await container.upsert_item(body=body)
        except Exception as e:
            raise self._wrap_error("create_document", e) from e

        logger.debug(f"Created document {doc_id} in {collection}")
        return doc_id

    async def get_document(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Point-read a document by id."""
        container = await self._container(collection)
        try:
            doc = await container.read_item(item=document_id, partition_key=document_id)
        except CosmosResourceNotFoundError:
            return None
        except Exception as e:
            raise self._wrap_error("get_document", e) from e
        return self._strip_system_fields(doc)

    async def update_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> None:
        """Merge fields into a document (read-modify-write, last write wins)."""
        container = await self._container(collection)
        try:
            existing = await container.read_item(item=document_id, partition_key=document_id)
        except CosmosResourceNotFoundError as e:
            raise ProjectNotFoundError(document_id) from e
        except Exception as e:
            raise self._wrap_error("update_document", e) from e

        merged = self._strip_system_fields(existing)
        merged.update({k: v for k, v in fields.items() if k not in ("id", "createdAt")})

        # updatedAt never moves backwards, even if this host's clock lags the last writer
        now = utc_now()
        previous = parse_timestamp(existing.get("updatedAt"))
        merged["updatedAt"] = to_store_timestamp(max(now, previous) if previous else now)

        try:
            await container.replace_item(item=document_id, body=merged)
        except CosmosResourceNotFoundError as e:
            raise ProjectNotFoundError(document_id) from e
        except Exception as e:
            raise self._wrap_error("update_document", e) from e

    async def delete_document(self, collection: str, document_id: str) -> None:
        """Hard-delete a document."""
        container = await self._container(collection)
        try:
            await container.delete_item(item=document_id, partition_key=document_id)
        except CosmosResourceNotFoundError as e:
            raise ProjectNotFoundError(document_id) from e
        except Exception as e:
            raise self._wrap_error("delete_document", e) from e

    async def query_documents(
        self,
        collection: str,
        filters: dict[str, Any],
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Query documents by field equality, optionally ordered."""
        container = await self._container(collection)

        clauses: list[str] = []
        params: list[dict[str, Any]] = []
        for i, (name, value) in enumerate(filters.items()):
            clauses.append(f"c.{_check_field_name(name)} = @p{i}")
            params.append({"name": f"@p{i}", "value": value})

        query = "SELECT * FROM c"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        if order_by:
            path = f"c.{_check_field_name(order_by)}"
            if order_by in _TIMESTAMP_FIELDS:
                path += ".seconds"
            query += f" ORDER BY {path} {'DESC' if descending else 'ASC'}"

        documents: list[dict[str, Any]] = []
        try:
            async for doc in container.query_items(query=query, parameters=params):
                documents.append(self._strip_system_fields(doc))
        except Exception as e:
            raise self._wrap_error("query_documents", e) from e

        return documents

    async def close(self) -> None:
        """Close the Cosmos client."""
        if self._client:
            await self._client.close()
            self._client = None
            self._database = None
            self._containers = {}
            self._initialized = False

        # Close credential if it has a close method (AAD credentials do)
        if self._credential is not None and hasattr(self._credential, "close"):
            await self._credential.close()
        self._credential = None

    @staticmethod
    def _strip_system_fields(doc: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in doc.items() if k not in _SYSTEM_FIELDS}
