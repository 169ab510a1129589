"""
Mapping between Project objects and cloud documents.

Cloud documents use the same field names as the serialized Project, plus
``userId``, ``description`` (a copy of ``product.description`` for
listings) and store-native ``createdAt``/``updatedAt`` timestamps in place
of the ISO ``created_at``/``updated_at`` strings.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models import Project, serialize_updates
from ..timestamps import to_iso8601, utc_now_iso

_LOCAL_ONLY_KEYS = ("created_at", "updated_at", "syncedToFirestore")


def project_to_document(project: Project, user_id: str) -> dict[str, Any]:
    """Render a project as cloud document fields (timestamps are store-assigned)."""
    doc = project.to_dict()
    for key in _LOCAL_ONLY_KEYS:
        doc.pop(key, None)
    doc["description"] = project.product.description
    doc["userId"] = user_id
    doc["archived"] = project.archived
    return {k: v for k, v in doc.items() if v is not None}


def document_to_project(doc: dict[str, Any]) -> Project:
    """Normalize a cloud document into a Project marked as synced.

    This is the only place cloud timestamps are converted.
    """
    now = utc_now_iso()
    data = dict(doc)
    data["created_at"] = to_iso8601(doc.get("createdAt"), default=now)
    data["updated_at"] = to_iso8601(doc.get("updatedAt"), default=now)
    data["syncedToFirestore"] = True
    return Project.from_dict(data)


def updates_to_document(updates: Mapping[str, Any]) -> dict[str, Any]:
    """Render a partial update as document fields.

    A new ``product`` also refreshes the denormalized ``description``.
    """
    fields = serialize_updates(updates)
    product = fields.get("product")
    if isinstance(product, dict):
        fields["description"] = product.get("description", "")
    return fields
