"""
Project data model.

A Project is the unit of persistence: a product description, its epics and
user stories, and the artifacts generated around it. The serialized form
(``to_dict``) is shared by the local store and, with a few bookkeeping
fields added, by cloud documents.

Generated artifacts are typed rather than stored as opaque blobs:

- ``PrdDocument`` and ``Blueprints`` are structured records with named sections
- everything else is an ``Artifact`` tagged with its ``ArtifactKind``
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any

from .exceptions import ValidationError


class ArtifactKind(Enum):
    """Kinds of generated artifacts attached to a project."""

    IDEA = "idea"
    RESEARCH = "research"
    COMPETITOR_ANALYSIS = "competitor_analysis"
    PERSONA = "persona"
    JOURNEY_MAP = "journey_map"
    ROADMAP = "roadmap"
    FEATURE_PRIORITIZATION = "feature_prioritization"
    PITCH_DECK = "pitch_deck"
    RISK_ANALYSIS = "risk_analysis"


@dataclass
class Artifact:
    """A generated artifact tagged with its kind.

    ``data`` holds the artifact body as produced by the generator. Payloads
    written before artifacts were tagged are wrapped on load using the kind
    implied by the field they were found in.
    """

    kind: ArtifactKind
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "data": self.data}

    @classmethod
    def from_dict(cls, value: Any, default_kind: ArtifactKind) -> Artifact:
        """Deserialize, accepting both tagged and legacy untagged payloads."""
        if isinstance(value, Artifact):
            return value
        if isinstance(value, dict) and set(value) == {"kind", "data"}:
            try:
                kind = ArtifactKind(value["kind"])
            except ValueError:
                kind = None
            if kind is not None and isinstance(value["data"], dict):
                return cls(kind=kind, data=value["data"])
        if isinstance(value, dict):
            return cls(kind=default_kind, data=value)
        return cls(kind=default_kind, data={"value": value})


@dataclass
class PrdDocument:
    """Product requirements document, section by section."""

    problem_statement: str | None = None
    goals_non_goals: str | None = None
    personas: str | None = None
    user_stories: str | None = None
    user_flows: str | None = None
    functional_requirements: str | None = None
    non_functional_requirements: str | None = None
    analytics: str | None = None
    risks: str | None = None
    success_metrics: str | None = None
    full_document: str | None = None

    _KEYS = {
        "problem_statement": "problemStatement",
        "goals_non_goals": "goalsNonGoals",
        "personas": "personas",
        "user_stories": "userStories",
        "user_flows": "userFlows",
        "functional_requirements": "functionalRequirements",
        "non_functional_requirements": "nonFunctionalRequirements",
        "analytics": "analytics",
        "risks": "risks",
        "success_metrics": "successMetrics",
        "full_document": "fullDocument",
    }

    def to_dict(self) -> dict[str, Any]:
        return {
            key: getattr(self, attr)
            for attr, key in self._KEYS.items()
            if getattr(self, attr) is not None
        }

    @classmethod
    def from_dict(cls, value: Any) -> PrdDocument:
        """Deserialize. A plain string is taken as the full document."""
        if isinstance(value, PrdDocument):
            return value
        if isinstance(value, str):
            return cls(full_document=value)
        if not isinstance(value, dict):
            raise ValidationError("prd", "expected a string or mapping")
        return cls(
            **{
                attr: value.get(key, value.get(attr))
                for attr, key in cls._KEYS.items()
            }
        )

    def merged(self, sections: Mapping[str, Any]) -> PrdDocument:
        """Return a copy with the given sections replaced, others kept."""
        incoming = PrdDocument.from_dict(dict(sections))
        changes = {
            attr: getattr(incoming, attr)
            for attr in self._KEYS
            if getattr(incoming, attr) is not None
        }
        return replace(self, **changes)


@dataclass
class Blueprints:
    """Technical blueprints generated for a project."""

    architecture: str | None = None
    database: str | None = None
    api: str | None = None
    frontend: str | None = None
    backend: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, value: Any) -> Blueprints:
        if isinstance(value, Blueprints):
            return value
        if not isinstance(value, dict):
            raise ValidationError("blueprints", "expected a mapping")
        return cls(**{f.name: value.get(f.name) for f in fields(cls)})

    def merged(self, sections: Mapping[str, Any]) -> Blueprints:
        """Return a copy with the given sections replaced, others kept."""
        incoming = Blueprints.from_dict(dict(sections))
        changes = {
            f.name: getattr(incoming, f.name)
            for f in fields(self)
            if getattr(incoming, f.name) is not None
        }
        return replace(self, **changes)


@dataclass
class StoryOptionalFields:
    """Optional planning fields on a user story."""

    priority: str | None = None  # Low | Medium | High | Critical
    effort_estimate: str | None = None
    dependencies: list[str] | None = None
    risk_notes: str | None = None
    custom_fields: dict[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "priority": self.priority,
            "effort_estimate": self.effort_estimate,
            "dependencies": self.dependencies,
            "risk_notes": self.risk_notes,
            "custom_fields": self.custom_fields,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoryOptionalFields:
        return cls(
            priority=data.get("priority"),
            effort_estimate=data.get("effort_estimate"),
            dependencies=data.get("dependencies"),
            risk_notes=data.get("risk_notes"),
            custom_fields=data.get("custom_fields"),
        )


@dataclass
class UserStory:
    """A single user story within an epic."""

    id: str
    description: str
    acceptance_criteria: list[str] = field(default_factory=list)
    edge_cases: list[str] = field(default_factory=list)
    validations: list[str] = field(default_factory=list)
    title: str | None = None
    status: str | None = None
    jira_key: str | None = None
    story_points: int | None = None
    assignee: str | None = None
    optional_fields: StoryOptionalFields | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "acceptance_criteria": list(self.acceptance_criteria),
            "edge_cases": list(self.edge_cases),
            "validations": list(self.validations),
            "status": self.status,
            "jira_key": self.jira_key,
            "story_points": self.story_points,
            "assignee": self.assignee,
            "optional_fields": self.optional_fields.to_dict() if self.optional_fields else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserStory:
        optional = data.get("optional_fields")
        return cls(
            id=data["id"],
            title=data.get("title"),
            description=data.get("description", ""),
            acceptance_criteria=list(data.get("acceptance_criteria") or []),
            edge_cases=list(data.get("edge_cases") or []),
            validations=list(data.get("validations") or []),
            status=data.get("status"),
            jira_key=data.get("jira_key"),
            story_points=data.get("story_points"),
            assignee=data.get("assignee"),
            optional_fields=StoryOptionalFields.from_dict(optional) if optional else None,
        )


@dataclass
class Epic:
    """An epic grouping an ordered list of user stories."""

    id: str
    title: str
    user_stories: list[UserStory] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "user_stories": [story.to_dict() for story in self.user_stories],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Epic:
        if isinstance(data, Epic):
            return data
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            user_stories=[
                s if isinstance(s, UserStory) else UserStory.from_dict(s)
                for s in data.get("user_stories") or []
            ],
        )


@dataclass
class Product:
    """The product a project describes."""

    name: str
    description: str
    sector: str | None = None
    target_audience: str | None = None
    key_features: list[str] | None = None
    business_goals: list[str] | None = None
    vision: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "sector": self.sector,
            "target_audience": self.target_audience,
            "key_features": self.key_features,
            "business_goals": self.business_goals,
            "vision": self.vision,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Product:
        if isinstance(data, Product):
            return data
        return cls(
            name=data.get("name", ""),
            description=data.get("description", ""),
            sector=data.get("sector"),
            target_audience=data.get("target_audience", data.get("targetAudience")),
            key_features=data.get("key_features"),
            business_goals=data.get("business_goals"),
            vision=data.get("vision"),
        )


@dataclass
class ProjectData:
    """A project draft as produced by the authoring flow, before it is saved."""

    product: Product
    epics: list[Epic] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectData:
        return cls(
            product=Product.from_dict(data["product"]),
            epics=[Epic.from_dict(e) for e in data.get("epics") or []],
        )


def _artifact_list(kind: ArtifactKind):
    def parse(value: Any) -> list[Artifact]:
        if not isinstance(value, list):
            raise ValidationError(kind.value, "expected a list")
        return [Artifact.from_dict(item, kind) for item in value]

    return parse


def _artifact(kind: ArtifactKind):
    def parse(value: Any) -> Artifact:
        return Artifact.from_dict(value, kind)

    return parse


def _dump(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value.to_dict() if hasattr(value, "to_dict") else value


# Python attribute -> (serialized key, parser for raw values)
_FIELDS: dict[str, tuple[str, Any]] = {
    "name": ("name", str),
    "product": ("product", Product.from_dict),
    "epics": ("epics", lambda v: [Epic.from_dict(e) for e in v]),
    "document_content": ("documentContent", str),
    "document_file_name": ("documentFileName", str),
    "prd": ("prd", PrdDocument.from_dict),
    "blueprints": ("blueprints", Blueprints.from_dict),
    "research": ("research", _artifact_list(ArtifactKind.RESEARCH)),
    "competitor_analysis": ("competitorAnalysis", _artifact(ArtifactKind.COMPETITOR_ANALYSIS)),
    "personas": ("personas", _artifact_list(ArtifactKind.PERSONA)),
    "journey_maps": ("journeyMaps", _artifact_list(ArtifactKind.JOURNEY_MAP)),
    "generated_ideas": ("generatedIdeas", _artifact_list(ArtifactKind.IDEA)),
    "selected_idea": ("selectedIdea", _artifact(ArtifactKind.IDEA)),
    "roadmap": ("roadmap", _artifact(ArtifactKind.ROADMAP)),
    "feature_prioritization": (
        "featurePrioritization",
        _artifact(ArtifactKind.FEATURE_PRIORITIZATION),
    ),
    "pitch_deck": ("pitchDeck", _artifact(ArtifactKind.PITCH_DECK)),
    "risk_analysis": ("riskAnalysis", _artifact(ArtifactKind.RISK_ANALYSIS)),
    "archived": ("archived", bool),
}

_ALIASES = {key: attr for attr, (key, _) in _FIELDS.items()}

# Maintained by the store, never taken from caller updates
_BOOKKEEPING = {"created_at", "updated_at", "synced_to_cloud", "syncedToFirestore"}


@dataclass
class Project:
    """A stored project.

    ``synced_to_cloud`` is True only when the record was served by the cloud
    store for the current call; it is serialized as ``syncedToFirestore``.
    """

    id: str
    name: str
    product: Product
    epics: list[Epic] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    document_content: str | None = None
    document_file_name: str | None = None

    prd: PrdDocument | None = None
    blueprints: Blueprints | None = None
    research: list[Artifact] | None = None
    competitor_analysis: Artifact | None = None
    personas: list[Artifact] | None = None
    journey_maps: list[Artifact] | None = None
    generated_ideas: list[Artifact] | None = None
    selected_idea: Artifact | None = None
    roadmap: Artifact | None = None
    feature_prioritization: Artifact | None = None
    pitch_deck: Artifact | None = None
    risk_analysis: Artifact | None = None

    archived: bool = False
    synced_to_cloud: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for storage."""
        data: dict[str, Any] = {
            "id": self.id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        for attr, (key, _) in _FIELDS.items():
            data[key] = _dump(getattr(self, attr))
        data["syncedToFirestore"] = self.synced_to_cloud
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        """Deserialize from dictionary."""
        kwargs: dict[str, Any] = {
            "id": data["id"],
            "created_at": data.get("created_at") or "",
            "updated_at": data.get("updated_at") or "",
            "synced_to_cloud": bool(data.get("syncedToFirestore", False)),
        }
        for attr, (key, parse) in _FIELDS.items():
            raw = data.get(key)
            if raw is not None:
                kwargs[attr] = parse(raw)

        product = kwargs.get("product") or Product(name="", description="")
        kwargs["product"] = product
        kwargs.setdefault("name", product.name)
        kwargs.setdefault("epics", [])
        kwargs.setdefault("archived", False)
        return cls(**kwargs)

    def with_updates(self, updates: Mapping[str, Any]) -> Project:
        """Return a copy with ``updates`` merged in; other fields are preserved."""
        return replace(self, **normalize_updates(updates, project_id=self.id))


def normalize_updates(
    updates: Mapping[str, Any],
    project_id: str | None = None,
) -> dict[str, Any]:
    """Validate a partial update and coerce its values to model types.

    Keys may be attribute names (``journey_maps``) or serialized names
    (``journeyMaps``). Store-maintained fields are dropped; ``id`` may only
    be repeated with its current value.

    Raises:
        ValidationError: For unknown fields or an attempt to change ``id``.
    """
    normalized: dict[str, Any] = {}
    for key, value in updates.items():
        if key == "id":
            if project_id is not None and value != project_id:
                raise ValidationError("id", "project id is immutable", str(value))
            continue
        if key in _BOOKKEEPING:
            continue
        attr = key if key in _FIELDS else _ALIASES.get(key)
        if attr is None:
            raise ValidationError(key, "unknown project field")
        parse = _FIELDS[attr][1]
        normalized[attr] = None if value is None else parse(value)
    return normalized


def serialize_updates(updates: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a partial update and render it with serialized field names."""
    return {
        _FIELDS[attr][0]: _dump(value)
        for attr, value in normalize_updates(updates).items()
    }


def build_project(
    project_id: str,
    draft: ProjectData,
    created_at: str,
    document_content: str | None = None,
    document_file_name: str | None = None,
) -> Project:
    """Build a new Project from a draft; ``name`` is taken from ``product.name``."""
    return Project(
        id=project_id,
        name=draft.product.name,
        product=draft.product,
        epics=list(draft.epics),
        created_at=created_at,
        updated_at=created_at,
        document_content=document_content,
        document_file_name=document_file_name,
    )
