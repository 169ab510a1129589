"""
Project artifacts manager.

Saves generated content (ideas, PRD, research, blueprints, ...) onto a
project through the hybrid store, so every generator writes artifacts the
same way regardless of which backing store is active.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .models import (
    Artifact,
    ArtifactKind,
    Blueprints,
    Epic,
    PrdDocument,
    Project,
)
from .storage.hybrid import HybridProjectStore


@dataclass
class ProjectArtifacts:
    """Snapshot of every generated artifact on a project."""

    generated_ideas: list[Artifact] | None = None
    selected_idea: Artifact | None = None
    research: list[Artifact] | None = None
    competitor_analysis: Artifact | None = None
    prd: PrdDocument | None = None
    journey_maps: list[Artifact] | None = None
    personas: list[Artifact] | None = None
    blueprints: Blueprints | None = None
    roadmap: Artifact | None = None
    feature_prioritization: Artifact | None = None
    pitch_deck: Artifact | None = None
    risk_analysis: Artifact | None = None
    epics: list[Epic] | None = None

    @classmethod
    def from_project(cls, project: Project) -> ProjectArtifacts:
        return cls(
            generated_ideas=project.generated_ideas,
            selected_idea=project.selected_idea,
            research=project.research,
            competitor_analysis=project.competitor_analysis,
            prd=project.prd,
            journey_maps=project.journey_maps,
            personas=project.personas,
            blueprints=project.blueprints,
            roadmap=project.roadmap,
            feature_prioritization=project.feature_prioritization,
            pitch_deck=project.pitch_deck,
            risk_analysis=project.risk_analysis,
            epics=project.epics,
        )


def _as_artifacts(items: list[Any], kind: ArtifactKind) -> list[Artifact]:
    return [Artifact.from_dict(item, kind) for item in items]


class ProjectArtifactsManager:
    """Writes generated artifacts onto projects.

    Each ``save_*`` call is a partial update; PRD sections and blueprints
    are merged with what the project already holds, every other artifact
    replaces the previous value.
    """

    def __init__(self, store: HybridProjectStore, user_id: str | None = None) -> None:
        """Initialize the manager.

        Args:
            store: Hybrid store to write through
            user_id: Identity passed on every store call (None when signed out)
        """
        self.store = store
        self.user_id = user_id

    async def _update(self, project_id: str, updates: dict[str, Any]) -> Project | None:
        return await self.store.update_project(project_id, updates, user_id=self.user_id)

    async def _load(self, project_id: str) -> Project | None:
        return await self.store.load_project(project_id, user_id=self.user_id)

    async def save_ideas(
        self,
        project_id: str,
        ideas: list[Any],
        selected_idea: Any | None = None,
    ) -> Project | None:
        updates: dict[str, Any] = {"generated_ideas": _as_artifacts(ideas, ArtifactKind.IDEA)}
        if selected_idea is not None:
            updates["selected_idea"] = Artifact.from_dict(selected_idea, ArtifactKind.IDEA)
        return await self._update(project_id, updates)

    async def save_prd_section(
        self,
        project_id: str,
        sections: Mapping[str, Any],
    ) -> Project | None:
        """Merge PRD sections into the project's PRD, keeping existing sections."""
        current = await self._load(project_id)
        existing = current.prd if current and current.prd else PrdDocument()
        return await self._update(project_id, {"prd": existing.merged(sections)})

    async def save_full_prd(self, project_id: str, full_document: str) -> Project | None:
        return await self.save_prd_section(project_id, {"full_document": full_document})

    async def save_research(self, project_id: str, research: list[Any]) -> Project | None:
        return await self._update(
            project_id, {"research": _as_artifacts(research, ArtifactKind.RESEARCH)}
        )

    async def save_blueprints(
        self,
        project_id: str,
        blueprints: Mapping[str, Any],
    ) -> Project | None:
        """Merge blueprint sections into the project's blueprints."""
        current = await self._load(project_id)
        existing = current.blueprints if current and current.blueprints else Blueprints()
        return await self._update(project_id, {"blueprints": existing.merged(blueprints)})

    async def save_competitor_analysis(self, project_id: str, analysis: Any) -> Project | None:
        return await self._update(
            project_id,
            {"competitor_analysis": Artifact.from_dict(analysis, ArtifactKind.COMPETITOR_ANALYSIS)},
        )

    async def save_journey_maps(self, project_id: str, journey_maps: list[Any]) -> Project | None:
        return await self._update(
            project_id, {"journey_maps": _as_artifacts(journey_maps, ArtifactKind.JOURNEY_MAP)}
        )

    async def save_personas(self, project_id: str, personas: list[Any]) -> Project | None:
        return await self._update(
            project_id, {"personas": _as_artifacts(personas, ArtifactKind.PERSONA)}
        )

    async def save_roadmap(self, project_id: str, roadmap: Any) -> Project | None:
        return await self._update(
            project_id, {"roadmap": Artifact.from_dict(roadmap, ArtifactKind.ROADMAP)}
        )

    async def save_feature_prioritization(
        self, project_id: str, prioritization: Any
    ) -> Project | None:
        return await self._update(
            project_id,
            {
                "feature_prioritization": Artifact.from_dict(
                    prioritization, ArtifactKind.FEATURE_PRIORITIZATION
                )
            },
        )

    async def save_pitch_deck(self, project_id: str, pitch_deck: Any) -> Project | None:
        return await self._update(
            project_id, {"pitch_deck": Artifact.from_dict(pitch_deck, ArtifactKind.PITCH_DECK)}
        )

    async def save_risk_analysis(self, project_id: str, risk_analysis: Any) -> Project | None:
        return await self._update(
            project_id,
            {"risk_analysis": Artifact.from_dict(risk_analysis, ArtifactKind.RISK_ANALYSIS)},
        )

    async def get_artifacts(self, project_id: str) -> ProjectArtifacts | None:
        """Get every artifact on a project, or None if the project is not found."""
        project = await self._load(project_id)
        if project is None:
            return None
        return ProjectArtifacts.from_project(project)
