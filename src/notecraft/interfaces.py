"""Protocol interfaces for pipeline dependency typing."""

from __future__ import annotations

from typing import Any, Mapping, Protocol

from .llm import GenerationParams


class GenerationCapability(Protocol):
    """Opaque text generation service."""

    def generate(self, system_prompt: str, user_prompt: str, params: GenerationParams) -> str: ...


class ReachabilityProbe(Protocol):
    """Best-effort check that an external link resolves to real content."""

    def probe(self, url: str) -> bool: ...


class ArtifactStore(Protocol):
    """Keyed and collection storage used by jobs and the orchestrator."""

    def get_by_key(self, collection: str, key: str) -> dict | None: ...

    def upsert_by_key(self, collection: str, key: str, value: Mapping[str, Any]) -> dict: ...

    def insert(self, collection: str, value: Mapping[str, Any]) -> dict: ...

    def update(self, collection: str, record_id: str, changes: Mapping[str, Any]) -> dict | None: ...

    def query(self, collection: str, filters: Mapping[str, Any] | None = None) -> list[dict]: ...
