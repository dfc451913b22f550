"""
Summary models emitted at the end of an import run.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class EntitySummary(BaseModel):
    """
    Counts for one entity type.

    Attributes:
        entity_type: customers, documents or orders
        path: Candidate path the array was found at (None if not found)
        raw: Elements in the discovered array
        kept: Records that normalized to a canonical id
        written: Records upserted
    """

    entity_type: str
    path: str | None = None
    raw: int = Field(default=0, ge=0)
    kept: int = Field(default=0, ge=0)
    written: int = Field(default=0, ge=0)

    @property
    def dropped(self) -> int:
        return self.raw - self.kept


class ImportSummary(BaseModel):
    """
    Result of one import run.

    Attributes:
        source_key: Storage key of the imported backup
        entities: Per-entity-type counts in processing order
        archived: Whether the raw payload was archived
        dry_run: Whether writes were skipped
        started_at: Run start time (UTC)
        duration_seconds: Wall-clock duration
    """

    source_key: str
    entities: list[EntitySummary] = Field(default_factory=list)
    archived: bool = False
    dry_run: bool = False
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float | None = None

    def for_entity(self, entity_type: str) -> EntitySummary | None:
        for entity in self.entities:
            if entity.entity_type == entity_type:
                return entity
        return None

    @property
    def total_written(self) -> int:
        return sum(entity.written for entity in self.entities)
