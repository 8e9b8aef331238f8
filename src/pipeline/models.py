"""Plan and report models for a sync run. No I/O."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class WriteMode(StrEnum):
    CREATE = "create"
    REPLACE = "replace"


class WriteRequest(BaseModel):
    """Full replacement text for one vault document."""

    path: str
    text: str
    mode: WriteMode
    previous: str | None = None

    @property
    def is_noop(self) -> bool:
        """A replace that would write back exactly what is there."""
        return self.mode is WriteMode.REPLACE and self.text == self.previous


class SkippedItem(BaseModel):
    guid: str = ""
    reason: str


class SyncReport(BaseModel):
    """What a run did, for logging and CLI output."""

    items_seen: int = 0
    records: int = 0
    skipped: list[SkippedItem] = Field(default_factory=list)
    diary_entries_added: int = 0
    notes_created: int = 0
    notes_updated: int = 0


class SyncPlan(BaseModel):
    """Every write a sync would perform, diary last."""

    diary: WriteRequest | None = None
    notes: list[WriteRequest] = Field(default_factory=list)
    report: SyncReport = Field(default_factory=SyncReport)

    @property
    def writes(self) -> list[WriteRequest]:
        """Pending writes in application order, no-ops dropped."""
        pending = [n for n in self.notes if not n.is_noop]
        if self.diary is not None and not self.diary.is_noop:
            pending.append(self.diary)
        return pending
