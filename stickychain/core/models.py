"""stickychain.core.models

Core chain models.

A record is immutable. The journal is append-only.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, field_serializer, field_validator

from stickychain.core.actions import canonical_json
from stickychain.core.time import ensure_utc, to_iso


def compute_record_hash(
    *,
    sequence_number: int,
    timestamp: datetime,
    action: str,
    subject_kind: str,
    subject_id: str,
    payload: dict[str, Any],
    author_id: str,
    previous_hash: str,
) -> str:
    """Compute the canonical SHA-256 record hash.

    Commits to every field except the hash itself, previous_hash included.
    The timestamp enters as its canonical ISO string, never as a float.
    """

    doc = {
        "sequence_number": sequence_number,
        "timestamp": to_iso(timestamp),
        "action": str(action),
        "subject_kind": str(subject_kind),
        "subject_id": subject_id,
        "payload": payload,
        "author_id": author_id,
        "previous_hash": previous_hash,
    }
    return hashlib.sha256(canonical_json(doc).encode("utf-8")).hexdigest()


class HashRecord(BaseModel):
    """Immutable, self-verifying journal entry."""

    sequence_number: int
    timestamp: datetime
    action: str
    subject_kind: str
    subject_id: str
    payload: dict[str, Any]
    author_id: str
    previous_hash: str
    hash: str

    model_config = {"frozen": True}

    @field_validator("timestamp", mode="after")
    @classmethod
    def _timestamp_is_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_serializer("timestamp", when_used="json")
    def _serialize_timestamp(self, v: datetime) -> str:
        return to_iso(v)

    @classmethod
    def seal(
        cls,
        *,
        sequence_number: int,
        timestamp: datetime,
        action: str,
        subject_kind: str,
        subject_id: str,
        payload: dict[str, Any],
        author_id: str,
        previous_hash: str,
    ) -> HashRecord:
        """Build a record and stamp its hash. The only way records are born."""

        fields = {
            "sequence_number": sequence_number,
            "timestamp": ensure_utc(timestamp),
            "action": str(action),
            "subject_kind": str(subject_kind),
            "subject_id": subject_id,
            "payload": payload,
            "author_id": author_id,
            "previous_hash": previous_hash,
        }
        return cls(**fields, hash=compute_record_hash(**fields))

    def compute_hash(self) -> str:
        return compute_record_hash(
            sequence_number=self.sequence_number,
            timestamp=self.timestamp,
            action=self.action,
            subject_kind=self.subject_kind,
            subject_id=self.subject_id,
            payload=self.payload,
            author_id=self.author_id,
            previous_hash=self.previous_hash,
        )

    def is_valid(self) -> bool:
        try:
            return self.compute_hash() == self.hash
        except (TypeError, ValueError):
            # Unhashable payload content is a malformed record, not a crash.
            return False

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HashRecord:
        """Rehydrate without re-hashing; a tampered record stays tampered."""

        return cls.model_validate(data)


class BreakReason(StrEnum):
    HASH_MISMATCH = "hash_mismatch"
    LINK_BROKEN = "link_broken"
    BAD_GENESIS = "bad_genesis"


@dataclass(frozen=True, slots=True)
class ChainValidation:
    valid: bool
    broken_at: int | None = None
    reason: BreakReason | None = None
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "broken_at": self.broken_at,
            "reason": str(self.reason) if self.reason else None,
            "detail": self.detail,
        }


@dataclass(frozen=True, slots=True)
class ChainStats:
    total_records: int
    unique_subjects: int
    latest_timestamp: datetime
    counts_by_action: dict[str, int] = field(default_factory=dict)
    counts_by_author: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_records": self.total_records,
            "unique_subjects": self.unique_subjects,
            "counts_by_action": dict(self.counts_by_action),
            "counts_by_author": dict(self.counts_by_author),
            "latest_timestamp": to_iso(self.latest_timestamp),
        }
