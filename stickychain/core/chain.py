"""stickychain.core.chain

The journal: append-only records with a hash chain.

If you cannot remember the past, you will repeat it. If you can edit the past,
the next record will notice.

Tamper evidence only. No signatures, no proof-of-work, no peers. A chain that
fails validate() keeps accepting appends; integrity is a diagnostic, not a gate.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import Counter
from collections.abc import Callable, Iterator
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from stickychain import GENESIS_PREVIOUS_HASH, GENESIS_SUBJECT_ID, SYSTEM_AUTHOR
from stickychain.core.actions import ActionType, GenesisPayload, SubjectKind, normalize_payload
from stickychain.core.exceptions import ChainIntegrityError
from stickychain.core.models import BreakReason, ChainStats, ChainValidation, HashRecord
from stickychain.core.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class Chain:
    """Ordered, append-only sequence of HashRecords seeded with a genesis record."""

    def __init__(
        self,
        *,
        genesis_message: str = "Genesis Block",
        verify_genesis: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.verify_genesis = verify_genesis
        self._clock = clock
        self._lock = threading.RLock()
        self._records: list[HashRecord] = []
        self._by_subject: dict[str, list[HashRecord]] = {}
        self._records.append(
            HashRecord.seal(
                sequence_number=0,
                timestamp=self._clock(),
                action=ActionType.CREATE_BOARD,
                subject_kind=SubjectKind.BOARD,
                subject_id=GENESIS_SUBJECT_ID,
                payload=normalize_payload(GenesisPayload(message=genesis_message)),
                author_id=SYSTEM_AUTHOR,
                previous_hash=GENESIS_PREVIOUS_HASH,
            )
        )

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[HashRecord]:
        return iter(list(self._records))

    def __getitem__(self, index: int) -> HashRecord:
        return self._records[index]

    @property
    def genesis(self) -> HashRecord:
        return self._records[0]

    def append(
        self,
        action: str,
        subject_kind: str,
        subject_id: str,
        payload: BaseModel | dict[str, Any] | None,
        author_id: str = SYSTEM_AUTHOR,
        *,
        ts: datetime | None = None,
    ) -> HashRecord:
        """Append a single record.

        Sequence number and previous hash are read and written under one lock;
        the pair is a read-modify-write.
        """

        with self._lock:
            record = HashRecord.seal(
                sequence_number=len(self._records),
                timestamp=ensure_utc(ts) if ts is not None else self._clock(),
                action=action,
                subject_kind=subject_kind,
                subject_id=subject_id,
                payload=normalize_payload(payload),
                author_id=author_id,
                previous_hash=self._records[-1].hash,
            )
            self._records.append(record)
            self._by_subject.setdefault(subject_id, []).append(record)

        logger.debug(
            "chain_record_appended",
            extra={"seq": record.sequence_number, "action": record.action, "subject_id": subject_id},
        )
        return record

    def latest(self) -> HashRecord:
        return self._records[-1]

    def records(self) -> list[HashRecord]:
        return list(self._records)

    def history(self, subject_id: str) -> list[HashRecord]:
        """Every record ever appended for one subject, in append order."""

        return list(self._by_subject.get(subject_id, ()))

    def subjects(self) -> list[str]:
        return list(self._by_subject)

    def records_in_range(self, start: datetime, end: datetime) -> list[HashRecord]:
        lo, hi = ensure_utc(start), ensure_utc(end)
        return [r for r in self._records if lo <= r.timestamp <= hi]

    def replay(self, subject_id: str | None = None, up_to: datetime | None = None) -> list[HashRecord]:
        """Records to fold, left to right, for a point-in-time view.

        The chain filters. Folding is the caller's job (see projections).
        """

        records = self.history(subject_id) if subject_id is not None else self.records()
        if up_to is None:
            return records
        cutoff = ensure_utc(up_to)
        return [r for r in records if r.timestamp <= cutoff]

    def validate(self) -> ChainValidation:
        """Re-hash every record and check every link. O(n) by construction."""

        records = self.records()

        if self.verify_genesis:
            g = records[0]
            if not g.is_valid():
                return ChainValidation(
                    valid=False,
                    broken_at=0,
                    reason=BreakReason.HASH_MISMATCH,
                    detail="Genesis hash mismatch - data may be corrupted",
                )
            if g.previous_hash != GENESIS_PREVIOUS_HASH or g.sequence_number != 0:
                return ChainValidation(
                    valid=False,
                    broken_at=0,
                    reason=BreakReason.BAD_GENESIS,
                    detail="Genesis record does not start the chain",
                )

        for i in range(1, len(records)):
            current, previous = records[i], records[i - 1]

            if not current.is_valid():
                return ChainValidation(
                    valid=False,
                    broken_at=i,
                    reason=BreakReason.HASH_MISMATCH,
                    detail="Record hash mismatch - data may be corrupted",
                )

            if current.previous_hash != previous.hash:
                return ChainValidation(
                    valid=False,
                    broken_at=i,
                    reason=BreakReason.LINK_BROKEN,
                    detail="previous_hash does not match previous record",
                )

        return ChainValidation(valid=True)

    def ensure_valid(self) -> None:
        result = self.validate()
        if not result.valid:
            logger.warning("chain_integrity_violation", extra=result.to_dict())
            raise ChainIntegrityError(result)

    def stats(self) -> ChainStats:
        records = self.records()
        by_action = Counter(r.action for r in records)
        by_author = Counter(r.author_id for r in records)
        return ChainStats(
            total_records=len(records),
            unique_subjects=len(self._by_subject),
            latest_timestamp=records[-1].timestamp,
            counts_by_action=dict(by_action),
            counts_by_author=dict(by_author),
        )

    # -----------------
    # Serialization
    # -----------------

    def to_list(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self._records]

    def to_json(self, *, indent: int | None = None) -> str:
        return json.dumps(self.to_list(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_list(
        cls,
        data: list[dict[str, Any]],
        *,
        verify: bool = False,
        verify_genesis: bool = False,
    ) -> Chain:
        """Rebuild a chain from exported records.

        Records are taken as-is; nothing is re-hashed. The exported genesis
        replaces the fresh one.
        """

        if not data:
            raise ValueError("cannot load an empty chain: genesis record missing")

        chain = cls(verify_genesis=verify_genesis)
        chain._records = []
        chain._by_subject = {}
        for i, raw in enumerate(data):
            record = HashRecord.from_dict(raw)
            chain._records.append(record)
            if i > 0:
                chain._by_subject.setdefault(record.subject_id, []).append(record)

        if verify:
            chain.ensure_valid()
        return chain

    @classmethod
    def from_json(cls, text: str, *, verify: bool = False, verify_genesis: bool = False) -> Chain:
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError("chain export must be a JSON list of records")
        return cls.from_list(data, verify=verify, verify_genesis=verify_genesis)
