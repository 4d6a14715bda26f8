"""Append-only attempt persistence."""

from __future__ import annotations

from dataclasses import replace
from itertools import count
from threading import RLock
from typing import Callable, Dict, List, Optional, Protocol

from .models import AttemptRecord, Verdict


class AttemptStore(Protocol):
    """Collaborator persisting attempt records; assigns identity on first save."""

    def save(self, record: AttemptRecord) -> AttemptRecord: ...


class QueryableAttemptStore(AttemptStore, Protocol):
    """Attempt store that also supports the lookups used by the API."""

    def find_by_id(self, attempt_id: int) -> Optional[AttemptRecord]: ...

    def find_all(self) -> List[AttemptRecord]: ...

    def find_by_runner(self, runner_id: str) -> List[AttemptRecord]: ...

    def find_by_verdict(self, verdict: Verdict) -> List[AttemptRecord]: ...

    def find_by_runner_and_verdict(
        self, runner_id: str, verdict: Verdict
    ) -> List[AttemptRecord]: ...


class InMemoryAttemptStore:
    """Thread-safe, append-only store keeping attempts for the process lifetime.

    Records are never mutated: ``save`` returns a copy carrying the assigned
    identifier. Query methods return attempts newest first.
    """

    def __init__(self) -> None:
        self._records: Dict[int, AttemptRecord] = {}
        self._ids = count(1)
        self._lock = RLock()

    def save(self, record: AttemptRecord) -> AttemptRecord:
        with self._lock:
            if record.attempt_id is not None and record.attempt_id in self._records:
                raise ValueError(f"Attempt {record.attempt_id} is already persisted")
            attempt_id = record.attempt_id
            if attempt_id is None:
                attempt_id = next(self._ids)
                while attempt_id in self._records:
                    attempt_id = next(self._ids)
            stored = replace(record, attempt_id=attempt_id)
            self._records[attempt_id] = stored
            return stored

    def find_by_id(self, attempt_id: int) -> Optional[AttemptRecord]:
        with self._lock:
            return self._records.get(attempt_id)

    def find_all(self) -> List[AttemptRecord]:
        return self._select(lambda _record: True)

    def find_by_runner(self, runner_id: str) -> List[AttemptRecord]:
        return self._select(lambda record: record.runner_id == runner_id)

    def find_by_verdict(self, verdict: Verdict) -> List[AttemptRecord]:
        return self._select(lambda record: record.verdict == verdict)

    def find_by_runner_and_verdict(
        self, runner_id: str, verdict: Verdict
    ) -> List[AttemptRecord]:
        return self._select(
            lambda record: record.runner_id == runner_id and record.verdict == verdict
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _select(self, predicate: Callable[[AttemptRecord], bool]) -> List[AttemptRecord]:
        with self._lock:
            matches = [record for record in self._records.values() if predicate(record)]
        matches.sort(
            key=lambda record: (record.attempt_time, record.attempt_id or 0),
            reverse=True,
        )
        return matches


__all__ = ["AttemptStore", "InMemoryAttemptStore", "QueryableAttemptStore"]
