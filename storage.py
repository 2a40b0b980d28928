"""
Storage for the internship catalog, candidates and match results.

The matching pipeline only talks to the ``Storage`` interface, so a durable
backend can replace ``MemStorage`` without touching the matching code.
"""
from __future__ import annotations

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from models import Candidate, CandidateFormData, Internship, MatchResult

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when a record cannot be written to the store."""


class Storage(ABC):
    """Create/get operations for each stored entity."""

    @abstractmethod
    def create_candidate(self, form: CandidateFormData) -> Candidate:
        ...

    @abstractmethod
    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        ...

    @abstractmethod
    def create_internship(self, data: Dict[str, Any]) -> Internship:
        ...

    @abstractmethod
    def get_internship(self, internship_id: str) -> Optional[Internship]:
        ...

    @abstractmethod
    def get_all_internships(self) -> List[Internship]:
        ...

    @abstractmethod
    def create_match_result(
        self,
        candidate_id: str,
        internship_id: str,
        match_percentage: float,
        ai_explanation: str,
    ) -> MatchResult:
        ...

    @abstractmethod
    def get_match_results_by_candidate_id(self, candidate_id: str) -> List[MatchResult]:
        ...


class MemStorage(Storage):
    """
    In-memory store keyed by generated UUIDs.

    Internships keep catalog (insertion) order. Candidates and match results
    are append-only; inserts are serialized by a lock.
    """

    def __init__(self):
        self._candidates: Dict[str, Candidate] = {}
        self._internships: Dict[str, Internship] = {}
        self._match_results: Dict[str, MatchResult] = {}
        self._lock = threading.Lock()

    def create_candidate(self, form: CandidateFormData) -> Candidate:
        candidate = Candidate(
            id=str(uuid.uuid4()),
            full_name=form.full_name,
            email=form.email,
            education=form.education,
            skills=list(form.skills),
            sectors=list(form.sectors),
            locations=list(form.locations),
            language=form.language or "en",
        )
        with self._lock:
            self._candidates[candidate.id] = candidate
        logger.debug(f"Stored candidate {candidate.id}")
        return candidate

    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        return self._candidates.get(candidate_id)

    def create_internship(self, data: Dict[str, Any]) -> Internship:
        internship = Internship(id=str(uuid.uuid4()), **data)
        with self._lock:
            self._internships[internship.id] = internship
        return internship

    def get_internship(self, internship_id: str) -> Optional[Internship]:
        return self._internships.get(internship_id)

    def get_all_internships(self) -> List[Internship]:
        return list(self._internships.values())

    def create_match_result(
        self,
        candidate_id: str,
        internship_id: str,
        match_percentage: float,
        ai_explanation: str,
    ) -> MatchResult:
        try:
            result = MatchResult(
                id=str(uuid.uuid4()),
                candidate_id=candidate_id,
                internship_id=internship_id,
                match_percentage=match_percentage,
                ai_explanation=ai_explanation,
            )
        except ValueError as e:
            raise PersistenceError(f"Invalid match result for internship {internship_id}: {e}") from e

        with self._lock:
            self._match_results[result.id] = result
        return result

    def get_match_results_by_candidate_id(self, candidate_id: str) -> List[MatchResult]:
        return [
            result for result in self._match_results.values()
            if result.candidate_id == candidate_id
        ]
