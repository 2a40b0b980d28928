"""
Main Matcher Module

Orchestrates the complete matching process:
1. Hard filter the catalog (location + skill overlap)
2. Score with the deterministic engine and shortlist the best candidates
3. Ask the LLM ranker to rank the shortlist
4. Fall back to the rule-based order if the ranker fails
5. Record the returned matches
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from models import Candidate, CandidateFormData, Internship, InternshipMatch
from storage import Storage
from .config import MAX_RESULTS, SHORTLIST_SIZE, SHORTLIST_THRESHOLD
from .llm_ranker import AdapterFailure
from .scoring_engine import passes_hard_filter, score_internship

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredInternship:
    internship: Internship
    match_percentage: int
    explanation: str
    catalog_index: int

    def to_match(self) -> InternshipMatch:
        return InternshipMatch(
            internship=self.internship,
            match_percentage=self.match_percentage,
            ai_explanation=self.explanation,
        )


def hard_filter(candidate: Candidate, internships: List[Internship]) -> List[Tuple[int, Internship]]:
    """Keep (catalog index, internship) pairs passing the location and skill preconditions."""
    return [
        (index, internship) for index, internship in enumerate(internships)
        if passes_hard_filter(candidate, internship)
    ]


def build_shortlist(
    candidate: Candidate,
    eligible: List[Tuple[int, Internship]],
    threshold: int = SHORTLIST_THRESHOLD,
    size: int = SHORTLIST_SIZE,
) -> List[ScoredInternship]:
    """
    Score eligible internships and keep the best ones.

    Sorted by score descending with catalog order as the tie-break, so the
    shortlist is reproducible for the same catalog.
    """
    scored = []
    for index, internship in eligible:
        percentage, explanation = score_internship(candidate, internship)
        if percentage >= threshold:
            scored.append(ScoredInternship(internship, percentage, explanation, index))

    scored.sort(key=lambda s: (-s.match_percentage, s.catalog_index))
    return scored[:size]


class MatchingService:
    """Two-stage internship matcher over an injected store and ranker."""

    def __init__(self, storage: Storage, ranker, max_results: int = MAX_RESULTS):
        self.storage = storage
        self.ranker = ranker
        self.max_results = max_results

    async def find_matches(self, candidate: Candidate) -> List[InternshipMatch]:
        """
        Return up to ``max_results`` ranked matches for the candidate.

        The result shape is the same whether the LLM ranking or the
        rule-based fallback produced it. Matches are recorded against the
        candidate id; a failed write is logged and does not affect the result.
        """
        internships = self.storage.get_all_internships()
        eligible = hard_filter(candidate, internships)
        logger.info(f"Hard filter kept {len(eligible)}/{len(internships)} internships for candidate {candidate.id}")

        shortlist = build_shortlist(candidate, eligible)
        logger.info(f"Shortlisted {len(shortlist)} internships (threshold {SHORTLIST_THRESHOLD}%)")

        if not shortlist:
            return []

        matches = await self._rank(candidate, shortlist)
        self._record(candidate, matches)
        return matches

    async def _rank(self, candidate: Candidate, shortlist: List[ScoredInternship]) -> List[InternshipMatch]:
        try:
            ranked = await self.ranker.rank_internships(candidate, [s.internship for s in shortlist])
        except AdapterFailure as e:
            logger.warning(f"LLM ranking failed, using rule-based order: {e}")
            ranked = []

        if ranked:
            logger.info("Returning LLM-ranked matches")
            return ranked[:self.max_results]

        logger.info("Returning rule-based matches")
        return [s.to_match() for s in shortlist[:self.max_results]]

    def _record(self, candidate: Candidate, matches: List[InternshipMatch]) -> None:
        for match in matches:
            try:
                self.storage.create_match_result(
                    candidate_id=candidate.id,
                    internship_id=match.internship.id,
                    match_percentage=match.match_percentage,
                    ai_explanation=match.ai_explanation,
                )
            except Exception:
                logger.exception(f"Failed to store match {match.internship.id} for candidate {candidate.id}")

    def match_history(self, candidate_id: str) -> List[InternshipMatch]:
        """Rebuild stored matches, skipping internships no longer in the catalog."""
        matches = []
        for result in self.storage.get_match_results_by_candidate_id(candidate_id):
            internship = self.storage.get_internship(result.internship_id)
            if internship is None:
                continue
            matches.append(InternshipMatch(
                internship=internship,
                match_percentage=result.match_percentage,
                ai_explanation=result.ai_explanation,
            ))
        return matches

    async def run(self, form: CandidateFormData) -> Tuple[Candidate, List[InternshipMatch]]:
        """Create the candidate from a validated form and match it."""
        candidate = self.storage.create_candidate(form)
        matches = await self.find_matches(candidate)
        return candidate, matches
