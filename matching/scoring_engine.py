"""
Deterministic Scoring Engine

All scoring functions are deterministic - same inputs produce same outputs.
No AI/LLM is used in this module. The same predicates back the hard filter
and the rule-based score, so both stages agree on what "compatible" means.
"""

import logging
import math
from typing import List, Dict, Any, Optional, Tuple
from .config import WEIGHTS, ANY_LOCATION, REMOTE

logger = logging.getLogger(__name__)


def skills_overlap(skill_a: str, skill_b: str) -> bool:
    """Case-insensitive bidirectional substring test ("react" ~ "React.js")."""
    a = skill_a.strip().lower()
    b = skill_b.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def matching_skills(candidate_skills: List[str], internship_skills: List[str]) -> List[str]:
    """Return the candidate skills that overlap at least one internship skill."""
    return [
        skill for skill in candidate_skills
        if any(skills_overlap(skill, required) for required in internship_skills)
    ]


def has_skill_overlap(candidate_skills: List[str], internship_skills: List[str]) -> bool:
    return bool(matching_skills(candidate_skills, internship_skills))


def is_location_compatible(candidate_locations: List[str], internship_location: str) -> bool:
    """
    Binary location rule.

    - "Any Location" accepts every internship.
    - Exactly {"Remote"} accepts only Remote internships.
    - Otherwise the internship location must be one of the listed values.
    """
    preferences = set(candidate_locations)

    if ANY_LOCATION in preferences:
        return True
    if preferences == {REMOTE}:
        return internship_location == REMOTE
    return internship_location in preferences


def sector_matches(candidate_sectors: List[str], internship_sector: Optional[str]) -> bool:
    """Any candidate sector contained in (or containing) the internship sector."""
    if not internship_sector:
        return False
    sector = internship_sector.strip().lower()
    for interest in candidate_sectors:
        interest = interest.strip().lower()
        if interest and (interest in sector or sector in interest):
            return True
    return False


def calculate_skills_score(candidate_skills: List[str], internship_skills: List[str]) -> float:
    """
    Calculate skills component (0 - WEIGHTS["skills"]).

    Formula: (matched candidate skills / max(candidate skills, 1)) * weight
    """
    matched = matching_skills(candidate_skills, internship_skills)
    score = (len(matched) / max(len(candidate_skills), 1)) * WEIGHTS["skills"]
    logger.debug(f"Skills: {len(matched)}/{len(candidate_skills)} matched, score = {score:.2f}")
    return score


def calculate_location_score(candidate_locations: List[str], internship_location: str) -> float:
    score = WEIGHTS["location"] if is_location_compatible(candidate_locations, internship_location) else 0
    logger.debug(f"Location: {internship_location!r}, score = {score}")
    return float(score)


def calculate_sector_score(candidate_sectors: List[str], internship_sector: Optional[str]) -> float:
    score = WEIGHTS["sector"] if sector_matches(candidate_sectors, internship_sector) else 0
    logger.debug(f"Sector: {internship_sector!r}, score = {score}")
    return float(score)


def build_explanation(matched_count: int, location_match: bool, sector_match: bool) -> str:
    explanation = f"This role matches {matched_count} of your key skills"
    if location_match:
        explanation += " and aligns with your location preferences"
    if sector_match:
        explanation += " in your preferred sector"
    return explanation + ". It offers relevant experience for your career goals."


def calculate_match_score(candidate, internship) -> Dict[str, Any]:
    """
    Calculate the rule-based match score for one candidate/internship pair.

    The percentage is earned weight over possible weight, so it stays
    normalized if components are added or removed from WEIGHTS.

    Returns:
        Dict with match_percentage, explanation and breakdown
    """
    breakdown = {
        "skills": calculate_skills_score(candidate.skills, internship.skills),
        "location": calculate_location_score(candidate.locations, internship.location),
        "sector": calculate_sector_score(candidate.sectors, internship.sector),
    }

    earned = sum(breakdown.values())
    possible = sum(WEIGHTS[component] for component in breakdown)
    # half-up, so 49.5 still makes the shortlist
    percentage = math.floor(earned * 100 / possible + 0.5) if possible else 0
    percentage = max(0, min(100, percentage))

    explanation = build_explanation(
        len(matching_skills(candidate.skills, internship.skills)),
        breakdown["location"] > 0,
        breakdown["sector"] > 0,
    )

    logger.debug(f"Rule-based score for {internship.id}: {percentage}%")
    return {
        "match_percentage": percentage,
        "explanation": explanation,
        "breakdown": {name: round(value, 2) for name, value in breakdown.items()},
    }


def score_internship(candidate, internship) -> Tuple[int, str]:
    """Shortcut returning (percentage, explanation)."""
    result = calculate_match_score(candidate, internship)
    return result["match_percentage"], result["explanation"]


def passes_hard_filter(candidate, internship) -> bool:
    """Location compatibility AND at least one overlapping skill."""
    return (
        is_location_compatible(candidate.locations, internship.location)
        and has_skill_overlap(candidate.skills, internship.skills)
    )
