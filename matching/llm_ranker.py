"""
LLM Ranking Adapter

Wraps the language model behind two named operations with separate
response contracts:

- rank_internships: one call that scores and orders a whole shortlist
- score_match: one call that scores a single internship

The model output is untrusted input. It is parsed, validated against the
contract models below and joined back to the internships we sent before
anything reaches the caller. Every failure surfaces as an AdapterFailure;
nothing is retried here and no partial rankings are returned.
"""

import asyncio
import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from models import Candidate, Internship, InternshipMatch, Settings
from .agents import build_explainer, build_match_scorer, build_ranker, get_response_text
from .config import (
    DEFAULT_SECTOR_LABEL,
    FALLBACK_EXPLANATIONS,
    LLM_CONFIG,
    PROMPT_SKILLS_PER_INTERNSHIP,
    VALIDATION,
)

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when the ranker cannot be configured (e.g. missing API key)."""


class AdapterFailure(Exception):
    """Base class for every failure of an external ranking call."""


class EmptyResponse(AdapterFailure):
    """The model returned no payload."""


class MalformedResponse(AdapterFailure):
    """The payload is not JSON of the expected shape."""


class RankerTimeout(AdapterFailure):
    """The model call did not finish within the configured timeout."""


class RankerUnavailable(AdapterFailure):
    """The model call raised (network, auth, rate limit, ...)."""


class RankedItem(BaseModel):
    """One entry of a batch ranking response."""
    model_config = ConfigDict(str_strip_whitespace=True)

    internship_id: str = Field(alias="internshipId", min_length=1)
    match_percentage: float = Field(
        alias="matchPercentage",
        ge=VALIDATION["min_percentage"],
        le=VALIDATION["max_percentage"],
    )
    explanation: str = Field(min_length=1)


class MatchAssessment(BaseModel):
    """Response of a single-match scoring call."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    match_percentage: float = Field(
        alias="matchPercentage",
        ge=VALIDATION["min_percentage"],
        le=VALIDATION["max_percentage"],
    )
    explanation: str = Field(min_length=VALIDATION["min_explanation_length"] + 1)


RANKING_ADAPTER = TypeAdapter(List[RankedItem])


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model sometimes wraps JSON in."""
    text = text.strip()
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if match:
        return match.group(1).strip()
    return text


def load_json_payload(text: Optional[str]) -> Any:
    if text is None or not text.strip():
        raise EmptyResponse("Empty response from language model")
    try:
        return json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Response is not valid JSON: {e}") from e


def format_candidate_profile(candidate: Candidate) -> str:
    return "\n".join([
        "Candidate Profile:",
        f"- Education: {candidate.education.value}",
        f"- Skills: {', '.join(candidate.skills)}",
        f"- Sector Interests: {', '.join(candidate.sectors) or 'Not specified'}",
        f"- Location Preferences: {', '.join(candidate.locations)}",
    ])


def build_ranking_prompt(candidate: Candidate, internships: List[Internship]) -> str:
    lines = [format_candidate_profile(candidate), "", "Internship Opportunities:"]
    for index, internship in enumerate(internships, 1):
        skills = internship.skills[:PROMPT_SKILLS_PER_INTERNSHIP]
        lines.extend([
            f"{index}. ID: {internship.id}",
            f"   Title: {internship.title}",
            f"   Company: {internship.company}",
            f"   Location: {internship.location}",
            f"   Required Skills: {', '.join(skills)}",
            f"   Sector: {internship.sector or DEFAULT_SECTOR_LABEL}",
        ])
    lines.extend(["", "Analyze and rank these internships for the candidate."])
    return "\n".join(lines)


def build_match_prompt(candidate: Candidate, internship: Internship) -> str:
    return "\n".join([
        format_candidate_profile(candidate),
        f"- Language: {candidate.language or 'en'}",
        "",
        "Internship Details:",
        f"- Title: {internship.title}",
        f"- Company: {internship.company}",
        f"- Location: {internship.location}",
        f"- Required Skills: {', '.join(internship.skills)}",
        f"- Sector: {internship.sector or 'Not specified'}",
        f"- Salary: {internship.salary or 'Not specified'}",
        f"- Description: {internship.description or 'Not provided'}",
        "",
        "Analyze this match and provide your assessment.",
    ])


def build_explanation_prompt(candidate: Candidate, internship: Internship, match_percentage: float) -> str:
    return "\n".join([
        f"Candidate has skills: {', '.join(candidate.skills)}",
        f"Interested in sectors: {', '.join(candidate.sectors)}",
        f"Prefers locations: {', '.join(candidate.locations)}",
        "",
        f"Internship: {internship.title} at {internship.company}",
        f"Location: {internship.location}",
        f"Required skills: {', '.join(internship.skills)}",
        f"Match percentage: {match_percentage:g}%",
        "",
        "Generate a brief explanation for this match.",
    ])


def parse_rankings(text: Optional[str], internships: List[Internship]) -> List[InternshipMatch]:
    """
    Validate a batch ranking response and join it to the shortlist.

    Accepts a bare JSON array or an object with a "rankings" array. Unknown
    ids are dropped, repeated ids keep their first entry, and the result is
    sorted by percentage descending (stable, so model order breaks ties).

    Raises:
        EmptyResponse: no payload
        MalformedResponse: not JSON, or not an array of valid ranking objects
    """
    data = load_json_payload(text)
    if isinstance(data, dict) and "rankings" in data:
        data = data["rankings"]
    if not isinstance(data, list):
        raise MalformedResponse(f"Expected a JSON array of rankings, got {type(data).__name__}")

    try:
        items = RANKING_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise MalformedResponse(f"Ranking response failed validation: {e.error_count()} error(s)") from e

    by_id = {internship.id: internship for internship in internships}
    matches: List[InternshipMatch] = []
    seen = set()

    for item in items:
        internship = by_id.get(item.internship_id)
        if internship is None:
            logger.warning(f"Dropping ranking for unknown internship id {item.internship_id!r}")
            continue
        if item.internship_id in seen:
            continue
        seen.add(item.internship_id)
        matches.append(InternshipMatch(
            internship=internship,
            match_percentage=item.match_percentage,
            ai_explanation=item.explanation,
        ))

    matches.sort(key=lambda m: m.match_percentage, reverse=True)
    return matches


def parse_match_assessment(text: Optional[str]) -> MatchAssessment:
    """Validate a single-match scoring response."""
    data = load_json_payload(text)
    if not isinstance(data, dict):
        raise MalformedResponse(f"Expected a JSON object, got {type(data).__name__}")
    try:
        return MatchAssessment.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(f"Match response failed validation: {e.error_count()} error(s)") from e


class LLMRanker:
    """
    Runs the ranking agents with a bounded timeout.

    Agent.run is blocking, so each call goes to a worker thread. On timeout
    the thread's eventual result is discarded.
    """

    def __init__(
        self,
        ranker_agent: Any,
        scorer_agent: Any = None,
        explainer_factory: Optional[Callable[[str], Any]] = None,
        timeout_seconds: float = LLM_CONFIG["timeout_seconds"],
    ):
        self.ranker_agent = ranker_agent
        self.scorer_agent = scorer_agent
        self.explainer_factory = explainer_factory
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMRanker":
        if not settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set; the internship ranker cannot be configured")

        common = {
            "model_name": settings.model_name,
            "api_key": settings.openai_api_key,
            "timeout": settings.ranker_timeout_seconds,
        }
        logger.info(f"Configuring LLM ranker with model {settings.model_name}")
        return cls(
            ranker_agent=build_ranker(**common),
            scorer_agent=build_match_scorer(**common),
            explainer_factory=lambda language: build_explainer(language=language, **common),
            timeout_seconds=settings.ranker_timeout_seconds,
        )

    async def _run(self, agent: Any, prompt: str) -> str:
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(agent.run, prompt),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise RankerTimeout(f"Language model call exceeded {self.timeout_seconds}s") from e
        except Exception as e:
            raise RankerUnavailable(f"Language model call failed: {e}") from e

        text = get_response_text(response)
        logger.debug(f"Raw LLM response: {text[:500]}")
        return text

    async def rank_internships(
        self,
        candidate: Candidate,
        internships: List[Internship],
    ) -> List[InternshipMatch]:
        """Score and order a shortlist in a single model call."""
        if not internships:
            return []

        prompt = build_ranking_prompt(candidate, internships)
        text = await self._run(self.ranker_agent, prompt)
        matches = parse_rankings(text, internships)
        logger.info(f"LLM ranked {len(matches)}/{len(internships)} internships")
        return matches

    async def score_match(self, candidate: Candidate, internship: Internship) -> MatchAssessment:
        """Score a single internship for the candidate."""
        if self.scorer_agent is None:
            raise RankerUnavailable("No single-match scorer configured")

        text = await self._run(self.scorer_agent, build_match_prompt(candidate, internship))
        return parse_match_assessment(text)

    async def explain_match(
        self,
        candidate: Candidate,
        internship: Internship,
        match_percentage: float,
        language: str = "en",
    ) -> str:
        """
        Short plain-text explanation in English or Hindi.

        Never raises; any failure returns a fixed explanation in the
        requested language.
        """
        language = "hi" if language == "hi" else "en"
        fallback = FALLBACK_EXPLANATIONS[language]
        if self.explainer_factory is None:
            return fallback

        try:
            agent = self.explainer_factory(language)
            text = await self._run(agent, build_explanation_prompt(candidate, internship, match_percentage))
        except AdapterFailure as e:
            logger.warning(f"Failed to generate match explanation for {internship.id}: {e}")
            return fallback

        return text.strip() or fallback
