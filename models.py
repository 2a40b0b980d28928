from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict


def _clean_terms(values: List[str]) -> List[str]:
    """Strip whitespace, drop blanks and case-insensitive duplicates (first spelling wins)."""
    cleaned: List[str] = []
    seen = set()
    for value in values:
        term = value.strip()
        if not term or term.lower() in seen:
            continue
        seen.add(term.lower())
        cleaned.append(term)
    return cleaned


class EducationLevel(str, Enum):
    TWELFTH_PASS = "12th-pass"
    UNDERGRADUATE = "undergraduate"
    POSTGRADUATE = "postgraduate"


class CandidateFormData(BaseModel):
    """Body of POST /api/matches, as sent by the multi-step form."""
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(..., alias="fullName", min_length=1)
    email: str = Field(..., min_length=3)
    education: EducationLevel
    skills: List[str] = Field(..., min_length=1)
    sectors: List[str] = Field(default_factory=list)
    locations: List[str] = Field(..., min_length=1)
    language: Optional[str] = "en"

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v:
            raise ValueError("Email must contain '@'")
        return v

    @field_validator("skills", "locations")
    @classmethod
    def validate_required_terms(cls, v: List[str]) -> List[str]:
        cleaned = _clean_terms(v)
        if not cleaned:
            raise ValueError("At least one non-blank value is required")
        return cleaned

    @field_validator("sectors")
    @classmethod
    def validate_sectors(cls, v: List[str]) -> List[str]:
        return _clean_terms(v)


class Candidate(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    full_name: str = Field(alias="fullName")
    email: str
    education: EducationLevel
    skills: List[str]
    sectors: List[str] = Field(default_factory=list)
    locations: List[str]
    language: Optional[str] = "en"


class Internship(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str
    company: str
    location: str
    salary: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    sector: Optional[str] = None
    apply_link: Optional[str] = Field(default=None, alias="applyLink")


class MatchResult(BaseModel):
    """Persisted record of one match returned to a candidate."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    candidate_id: str = Field(alias="candidateId")
    internship_id: str = Field(alias="internshipId")
    match_percentage: float = Field(alias="matchPercentage", ge=0.0, le=100.0)
    ai_explanation: str = Field(alias="aiExplanation")


class InternshipMatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    internship: Internship
    match_percentage: float = Field(alias="matchPercentage", ge=0.0, le=100.0)
    ai_explanation: str = Field(alias="aiExplanation")


class SkillsResponse(BaseModel):
    skills: List[str]


class LocationsResponse(BaseModel):
    locations: List[str]


class MatchesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    matches: List[InternshipMatch]
    candidate_id: str = Field(alias="candidateId")


class MatchHistoryResponse(BaseModel):
    matches: List[InternshipMatch]


class Settings(BaseModel):
    model_config = ConfigDict(protected_namespaces=())
    openai_api_key: Optional[str] = None
    model_name: str = "gpt-4o"
    ranker_timeout_seconds: float = 30.0
    data_dir: Path = Path(__file__).resolve().parent / "data"
    log_level: str = "INFO"
