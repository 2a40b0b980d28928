"""
Two-Stage Internship Matching

This package ranks an internship catalog against a candidate profile:
1. Deterministic hard filter and rule-based scoring (no AI)
2. LLM ranking of the shortlist (PhiData + OpenAI), with the rule-based
   order as fallback when the model call fails

Usage:
    from matching import MatchingService, LLMRanker

    service = MatchingService(storage, LLMRanker.from_settings(settings))
    matches = await service.find_matches(candidate)
"""

from .matcher import MatchingService
from .llm_ranker import LLMRanker, AdapterFailure, ConfigurationError
from .config import WEIGHTS

__all__ = ["MatchingService", "LLMRanker", "AdapterFailure", "ConfigurationError", "WEIGHTS"]
__version__ = "1.0.0"
