from __future__ import annotations

from typing import List, Dict, Any, Optional

from phi.agent import Agent
from phi.model.openai import OpenAIChat

from .config import LLM_CONFIG, LLM_WEIGHTS


# Reasoning models reject a custom temperature; JSON object mode is gpt-4 family only.
FIXED_TEMPERATURE_PREFIXES = ("o1", "o3", "gpt-5")
JSON_MODE_PREFIXES = ("gpt-4",)


def get_model_config(
    model_name: str,
    default_temperature: float = 0,
    json_mode: bool = True,
) -> Dict[str, Any]:
    """OpenAIChat keyword arguments for ``model_name``."""
    model_id = model_name.lower()
    config: Dict[str, Any] = {"id": model_name}
    if not model_id.startswith(FIXED_TEMPERATURE_PREFIXES):
        config["temperature"] = default_temperature
    if json_mode and model_id.startswith(JSON_MODE_PREFIXES):
        config["response_format"] = {"type": "json_object"}
    return config


def _build_model(
    model_name: Optional[str],
    api_key: Optional[str],
    timeout: Optional[float],
    json_mode: bool = True,
) -> OpenAIChat:
    model_config = get_model_config(
        model_name or LLM_CONFIG["model"],
        default_temperature=LLM_CONFIG["temperature"],
        json_mode=json_mode,
    )
    # No client retries; a failed call falls back to rule-based ranking.
    return OpenAIChat(api_key=api_key, timeout=timeout, max_retries=0, **model_config)


def _scoring_guidelines() -> List[str]:
    return [
        "Scoring Guidelines:",
        f"- Skills match ({LLM_WEIGHTS['skills']}%): How well candidate's skills align with required skills",
        f"- Location compatibility ({LLM_WEIGHTS['location']}%): Geographic preference alignment or remote work options",
        f"- Education level ({LLM_WEIGHTS['education']}%): Whether candidate meets education requirements",
        f"- Sector interest ({LLM_WEIGHTS['sector']}%): How well the internship aligns with candidate's sector preferences",
    ]


def build_ranker(model_name: str = None, api_key: str = None, timeout: float = None) -> Agent:
    """Agent that scores and ranks a shortlist of internships in one call."""
    return Agent(
        name="Internship Ranker",
        role="Rank internship opportunities for a candidate by match quality",
        model=_build_model(model_name, api_key, timeout),
        instructions=[
            "You are an expert career counselor and internship matching specialist.",
            "Analyze the candidate's profile against multiple internship opportunities and rank them by match quality.",
            "",
            "For each internship, provide:",
            "1. A match percentage (0-100) based on skill overlap, location compatibility, education level, and sector alignment",
            "2. A concise explanation (max 100 characters) of why this internship matches",
            "",
            *_scoring_guidelines(),
            "",
            "RULES:",
            "- Only use internship IDs exactly as given in the prompt",
            "- Score every internship in the list exactly once",
            "- Return results sorted by match percentage in descending order",
            "",
            "OUTPUT FORMAT (MUST be valid JSON, no markdown):",
            '{"rankings": [{"internshipId": "string", "matchPercentage": number, "explanation": "string"}]}',
        ],
        show_tool_calls=False,
        markdown=False,
    )


def build_match_scorer(model_name: str = None, api_key: str = None, timeout: float = None) -> Agent:
    """Agent that assesses a single candidate/internship pair."""
    return Agent(
        name="Internship Match Scorer",
        role="Evaluate one internship against a candidate profile",
        model=_build_model(model_name, api_key, timeout),
        instructions=[
            "You are an expert career counselor and internship matching specialist.",
            "Analyze a candidate's profile against an internship opportunity and provide:",
            "1. A match percentage (0-100) based on skill overlap, location compatibility, education level, and sector alignment",
            "2. A detailed explanation of why this internship is suitable for the candidate",
            "",
            *_scoring_guidelines(),
            "",
            "Provide practical, encouraging explanations that highlight:",
            "- Specific skill matches and transferable skills",
            "- Growth opportunities and learning potential",
            "- Location/work arrangement benefits",
            "",
            "Be honest about match quality but focus on positive aspects and potential.",
            "Respond with JSON in this exact format:",
            '{"matchPercentage": number, "explanation": "string"}',
        ],
        show_tool_calls=False,
        markdown=False,
    )


def build_explainer(
    model_name: str = None,
    api_key: str = None,
    timeout: float = None,
    language: str = "en",
) -> Agent:
    """Agent that writes a short, plain-text match explanation."""
    language_rule = "Respond in Hindi language." if language == "hi" else "Respond in English language."
    return Agent(
        name="Match Explainer",
        role="Explain briefly why an internship suits a candidate",
        model=_build_model(model_name, api_key, timeout, json_mode=False),
        instructions=[
            "You are a career counselor providing personalized advice.",
            "Generate a brief, encouraging explanation (2-3 sentences) for why this internship is a good match.",
            language_rule,
            "",
            "Focus on:",
            "- Specific skills that match",
            "- Learning opportunities",
            "- Career growth potential",
            "- Location/work arrangement benefits",
            "",
            "Keep it positive, specific, and under 200 characters.",
        ],
        show_tool_calls=False,
        markdown=False,
    )


def get_response_text(response: Any) -> str:
    """Extract the text payload from an agent run response."""
    if response is None:
        return ""
    if hasattr(response, "content"):
        content = response.content
        return "" if content is None else str(content)
    if hasattr(response, "messages") and response.messages:
        last_msg = response.messages[-1]
        return str(last_msg.content if hasattr(last_msg, "content") else last_msg)
    return str(response)
