"""
Configuration for the two-stage internship matching pipeline.
Adjust weights and thresholds here.
"""

# Rule-based component weights (earned / possible is normalized to 100)
WEIGHTS = {
    "skills": 40,
    "location": 30,
    "sector": 30,
}

# Weights the language model is asked to apply when ranking a shortlist.
# Education is only judged by the model; the rule-based scorer ignores it.
LLM_WEIGHTS = {
    "skills": 40,
    "location": 25,
    "education": 20,
    "sector": 15,
}

# Sentinel location preferences
ANY_LOCATION = "Any Location"
REMOTE = "Remote"

# Pipeline limits
SHORTLIST_THRESHOLD = 50  # Minimum rule-based score to be sent for ranking
SHORTLIST_SIZE = 20  # Bounds the ranking prompt size
MAX_RESULTS = 10

# Prompt shaping
PROMPT_SKILLS_PER_INTERNSHIP = 5
DEFAULT_SECTOR_LABEL = "General"

# LLM configuration
LLM_CONFIG = {
    "temperature": 0,  # For maximum consistency
    "model": "gpt-4o",  # Default model
    "timeout_seconds": 30,
}

# Response validation
VALIDATION = {
    "min_percentage": 0,
    "max_percentage": 100,
    "min_explanation_length": 10,  # Single-match explanations must be longer than this
}

# Explanation fallbacks when the explainer agent fails
FALLBACK_EXPLANATIONS = {
    "en": "This internship offers valuable experience that aligns with your skills and career goals.",
    "hi": "यह इंटर्नशिप आपके कौशल और करियर लक्ष्यों के साथ मेल खाता है और मूल्यवान अनुभव प्रदान करता है।",
}
