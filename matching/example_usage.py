"""
Example usage of the two-stage internship matching pipeline.

Run this file to see the system in action:
    python -m matching.example_usage
"""

import asyncio
import os
import logging
from pathlib import Path

from catalog import load_catalog
from models import CandidateFormData, Settings
from storage import MemStorage
from matching import LLMRanker, MatchingService
from matching.matcher import build_shortlist, hard_filter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"

# Sample candidate
CANDIDATE_FORM = CandidateFormData(
    fullName="Priya Sharma",
    email="priya@example.com",
    education="undergraduate",
    skills=["Python", "Excel", "Data Analysis"],
    sectors=["Finance", "IT"],
    locations=["Bengaluru", "Remote"],
    language="en",
)


def example_rule_based(storage: MemStorage):
    """Example 1: Hard filter and rule-based shortlist (no LLM)."""
    print("\n" + "="*80)
    print("EXAMPLE 1: Rule-Based Shortlist")
    print("="*80)

    candidate = storage.create_candidate(CANDIDATE_FORM)
    eligible = hard_filter(candidate, storage.get_all_internships())
    shortlist = build_shortlist(candidate, eligible)

    print(f"\nEligible after hard filter: {len(eligible)}")
    print(f"Shortlisted: {len(shortlist)}\n")
    for i, scored in enumerate(shortlist, 1):
        internship = scored.internship
        print(f"#{i:<2} {scored.match_percentage:3d}%  {internship.title} @ {internship.company} ({internship.location})")
    print(f"{'='*80}\n")


async def example_llm_ranking(storage: MemStorage, settings: Settings):
    """Example 2: Full pipeline with LLM ranking."""
    print("\n" + "="*80)
    print("EXAMPLE 2: LLM-Ranked Matches")
    print("="*80)

    service = MatchingService(storage, LLMRanker.from_settings(settings))
    candidate, matches = await service.run(CANDIDATE_FORM)

    for i, match in enumerate(matches, 1):
        print(f"\n#{i} - {match.match_percentage:.0f}% {match.internship.title} ({match.internship.location})")
        print(f"  {match.ai_explanation}")

    print(f"\nStored {len(service.match_history(candidate.id))} matches for candidate {candidate.id}")
    print(f"{'='*80}\n")


def main():
    """Run all examples."""
    storage = MemStorage()
    load_catalog(DATA_DIR, storage)

    example_rule_based(storage)

    # Check for API key
    if not os.getenv("OPENAI_API_KEY"):
        print("❌ Skipping LLM example: OPENAI_API_KEY environment variable not set")
        print("   Please set it: export OPENAI_API_KEY='sk-...'")
        return

    settings = Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        model_name=os.getenv("OPENAI_MODEL", "gpt-4o"),
    )
    asyncio.run(example_llm_ranking(storage, settings))


if __name__ == "__main__":
    main()
