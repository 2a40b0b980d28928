"""
Unit tests for the deterministic scoring engine.
"""

import itertools
import unittest
import logging

from models import Candidate, EducationLevel, Internship
from matching.scoring_engine import (
    calculate_match_score,
    calculate_skills_score,
    is_location_compatible,
    matching_skills,
    passes_hard_filter,
    score_internship,
    sector_matches,
    skills_overlap,
)

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


def make_candidate(skills, locations, sectors=(), education=EducationLevel.UNDERGRADUATE):
    return Candidate(
        id="candidate-1",
        full_name="Asha Verma",
        email="asha@example.com",
        education=education,
        skills=list(skills),
        sectors=list(sectors),
        locations=list(locations),
    )


def make_internship(internship_id="i-1", location="Bengaluru", skills=("Python",), sector="IT", title="Intern"):
    return Internship(
        id=internship_id,
        title=title,
        company="Acme Labs",
        location=location,
        skills=list(skills),
        sector=sector,
    )


FINANCIAL_ANALYST = make_internship(
    internship_id="fin-1",
    title="Financial Analyst Trainee",
    location="Mumbai",
    skills=["Financial Modeling", "Excel", "Accounting"],
    sector="Finance",
)


class TestSkillMatching(unittest.TestCase):
    """Test the bidirectional substring skill rule."""

    def test_candidate_skill_inside_internship_skill(self):
        self.assertTrue(skills_overlap("react", "React.js"))

    def test_internship_skill_inside_candidate_skill(self):
        self.assertTrue(skills_overlap("React.js", "react"))

    def test_unrelated_skills(self):
        self.assertFalse(skills_overlap("Python", "Financial Modeling"))

    def test_blank_skill_never_matches(self):
        self.assertFalse(skills_overlap("", "Python"))
        self.assertFalse(skills_overlap("  ", "Python"))

    def test_matching_skills_counts_candidate_skills(self):
        matched = matching_skills(["Python", "Excel", "Figma"], ["Excel", "Advanced Excel", "Python 3"])
        self.assertEqual(matched, ["Python", "Excel"])

    def test_skills_score_partial_match(self):
        # 1 of 2 candidate skills matched -> 0.5 * 40
        score = calculate_skills_score(["Python", "Excel"], ["Financial Modeling", "Excel", "Accounting"])
        self.assertEqual(score, 20.0)

    def test_skills_score_empty_candidate(self):
        self.assertEqual(calculate_skills_score([], ["Python"]), 0.0)


class TestLocationRule(unittest.TestCase):
    """Test the binary location compatibility rule."""

    def test_any_location_accepts_everything(self):
        for location in ["Bengaluru", "Remote", "Patna", ""]:
            self.assertTrue(is_location_compatible(["Any Location"], location))

    def test_any_location_wins_over_cities(self):
        self.assertTrue(is_location_compatible(["Pune", "Any Location"], "Chennai"))

    def test_remote_only_accepts_only_remote(self):
        self.assertTrue(is_location_compatible(["Remote"], "Remote"))
        self.assertFalse(is_location_compatible(["Remote"], "Bengaluru"))

    def test_cities_accept_only_listed_cities(self):
        prefs = ["Bengaluru", "Pune"]
        self.assertTrue(is_location_compatible(prefs, "Bengaluru"))
        self.assertTrue(is_location_compatible(prefs, "Pune"))
        self.assertFalse(is_location_compatible(prefs, "Remote"))
        self.assertFalse(is_location_compatible(prefs, "Mumbai"))

    def test_remote_with_city_accepts_both(self):
        prefs = ["Remote", "Pune"]
        self.assertTrue(is_location_compatible(prefs, "Remote"))
        self.assertTrue(is_location_compatible(prefs, "Pune"))
        self.assertFalse(is_location_compatible(prefs, "Delhi"))


class TestSectorRule(unittest.TestCase):

    def test_case_insensitive_substring(self):
        self.assertTrue(sector_matches(["finance"], "Finance"))
        self.assertTrue(sector_matches(["IT Services"], "IT"))

    def test_missing_internship_sector(self):
        self.assertFalse(sector_matches(["Finance"], None))
        self.assertFalse(sector_matches(["Finance"], ""))

    def test_no_interest(self):
        self.assertFalse(sector_matches([], "Finance"))


class TestMatchScore(unittest.TestCase):
    """Test the weighted rule-based score."""

    def test_financial_analyst_scenario(self):
        candidate = make_candidate(["Python", "Excel"], ["Any Location"], ["Finance"])
        result = calculate_match_score(candidate, FINANCIAL_ANALYST)

        # round((1/2 * 40) + 30 + 30)
        self.assertEqual(result["match_percentage"], 80)
        self.assertEqual(result["breakdown"], {"skills": 20.0, "location": 30.0, "sector": 30.0})

    def test_perfect_match(self):
        candidate = make_candidate(["Excel"], ["Mumbai"], ["Finance"])
        percentage, _ = score_internship(candidate, FINANCIAL_ANALYST)
        self.assertEqual(percentage, 100)

    def test_location_mismatch_scores_zero_location(self):
        candidate = make_candidate(["Excel"], ["Delhi"], ["Finance"])
        result = calculate_match_score(candidate, FINANCIAL_ANALYST)
        self.assertEqual(result["breakdown"]["location"], 0.0)
        self.assertEqual(result["match_percentage"], 70)

    def test_rounding_of_fractional_skills(self):
        # 1/3 * 40 = 13.33 -> 13 + 30 + 0
        candidate = make_candidate(["Excel", "Figma", "Kotlin"], ["Any Location"], ["Design"])
        percentage, _ = score_internship(candidate, FINANCIAL_ANALYST)
        self.assertEqual(percentage, 43)

    def test_exact_half_rounds_up(self):
        # 1/16 * 40 = 2.5, + 30 location = 32.5 -> 33
        skills = ["Excel"] + [f"Tool{i}" for i in range(15)]
        candidate = make_candidate(skills, ["Mumbai"], ["Design"])
        percentage, _ = score_internship(candidate, FINANCIAL_ANALYST)
        self.assertEqual(percentage, 33)

    def test_explanation_mentions_contributing_components(self):
        candidate = make_candidate(["Python", "Excel"], ["Any Location"], ["Finance"])
        _, explanation = score_internship(candidate, FINANCIAL_ANALYST)
        self.assertEqual(
            explanation,
            "This role matches 1 of your key skills and aligns with your location preferences "
            "in your preferred sector. It offers relevant experience for your career goals.",
        )

    def test_explanation_without_location_or_sector(self):
        candidate = make_candidate(["Excel"], ["Delhi"], ["Design"])
        _, explanation = score_internship(candidate, FINANCIAL_ANALYST)
        self.assertEqual(
            explanation,
            "This role matches 1 of your key skills. It offers relevant experience for your career goals.",
        )


class TestHardFilter(unittest.TestCase):

    def test_requires_skill_overlap(self):
        candidate = make_candidate(["Figma"], ["Any Location"])
        self.assertFalse(passes_hard_filter(candidate, FINANCIAL_ANALYST))

    def test_requires_location(self):
        candidate = make_candidate(["Excel"], ["Remote"])
        self.assertFalse(passes_hard_filter(candidate, FINANCIAL_ANALYST))

    def test_passes_with_both(self):
        candidate = make_candidate(["Python", "Excel"], ["Any Location"], ["Finance"])
        self.assertTrue(passes_hard_filter(candidate, FINANCIAL_ANALYST))


class TestDeterminism(unittest.TestCase):
    """Test that scoring is deterministic and bounded."""

    def test_scores_bounded_and_repeatable(self):
        skill_sets = [["Python"], ["Excel", "Python"], ["react", "Node"], ["Accounting", "SEO", "Figma"]]
        location_sets = [["Any Location"], ["Remote"], ["Mumbai", "Pune"], ["Delhi"]]
        sector_sets = [[], ["Finance"], ["IT", "Design"]]
        internships = [
            FINANCIAL_ANALYST,
            make_internship("i-2", "Remote", ["React.js", "Node.js"], "IT"),
            make_internship("i-3", "Pune", ["SEO"], None),
        ]

        for skills, locations, sectors in itertools.product(skill_sets, location_sets, sector_sets):
            candidate = make_candidate(skills, locations, sectors)
            for internship in internships:
                first = calculate_match_score(candidate, internship)
                second = calculate_match_score(candidate, internship)
                self.assertEqual(first, second)
                self.assertGreaterEqual(first["match_percentage"], 0)
                self.assertLessEqual(first["match_percentage"], 100)


if __name__ == "__main__":
    unittest.main()
