"""
Catalog loading for the internship matcher.

Reads the skill and location vocabularies from CSV files and builds the
internship catalog. An ``internships.csv`` in the data directory is used
when present; otherwise the catalog is expanded from fixed role templates
across the known locations. Both paths are deterministic.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Any, Optional, List
import pandas as pd

from matching.config import REMOTE

logger = logging.getLogger(__name__)

SKILLS_FILE = "unique_skills.csv"
LOCATIONS_FILE = "unique_locations.csv"
INTERNSHIPS_FILE = "internships.csv"

APPLY_BASE_URL = "https://www.pminternship.gov.in/apply"

TEMPLATE_LOCATION_POOL = 20  # Only the first N known locations receive postings
TEMPLATE_LOCATION_OFFSETS = (0, 5, 10)

SALARY_RANGES = [
    "₹8,000 - ₹15,000",
    "₹10,000 - ₹20,000",
    "₹12,000 - ₹25,000",
    "₹15,000 - ₹30,000",
]

INTERNSHIP_TEMPLATES: List[Dict[str, Any]] = [
    {
        "title": "Full Stack Developer Intern",
        "company": "TechCorp Solutions",
        "skills": ["JavaScript", "React", "Node.js", "MongoDB"],
        "sector": "IT",
        "description": "Build modern web applications using MERN stack",
    },
    {
        "title": "Digital Marketing Specialist",
        "company": "MarketPro Agency",
        "skills": ["Digital Marketing", "SEO", "Content Writing", "Social Media Marketing"],
        "sector": "Marketing",
        "description": "Drive digital marketing campaigns and content strategy",
    },
    {
        "title": "UI/UX Designer",
        "company": "Design Studio",
        "skills": ["Adobe Photoshop", "Figma", "UI Design", "Wireframing"],
        "sector": "Design",
        "description": "Create intuitive user interfaces and user experiences",
    },
    {
        "title": "Data Analyst Intern",
        "company": "DataTech Analytics",
        "skills": ["Python", "Data Analysis", "Excel", "Statistics"],
        "sector": "IT",
        "description": "Analyze data trends and create business insights",
    },
    {
        "title": "Content Creator",
        "company": "Media Hub",
        "skills": ["Content Writing", "Video Editing", "Adobe Premiere Pro", "Copywriting"],
        "sector": "Content",
        "description": "Create engaging content across multiple platforms",
    },
    {
        "title": "Android Developer Intern",
        "company": "MobileFirst Technologies",
        "skills": ["Android", "Java", "Kotlin", "Flutter"],
        "sector": "IT",
        "description": "Develop mobile applications for Android platform",
    },
    {
        "title": "Financial Analyst Trainee",
        "company": "Finance Solutions Ltd",
        "skills": ["Financial Modeling", "Excel", "Accounting", "Financial literacy"],
        "sector": "Finance",
        "description": "Support financial planning and analysis activities",
    },
    {
        "title": "Machine Learning Intern",
        "company": "AI Innovations",
        "skills": ["Machine Learning", "Python", "Data Science", "TensorFlow"],
        "sector": "IT",
        "description": "Build and deploy ML models for business solutions",
    },
    {
        "title": "Graphic Design Intern",
        "company": "Creative Agency",
        "skills": ["Adobe Illustrator", "Adobe Photoshop", "CorelDRAW", "Design Thinking"],
        "sector": "Design",
        "description": "Create visual designs for branding and marketing materials",
    },
    {
        "title": "Operations Management Trainee",
        "company": "OpsCorp Industries",
        "skills": ["Operations", "Project Management", "Excel", "Process Optimization"],
        "sector": "Operations",
        "description": "Support day-to-day operations and process improvements",
    },
]


class CatalogUnavailable(Exception):
    """Raised when the internship catalog cannot be read."""


def dedupe(values: List[str]) -> List[str]:
    """Drop blanks and exact duplicates, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def slugify(text: str) -> str:
    return re.sub(r"\s+", "-", text.strip().lower())


def read_vocabulary(csv_path: Path) -> List[str]:
    """
    Read a single-column CSV with a header row.

    Returns an empty list if the file is missing or unreadable, so the
    catalog can still be served from the templates.
    """
    if not csv_path.exists():
        logger.warning(f"Vocabulary file not found: {csv_path}")
        return []

    try:
        df = pd.read_csv(csv_path, encoding="utf-8", dtype=str)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to read vocabulary file {csv_path}: {e}")
        return []

    if df.empty or len(df.columns) == 0:
        return []

    column = df.iloc[:, 0].dropna()
    return dedupe([value.strip().strip('"') for value in column])


def read_internships_csv(csv_path: Path) -> List[Dict[str, Any]]:
    """
    Read internship records from a CSV export.

    Expected columns: title, company, location, stipend, skills (comma
    separated), description, category, apply_link.
    """
    try:
        df = pd.read_csv(csv_path, encoding="utf-8", dtype=str).fillna("")
    except (OSError, ValueError) as e:
        raise CatalogUnavailable(f"Failed to read internships CSV {csv_path}: {e}") from e

    missing = {"title", "company", "location", "skills"} - set(df.columns)
    if missing:
        raise CatalogUnavailable(f"Internships CSV missing columns: {sorted(missing)}")

    records = []
    for row in df.to_dict(orient="records"):
        skills = dedupe(row["skills"].split(","))
        if not row["title"].strip() or not row["location"].strip() or not skills:
            logger.debug(f"Skipping incomplete internship row: {row.get('title')!r}")
            continue
        records.append({
            "title": row["title"].strip(),
            "company": row["company"].strip(),
            "location": row["location"].strip(),
            "salary": row.get("stipend", "").strip() or None,
            "skills": skills,
            "description": row.get("description", "").strip() or None,
            "sector": row.get("category", "").strip() or None,
            "apply_link": row.get("apply_link", "").strip() or None,
        })
    return records


def build_template_internships(locations: List[str]) -> List[Dict[str, Any]]:
    """
    Expand each role template into postings across a few cities plus Remote.

    Template ``i`` is placed at pool positions ``i``, ``i + 5`` and ``i + 10``
    (modulo the pool size) and always at Remote.
    """
    pool = [loc for loc in locations if loc != REMOTE][:TEMPLATE_LOCATION_POOL]
    records = []

    for index, template in enumerate(INTERNSHIP_TEMPLATES):
        if pool:
            cities = [pool[(index + offset) % len(pool)] for offset in TEMPLATE_LOCATION_OFFSETS]
        else:
            cities = []
        selected = dedupe(cities + [REMOTE])

        for loc_index, location in enumerate(selected):
            company = template["company"]
            if loc_index > 0:
                company = f"{company} - {location}"
            records.append({
                "title": template["title"],
                "company": company,
                "location": location,
                "salary": SALARY_RANGES[loc_index % len(SALARY_RANGES)],
                "skills": list(template["skills"]),
                "description": template["description"],
                "sector": template["sector"],
                "apply_link": f"{APPLY_BASE_URL}/{slugify(template['title'])}-{slugify(location)}",
            })

    return records


class Catalog:
    """Internship records plus the skill and location vocabularies."""

    def __init__(self, internships: List[Dict[str, Any]], skills: List[str], locations: List[str]):
        self.internships = internships
        self.skills = dedupe(skills + [s for rec in internships for s in rec["skills"]])
        self.locations = dedupe(locations + [rec["location"] for rec in internships])

    @classmethod
    def load(cls, data_dir: Path) -> "Catalog":
        data_dir = Path(data_dir)
        skills = read_vocabulary(data_dir / SKILLS_FILE)
        locations = read_vocabulary(data_dir / LOCATIONS_FILE)

        internships_path = data_dir / INTERNSHIPS_FILE
        if internships_path.exists():
            internships = read_internships_csv(internships_path)
            source = str(internships_path)
        else:
            internships = build_template_internships(locations)
            source = "templates"

        logger.info(
            f"Loaded catalog from {source}: {len(internships)} internships, "
            f"{len(skills)} skills, {len(locations)} locations"
        )
        return cls(internships, skills, locations)


def load_catalog(data_dir: Path, storage) -> Catalog:
    """Load the catalog and register every internship with ``storage``."""
    catalog = Catalog.load(data_dir)
    for record in catalog.internships:
        storage.create_internship(record)
    return catalog
