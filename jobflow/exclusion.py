"""Hard exclusion rules for offers (internships, region, German)."""

import re
from typing import Optional

from pydantic import BaseModel

UNPAID_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bstage\b",
        r"\bstagiaire\b",
        r"\binternship\b",
        r"\bintern\b",
        r"\bnon[\s-]?rémunéré",
        r"\bunpaid\b",
        r"\bbénévole\b",
        r"\bbénévolat\b",
        r"\bvolunteer\b",
    )
]

# Geneva and Vaud. Checked before the deny list.
ALLOWED_REGIONS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"genève",
        r"geneva",
        r"genf",
        r"\bge\b",
        r"vaud",
        r"lausanne",
        r"\bvd\b",
        r"morges",
        r"nyon",
        r"yverdon",
        r"montreux",
        r"vevey",
    )
]

DENIED_REGIONS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"bern",
        r"berne",
        r"zürich",
        r"zurich",
        r"basel",
        r"bâle",
        r"lucern",
        r"lucerne",
        r"st\.?\s*gallen",
        r"saint[\s-]gall",
        r"neuchâtel",
        r"fribourg",
        r"valais",
        r"wallis",
        r"tessin",
        r"ticino",
        r"graubünden",
        r"grisons",
        r"\bzh\b",
        r"\bbs\b",
        r"\blu\b",
        r"\bsg\b",
        r"\bne\b",
        r"\bfr\b",
        r"\bvs\b",
        r"\bti\b",
        r"\bgr\b",
    )
]

# Mandatory phrasing only; "allemand un atout" must not match
GERMAN_REQUIRED_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"allemand\s+(?:courant|obligatoire|requis|exigé|indispensable|impératif)",
        r"deutsch\s+(?:fließend|fliessend|erforderlich|vorausgesetzt|zwingend)",
        r"(?:fluent|native)\s+german",
        r"german\s+(?:fluent|required|mandatory|is\s+(?:required|mandatory|a\s+must))",
        r"langue\s+allemande\s+(?:requise|obligatoire|exigée)",
        r"maîtrise\s+de\s+l['’]allemand",
        r"bilingue?\s+(?:français|fr)[\s/-]+allemand",
        r"bilingue?\s+allemand[\s/-]+(?:français|fr)",
    )
]

LABEL_UNPAID = "Stage/non rémunéré"
LABEL_REGION = "Hors zone GE-VD"
LABEL_GERMAN = "Allemand requis"


class ExclusionFlags(BaseModel):
    """Hard-filter signals computed once per offer."""

    is_unpaid_or_internship: bool = False
    is_outside_allowed_region: bool = False
    requires_disallowed_language: bool = False


def detect_unpaid_or_internship(text: str) -> bool:
    return any(p.search(text) for p in UNPAID_PATTERNS)


def detect_outside_region(location: Optional[str]) -> bool:
    """Unknown locations are not excluded."""
    if not location:
        return False
    if any(p.search(location) for p in ALLOWED_REGIONS):
        return False
    return any(p.search(location) for p in DENIED_REGIONS)


def detect_german_required(text: str) -> bool:
    return any(p.search(text) for p in GERMAN_REQUIRED_PATTERNS)


def evaluate(
    title: str,
    location: Optional[str],
    keywords: Optional[str] = None,
    notes: Optional[str] = None,
) -> ExclusionFlags:
    """Evaluate every exclusion rule for an offer."""
    full_text = " ".join(part for part in (title, location, keywords, notes) if part)
    return ExclusionFlags(
        is_unpaid_or_internship=detect_unpaid_or_internship(full_text),
        is_outside_allowed_region=detect_outside_region(location),
        requires_disallowed_language=detect_german_required(full_text),
    )


def should_exclude(flags: ExclusionFlags) -> bool:
    return (
        flags.is_unpaid_or_internship
        or flags.is_outside_allowed_region
        or flags.requires_disallowed_language
    )


def explain(flags: ExclusionFlags) -> str:
    """Comma-joined labels of the flags that are set."""
    reasons = []
    if flags.is_unpaid_or_internship:
        reasons.append(LABEL_UNPAID)
    if flags.is_outside_allowed_region:
        reasons.append(LABEL_REGION)
    if flags.requires_disallowed_language:
        reasons.append(LABEL_GERMAN)
    return ", ".join(reasons)
