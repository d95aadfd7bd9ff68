"""Local compatibility heuristic and the priority sort key."""

import re
from datetime import date
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from .dates import days_until
from .models import Application, ApplicationStatus
from .profile import CandidateProfile

POINTS_PER_SKILL = 5
SKILL_POINTS_CAP = 50
EXPERIENCE_POINTS = 20
DOMAIN_POINTS = 15
DESCRIBED_POINTS = 15
DESCRIBED_MIN_KEYWORDS = 50
MATCHING_SKILLS_LIMIT = 10
MISSING_LIMIT = 5

# (threshold, label), highest first
RECOMMENDATIONS = [(80, "excellent"), (70, "good"), (60, "fair")]
APPLY_THRESHOLD = 60

STATUS_BOOST = {
    ApplicationStatus.INTERVIEW: 20,
    ApplicationStatus.SUBMITTED: 15,
    ApplicationStatus.IN_PROGRESS: 10,
    ApplicationStatus.TO_COMPLETE: 5,
}
DEFAULT_STATUS_BOOST = 5


class CompatibilityResult(BaseModel):
    score: int = Field(ge=0, le=100)
    matching_skills: list[str] = Field(default_factory=list)
    missing_requirements: list[str] = Field(default_factory=list)
    recommendation: str
    should_apply: bool


class PriorityScore(BaseModel):
    """Sort key for the application list; never stored."""

    urgency: int
    quality: int
    status_boost: int

    @property
    def total(self) -> int:
        return self.urgency + self.quality + self.status_boost


def recommendation_for(score: int) -> str:
    for threshold, label in RECOMMENDATIONS:
        if score >= threshold:
            return label
    return "low"


def _has_experience_match(text: str, profile: CandidateProfile) -> bool:
    for exp in profile.experiences:
        if exp.company.lower() in text:
            return True
        if any(len(word) > 5 and word in text for word in exp.title.lower().split(" ")):
            return True
    return False


def _missing_requirements(text: str, skills: list[str], profile: CandidateProfile) -> list[str]:
    lowered_skills = [s.lower() for s in skills]
    titles = [exp.title.lower() for exp in profile.experiences]
    missing: list[str] = []
    for token in re.split(r"[,;\s]+", text):
        if len(token) <= 4 or token in missing:
            continue
        if any(token in skill for skill in lowered_skills) or any(token in t for t in titles):
            continue
        missing.append(token)
        if len(missing) == MISSING_LIMIT:
            break
    return missing


def score_compatibility(title: str, keywords: Optional[str], profile: CandidateProfile) -> CompatibilityResult:
    """Rule-based 0-100 estimate of how well an offer fits the profile."""
    keywords = (keywords or "").lower()
    text = f"{keywords} {title.lower()}"
    skills = profile.all_skills()

    matching = [skill for skill in skills if skill.lower() in text]

    score = min(len(matching) * POINTS_PER_SKILL, SKILL_POINTS_CAP)
    if _has_experience_match(text, profile):
        score += EXPERIENCE_POINTS
    if any(term.lower() in text for term in profile.domain_terms):
        score += DOMAIN_POINTS
    if len(keywords) > DESCRIBED_MIN_KEYWORDS:
        score += DESCRIBED_POINTS
    score = min(score, 100)

    return CompatibilityResult(
        score=score,
        matching_skills=matching[:MATCHING_SKILLS_LIMIT],
        missing_requirements=_missing_requirements(text, skills, profile),
        recommendation=recommendation_for(score),
        should_apply=score >= APPLY_THRESHOLD,
    )


def effective_compatibility(app: Application, profile: Optional[CandidateProfile] = None) -> Optional[int]:
    """Analysed compatibility when present, else the local heuristic."""
    if app.compatibility is not None:
        return app.compatibility
    if profile is None:
        return None
    return score_compatibility(app.title, app.keywords, profile).score


def urgency_points(days: Optional[int]) -> int:
    if days is None:
        return 10
    if days < 0:
        return 40
    if days <= 3:
        return 35
    if days <= 7:
        return 25
    if days <= 14:
        return 15
    return 5


def quality_points(compatibility: Optional[int]) -> int:
    value = compatibility or 0
    if value >= 80:
        return 40
    if value >= 70:
        return 30
    if value >= 60:
        return 20
    if value >= 50:
        return 10
    return 0


def status_points(status) -> int:
    """Boost for a workflow status; unknown values get the lowest boost."""
    try:
        return STATUS_BOOST[ApplicationStatus(status)]
    except ValueError:
        return DEFAULT_STATUS_BOOST


def priority_score(days: Optional[int], compatibility: Optional[int], status: ApplicationStatus) -> PriorityScore:
    """Urgency, quality and status points for one application."""
    return PriorityScore(
        urgency=urgency_points(days),
        quality=quality_points(compatibility),
        status_boost=status_points(status),
    )


def priority_for(app: Application, today: Optional[date] = None) -> PriorityScore:
    return priority_score(days_until(app.deadline, today), app.compatibility, app.status)


def sort_by_priority(apps: Iterable[Application], today: Optional[date] = None) -> list[Application]:
    """Highest total first; the manual priority breaks ties."""
    return sorted(
        apps,
        key=lambda app: (priority_for(app, today).total, app.priority),
        reverse=True,
    )
