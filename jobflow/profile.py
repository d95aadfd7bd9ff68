"""Static candidate profile used for scoring and analysis."""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_DOMAIN_TERMS = ["hospitality", "communication", "marketing", "événementiel"]


class Experience(BaseModel):
    """A past position."""

    period: str = ""
    title: str
    company: str
    location: Optional[str] = None


class Language(BaseModel):
    language: str
    level: str = ""


class CandidateProfile(BaseModel):
    """Candidate data the compatibility scorer matches offers against."""

    name: str
    email: Optional[str] = None
    experiences: list[Experience] = Field(default_factory=list)
    skill_groups: dict[str, list[str]] = Field(default_factory=dict)
    technical_skills: dict[str, list[str]] = Field(default_factory=dict)
    languages: list[Language] = Field(default_factory=list)
    domain_terms: list[str] = Field(default_factory=lambda: list(DEFAULT_DOMAIN_TERMS))

    def all_skills(self) -> list[str]:
        """Distinct skills in profile order, expertise groups first."""
        skills: list[str] = []
        for group in (self.skill_groups, self.technical_skills):
            for values in group.values():
                for skill in values:
                    if skill not in skills:
                        skills.append(skill)
        return skills

    def to_prompt_text(self) -> str:
        """Plain-text profile sent as ``userProfile`` to the analysis endpoint."""
        lines = [f"Nom: {self.name}", "", "Expériences:"]
        for exp in self.experiences:
            where = f", {exp.location}" if exp.location else ""
            lines.append(f"- {exp.period} {exp.title} chez {exp.company}{where}".replace("-  ", "- "))
        lines.append("")
        lines.append("Compétences: " + ", ".join(self.all_skills()))
        if self.languages:
            lines.append(
                "Langues: " + ", ".join(
                    f"{lang.language} ({lang.level})" if lang.level else lang.language
                    for lang in self.languages
                )
            )
        return "\n".join(lines)


def load_profile(path: Path) -> CandidateProfile:
    """Load the candidate profile from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Profile file not found: {path}. "
            "Copy config/profile.yaml.example to config/profile.yaml and fill in your details."
        )
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    profile = CandidateProfile(**data)
    logger.debug(f"Loaded profile for {profile.name} with {len(profile.all_skills())} skills")
    return profile
