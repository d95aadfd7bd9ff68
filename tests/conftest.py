"""Shared fixtures: candidate profile, application factory and stores."""

from datetime import date

import pytest

from jobflow.config import reset_config
from jobflow.models import Application
from jobflow.profile import CandidateProfile, Experience
from jobflow.storage import InMemoryRepository, SqliteRepository


@pytest.fixture(autouse=True)
def fresh_config():
    """Each test loads its own configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def today():
    return date(2025, 3, 15)


@pytest.fixture
def profile():
    return CandidateProfile(
        name="Camille Martin",
        experiences=[
            Experience(period="2022-2024", title="Project Manager", company="Fondation Horizon", location="Genève"),
            Experience(period="2016-2017", title="Coordinatrice événementiel", company="Palexpo SA", location="Genève"),
        ],
        skill_groups={
            "gestion": ["Gestion de projet", "Coordination équipes", "Planning stratégique"],
            "communication": ["Relations publiques", "Storytelling"],
        },
        technical_skills={
            "outils": ["Canva", "Salesforce", "HubSpot", "Mailchimp", "Slack", "Asana", "Excel"],
        },
    )


@pytest.fixture
def make_app():
    def _make(**overrides):
        fields = dict(
            company="Acme SA",
            title="Responsable Marketing",
            location="Genève",
            deadline="2025-04-30",
        )
        fields.update(overrides)
        return Application(**fields)

    return _make


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path):
    if request.param == "memory":
        return InMemoryRepository()
    return SqliteRepository(tmp_path / "store.sqlite")
