"""Tests for configuration and profile loading."""

import pytest

from jobflow.config import Config, get_config, load_config
from jobflow.profile import load_profile

PROFILE_YAML = """
name: Camille Martin
email: camille@example.ch
experiences:
  - period: 2022-2024
    title: Project Manager
    company: Fondation Horizon
    location: Genève
skill_groups:
  gestion: [Gestion de projet, Canva]
technical_skills:
  outils: [Canva, Excel]
languages:
  - language: Français
    level: natif
  - language: Anglais
"""


class TestConfig:
    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "store_path: /tmp/jobs.sqlite\nurgent_days: 5\nanalysis_url: https://analysis.example.ch\n"
        )
        config = load_config(path)
        assert str(config.store_path) == "/tmp/jobs.sqlite"
        assert config.urgent_days == 5
        assert config.analysis_url == "https://analysis.example.ch"
        assert config.display_locale == "fr-CH"
        assert get_config() is config

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        config = load_config(path)
        assert config.log_level == "INFO"
        assert config.analysis_url is None
        assert config.gmail_query_days == 7

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "absent.yaml")

    def test_defaults(self):
        assert Config().urgent_days == 7


class TestProfile:
    def test_load_profile(self, tmp_path):
        path = tmp_path / "profile.yaml"
        path.write_text(PROFILE_YAML, encoding="utf-8")
        profile = load_profile(path)
        assert profile.name == "Camille Martin"
        assert profile.experiences[0].company == "Fondation Horizon"
        assert profile.all_skills() == ["Gestion de projet", "Canva", "Excel"]
        assert "communication" in profile.domain_terms

    def test_prompt_text(self, tmp_path):
        path = tmp_path / "profile.yaml"
        path.write_text(PROFILE_YAML, encoding="utf-8")
        text = load_profile(path).to_prompt_text()
        assert text.startswith("Nom: Camille Martin")
        assert "Project Manager chez Fondation Horizon, Genève" in text
        assert "Compétences: Gestion de projet, Canva, Excel" in text
        assert "Langues: Français (natif), Anglais" in text

    def test_missing_profile(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="profile.yaml.example"):
            load_profile(tmp_path / "profile.yaml")
