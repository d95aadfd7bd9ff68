"""Tests for the hard exclusion rules."""

import pytest

from jobflow.exclusion import (
    LABEL_GERMAN,
    LABEL_REGION,
    LABEL_UNPAID,
    ExclusionFlags,
    detect_german_required,
    detect_outside_region,
    evaluate,
    explain,
    should_exclude,
)


class TestUnpaidOrInternship:
    def test_internship_title_is_excluded(self):
        flags = evaluate("Stagiaire comptable", "Genève")
        assert flags.is_unpaid_or_internship
        assert should_exclude(flags)
        assert LABEL_UNPAID in explain(flags)

    @pytest.mark.parametrize(
        "title",
        ["Stage en communication", "Marketing Intern", "Internship - Events", "Poste bénévole", "Volunteer coordinator"],
    )
    def test_internship_terms(self, title):
        assert evaluate(title, None).is_unpaid_or_internship

    def test_matches_in_notes_and_keywords(self):
        assert evaluate("Chargée de projet", "Lausanne", notes="Poste non rémunéré").is_unpaid_or_internship
        assert evaluate("Chargée de projet", "Lausanne", keywords="unpaid role").is_unpaid_or_internship

    @pytest.mark.parametrize(
        "notes",
        ["Postes non rémunérés", "Missions non-rémunérées", "Activité non rémunérée"],
    )
    def test_plural_and_feminine_unpaid_forms(self, notes):
        assert evaluate("Chargé de mission", "Genève", notes=notes).is_unpaid_or_internship

    def test_word_boundaries(self):
        flags = evaluate("Coordinatrice relations internationales", "Genève")
        assert not flags.is_unpaid_or_internship


class TestRegion:
    @pytest.mark.parametrize(
        "location",
        ["Genève", "Geneva", "Genf", "Lausanne", "Canton de Vaud", "Nyon", "Morges", "Yverdon-les-Bains", "Vevey", "Montreux"],
    )
    def test_allow_list_is_never_excluded(self, location):
        assert not detect_outside_region(location)

    @pytest.mark.parametrize(
        "location",
        ["Zürich", "Zurich", "Bern", "Basel", "Bâle", "Lucerne", "St. Gallen", "Neuchâtel", "Fribourg", "Sion, Valais", "Lugano, Ticino"],
    )
    def test_deny_list_is_excluded(self, location):
        assert detect_outside_region(location)

    @pytest.mark.parametrize("location", ["Paris", "Remote", "Annecy", "", None])
    def test_unknown_location_is_not_excluded(self, location):
        assert not detect_outside_region(location)

    def test_allow_list_wins_over_deny_list(self):
        assert not detect_outside_region("Genève ou Zürich")

    def test_region_label(self):
        flags = evaluate("Responsable Marketing", "Zürich")
        assert flags.is_outside_allowed_region
        assert explain(flags) == LABEL_REGION


class TestGermanRequirement:
    @pytest.mark.parametrize(
        "text",
        ["Allemand courant exigé", "Deutsch fliessend", "Fluent German", "German is required", "Bilingue français/allemand"],
    )
    def test_mandatory_phrasing(self, text):
        assert detect_german_required(text)

    @pytest.mark.parametrize("text", ["Allemand un atout", "German is a plus", "Connaissances d'allemand appréciées"])
    def test_optional_phrasing(self, text):
        assert not detect_german_required(text)


class TestExplain:
    def test_no_flags(self):
        flags = evaluate("Responsable Marketing", "Genève", "Communication digitale")
        assert flags == ExclusionFlags()
        assert not should_exclude(flags)
        assert explain(flags) == ""

    def test_labels_are_comma_joined(self):
        flags = ExclusionFlags(
            is_unpaid_or_internship=True, is_outside_allowed_region=True, requires_disallowed_language=True
        )
        assert explain(flags) == f"{LABEL_UNPAID}, {LABEL_REGION}, {LABEL_GERMAN}"
