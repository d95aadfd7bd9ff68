"""Tests for the analysis client and result merging."""

from unittest.mock import MagicMock

import pytest
import requests

from jobflow.analysis import (
    API_KEY_ENV,
    DESCRIPTION_LIMIT,
    AnalysisClient,
    AnalysisError,
    AnalysisInProgressError,
    QuotaExceededError,
    RateLimitError,
    merge_analysis,
)
from jobflow.exclusion import ExclusionFlags
from jobflow.models import AnalysisResult, Contact

URL = "https://analysis.example.ch/analyze-job-offer"

PAYLOAD = {
    "compatibility": 78,
    "matching_skills": ["Canva", "Gestion de projet"],
    "missing_requirements": ["SAP"],
    "keywords": "communication, événementiel",
    "recommended_channel": "email",
    "required_documents": ["CV", "Lettre de motivation"],
    "contacts": [{"name": "Léa Rossi", "email": "lea@acme.ch"}],
    "excluded": False,
    "reasoning": "Bon profil",
}


def make_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else PAYLOAD
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.post.return_value = make_response()
    return session


@pytest.fixture
def client(session):
    return AnalysisClient(URL, api_key="secret", session=session)


class TestAnalyze:
    def test_posts_description_and_profile(self, client, session):
        result = client.analyze("Responsable Marketing\nAcme SA", "Nom: Camille Martin")
        assert result.compatibility == 78
        assert result.contacts[0].email == "lea@acme.ch"

        _, kwargs = session.post.call_args
        assert session.post.call_args[0][0] == URL
        assert kwargs["json"] == {
            "jobDescription": "Responsable Marketing\nAcme SA",
            "userProfile": "Nom: Camille Martin",
        }
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["timeout"] == 30

    def test_long_descriptions_are_truncated(self, client, session):
        client.analyze("x" * (DESCRIPTION_LIMIT + 500))
        body = session.post.call_args[1]["json"]
        assert len(body["jobDescription"]) == DESCRIPTION_LIMIT
        assert "userProfile" not in body

    def test_api_key_from_environment(self, session, monkeypatch):
        monkeypatch.setenv(API_KEY_ENV, "from-env")
        AnalysisClient(URL, session=session).analyze("Analyste")
        assert session.post.call_args[1]["headers"]["Authorization"] == "Bearer from-env"

    def test_no_key_no_authorization_header(self, session, monkeypatch):
        monkeypatch.delenv(API_KEY_ENV, raising=False)
        AnalysisClient(URL, session=session).analyze("Analyste")
        assert "Authorization" not in session.post.call_args[1]["headers"]

    def test_fallback_result_is_returned(self, client, session):
        session.post.return_value = make_response(payload={"compatibility": 0, "warning": "parse_failed"})
        assert client.analyze("Analyste").warning == "parse_failed"


class TestErrors:
    @pytest.mark.parametrize(
        "status_code,error",
        [(429, RateLimitError), (402, QuotaExceededError), (500, AnalysisError), (404, AnalysisError)],
    )
    def test_http_errors(self, client, session, status_code, error):
        session.post.return_value = make_response(status_code)
        with pytest.raises(error):
            client.analyze("Analyste")

    def test_network_error(self, client, session):
        session.post.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(AnalysisError, match="connection refused"):
            client.analyze("Analyste")

    def test_unparseable_body(self, client, session):
        session.post.return_value.json.side_effect = ValueError("Expecting value")
        with pytest.raises(AnalysisError, match="Invalid analysis response"):
            client.analyze("Analyste")

    def test_out_of_range_compatibility(self, client, session):
        session.post.return_value = make_response(payload={"compatibility": 140})
        with pytest.raises(AnalysisError):
            client.analyze("Analyste")

    def test_guard_released_after_failure(self, client, session):
        session.post.return_value = make_response(500)
        with pytest.raises(AnalysisError):
            client.analyze("Analyste", key="acme|analyste")
        assert not client.is_pending("acme|analyste")


def test_second_analysis_of_same_offer_is_refused(client, session):
    seen = {}

    def reenter(*args, **kwargs):
        seen["pending"] = client.is_pending("acme|analyste")
        with pytest.raises(AnalysisInProgressError):
            client.analyze("Analyste", key="acme|analyste")
        # A different offer is not blocked
        seen["other"] = client.is_pending("palexpo|coordinatrice")
        return make_response()

    session.post.side_effect = reenter
    client.analyze("Analyste", key="acme|analyste")
    assert seen == {"pending": True, "other": False}
    assert not client.is_pending("acme|analyste")


class TestMergeAnalysis:
    def test_analysis_fields(self, make_app):
        fields = merge_analysis(make_app(), AnalysisResult.model_validate(PAYLOAD))
        assert fields["compatibility"] == 78
        assert fields["matching_skills"] == ["Canva", "Gestion de projet"]
        assert fields["keywords"] == "communication, événementiel"
        assert fields["required_documents"] == ["CV", "Lettre de motivation"]
        assert "excluded" not in fields

    def test_empty_values_keep_local_fields(self, make_app):
        fields = merge_analysis(make_app(keywords="local"), AnalysisResult(compatibility=40))
        assert "keywords" not in fields
        assert "required_documents" not in fields
        assert fields["compatibility"] == 40

    def test_contacts_appended_by_unseen_email(self, make_app):
        app = make_app(contacts=[Contact(name="RH", email="LEA@acme.ch")])
        result = AnalysisResult(
            compatibility=50,
            contacts=[Contact(name="Léa", email="lea@acme.ch"), Contact(name="Marc", email="marc@acme.ch")],
        )
        contacts = merge_analysis(app, result)["contacts"]
        assert [c["email"] for c in contacts] == ["LEA@acme.ch", "marc@acme.ch"]

    def test_exclusion_is_ored_with_local_flags(self, make_app):
        result = AnalysisResult(compatibility=20, excluded=True, exclusion_reason="Allemand requis")
        fields = merge_analysis(make_app(), result, ExclusionFlags(is_unpaid_or_internship=True))
        assert fields["excluded"] is True
        assert fields["exclusion_reason"] == "Stage/non rémunéré, Allemand requis"

    def test_local_exclusion_survives_a_clean_analysis(self, make_app):
        app = make_app(excluded=True, exclusion_reason="Hors zone GE-VD")
        fields = merge_analysis(app, AnalysisResult(compatibility=90))
        assert fields["excluded"] is True
        assert fields["exclusion_reason"] == "Hors zone GE-VD"

    def test_fallback_result_changes_nothing(self, make_app):
        result = AnalysisResult(compatibility=0, excluded=True, warning="parse_failed")
        assert merge_analysis(make_app(), result) == {}
