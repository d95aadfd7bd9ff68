"""Client for the LLM job-offer analysis endpoint."""

import json
import logging
import os
import threading
from typing import Optional

import requests
from pydantic import ValidationError

from .exclusion import ExclusionFlags, explain, should_exclude
from .models import AnalysisResult, Application

logger = logging.getLogger(__name__)

API_KEY_ENV = "JOBFLOW_ANALYSIS_KEY"
DESCRIPTION_LIMIT = 8000


class AnalysisError(Exception):
    """The analysis endpoint could not produce a result."""


class RateLimitError(AnalysisError):
    """HTTP 429 from the analysis endpoint."""


class QuotaExceededError(AnalysisError):
    """HTTP 402: the analysis credits are used up."""


class AnalysisInProgressError(AnalysisError):
    """An analysis for the same offer is already running."""


class AnalysisClient:
    """Posts ``{jobDescription, userProfile}`` and parses the analysis."""

    def __init__(self, url: str, api_key: Optional[str] = None, timeout: float = 30, session=None):
        self.url = url
        self.api_key = api_key if api_key is not None else os.environ.get(API_KEY_ENV)
        self.timeout = timeout
        self.session = session or requests
        self._pending: set[str] = set()
        self._lock = threading.Lock()

    def _acquire(self, key: str) -> None:
        with self._lock:
            if key in self._pending:
                raise AnalysisInProgressError(f"Analysis already running for {key}")
            self._pending.add(key)

    def _release(self, key: str) -> None:
        with self._lock:
            self._pending.discard(key)

    def is_pending(self, key: str) -> bool:
        with self._lock:
            return key in self._pending

    def analyze(self, job_description: str, user_profile: Optional[str] = None, key: Optional[str] = None) -> AnalysisResult:
        """Analyse one offer; ``key`` identifies it for the in-flight guard."""
        key = key or job_description[:200]
        self._acquire(key)
        try:
            return self._post(job_description, user_profile)
        finally:
            self._release(key)

    def _post(self, job_description: str, user_profile: Optional[str]) -> AnalysisResult:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        body = {"jobDescription": job_description[:DESCRIPTION_LIMIT]}
        if user_profile:
            body["userProfile"] = user_profile

        try:
            response = self.session.post(self.url, headers=headers, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Analysis request failed: {e}")
            raise AnalysisError(f"Analysis request failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitError("Rate limit reached, try again in a moment")
        if response.status_code == 402:
            raise QuotaExceededError("Analysis credits exhausted")
        if not 200 <= response.status_code < 300:
            logger.warning(f"Analysis endpoint returned HTTP {response.status_code}")
            raise AnalysisError(f"Analysis endpoint returned HTTP {response.status_code}")

        try:
            result = AnalysisResult.model_validate(response.json())
        except (json.JSONDecodeError, ValueError, ValidationError) as e:
            logger.warning(f"Failed to parse analysis response: {e}")
            raise AnalysisError(f"Invalid analysis response: {e}") from e

        if result.warning:
            logger.warning(f"Analysis returned a fallback result ({result.warning})")
        else:
            logger.info(f"Analysis complete: compatibility {result.compatibility}%")
        return result


def _merge_reasons(*reasons: Optional[str]) -> Optional[str]:
    parts: list[str] = []
    for reason in reasons:
        for part in (reason or "").split(","):
            part = part.strip()
            if part and part not in parts:
                parts.append(part)
    return ", ".join(parts) or None


def merge_analysis(app: Application, result: AnalysisResult, flags: Optional[ExclusionFlags] = None) -> dict:
    """Fields to update on ``app`` from an analysis result.

    Fallback results (carrying a ``warning``) contribute nothing.
    """
    if result.warning:
        return {}

    fields: dict = {
        "compatibility": result.compatibility,
        "matching_skills": list(result.matching_skills),
        "missing_requirements": list(result.missing_requirements),
    }
    if result.keywords:
        fields["keywords"] = result.keywords
    if result.recommended_channel:
        fields["recommended_channel"] = result.recommended_channel
    if result.required_documents:
        fields["required_documents"] = list(result.required_documents)

    known = {c.email.lower() for c in app.contacts if c.email}
    new_contacts = [c for c in result.contacts if c.email and c.email.lower() not in known]
    if new_contacts:
        fields["contacts"] = [c.model_dump() for c in app.contacts + new_contacts]

    local_excluded = should_exclude(flags) if flags else False
    local_reason = explain(flags) if flags else None
    excluded = app.excluded or local_excluded or result.excluded
    if excluded:
        fields["excluded"] = True
        fields["exclusion_reason"] = _merge_reasons(
            app.exclusion_reason, local_reason, result.exclusion_reason if result.excluded else None
        )
    return fields
