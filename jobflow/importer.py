"""Import pipeline: drafts -> exclusion -> analysis -> store."""

import logging
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, Field

from .analysis import AnalysisClient, AnalysisError, merge_analysis
from .exclusion import evaluate, explain, should_exclude
from .gmail_client import get_email_body, get_email_headers
from .models import Application, JobOfferDraft
from .parser import extract_offers
from .profile import CandidateProfile
from .storage import Repository
from .tasks import add_task, deadline_task

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, JobOfferDraft, str], None]


class ImportResult(BaseModel):
    """Outcome of one import batch."""

    detected: int = 0
    created: list[str] = Field(default_factory=list)
    duplicates: int = 0
    excluded: int = 0
    analysis_failures: int = 0
    tasks: int = 0


def draft_to_application(draft: JobOfferDraft) -> tuple[Application, str]:
    """Stored record for ``draft`` with its exclusion flags applied."""
    flags = evaluate(draft.title, draft.location, draft.keywords_blob, draft.description)
    app = Application.from_draft(draft)
    reason = explain(flags)
    if should_exclude(flags):
        app = app.model_copy(update={"excluded": True, "exclusion_reason": reason})
    return app, reason


def import_offers(
    drafts: Iterable[JobOfferDraft],
    repo: Repository,
    profile: Optional[CandidateProfile] = None,
    client: Optional[AnalysisClient] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> ImportResult:
    """Store drafts one at a time, optionally analysing each first.

    Duplicates are dropped before any analysis request; an analysis
    failure leaves the draft's local fields untouched.
    """
    drafts = list(drafts)
    result = ImportResult(detected=len(drafts))
    existing = repo.list_all()
    to_create: list[Application] = []
    user_profile = profile.to_prompt_text() if profile else None

    for i, draft in enumerate(drafts, start=1):
        app, reason = draft_to_application(draft)

        if repo.find_duplicate(app, existing + to_create):
            logger.info(f"Duplicate offer skipped: {app.company} - {app.title}")
            result.duplicates += 1
            _notify(on_progress, i, len(drafts), draft, "duplicate")
            continue

        if app.excluded:
            logger.info(f"Offer excluded ({reason}): {app.company} - {app.title}")
            result.excluded += 1

        if client is not None:
            _notify(on_progress, i, len(drafts), draft, "analyzing")
            try:
                analysis = client.analyze(draft.to_text(), user_profile, key=f"{app.company}|{app.title}".lower())
                fields = merge_analysis(app, analysis)
                if fields:
                    app = Application.model_validate({**app.model_dump(), **fields})
            except AnalysisError as e:
                logger.warning(f"Analysis failed for {app.title}: {e}")
                result.analysis_failures += 1

        to_create.append(app)
        _notify(on_progress, i, len(drafts), draft, "ready")

    result.created = repo.bulk_create(to_create)
    created = set(result.created)
    for app in to_create:
        if app.id in created and not app.excluded and add_task(repo, deadline_task(app)):
            result.tasks += 1
    logger.info(
        f"Import complete: {len(result.created)} created, {result.duplicates} duplicate(s), "
        f"{result.excluded} excluded, {result.analysis_failures} analysis failure(s)"
    )
    return result


def import_content(
    content: str,
    kind: str,
    repo: Repository,
    profile: Optional[CandidateProfile] = None,
    client: Optional[AnalysisClient] = None,
) -> ImportResult:
    """Extract offers from raw ``content`` and import them."""
    drafts = extract_offers(content, kind)
    if not drafts:
        logger.info("Nothing detected")
        return ImportResult()
    return import_offers(drafts, repo, profile=profile, client=client)


def _notify(callback: Optional[ProgressCallback], index: int, total: int, draft: JobOfferDraft, state: str) -> None:
    if callback is not None:
        callback(index, total, draft, state)


def import_messages(
    messages: Iterable[dict],
    repo: Repository,
    profile: Optional[CandidateProfile] = None,
    client: Optional[AnalysisClient] = None,
) -> ImportResult:
    """Import offers from fetched mailbox messages, each message only once."""
    total = ImportResult()
    for message in messages:
        message_id = message.get("id", "")
        if repo.is_processed(message_id):
            logger.debug(f"Skipping already processed message: {message_id}")
            continue

        subject = get_email_headers(message).get("subject", "")
        body, is_html = get_email_body(message)
        drafts = extract_offers(body, "html" if is_html else "email")
        if drafts:
            batch = import_offers(drafts, repo, profile=profile, client=client)
            total.detected += batch.detected
            total.created.extend(batch.created)
            total.duplicates += batch.duplicates
            total.excluded += batch.excluded
            total.analysis_failures += batch.analysis_failures
            total.tasks += batch.tasks
        else:
            logger.info(f"No offer detected in message {message_id} ({subject})")
        repo.mark_processed(message_id)
    return total
