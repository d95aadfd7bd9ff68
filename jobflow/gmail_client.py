"""Gmail API client for fetching job-alert emails."""

import base64
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .config import get_config

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]

CONFIG_DIR = Path(__file__).parent.parent / "config"

ALERT_SENDERS = [
    # Job boards
    "linkedin.com",
    "jobup.ch",
    "jobs.ch",
    "jobcloud.ch",
    "indeed.com",
    "indeed.ch",
    "monster.ch",
    "glassdoor.com",
    # Local networks
    "cagi.ch",
    "unige.ch",
    "emploi.vd.ch",
]

SUBJECT_KEYWORDS = [
    "offre d'emploi",
    "offres d'emploi",
    "nouvelles offres",
    "alerte emploi",
    "job alert",
    "new jobs",
    "jobs for you",
    "postes correspondant",
    "nous recrutons",
]


def get_credentials() -> Credentials:
    """Get or refresh Gmail API credentials."""
    token_path = CONFIG_DIR / "token.json"
    credentials_path = CONFIG_DIR / "credentials.json"

    creds = None

    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            logger.info("Refreshing expired credentials")
            creds.refresh(Request())
        else:
            if not credentials_path.exists():
                raise FileNotFoundError(
                    f"Credentials file not found: {credentials_path}. "
                    "Download credentials.json from Google Cloud Console."
                )
            logger.info("Starting OAuth flow for Gmail")
            flow = InstalledAppFlow.from_client_secrets_file(
                str(credentials_path), SCOPES
            )
            creds = flow.run_local_server(port=0)

        with open(token_path, "w") as token:
            token.write(creds.to_json())
            logger.info(f"Saved credentials to {token_path}")

    return creds


def build_gmail_query(days_back: int = 7, now: Optional[datetime] = None) -> str:
    """Build Gmail search query for job-alert emails."""
    after_date = ((now or datetime.now()) - timedelta(days=days_back)).strftime("%Y/%m/%d")

    sender_queries = " OR ".join([f"from:{domain}" for domain in ALERT_SENDERS])
    subject_queries = " OR ".join([f'subject:"{kw}"' for kw in SUBJECT_KEYWORDS])

    return f"after:{after_date} ({sender_queries} OR {subject_queries})"


def fetch_alert_emails(service=None, days_back: Optional[int] = None) -> list[dict[str, Any]]:
    """Fetch recent job-alert emails from Gmail."""
    if days_back is None:
        days_back = get_config().gmail_query_days
    if service is None:
        service = build("gmail", "v1", credentials=get_credentials())

    query = build_gmail_query(days_back)
    logger.info(f"Fetching emails with query: {query}")

    messages = []
    page_token = None

    while True:
        results = (
            service.users()
            .messages()
            .list(userId="me", q=query, pageToken=page_token)
            .execute()
        )

        if "messages" in results:
            messages.extend(results["messages"])

        page_token = results.get("nextPageToken")
        if not page_token:
            break

    logger.info(f"Found {len(messages)} potential alert emails")

    full_messages = []
    for msg_ref in messages:
        msg = (
            service.users()
            .messages()
            .get(userId="me", id=msg_ref["id"], format="full")
            .execute()
        )
        full_messages.append(msg)

    return full_messages


def _decode(data: str) -> str:
    return base64.urlsafe_b64decode(data).decode("utf-8", errors="replace")


def _walk_parts(part: dict) -> list[dict]:
    parts = [part]
    for sub in part.get("parts", []):
        parts.extend(_walk_parts(sub))
    return parts


def get_email_body(message: dict[str, Any]) -> tuple[str, bool]:
    """Return (body, is_html); HTML is preferred since it keeps the offer links."""
    payload = message.get("payload", {})
    parts = _walk_parts(payload)

    for mime_type in ("text/html", "text/plain"):
        for part in parts:
            if part.get("mimeType") != mime_type:
                continue
            data = part.get("body", {}).get("data", "")
            if data:
                return _decode(data), mime_type == "text/html"

    body_data = payload.get("body", {}).get("data", "")
    if body_data:
        body = _decode(body_data)
        return body, "<html" in body.lower() or "<a " in body.lower()

    return "", False


def get_email_headers(message: dict[str, Any]) -> dict[str, str]:
    """Extract common headers from email message."""
    headers = {}
    payload = message.get("payload", {})

    for header in payload.get("headers", []):
        name = header.get("name", "").lower()
        if name in ("from", "to", "subject", "date"):
            headers[name] = header.get("value", "")

    return headers
