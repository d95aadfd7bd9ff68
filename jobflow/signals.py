"""Field signals found anywhere in an offer's text."""

import re
from typing import Optional

from pydantic import BaseModel, Field

from .dates import parse_deadline

_MONTH_NAMES = (
    "janvier|février|fevrier|mars|avril|mai|juin|juillet|août|aout|septembre|"
    "octobre|novembre|décembre|decembre|january|february|march|april|may|june|"
    "july|august|september|october|november|december"
)
_DATE_VALUE = rf"(\d{{1,2}}[./-]\d{{1,2}}[./-]\d{{2,4}}|\d{{1,2}}(?:er)?\s+(?:{_MONTH_NAMES})\s+\d{{4}})"

DEADLINE_PATTERNS = [
    re.compile(
        r"(?:délai(?:\s+de\s+postulation)?|deadline|date\s+limite|avant\s+le|jusqu['’]au|d['’]ici\s+le|"
        r"apply\s+by|closing\s+date|before|until)\s*[:\-]?\s*(?:le\s+)?" + _DATE_VALUE,
        re.IGNORECASE,
    ),
]

PUBLICATION_PATTERNS = [
    re.compile(r"(?:publié\s+le|date\s+de\s+publication|posted\s+on|published)\s*[:\-]?\s*" + _DATE_VALUE, re.IGNORECASE),
]

# Canonical document name -> synonyms, matched case-insensitively
DOCUMENT_KEYWORDS = {
    "CV": ["cv", "curriculum vitae", "resume", "résumé", "lebenslauf"],
    "Lettre de motivation": [
        "lettre de motivation", "lettre", "motivation letter", "cover letter", "motivationsschreiben",
    ],
    "Certificats": ["certificat", "certificate", "zertifikat", "attestation", "certificats de travail"],
    "Diplômes": ["diplôme", "diploma", "degree", "zeugnis"],
    "Références": ["référence", "reference", "referenzen"],
    "Photo": ["photo", "bild", "portrait"],
}
DEFAULT_DOCUMENTS = ["CV"]

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
SYSTEM_MAIL_MARKERS = ("noreply", "no-reply", "donotreply", "unsubscribe", "mailer", "newsletter")

CONTACT_PATTERNS = [
    re.compile(r"(?i:contact|contacter|personne\s+de\s+contact)\s*[:\-]?\s*([A-ZÀ-Ü][a-zà-ÿ]+\s+[A-ZÀ-Ü][a-zà-ÿ]+)"),
    re.compile(r"\b(?:Mme|M\.|Mr|Mrs|Ms|Madame|Monsieur)\s+([A-ZÀ-Ü][a-zà-ÿ]+(?:\s+[A-ZÀ-Ü][a-zà-ÿ]+)?)"),
]

EXPIRED_RE = re.compile(
    r"annonce\s+expirée|candidatures\s+closes|poste\s+pourvu|offre\s+fermée|"
    r"position\s+(?:has\s+been\s+)?filled|no\s+longer\s+accepting|expired",
    re.IGNORECASE,
)

# Checked in order, first hit wins
METHOD_PATTERNS = {
    "Email": [
        r"(?:envoyer|envoyez|postuler|adresser)\s*(?:votre\s+dossier\s+)?(?:par|via)\s+e?-?mail",
        r"candidature@", r"\bhr@", r"\brh@", r"recrutement@", r"jobs@",
    ],
    "Easy apply": [r"candidature\s+simplifiée", r"easy\s+apply", r"postuler\s+facilement"],
    "Form": [r"(?:postuler|candidater|apply)\s+(?:en\s+ligne|online)", r"formulaire", r"portail", r"portal"],
}

LANGUAGE_WORDS = {
    "German": ["und", "oder", "für", "mit", "wir", "suchen", "stelle", "arbeit", "aufgaben", "anforderungen"],
    "French": ["nous", "vous", "pour", "avec", "recherchons", "poste", "travail", "missions", "profil"],
    "English": ["we", "you", "for", "with", "looking", "position", "work", "tasks", "requirements", "apply"],
}

URL_RE = re.compile(r"https?://[^\s<>\"')]+")


class TextSignals(BaseModel):
    """Metadata recovered from an offer's free text."""

    deadline: Optional[str] = None
    deadline_raw: Optional[str] = None
    deadline_missing: bool = True
    publication_date: Optional[str] = None
    required_documents: list[str] = Field(default_factory=lambda: list(DEFAULT_DOCUMENTS))
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    language: str = "French"
    is_expired: bool = False
    application_method: str = "Unknown"
    url: Optional[str] = None


def extract_deadline(text: str) -> tuple[Optional[str], Optional[str]]:
    """Return (iso_deadline, raw_match); (None, None) when nothing parses."""
    for pattern in DEADLINE_PATTERNS:
        for match in pattern.finditer(text):
            parsed = parse_deadline(match.group(1))
            if parsed:
                return parsed, match.group(1)
    return None, None


def extract_publication_date(text: str) -> Optional[str]:
    for pattern in PUBLICATION_PATTERNS:
        match = pattern.search(text)
        if match:
            return parse_deadline(match.group(1))
    return None


def extract_documents(text: str) -> list[str]:
    """Canonical documents mentioned in ``text``; defaults to a CV only."""
    lower = text.lower()
    found = []
    for name, synonyms in DOCUMENT_KEYWORDS.items():
        if any(re.search(r"\b" + re.escape(s), lower) for s in synonyms):
            found.append(name)
    return found or list(DEFAULT_DOCUMENTS)


def is_system_address(email: str) -> bool:
    lower = email.lower()
    return any(marker in lower for marker in SYSTEM_MAIL_MARKERS)


def extract_contact_email(text: str) -> Optional[str]:
    """First address that is not a no-reply/mailer address."""
    for match in EMAIL_RE.finditer(text):
        email = match.group(0).rstrip(".")
        if not is_system_address(email):
            return email
    return None


def extract_contact_person(text: str) -> Optional[str]:
    for pattern in CONTACT_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def detect_language(text: str) -> str:
    words = set(re.findall(r"[a-zà-ÿß]+", text.lower()))
    counts = {lang: sum(1 for w in indicators if w in words) for lang, indicators in LANGUAGE_WORDS.items()}
    if counts["German"] > counts["French"] and counts["German"] > counts["English"]:
        return "German"
    if counts["English"] > counts["French"] and counts["English"] >= counts["German"]:
        return "English"
    return "French"


def detect_method(text: str) -> str:
    lower = text.lower()
    for method, patterns in METHOD_PATTERNS.items():
        if any(re.search(p, lower) for p in patterns):
            return method
    if extract_contact_email(text):
        return "Email"
    return "Unknown"


def is_expired(text: str) -> bool:
    return bool(EXPIRED_RE.search(text))


def extract_url(text: str) -> Optional[str]:
    match = URL_RE.search(text)
    return match.group(0).rstrip(".,;") if match else None


def analyze_text(text: str) -> TextSignals:
    """Collect every text signal for one offer."""
    deadline, raw = extract_deadline(text)
    return TextSignals(
        deadline=deadline,
        deadline_raw=raw,
        deadline_missing=deadline is None,
        publication_date=extract_publication_date(text),
        required_documents=extract_documents(text),
        contact_person=extract_contact_person(text),
        contact_email=extract_contact_email(text),
        language=detect_language(text),
        is_expired=is_expired(text),
        application_method=detect_method(text),
        url=extract_url(text),
    )
