"""Job offer extraction from pasted text, alert emails and PDF text.

Every input shape is normalized to plain text by an ``OfferSource``
strategy, then run through the same heuristics in order:

1. separator lines (``Title`` above ``Company · City``), the layout of
   job-alert digests;
2. label-prefixed fields and role-title / company regexes;
3. no title found: the offer is dropped.
"""

import logging
import re
from typing import NamedTuple, Optional

from .cleaner import extract_job_content, is_footer_line
from .models import JobOfferDraft
from .signals import analyze_text

logger = logging.getLogger(__name__)

KEYWORDS_LIMIT = 300
TITLE_LIMIT = 100
DESCRIPTION_LIMIT = 6000

# Cities and regions recognised on either side of a separator
KNOWN_LOCATIONS = [
    "Genève", "Geneva", "Genf", "Lausanne", "Vaud", "Nyon", "Morges", "Vevey",
    "Montreux", "Yverdon", "Renens", "Carouge", "Meyrin", "Rolle", "Gland",
    "Zürich", "Zurich", "Berne", "Bern", "Bâle", "Basel", "Fribourg",
    "Neuchâtel", "Sion", "Valais", "Lugano", "Lucerne", "Luzern", "Tessin",
    "Paris", "Lyon", "Annecy", "Suisse", "Switzerland", "Schweiz", "France",
    "Remote", "Télétravail", "Hybride", "Hybrid",
]
_LOCATION_ALT = "|".join(re.escape(loc) for loc in KNOWN_LOCATIONS)
LOCATION_PREFIX_RE = re.compile(rf"^(?:{_LOCATION_ALT}|canton\s+d[eu]\s+\w+)\b", re.IGNORECASE)
LOCATION_SEARCH_RE = re.compile(rf"\b({_LOCATION_ALT}|canton\s+d[eu]\s+\w+)\b", re.IGNORECASE)

# Spaced middle dots are the alert-digest separator; the others need a known city.
# Bare middle dots are inclusive spellings (un·e) and never split.
SEPARATORS = (" · ", " • ", "|", " - ", " – ", ",")
_DOT_SEPARATORS = (" · ", " • ")

ROLE_WORDS = (
    r"Responsable|Manager|Coordinat(?:eur|rice|or)|Director|Directeur|Directrice|"
    r"Chef(?:fe)?|Chargée?|Assistante?|Head|Gestionnaire|Conseill(?:er|ère)|"
    r"Spécialiste|Specialist|Analyst|Analyste|Officer|Lead|Consultante?|"
    r"Administrat(?:eur|rice|or)|Secrétaire|Collaborat(?:eur|rice)|Engineer|Ingénieure?"
)
_TITLE_END = r"(?=\s+(?:en\s+CD[ID]|chez|à|au|at|in|pour|for)\s|\s*[(,;.!]|\s+-\s|$)"

ROLE_TITLE_RE = re.compile(
    rf"\b(?P<title>(?:(?:Senior|Junior|Assistant|Deputy|Adjoint)\s+)?(?:{ROLE_WORDS})\b.*?){_TITLE_END}",
    re.IGNORECASE,
)

HIRING_SENTENCE_RE = re.compile(
    r"(?P<company>[A-ZÀ-Ý][\w&'’.-]*(?:\s+[A-ZÀ-Ý][\w&'’.-]*){0,3})\s+"
    r"(?:est\s+à\s+la\s+recherche|recherche|recrute|is\s+looking|are\s+looking|is\s+hiring)\b"
    r"[^.\n]*?\b(?:un·e|un\(e\)|une?|an?)\s+"
    rf"(?P<title>[^.\n]+?){_TITLE_END}"
)

COMPANY_PATTERNS = [
    re.compile(
        r"\b(?:chez|rejoindre|rejoignez|join|at)\s+"
        r"(?P<company>[A-ZÀ-Ý][\w&'’.-]*(?:\s+[A-ZÀ-Ý&][\w&'’.-]*){0,4})"
    ),
    re.compile(r"^(?P<company>[A-ZÀ-Ý][\w&'’ -]+?)(?:\s+est\b|\s+recherche\b|\s+-\s)"),
]
ORG_LINE_RE = re.compile(
    r"\b(?:association|fondation|foundation|SA|Sàrl|AG|GmbH|Ltd|Inc|organisation|organization)\b",
    re.IGNORECASE,
)
CAPS_COMPANY_RE = re.compile(r"\b([A-Z][A-Z&.\-]{2,}(?:\s+[A-Z&][A-Z&.\-]+)*)\b")

EXCLUDED_COMPANY_WORDS = {
    "cv", "lettre", "motivation", "poste", "candidature", "offre", "emploi", "job",
    "cdi", "cdd", "nous", "notre", "équipe", "the", "our", "a", "an", "this", "your",
}
EXCLUDED_CAPS = {
    "CV", "CDI", "CDD", "CEO", "CFO", "HR", "RH", "PDF", "URL", "URGENT", "NOUVEAU",
    "NEW", "JOB", "OFFRE", "EMPLOI", "IT", "AI", "IA",
}

FIELD_LABELS = {
    "company": ("entreprise", "company", "société", "employeur", "employer", "organisation", "organization"),
    "title": ("poste", "position", "titre", "job title", "intitulé du poste", "fonction", "rôle", "role"),
    "location": ("lieu", "location", "localisation", "lieu de travail", "workplace", "ville"),
    "deadline": ("délai", "deadline", "date limite", "délai de postulation", "closing date"),
    "instructions": ("pour postuler", "how to apply", "candidature", "postuler"),
}
LABEL_LINE_RE = re.compile(r"^\s*(?P<label>[^:]{2,30}?)\s*:\s*(?P<value>.+?)\s*$")

TITLE_PREFIX_RE = re.compile(
    r"^(?:nous\s+recherchons|recherche|we\s+are\s+looking\s+for|un·e|un\(e\)|une?)\s+",
    re.IGNORECASE,
)

SOURCE_DOMAINS = [
    ("linkedin.com", "LinkedIn"),
    ("jobup.ch", "JobUp"),
    ("indeed.", "Indeed"),
    ("cagi.ch", "CAGI"),
    ("jobs.cagi", "CAGI"),
    ("jobs.ch", "Jobs.ch"),
    ("jobcloud", "JobCloud"),
    ("monster", "Monster"),
    ("glassdoor", "Glassdoor"),
]


class SeparatorHit(NamedTuple):
    company: str
    location: str


def detect_source(url: Optional[str]) -> str:
    """Job board name for a URL, or ``Email Alert``."""
    lower = (url or "").lower()
    for domain, name in SOURCE_DOMAINS:
        if domain in lower:
            return name
    return "Email Alert"


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def clean_title(raw: Optional[str]) -> Optional[str]:
    """Normalize a candidate title; URLs and empty strings give None."""
    if not raw:
        return None
    title = collapse_whitespace(raw)
    if title.lower().startswith("http"):
        return None
    title = re.sub(r"^[•·*\->\s]+", "", title)
    title = TITLE_PREFIX_RE.sub("", title)
    title = title.rstrip(" .,:;-–")
    if not title:
        return None
    return title[:TITLE_LIMIT]


def looks_like_location(text: str) -> bool:
    return bool(LOCATION_PREFIX_RE.match(text.strip()))


def find_location(text: str) -> Optional[str]:
    match = LOCATION_SEARCH_RE.search(text)
    return match.group(1) if match else None


def is_label_line(line: str) -> bool:
    match = LABEL_LINE_RE.match(line)
    return bool(match) and not match.group("label").lower().startswith("http")


def is_noise_line(line: str) -> bool:
    lower = line.lower()
    return (
        is_footer_line(line)
        or lower.startswith("http")
        or lower.startswith("www.")
        or "@" in line
        or "jobup.ch" in lower
    )


def _short_phrase(text: str, max_words: int) -> bool:
    return len(text.split()) <= max_words and not text.endswith(".")


def split_separator_line(line: str) -> Optional[SeparatorHit]:
    """Split ``Company · City`` (or ``City | Company``) into its parts."""
    if is_noise_line(line) or is_label_line(line):
        return None
    for sep in SEPARATORS:
        if sep not in line:
            continue
        left, right = (part.strip() for part in line.split(sep, 1))
        if not left or not right:
            continue
        if sep in _DOT_SEPARATORS:
            if looks_like_location(left) and not looks_like_location(right) and 1 < len(right) < 50:
                return SeparatorHit(right, left)
            if 1 < len(left) < 60 and len(right) > 1:
                return SeparatorHit(left, right)
            continue
        # Other separators need a known city and name-sized sides
        if looks_like_location(right) and 1 < len(left) < 50 and _short_phrase(left, 6) and _short_phrase(right, 5):
            return SeparatorHit(left, right)
        if looks_like_location(left) and 1 < len(right) < 50 and _short_phrase(right, 6) and _short_phrase(left, 5):
            return SeparatorHit(right, left)
    return None


def is_title_candidate(line: str) -> bool:
    return (
        5 < len(line) < 150
        and not is_noise_line(line)
        and not is_label_line(line)
        and not line.endswith((":", "."))
        and split_separator_line(line) is None
    )


def extract_labeled_fields(lines: list[str]) -> dict[str, str]:
    """Values of ``Label: value`` lines, keyed by field name."""
    fields: dict[str, str] = {}
    for line in lines:
        match = LABEL_LINE_RE.match(line)
        if not match:
            continue
        label = match.group("label").strip().lower()
        for field, labels in FIELD_LABELS.items():
            if label in labels and field not in fields:
                fields[field] = match.group("value")
    return fields


def match_role_title(lines: list[str]) -> Optional[str]:
    for line in lines:
        if is_noise_line(line) or is_label_line(line):
            continue
        match = ROLE_TITLE_RE.search(line)
        if match:
            title = clean_title(match.group("title"))
            if title and len(title) > 3:
                return title
    return None


def match_hiring_sentence(text: str) -> tuple[Optional[str], Optional[str]]:
    """(company, title) from ``X recherche un·e Y`` style sentences."""
    match = HIRING_SENTENCE_RE.search(text)
    if not match:
        return None, None
    return match.group("company").strip(), clean_title(match.group("title"))


def _valid_company(candidate: Optional[str]) -> Optional[str]:
    if not candidate:
        return None
    company = candidate.strip(" .,;:-")
    if company.lower() in EXCLUDED_COMPANY_WORDS or not 1 < len(company) < 50:
        return None
    return company


def match_company(text: str, lines: list[str]) -> Optional[str]:
    """Company from ``chez X`` style phrases, organisation lines or ALL CAPS names."""
    for pattern in COMPANY_PATTERNS:
        for line in lines:
            for match in pattern.finditer(line):
                company = _valid_company(match.group("company"))
                if company:
                    return company

    for line in lines:
        if len(line) < 60 and ORG_LINE_RE.search(line) and not is_label_line(line) and not is_noise_line(line):
            if not ROLE_TITLE_RE.search(line):
                return line

    for match in CAPS_COMPANY_RE.finditer(text):
        company = match.group(1).strip()
        if company not in EXCLUDED_CAPS and 2 < len(company) < 30:
            return company
    return None


def _first_separator_hit(lines: list[str]) -> Optional[SeparatorHit]:
    for line in lines:
        hit = split_separator_line(line)
        if hit:
            return hit
    return None


def build_draft(
    title: str,
    company: Optional[str],
    location: Optional[str],
    block_text: str,
    channel: str,
    source_label: str,
    keywords: str,
    source_url: Optional[str] = None,
    description: Optional[str] = None,
) -> JobOfferDraft:
    """Attach text signals from ``block_text`` to the extracted fields."""
    signals = analyze_text(block_text)
    return JobOfferDraft(
        title=title,
        company=company,
        location=location,
        channel=channel,
        source_label=source_label,
        keywords_blob=keywords[:KEYWORDS_LIMIT],
        deadline=signals.deadline,
        deadline_raw=signals.deadline_raw,
        deadline_missing=signals.deadline_missing,
        contact_email=signals.contact_email,
        contact_person=signals.contact_person,
        publication_date=signals.publication_date,
        application_method=signals.application_method,
        language=signals.language,
        is_expired=signals.is_expired,
        required_documents=signals.required_documents,
        source_url=source_url or signals.url,
        description=description,
    )


def dedupe_drafts(drafts: list[JobOfferDraft]) -> list[JobOfferDraft]:
    """Collapse drafts with the same (title, company), keeping the first."""
    seen: set[tuple[str, str]] = set()
    unique = []
    for draft in drafts:
        key = draft.dedupe_key()
        if key in seen:
            logger.debug(f"Dropping duplicate draft: {draft.title} - {draft.company}")
            continue
        seen.add(key)
        unique.append(draft)
    return unique


class OfferSource:
    """Extraction strategy for one input shape."""

    channel = "free-text"
    source_label = "Free text"

    def normalize(self, raw: str) -> str:
        return raw.replace("\r\n", "\n").replace("\r", "\n")

    def keywords_for(self, text: str) -> str:
        return collapse_whitespace(text)

    def channel_for(self, text: str) -> tuple[str, str]:
        return self.channel, self.source_label

    def extract(self, raw: str) -> list[JobOfferDraft]:
        """Drafts found in ``raw``; an empty list when nothing is detected."""
        if not raw or not raw.strip():
            return []
        text = self.normalize(raw)
        channel, label = self.channel_for(text)
        drafts = self.separator_drafts(text, channel, label)
        if not drafts:
            draft = self.anchored_draft(text, channel, label)
            drafts = [draft] if draft else []
        if not drafts:
            logger.info(f"No offer detected in {label.lower()} input")
        return dedupe_drafts(drafts)

    def separator_drafts(self, text: str, channel: str, label: str) -> list[JobOfferDraft]:
        """One draft per ``Title`` line followed by a ``Company · City`` line."""
        lines = split_lines(text)
        blocks = []
        for i in range(1, len(lines)):
            hit = split_separator_line(lines[i])
            if hit is None or not is_title_candidate(lines[i - 1]):
                continue
            title = clean_title(lines[i - 1])
            if title:
                blocks.append((title, hit, f"{lines[i - 1]}\n{lines[i]}"))

        if len(blocks) == 1:
            # A single offer: signals come from the whole text
            title, hit, _ = blocks[0]
            return [
                build_draft(
                    title, hit.company, hit.location, text, channel, label,
                    keywords=self.keywords_for(text),
                    description=text[:DESCRIPTION_LIMIT],
                )
            ]
        return [
            build_draft(
                title, hit.company, hit.location, block, channel, label,
                keywords=f"{title}, {hit.company}",
            )
            for title, hit, block in blocks
        ]

    def anchored_draft(self, text: str, channel: str, label: str) -> Optional[JobOfferDraft]:
        """Single draft from labels, hiring sentences and role-title regexes."""
        lines = split_lines(text)
        flat = collapse_whitespace(text)
        labeled = extract_labeled_fields(lines)
        sentence_company, sentence_title = match_hiring_sentence(flat)

        title = (
            clean_title(labeled.get("title"))
            or sentence_title
            or match_role_title(lines)
            or self.fallback_title(lines)
        )
        if not title:
            return None

        hit = _first_separator_hit(lines)
        company = (
            _valid_company(labeled.get("company"))
            or _valid_company(sentence_company)
            or (hit.company if hit else None)
            or match_company(flat, lines)
        )
        location = labeled.get("location") or (hit.location if hit else None) or find_location(flat)

        draft = build_draft(
            title, company, location, text, channel, label,
            keywords=self.keywords_for(text),
            description=text[:DESCRIPTION_LIMIT],
        )
        if labeled.get("instructions"):
            draft.application_instructions = labeled["instructions"]
        return draft

    def fallback_title(self, lines: list[str]) -> Optional[str]:
        return None


class PlainTextSource(OfferSource):
    """Freeform text pasted from a job board page."""


class EmailSource(OfferSource):
    """A pasted email body, usually a job-alert digest."""

    channel = "email"
    source_label = "Email Alert"

    BOARDS = (
        ("linkedin", "linkedin", "LinkedIn Alert"),
        ("jobup", "jobup", "JobUp Alert"),
        ("cagi", "cagi", "CAGI Alert"),
    )

    def normalize(self, raw: str) -> str:
        return extract_job_content(super().normalize(raw))

    def channel_for(self, text: str) -> tuple[str, str]:
        lower = text.lower()
        for marker, channel, label in self.BOARDS:
            if marker in lower:
                return channel, label
        return self.channel, self.source_label


class PdfSource(OfferSource):
    """Text recovered from a PDF job posting."""

    channel = "pdf"
    source_label = "PDF Import"

    DESCRIPTION_MARKERS = ("mission", "profil", "compétence", "tâches", "responsibilities", "requirements")

    def normalize(self, raw: str) -> str:
        text = super().normalize(raw)
        # Re-join words hyphenated across line breaks
        text = re.sub(r"(\w)-\n(\w)", r"\1\2", text)
        return re.sub(r"\n{2,}", "\n", text).strip()

    def keywords_for(self, text: str) -> str:
        described = [
            line for line in split_lines(text)
            if any(marker in line.lower() for marker in self.DESCRIPTION_MARKERS)
        ]
        return collapse_whitespace(" ".join(described)) if described else collapse_whitespace(text)

    def fallback_title(self, lines: list[str]) -> Optional[str]:
        for line in lines:
            lower = line.lower()
            if "recherche" in lower or "un·e" in lower or "un(e)" in lower or "we are looking" in lower:
                title = clean_title(line)
                if title and len(title) > 5:
                    return title
        return None


SOURCES: dict[str, OfferSource] = {
    "text": PlainTextSource(),
    "email": EmailSource(),
    "pdf": PdfSource(),
}


def register_source(kind: str, source: OfferSource) -> None:
    SOURCES[kind] = source


def extract_offers(content: str, kind: str = "text") -> list[JobOfferDraft]:
    """Extract drafts from ``content`` using the strategy for ``kind``."""
    try:
        source = SOURCES[kind]
    except KeyError:
        raise ValueError(f"Unknown input kind: {kind}") from None
    drafts = source.extract(content)
    logger.info(f"Extracted {len(drafts)} offer(s) from {kind} input")
    return drafts


# Registers the "html" source; imported last because it subclasses EmailSource
from . import html_email  # noqa: E402,F401
