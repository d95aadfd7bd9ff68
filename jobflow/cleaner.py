"""Strip signatures, footers and mail headers from pasted emails."""

import re

SIGNATURE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^-{2,}$",
        r"^_{3,}$",
        r"sent from (?:my )?(?:iphone|ipad|android|samsung|mobile)",
        r"envoyé depuis (?:mon )?(?:iphone|ipad|android|samsung|mobile)",
        r"get outlook for",
        r"télécharger outlook",
        r"^cordialement,?$",
        r"^bien à vous,?$",
        r"^best regards,?$",
        r"^kind regards,?$",
        r"^meilleures salutations,?$",
        r"^salutations,?$",
        r"^sincerely,?$",
    )
]

FOOTER_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"se désabonner",
        r"unsubscribe",
        r"désinscrire",
        r"désinscription",
        r"modifier les paramètres",
        r"click here if you no longer",
        r"vous êtes inscrit comme",
        r"cliquez ici pour",
        r"to stop receiving",
        r"pour ne plus recevoir",
        r"gestion des préférences",
        r"manage preferences",
        r"privacy policy",
        r"politique de confidentialité",
        r"©\s*\d{4}",
        r"copyright",
        r"^this email was sent to",
        r"cet e-?mail a été envoyé",
        r"powered by",
        r"propulsé par",
    )
]

HEADER_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^(?:de|from)\s*:",
        r"^(?:à|to)\s*:",
        r"^(?:date|sent|envoyé)\s*:",
        r"^(?:objet|subject)\s*:",
        r"^(?:cc|cci|bcc)\s*:",
        r"^(?:re|fw|tr|fwd)\s*:",
    )
]

NAME_LINE_RE = re.compile(r"^[A-ZÀ-Ý][a-zà-ÿ]+(?:[\s-][A-ZÀ-Ý][a-zà-ÿ]+)?$")
JOB_LINE_RE = re.compile(r"poste|emploi|offre|job|position|entreprise", re.IGNORECASE)

HEADER_SCAN_LINES = 10
FOOTER_SKIP_LINES = 3


def is_footer_line(line: str) -> bool:
    return any(p.search(line) for p in FOOTER_PATTERNS)


def _looks_like_signature_name(lines: list[str], i: int) -> bool:
    """A short name-like line between blank lines, or above a phone or address."""
    stripped = lines[i].strip()
    if not stripped or len(stripped) >= 30 or not NAME_LINE_RE.match(stripped):
        return False
    prev_line = lines[i - 1].strip() if i > 0 else ""
    next_line = lines[i + 1].strip() if i + 1 < len(lines) else ""
    return (
        (prev_line == "" and next_line == "")
        or bool(re.match(r"^\+?\d", next_line))
        or "@" in next_line
    )


def clean_email_content(content: str) -> str:
    """Remove headers, signature blocks and footer boilerplate."""
    lines = content.split("\n")

    start = 0
    for i, line in enumerate(lines[:HEADER_SCAN_LINES]):
        if any(p.search(line.strip()) for p in HEADER_PATTERNS):
            start = i + 1
    lines = lines[start:]

    cleaned: list[str] = []
    in_signature = False
    skip = 0

    for i, line in enumerate(lines):
        if skip:
            skip -= 1
            continue
        stripped = line.strip()

        if not in_signature and any(p.search(stripped) for p in SIGNATURE_PATTERNS):
            in_signature = True
            continue

        if is_footer_line(stripped):
            skip = FOOTER_SKIP_LINES
            continue

        if in_signature:
            # A long job-related line means the signature block is over
            if JOB_LINE_RE.search(stripped) and len(stripped) > 20:
                in_signature = False
                cleaned.append(line)
            continue

        if not cleaned and not stripped:
            continue

        if cleaned and _looks_like_signature_name(lines, i):
            in_signature = True
            continue

        cleaned.append(line)

    while cleaned and not cleaned[-1].strip():
        cleaned.pop()

    return "\n".join(cleaned)


def extract_job_content(content: str) -> str:
    """Cleaned email text with tracking links and system addresses removed."""
    text = clean_email_content(content)
    text = re.sub(r"https?://\S*(?:unsubscribe|track|click|email)\S*", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\b(?:noreply|no-reply|donotreply|mailer|newsletter)@\S+", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()
