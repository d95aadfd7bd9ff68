"""Job offers from HTML alert emails, paired with their apply links."""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from .models import JobOfferDraft
from .parser import (
    EmailSource,
    _first_separator_hit,
    build_draft,
    clean_title,
    dedupe_drafts,
    detect_source,
    find_location,
    looks_like_location,
    match_company,
    register_source,
    split_lines,
    split_separator_line,
)

logger = logging.getLogger(__name__)

# Matched against both the href and the link text
NON_JOB_LINK_MARKERS = (
    "unsubscribe", "désabonner", "désinscription",
    "mailto:", "tel:", "javascript:",
    "privacy", "confidentialité", "terms", "conditions",
    "facebook.com", "twitter.com", "instagram.com",
    "linkedin.com/company", "linkedin.com/feed",
    "google.com/maps", "maps.google",
    "tracking", "click.", "open.",
)

APPLY_LINK_RE = re.compile(
    r"\b(?:postuler|apply|candidater|voir|view|détails|details|lire|read|more|plus|consulter|découvrir)\b",
    re.IGNORECASE,
)

BLOCK_TAGS = ["br", "p", "div", "li", "tr", "td", "table", "h1", "h2", "h3", "h4", "h5", "h6"]

ANCESTOR_LEVELS = 3
MIN_TITLE_LINK_TEXT = 10
MIN_CONTEXT_TEXT = 50


def is_valid_job_link(url: str, text: str) -> bool:
    """False for footer, social, tracking and contact links."""
    if len(text) < 3:
        return False
    url_lower = url.strip().lower()
    if url_lower.startswith("#"):
        return False
    text_lower = text.lower()
    return not any(m in url_lower or m in text_lower for m in NON_JOB_LINK_MARKERS)


def is_apply_link(text: str) -> bool:
    return bool(APPLY_LINK_RE.search(text))


def _mark_blocks(soup: BeautifulSoup) -> None:
    """Surround every block element with newlines so get_text keeps the layout."""
    for tag in soup(["script", "style", "head"]):
        tag.decompose()
    for element in soup.find_all(BLOCK_TAGS):
        element.insert_before("\n")
        element.insert_after("\n")


def drop_non_job_links(soup: BeautifulSoup) -> list[Tag]:
    """Remove footer, social and tracking anchors; return the remaining links."""
    links = []
    for anchor in soup.find_all("a", href=True):
        if is_valid_job_link(anchor["href"], _link_text(anchor)):
            links.append(anchor)
        else:
            anchor.decompose()
    return links


def html_to_text(html: str) -> str:
    """Plain text of an HTML document without its non-job links, one block per line."""
    soup = BeautifulSoup(html, "html.parser")
    _mark_blocks(soup)
    drop_non_job_links(soup)
    return "\n".join(split_lines(soup.get_text()))


def _link_text(anchor: Tag) -> str:
    return re.sub(r"\s+", " ", anchor.get_text()).strip()


def _ancestors(anchor: Tag) -> list[Tag]:
    parents = []
    for parent in anchor.parents:
        if len(parents) >= ANCESTOR_LEVELS or parent.name == "[document]":
            break
        parents.append(parent)
    return parents


def context_text(anchor: Tag) -> str:
    """Text of the closest ancestor holding more than a bare link."""
    text = ""
    for parent in _ancestors(anchor):
        text = parent.get_text()
        if len(text.strip()) > MIN_CONTEXT_TEXT:
            break
    return "\n".join(split_lines(text))


class HtmlEmailSource(EmailSource):
    """HTML job-alert email; falls back to the text heuristics on its text."""

    def normalize(self, raw: str) -> str:
        return super().normalize(html_to_text(raw))

    def extract(self, raw: str) -> list[JobOfferDraft]:
        if not raw or not raw.strip():
            return []
        drafts = self.link_drafts(raw)
        if drafts:
            logger.debug(f"Paired {len(drafts)} offer(s) from HTML links")
            return dedupe_drafts(drafts)
        return super().extract(raw)

    def find_apply_link(self, title: Tag, links: list[Tag], used: set[int]) -> Optional[Tag]:
        """Nearest following apply link sharing an ancestor with ``title``."""
        order = {id(link): i for i, link in enumerate(links)}
        title_pos = order[id(title)]
        for parent in _ancestors(title):
            candidates = [
                a for a in parent.find_all("a", href=True)
                if id(a) in order
                and id(a) not in used
                and order[id(a)] > title_pos
                and is_apply_link(_link_text(a))
            ]
            if candidates:
                return min(candidates, key=lambda a: order[id(a)])
        return None

    def link_drafts(self, html: str) -> list[JobOfferDraft]:
        soup = BeautifulSoup(html, "html.parser")
        _mark_blocks(soup)
        links = drop_non_job_links(soup)
        used: set[int] = set()
        drafts = []

        for link in links:
            text = _link_text(link)
            if id(link) in used or is_apply_link(text) or len(text) <= MIN_TITLE_LINK_TEXT:
                continue
            if split_separator_line(text) or looks_like_location(text):
                continue
            used.add(id(link))
            apply = self.find_apply_link(link, links, used)
            if apply is not None:
                used.add(id(apply))
            url = apply["href"] if apply is not None else link["href"]
            draft = self.draft_from_context(clean_title(text), context_text(link), url)
            if draft:
                drafts.append(draft)

        # Apply buttons with no title link take their title from the context
        for link in links:
            if id(link) in used or not is_apply_link(_link_text(link)):
                continue
            used.add(id(link))
            context = context_text(link)
            lines = [line for line in split_lines(context) if len(line) > MIN_TITLE_LINK_TEXT]
            title = clean_title(lines[0]) if lines and not is_apply_link(lines[0]) else None
            draft = self.draft_from_context(title, context, link["href"])
            if draft:
                drafts.append(draft)

        return drafts

    def draft_from_context(self, title: Optional[str], context: str, url: str) -> Optional[JobOfferDraft]:
        if not title or len(title) < 5:
            return None
        lines = [line for line in split_lines(context) if clean_title(line) != title]
        hit = _first_separator_hit(lines)
        company = hit.company if hit else match_company(" ".join(lines), lines)
        location = hit.location if hit else find_location(context)

        label = detect_source(url)
        channel = "linkedin" if label == "LinkedIn" else "email"
        return build_draft(
            title, company, location, context, channel, label,
            keywords=f"{title}, {company}" if company else title,
            source_url=url,
        )


register_source("html", HtmlEmailSource())
