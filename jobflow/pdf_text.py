"""Read the text layer of a PDF job posting."""

import logging
import re
from pathlib import Path
from typing import BinaryIO, Union

from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)


def _fix_spacing(text: str) -> str:
    """Re-insert spaces when extraction glued words together."""
    if not text or len(text) < 50:
        return text
    if text.count(" ") / len(text) > 0.08:
        return text
    logger.debug("Low space ratio in PDF text, applying spacing fix")
    fixed = re.sub(r"([a-zà-ÿ])([A-ZÀ-Ý])", r"\1 \2", text)
    return re.sub(r"([.!?,;:])([A-Za-zÀ-ÿ])", r"\1 \2", fixed)


def read_pdf_text(source: Union[str, Path, BinaryIO]) -> str:
    """Concatenated page text; empty string for unreadable files."""
    try:
        reader = PdfReader(source)
        pages = [_fix_spacing(page.extract_text() or "") for page in reader.pages]
    except (PdfReadError, OSError) as e:
        logger.warning(f"Could not read PDF {source}: {e}")
        return ""
    return "\n".join(pages)
