"""JSON snapshot export and restore for the application list."""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

from .models import Application
from .storage import Repository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("company", "title", "location", "status", "deadline")


class BackupFormatError(ValueError):
    """The snapshot is not a JSON array."""


class ImportReport(BaseModel):
    imported: int = 0
    skipped: int = 0
    duplicates: int = 0


def export_backup(repo: Repository, path: Path) -> int:
    """Write every stored application to ``path``; returns the record count."""
    apps = repo.list_all()
    payload = [app.model_dump(mode="json") for app in apps]
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    logger.info(f"Exported {len(apps)} application(s) to {path}")
    return len(apps)


def parse_record(entry) -> Application:
    """Validate one snapshot entry; raises ValidationError or ValueError."""
    if not isinstance(entry, dict):
        raise ValueError("Record is not an object")
    missing = [f for f in REQUIRED_FIELDS if not isinstance(entry.get(f), str)]
    if missing:
        raise ValueError(f"Missing required field(s): {', '.join(missing)}")
    return Application.model_validate(entry)


def import_backup(repo: Repository, path: Path) -> ImportReport:
    """Restore a snapshot, skipping invalid entries and known applications."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise BackupFormatError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, list):
        raise BackupFormatError(f"Expected a JSON array in {path}")

    report = ImportReport()
    valid = []
    for i, entry in enumerate(data):
        try:
            valid.append(parse_record(entry))
        except (ValidationError, ValueError) as e:
            logger.info(f"Skipping invalid record #{i}: {e}")
            report.skipped += 1

    inserted = repo.bulk_create(valid)
    report.imported = len(inserted)
    report.duplicates = len(valid) - len(inserted)
    logger.info(
        f"Restore complete: {report.imported} imported, "
        f"{report.skipped} skipped, {report.duplicates} duplicate(s)"
    )
    return report
