"""Command line entry point for the job application tracker."""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from .analysis import AnalysisClient, AnalysisError, merge_analysis
from .backup import BackupFormatError, export_backup, import_backup
from .config import Config, get_config, load_config
from .dates import days_until, deadlines_on, format_for_display, is_urgent, week_days
from .exclusion import evaluate
from .gmail_client import fetch_alert_emails
from .importer import ImportResult, import_content, import_messages
from .models import Application, ApplicationStatus
from .pdf_text import read_pdf_text
from .profile import CandidateProfile, load_profile
from .scoring import effective_compatibility, priority_for, score_compatibility, sort_by_priority
from .storage import ApplicationNotFoundError, Repository, SqliteRepository
from .tasks import TaskNotFoundError, add_task, complete_task, follow_up_task, open_tasks

LOG_DIR = Path(__file__).parent.parent / "logs"
LOCK_TIMEOUT = 10

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure logging for the application."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / "app.log"

    config = get_config()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout),
        ],
    )


def open_store(config: Config) -> Repository:
    return SqliteRepository(config.store_path)


def lock_for(config: Config) -> FileLock:
    """Lock held by commands that write to the store."""
    return FileLock(str(Path(config.store_path).with_suffix(".lock")), timeout=LOCK_TIMEOUT)


def try_load_profile(config: Config) -> Optional[CandidateProfile]:
    try:
        return load_profile(config.profile_path)
    except FileNotFoundError as e:
        logger.warning(f"{e} Scoring against the profile is disabled.")
        return None


def analysis_client(config: Config) -> Optional[AnalysisClient]:
    if not config.analysis_url:
        logger.warning("analysis_url is not configured; skipping analysis")
        return None
    return AnalysisClient(config.analysis_url, timeout=config.analysis_timeout)


def format_line(app: Application, config: Config, today: Optional[date] = None) -> str:
    deadline = format_for_display(app.deadline, config.display_locale) or "-"
    if is_urgent(app.deadline, today, within=config.urgent_days):
        deadline += " !"
    score = priority_for(app, today)
    compat = f"{app.compatibility}%" if app.compatibility is not None else "--"
    flag = " [exclue]" if app.excluded else ""
    if app.is_expired:
        flag += " [expirée]"
    return (
        f"{app.id[:8]}  {score.total:>3}  {compat:>4}  {deadline:<12} "
        f"{app.status.value:<11} {app.title} - {app.company} ({app.location}){flag}"
    )


def print_import_result(result: ImportResult) -> None:
    if not result.detected:
        print("Aucune offre détectée.")
        return
    print(
        f"{result.detected} offre(s) détectée(s): {len(result.created)} importée(s), "
        f"{result.duplicates} doublon(s), {result.excluded} exclue(s)"
    )
    if result.analysis_failures:
        print(f"{result.analysis_failures} analyse(s) en échec")
    if result.tasks:
        print(f"{result.tasks} tâche(s) créée(s)")


def find_app(repo: Repository, app_id: str) -> Application:
    """Resolve a full id or a unique id prefix."""
    matches = [app for app in repo.list_all() if app.id.startswith(app_id)]
    if len(matches) != 1:
        raise ApplicationNotFoundError(app_id)
    return matches[0]


def read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def cmd_import(args, config: Config) -> int:
    if args.kind == "pdf":
        content = read_pdf_text(args.file)
    else:
        content = read_input(args.file)
    profile = try_load_profile(config) if args.analyze else None
    client = analysis_client(config) if args.analyze else None
    with lock_for(config):
        result = import_content(content, args.kind, open_store(config), profile=profile, client=client)
    print_import_result(result)
    return 0


def cmd_import_gmail(args, config: Config) -> int:
    messages = fetch_alert_emails(days_back=args.days or config.gmail_query_days)
    profile = try_load_profile(config) if args.analyze else None
    client = analysis_client(config) if args.analyze else None
    with lock_for(config):
        result = import_messages(messages, open_store(config), profile=profile, client=client)
    print_import_result(result)
    return 0


def cmd_list(args, config: Config) -> int:
    apps = open_store(config).list_all()
    if not args.all:
        apps = [app for app in apps if not app.excluded]
    for app in sort_by_priority(apps):
        print(format_line(app, config))
    return 0


def cmd_week(args, config: Config) -> int:
    apps = open_store(config).list_all()
    for day in week_days():
        due = deadlines_on(apps, day)
        print(f"{format_for_display(day.isoformat(), config.display_locale)}: {len(due)} échéance(s)")
        for app in due:
            print(f"    {app.title} - {app.company}")
    return 0


def cmd_show(args, config: Config) -> int:
    app = find_app(open_store(config), args.id)
    days = days_until(app.deadline)
    print(f"{app.title} - {app.company}")
    print(f"Lieu: {app.location}")
    print(f"Statut: {app.status.value}  Priorité: {app.priority}")
    print(f"Délai: {format_for_display(app.deadline, config.display_locale) or 'non indiqué'}"
          + (f" (J{days:+d})" if days is not None else ""))
    if app.url:
        print(f"URL: {app.url}")
    if app.compatibility is not None:
        print(f"Compatibilité: {app.compatibility}%")
    if app.matching_skills:
        print(f"Compétences: {', '.join(app.matching_skills)}")
    if app.missing_requirements:
        print(f"Manquant: {', '.join(app.missing_requirements)}")
    if app.required_documents:
        print(f"Documents: {', '.join(app.required_documents)}")
    if app.application_method:
        print(f"Candidature: {app.application_method}")
    if app.language:
        print(f"Langue: {app.language}")
    if app.contact_person:
        print(f"Personne de contact: {app.contact_person}")
    if app.is_expired:
        print("Offre expirée")
    for contact in app.contacts:
        print(f"Contact: {contact.name} {contact.email or ''}".rstrip())
    if app.excluded:
        print(f"Exclue: {app.exclusion_reason}")
    return 0


def cmd_score(args, config: Config) -> int:
    profile = try_load_profile(config)
    if profile is None:
        return 1
    app = find_app(open_store(config), args.id)
    result = score_compatibility(app.title, app.keywords, profile)
    print(f"Score local: {result.score}% ({result.recommendation})")
    print(f"Compétences: {', '.join(result.matching_skills) or '-'}")
    print(f"Manquant: {', '.join(result.missing_requirements) or '-'}")
    print(f"Compatibilité retenue: {effective_compatibility(app, profile)}%")
    return 0


def cmd_analyze(args, config: Config) -> int:
    client = analysis_client(config)
    if client is None:
        return 1
    profile = try_load_profile(config)
    with lock_for(config):
        repo = open_store(config)
        app = find_app(repo, args.id)
        text = "\n".join(p for p in (app.title, app.company, app.location, app.keywords, app.notes) if p)
        try:
            result = client.analyze(text, profile.to_prompt_text() if profile else None, key=app.id)
        except AnalysisError as e:
            print(f"Analyse impossible: {e}", file=sys.stderr)
            return 1
        flags = evaluate(app.title, app.location, app.keywords, app.notes)
        fields = merge_analysis(app, result, flags)
        if fields:
            repo.update(app.id, **fields)
    print(f"Compatibilité: {result.compatibility}%")
    return 0


def cmd_status(args, config: Config) -> int:
    status = ApplicationStatus(args.status)
    with lock_for(config):
        repo = open_store(config)
        app = find_app(repo, args.id)
        updated = repo.update(app.id, status=status)
        follow_up = None
        if status == ApplicationStatus.SUBMITTED and app.status != status:
            follow_up = follow_up_task(updated)
            if not add_task(repo, follow_up):
                follow_up = None
    print(f"{app.title}: {args.status}")
    if follow_up is not None:
        print(f"Tâche créée: {follow_up.title} ({format_for_display(follow_up.deadline, config.display_locale)})")
    return 0


def cmd_tasks(args, config: Config) -> int:
    for task in open_tasks(open_store(config)):
        due = format_for_display(task.deadline, config.display_locale) or "-"
        print(f"{task.id[:8]}  {due:<12} {task.title}")
    return 0


def cmd_task_done(args, config: Config) -> int:
    with lock_for(config):
        task = complete_task(open_store(config), args.id)
    print(f"Terminée: {task.title}")
    return 0


def cmd_delete(args, config: Config) -> int:
    with lock_for(config):
        repo = open_store(config)
        app = find_app(repo, args.id)
        repo.delete(app.id)
    print(f"Supprimée: {app.title} - {app.company}")
    return 0


def cmd_export(args, config: Config) -> int:
    count = export_backup(open_store(config), Path(args.path))
    print(f"{count} candidature(s) exportée(s) vers {args.path}")
    return 0


def cmd_restore(args, config: Config) -> int:
    with lock_for(config):
        report = import_backup(open_store(config), Path(args.path))
    print(
        f"{report.imported} importée(s), {report.skipped} invalide(s), "
        f"{report.duplicates} doublon(s) ignoré(s)"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobflow", description="Suivi des candidatures")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    subparsers = parser.add_subparsers(dest="command")

    for kind in ("text", "email", "html", "pdf"):
        sub = subparsers.add_parser(f"import-{kind}", help=f"Import offers from {kind} input")
        sub.add_argument("file", help="Input file, '-' for stdin" if kind != "pdf" else "PDF file")
        sub.add_argument("--analyze", action="store_true", help="Analyse each offer before storing it")
        sub.set_defaults(func=cmd_import, kind=kind)

    gmail = subparsers.add_parser("import-gmail", help="Import offers from Gmail job alerts")
    gmail.add_argument("--days", type=int, help="Look back this many days")
    gmail.add_argument("--analyze", action="store_true", help="Analyse each offer before storing it")
    gmail.set_defaults(func=cmd_import_gmail)

    listing = subparsers.add_parser("list", help="List applications by priority")
    listing.add_argument("--all", action="store_true", help="Include excluded offers")
    listing.set_defaults(func=cmd_list)

    subparsers.add_parser("week", help="Deadlines of the current week").set_defaults(func=cmd_week)

    for name, func, help_text in (
        ("show", cmd_show, "Show one application"),
        ("score", cmd_score, "Local compatibility score"),
        ("analyze", cmd_analyze, "Run the LLM analysis"),
        ("delete", cmd_delete, "Delete an application"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("id", help="Application id or unique prefix")
        sub.set_defaults(func=func)

    status = subparsers.add_parser("status", help="Set the workflow status")
    status.add_argument("id", help="Application id or unique prefix")
    status.add_argument("status", choices=[s.value for s in ApplicationStatus])
    status.set_defaults(func=cmd_status)

    subparsers.add_parser("tasks", help="Open reminder tasks").set_defaults(func=cmd_tasks)

    done = subparsers.add_parser("task-done", help="Mark a task as done")
    done.add_argument("id", help="Task id or unique prefix")
    done.set_defaults(func=cmd_task_done)

    export = subparsers.add_parser("export", help="Write a JSON backup")
    export.add_argument("path")
    export.set_defaults(func=cmd_export)

    restore = subparsers.add_parser("restore", help="Restore a JSON backup")
    restore.add_argument("path")
    restore.set_defaults(func=cmd_restore)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
        setup_logging()
    except FileNotFoundError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        return args.func(args, config)
    except Timeout:
        logger.warning("Could not acquire lock - another instance is running")
        return 1
    except ApplicationNotFoundError as e:
        print(f"Candidature introuvable: {e}", file=sys.stderr)
        return 1
    except TaskNotFoundError as e:
        print(f"Tâche introuvable: {e}", file=sys.stderr)
        return 1
    except BackupFormatError as e:
        print(f"Sauvegarde invalide: {e}", file=sys.stderr)
        return 1
    except FileNotFoundError as e:
        print(f"Fichier introuvable: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception(f"Command failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
