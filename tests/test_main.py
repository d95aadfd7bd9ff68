"""End-to-end tests of the command line."""

import json

import pytest

from jobflow import main as cli
from jobflow.storage import SqliteRepository


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "LOG_DIR", tmp_path / "logs")
    path = tmp_path / "config.yaml"
    path.write_text(
        f"store_path: {tmp_path / 'store.sqlite'}\n"
        f"profile_path: {tmp_path / 'profile.yaml'}\n"
    )
    return path


@pytest.fixture
def offer_file(tmp_path):
    path = tmp_path / "offer.txt"
    path.write_text("Senior Analyst\nExplora Journeys · Genève\n", encoding="utf-8")
    return path


def run(config_path, *args):
    return cli.main(["--config", str(config_path), *args])


def test_import_then_list(config_path, offer_file, capsys):
    assert run(config_path, "import-text", str(offer_file)) == 0
    assert "1 importée(s)" in capsys.readouterr().out

    assert run(config_path, "list") == 0
    out = capsys.readouterr().out
    assert "Senior Analyst - Explora Journeys (Genève)" in out


def test_reimport_reports_duplicate(config_path, offer_file, capsys):
    run(config_path, "import-text", str(offer_file))
    capsys.readouterr()
    run(config_path, "import-text", str(offer_file))
    assert "1 doublon(s)" in capsys.readouterr().out


def test_status_by_id_prefix(config_path, offer_file, tmp_path, capsys):
    run(config_path, "import-text", str(offer_file))
    app = SqliteRepository(tmp_path / "store.sqlite").list_all()[0]
    assert run(config_path, "status", app.id[:8], "soumise") == 0
    assert SqliteRepository(tmp_path / "store.sqlite").get(app.id).status.value == "soumise"


def test_unknown_id(config_path, capsys):
    assert run(config_path, "show", "deadbeef") == 1
    assert "introuvable" in capsys.readouterr().err


def test_export_and_restore(config_path, offer_file, tmp_path, capsys):
    run(config_path, "import-text", str(offer_file))
    backup = tmp_path / "backup.json"
    assert run(config_path, "export", str(backup)) == 0
    assert len(json.loads(backup.read_text(encoding="utf-8"))) == 1

    assert run(config_path, "restore", str(backup)) == 0
    assert "1 doublon(s) ignoré(s)" in capsys.readouterr().out


def test_score_without_profile(config_path, offer_file):
    run(config_path, "import-text", str(offer_file))
    app = SqliteRepository(config_path.parent / "store.sqlite").list_all()[0]
    assert run(config_path, "score", app.id) == 1


def test_missing_config(tmp_path, capsys):
    assert cli.main(["--config", str(tmp_path / "absent.yaml"), "list"]) == 1
    assert "config.yaml.example" in capsys.readouterr().err


def test_no_command(capsys):
    assert cli.main([]) == 1


def test_expired_offer_is_flagged(config_path, tmp_path, capsys):
    offer = tmp_path / "expired.txt"
    offer.write_text("Senior Analyst\nExplora Journeys · Genève\nPoste pourvu.\n", encoding="utf-8")
    run(config_path, "import-text", str(offer))
    app = SqliteRepository(tmp_path / "store.sqlite").list_all()[0]
    capsys.readouterr()

    assert run(config_path, "show", app.id[:8]) == 0
    out = capsys.readouterr().out
    assert "Offre expirée" in out
    assert "Langue: French" in out

    run(config_path, "list")
    assert "[expirée]" in capsys.readouterr().out


def test_submitting_creates_a_follow_up_task(config_path, offer_file, tmp_path, capsys):
    run(config_path, "import-text", str(offer_file))
    app = SqliteRepository(tmp_path / "store.sqlite").list_all()[0]
    capsys.readouterr()

    assert run(config_path, "status", app.id[:8], "soumise") == 0
    assert "Tâche créée: Relance Explora Journeys" in capsys.readouterr().out

    run(config_path, "status", app.id[:8], "soumise")
    assert "Tâche créée" not in capsys.readouterr().out

    assert run(config_path, "tasks") == 0
    out = capsys.readouterr().out
    assert out.count("Relance Explora Journeys") == 1

    task = SqliteRepository(tmp_path / "store.sqlite").list_tasks()[0]
    assert run(config_path, "task-done", task.id[:8]) == 0
    assert "Terminée: Relance Explora Journeys" in capsys.readouterr().out
    run(config_path, "tasks")
    assert "Relance" not in capsys.readouterr().out


def test_unknown_task(config_path, capsys):
    assert run(config_path, "task-done", "deadbeef") == 1
    assert "Tâche introuvable" in capsys.readouterr().err
