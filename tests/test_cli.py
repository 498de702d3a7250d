"""Tests for the taskly command line."""

import json
import logging
import sys
from unittest import mock

import pytest

from taskly.cli import main


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logging.getLogger("taskly").handlers.clear()


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "taskly.json"


@pytest.fixture
def run(tmp_path, data_file, clean_env, capsys):
    """Invoke the CLI against a fresh local data file; returns captured stdout."""
    config = tmp_path / "config.yaml"
    config.write_text(f"backend: local\ndata_file: {data_file}\n")

    def _run(*argv):
        main(["--config", str(config), *argv])
        return capsys.readouterr().out

    return _run


def _seeded(data_file):
    raw = json.loads(data_file.read_text())
    board = raw["boards"][0]
    columns = sorted(raw["columns"], key=lambda c: c["order"])
    todo_cards = sorted((c for c in raw["cards"] if c["column_id"] == columns[0]["id"]), key=lambda c: c["order"])
    return board, columns, todo_cards


class TestCLIModuleImports:
    def test_main_module_runs_main(self):
        sys.modules.pop("taskly.__main__", None)
        with mock.patch("sys.argv", ["taskly"]):
            with pytest.raises(SystemExit):
                import taskly.__main__  # noqa: F401


class TestCommands:
    def test_no_command_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_boards_lists_starter_board(self, run):
        out = run("boards")
        assert "Personal Tasks" in out
        assert "(3 columns)" in out

    def test_new_board_and_column(self, run, data_file):
        out = run("new-board", "Work")
        assert "Created board" in out
        board_id = out.split()[2].rstrip(":")
        run("add-column", board_id, "Backlog")
        out = run("show", board_id)
        assert "Backlog" in out

    def test_show_lists_cards_in_order(self, run, data_file):
        run("boards")
        board, _, cards = _seeded(data_file)
        out = run("show", board["id"])
        lines = [line.strip() for line in out.splitlines()]
        titles = [line[2:].split(" [")[0] for line in lines if line.startswith("- ")]
        assert titles[:3] == [c["title"] for c in cards]
        assert "#blog #writing" in out

    def test_add_card_with_labels_and_due(self, run, data_file):
        run("boards")
        board, columns, _ = _seeded(data_file)
        run("add-card", columns[2]["id"], "Taxes", "--label", "money", "--due", "2026-04-15")
        out = run("show", board["id"])
        assert "Taxes" in out
        assert "#money" in out
        assert "due 2026-04-15" in out

    def test_move_card_before(self, run, data_file):
        run("boards")
        board, _, cards = _seeded(data_file)
        out = run("move-card", cards[2]["id"], "--before", cards[0]["id"])
        assert "Moved card" in out
        _, _, after = _seeded(data_file)
        assert [c["id"] for c in after] == [cards[2]["id"], cards[0]["id"], cards[1]["id"]]

    def test_move_card_already_there(self, run, data_file):
        run("boards")
        _, _, cards = _seeded(data_file)
        out = run("move-card", cards[0]["id"], "--before", cards[1]["id"])
        assert "already there" in out

    def test_move_card_to_column(self, run, data_file):
        run("boards")
        _, columns, cards = _seeded(data_file)
        run("move-card", cards[0]["id"], "--to-column", columns[2]["id"])
        raw = json.loads(data_file.read_text())
        moved = next(c for c in raw["cards"] if c["id"] == cards[0]["id"])
        assert moved["column_id"] == columns[2]["id"]

    def test_move_column(self, run, data_file):
        run("boards")
        _, columns, _ = _seeded(data_file)
        out = run("move-column", columns[2]["id"], "--to", columns[0]["id"])
        assert out.strip() == f"Columns now: {columns[2]['id']}, {columns[0]['id']}, {columns[1]['id']}"

    def test_archive_hides_card(self, run, data_file):
        run("boards")
        board, _, cards = _seeded(data_file)
        run("archive-card", cards[0]["id"])
        assert cards[0]["title"] not in run("show", board["id"])
        assert cards[0]["title"] in run("show", board["id"], "--all")

    def test_delete_board(self, run, data_file):
        run("boards")
        board, _, _ = _seeded(data_file)
        assert "Deleted board" in run("delete", "board", board["id"])
        assert "No boards yet" in run("boards")

    def test_edit_card_fields(self, run, data_file):
        run("boards")
        board, _, cards = _seeded(data_file)
        out = run(
            "edit-card", cards[0]["id"],
            "--title", "Buy milk", "--label", "home", "--label", "errand", "--due", "2026-05-01",
        )
        assert out.startswith(f"Updated card {cards[0]['id']}: Buy milk")
        shown = run("show", board["id"])
        assert "Buy milk" in shown
        assert "#errand #home" in shown
        assert "due 2026-05-01" in shown
        raw = json.loads(data_file.read_text())
        edited = next(c for c in raw["cards"] if c["id"] == cards[0]["id"])
        assert edited["labels"] == ["errand", "home"]

    def test_edit_card_clears_due_and_labels(self, run, data_file):
        run("boards")
        board, _, cards = _seeded(data_file)
        run("edit-card", cards[1]["id"], "--label", "health", "--due", "2026-05-01")
        run("edit-card", cards[1]["id"], "--no-due", "--no-labels")
        raw = json.loads(data_file.read_text())
        edited = next(c for c in raw["cards"] if c["id"] == cards[1]["id"])
        assert edited["due_date"] is None
        assert edited["labels"] == []
        assert edited["title"] == cards[1]["title"]

    def test_edit_card_without_changes_reports_error(self, run, data_file, capsys):
        run("boards")
        _, _, cards = _seeded(data_file)
        with pytest.raises(SystemExit) as exc_info:
            run("edit-card", cards[0]["id"])
        assert exc_info.value.code == 1
        assert "Nothing to change" in capsys.readouterr().err

    def test_rename_board(self, run, data_file):
        run("boards")
        board, _, _ = _seeded(data_file)
        out = run("rename", "board", board["id"], "Home")
        assert out.strip() == f"Renamed board {board['id']} to Home"
        assert f"{board['id']}  Home  (3 columns)" in run("boards")

    def test_rename_column(self, run, data_file):
        run("boards")
        board, columns, _ = _seeded(data_file)
        run("rename", "column", columns[1]["id"], "Doing")
        assert f"Doing [{columns[1]['id']}]" in run("show", board["id"])

    def test_rename_to_blank_reports_error(self, run, data_file, capsys):
        run("boards")
        _, columns, _ = _seeded(data_file)
        with pytest.raises(SystemExit):
            run("rename", "column", columns[0]["id"], "  ")
        assert "title is required" in capsys.readouterr().err

    def test_archive_board_and_restore(self, run, data_file):
        run("boards")
        board, _, _ = _seeded(data_file)
        assert run("archive-board", board["id"]).strip() == f"Board {board['id']} archived"
        assert "No boards yet" in run("boards")
        assert "(archived)" in run("show", board["id"])
        assert run("archive-board", board["id"], "--restore").strip() == f"Board {board['id']} restored"
        assert board["title"] in run("boards")

    def test_unknown_board_reports_error(self, run, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run("show", "nope")
        assert exc_info.value.code == 1
        assert "Board not found: nope" in capsys.readouterr().err

    def test_blank_title_reports_error(self, run, capsys):
        with pytest.raises(SystemExit):
            run("new-board", " ")
        assert "title is required" in capsys.readouterr().err

    def test_rest_without_url_reports_error(self, tmp_path, clean_env, capsys):
        config = tmp_path / "config.yaml"
        config.write_text("backend: rest\n")
        with pytest.raises(SystemExit):
            main(["--config", str(config), "boards"])
        assert "api_url is required" in capsys.readouterr().err
