import pytest

from lending_library import cli
from lending_library import config


def feed(monkeypatch, answers):
    it = iter(answers)

    def fake_input(prompt=""):
        try:
            return next(it)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)


def test_menu_session(engine, monkeypatch, capsys):
    feed(monkeypatch, [
        "1", "1", "Ramesh",
        "2", "5", "Priya",
        "3", "1", "100", "2", "Dune", "Herbert",
        "4", "5", "100",
        "4", "5", "100",
        "6",
        "7",
    ])
    cli.cli_loop(engine)
    out = capsys.readouterr().out
    assert "Librarian 'Ramesh' added with ID 1." in out
    assert "New book 'Dune' added with 2 copies." in out
    assert "Borrowed: Dune" in out
    assert "already has 'Dune'" in out
    assert "ID: 100 | Title: Dune | Author: Herbert | Copies: 1" in out
    assert "Borrowed Book IDs: 100" in out
    assert out.rstrip().endswith("Goodbye.")


def test_errors_keep_the_loop_running(engine, monkeypatch, capsys):
    feed(monkeypatch, [
        "4", "9", "9",
        "abc",
        "2", "x", "5", "Priya",
        "7",
    ])
    cli.cli_loop(engine)
    out = capsys.readouterr().out
    assert "Error: Invalid user: 9" in out
    assert "Unknown choice" in out
    assert "Not a number: 'x'" in out
    assert engine.directory.find_user(5) is not None


def test_eof_ends_session(engine, monkeypatch, capsys):
    feed(monkeypatch, ["1", "3"])
    cli.cli_loop(engine)
    assert "Goodbye." in capsys.readouterr().out
    assert engine.directory.find_user(3) is None


def test_export_choice(lib, monkeypatch, tmp_path, capsys):
    feed(monkeypatch, ["8", str(tmp_path / "exp"), "7"])
    cli.cli_loop(lib)
    assert (tmp_path / "exp" / "books.csv").exists()
    assert (tmp_path / "exp" / "users.csv").exists()


def test_main_uses_db_flag(tmp_path, monkeypatch):
    db = tmp_path / "nested" / "lib.db"
    feed(monkeypatch, ["2", "5", "Priya", "7"])
    assert cli.main(["--db", str(db)]) == 0
    assert db.exists()


def test_resolve_db_path(tmp_path, monkeypatch):
    monkeypatch.setenv(config.DB_ENV_VAR, str(tmp_path / "env" / "a.db"))
    assert config.resolve_db_path() == (tmp_path / "env" / "a.db").resolve()
    assert config.resolve_db_path(tmp_path / "b.db") == (tmp_path / "b.db").resolve()
    monkeypatch.delenv(config.DB_ENV_VAR)
    monkeypatch.chdir(tmp_path)
    path = config.resolve_db_path()
    assert path == (tmp_path / "data" / "library_data.db").resolve()
    assert path.parent.is_dir()


def test_parser_rejects_bad_log_level():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--log-level", "LOUD"])


def test_out_of_range_id_reported_and_loop_continues(engine, monkeypatch, capsys):
    feed(monkeypatch, [
        "2", "99999999999999999999", "Priya",
        "2", "5", "Priya",
        "7",
    ])
    cli.cli_loop(engine)
    out = capsys.readouterr().out
    assert "Error: Value out of range" in out
    assert "Student 'Priya' added with ID 5." in out
    assert engine.directory.find_user(5) is not None
    assert engine.store.count_where("users") == 1
