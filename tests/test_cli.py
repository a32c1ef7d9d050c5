"""
Spark Note Command Line Tests
"""

import json

import pytest

from spark_note.cli import main, EXIT_OK, EXIT_ERROR, EXIT_USAGE
from spark_note.protocol.note import Note
from spark_note.protocol.nullifier import generate_nullifier

pytestmark = pytest.mark.usefixtures("reset_logging")

SECRET_HEX = bytes(range(1, 9)).hex()


@pytest.fixture
def db_args(tmp_path):
    return ["--db", str(tmp_path / "spent.db")]


@pytest.fixture
def note_args():
    note = Note(100, bytes(range(1, 9)))
    return ["--value", "100", "--commitment", note.commitment.hex(), "--secret", SECRET_HEX]


def _expected_nullifier() -> str:
    note = Note(100, bytes(range(1, 9)))
    return generate_nullifier(note, note.secret).hex()


class TestLocalCommands:
    """Tests for commands that need no database."""

    def test_secret(self, capsys):
        assert main(["secret"]) == EXIT_OK
        out = capsys.readouterr().out.strip()
        assert len(bytes.fromhex(out)) == 32

    def test_secret_length(self, capsys):
        assert main(["secret", "--length", "16"]) == EXIT_OK
        assert len(capsys.readouterr().out.strip()) == 32

    def test_secret_too_short(self, capsys):
        assert main(["secret", "--length", "4"]) == EXIT_ERROR
        assert "SECRET_TooShort" in capsys.readouterr().err

    def test_commit(self, capsys):
        assert main(["commit", "--value", "100", "--secret", SECRET_HEX]) == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data == Note(100, bytes(range(1, 9))).to_public().to_dict()

    def test_commit_zero_value(self, capsys):
        assert main(["commit", "--value", "0", "--secret", SECRET_HEX]) == EXIT_ERROR
        assert "VALUE_Zero" in capsys.readouterr().err

    def test_nullify(self, capsys, note_args):
        assert main(["nullify", *note_args]) == EXIT_OK
        assert capsys.readouterr().out.strip() == _expected_nullifier()

    def test_nullify_wrong_secret(self, capsys, note_args):
        note_args[-1] = bytes(range(9, 17)).hex()
        assert main(["nullify", *note_args]) == EXIT_ERROR
        assert "OPERATION_ERROR" in capsys.readouterr().err


class TestStoreCommands:
    """Tests for commands backed by the spent nullifier database."""

    def test_spend_once(self, capsys, db_args, note_args):
        assert main([*db_args, "spend", *note_args]) == EXIT_OK
        assert capsys.readouterr().out.strip() == _expected_nullifier()

        assert main([*db_args, "spend", *note_args]) == EXIT_ERROR
        assert "NULLIFIER_AlreadySpent" in capsys.readouterr().err

    def test_check(self, capsys, db_args, note_args):
        main([*db_args, "spend", *note_args])
        capsys.readouterr()

        other = "00" * 32
        assert main([*db_args, "check", _expected_nullifier(), other]) == EXIT_OK
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines == [f"{_expected_nullifier()} spent", f"{other} unspent"]

    def test_check_bad_hex(self, capsys, db_args):
        assert main([*db_args, "check", "abc"]) == EXIT_ERROR
        assert "SERIALIZATION_ERROR" in capsys.readouterr().err

    def test_export_import(self, capsys, tmp_path, db_args, note_args):
        main([*db_args, "spend", *note_args])
        export_file = tmp_path / "export.json"
        assert main([*db_args, "export", "--output", str(export_file)]) == EXIT_OK
        assert json.loads(export_file.read_text()) == {
            "version": 1,
            "nullifiers": [_expected_nullifier()],
        }

        other_db = ["--db", str(tmp_path / "other.db")]
        capsys.readouterr()
        assert main([*other_db, "import", str(export_file)]) == EXIT_OK
        assert "Imported 1 new nullifiers" in capsys.readouterr().out

        assert main([*other_db, "spend", *note_args]) == EXIT_ERROR

    def test_export_stdout(self, capsys, db_args):
        assert main([*db_args, "export"]) == EXIT_OK
        assert json.loads(capsys.readouterr().out) == {"version": 1, "nullifiers": []}

    def test_import_bad_file(self, capsys, tmp_path, db_args):
        bad = tmp_path / "bad.json"
        bad.write_text('{"version": 7, "nullifiers": []}')
        assert main([*db_args, "import", str(bad)]) == EXIT_ERROR

    def test_import_non_utf8_file(self, capsys, tmp_path, db_args):
        bad = tmp_path / "bad.json"
        bad.write_bytes(b'{"version": 1, "nullifiers": ["\xff\xfe"]}')
        assert main([*db_args, "import", str(bad)]) == EXIT_ERROR
        assert "SERIALIZATION_ERROR" in capsys.readouterr().err

    def test_database_path_is_directory(self, capsys, tmp_path):
        """Test an unopenable database reports an error instead of a traceback."""
        db_dir = tmp_path / "not-a-file"
        db_dir.mkdir()
        assert main(["--db", str(db_dir), "check", "aa" * 32]) == EXIT_ERROR
        assert "OPERATION_ERROR" in capsys.readouterr().err


class TestUsage:
    """Tests for usage and configuration errors."""

    def test_no_command(self, capsys):
        assert main([]) == EXIT_USAGE

    def test_unknown_command(self):
        with pytest.raises(SystemExit) as exc:
            main(["frobnicate"])
        assert exc.value.code == EXIT_USAGE

    def test_missing_required_option(self):
        with pytest.raises(SystemExit) as exc:
            main(["commit", "--value", "1"])
        assert exc.value.code == EXIT_USAGE

    def test_config_file(self, capsys, tmp_path):
        config = tmp_path / "spark.json"
        config.write_text(json.dumps({"secret": {"default_length": 64}}))
        assert main(["--config", str(config), "secret"]) == EXIT_OK
        assert len(bytes.fromhex(capsys.readouterr().out.strip())) == 64

    def test_invalid_config(self, capsys, tmp_path):
        config = tmp_path / "spark.json"
        config.write_text(json.dumps({"secret": {"default_length": 2}}))
        assert main(["--config", str(config), "secret"]) == EXIT_ERROR
        assert "default_length" in capsys.readouterr().err

    def test_missing_config(self, capsys, tmp_path):
        assert main(["--config", str(tmp_path / "nope.json"), "secret"]) == EXIT_ERROR
