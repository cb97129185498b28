"""Tests for CLI commands."""

import pytest
from typer.testing import CliRunner

from taxreturn.cli import app

runner = CliRunner()


@pytest.fixture
def db(tmp_path):
    path = tmp_path / "taxreturn.db"
    result = runner.invoke(app, ["config", "import", "--db", str(path)])
    assert result.exit_code == 0, result.output
    return path


@pytest.fixture
def documents(tmp_path, w2_text, int_text):
    w2 = tmp_path / "w2.txt"
    w2.write_text(w2_text)
    interest = tmp_path / "int.txt"
    interest.write_text(int_text)
    return w2, interest


def _create_return(db, *args) -> str:
    result = runner.invoke(app, ["return", "create", "--year", "2024", "--db", str(db), *args])
    assert result.exit_code == 0, result.output
    return result.stdout.strip()


class TestCLI:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "ingest" in result.output

    @pytest.mark.parametrize("command", ["ingest", "calculate", "report", "schedule-d", "classify"])
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestConfigCommands:
    def test_import_bundled_tables(self, db):
        result = runner.invoke(app, ["config", "years", "--db", str(db)])
        assert result.exit_code == 0
        assert "2024" in result.output
        assert "2025" in result.output
        assert "2023" in result.output

    def test_years_empty(self, tmp_path):
        result = runner.invoke(app, ["config", "years", "--db", str(tmp_path / "empty.db")])
        assert result.exit_code == 0
        assert "No tax years configured" in result.output

    def test_deduction(self, db):
        result = runner.invoke(app, ["config", "deduction", "2024", "--status", "MFJ", "--db", str(db)])
        assert result.exit_code == 0
        assert "standard deduction (married_joint): $29,200.00" in result.output

    def test_brackets(self, db):
        result = runner.invoke(app, ["config", "brackets", "2024", "--db", str(db)])
        assert result.exit_code == 0
        assert "37.00%" in result.output

    def test_missing_year(self, db):
        result = runner.invoke(app, ["config", "deduction", "2019", "--db", str(db)])
        assert result.exit_code == 1

    def test_invalid_status(self, db):
        result = runner.invoke(app, ["config", "deduction", "2024", "--status", "BOGUS", "--db", str(db)])
        assert result.exit_code == 1
        assert "Invalid filing status" in result.output


class TestReturnWorkflow:
    def test_create_and_list(self, db):
        return_id = _create_return(db, "--status", "HOH", "--first-name", "Jane")
        result = runner.invoke(app, ["return", "list", "--db", str(db)])
        assert result.exit_code == 0
        assert "Tax Returns" in result.output

        result = runner.invoke(app, ["return", "show", return_id, "--db", str(db)])
        assert result.exit_code == 0
        assert "Filing status:   head_of_household" in result.output
        assert "Not calculated yet." in result.output

    def test_show_missing(self, db):
        result = runner.invoke(app, ["return", "show", "missing", "--db", str(db)])
        assert result.exit_code == 1

    def test_ingest_calculate_report(self, db, documents, tmp_path):
        return_id = _create_return(db, "--state", "CA")

        result = runner.invoke(app, ["ingest", return_id, *map(str, documents), "--no-llm", "--db", str(db)])
        assert result.exit_code == 0, result.output
        assert "Ingested 2 document(s), 0 error(s)." in result.output

        result = runner.invoke(app, ["calculate", return_id, "--db", str(db)])
        assert result.exit_code == 0, result.output
        assert "Refund" in result.output
        assert "CA tax" in result.output

        out_dir = tmp_path / "reports"
        result = runner.invoke(app, ["report", return_id, "--output", str(out_dir), "--db", str(db)])
        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in out_dir.iterdir()) == ["form1040.txt", "form8949.txt", "schedule_d.txt"]
        form1040 = (out_dir / "form1040.txt").read_text()
        assert "FORM 1040" in form1040
        assert "$60,000.00" in form1040

    def test_report_before_calculate(self, db):
        return_id = _create_return(db)
        result = runner.invoke(app, ["report", return_id, "--db", str(db)])
        assert result.exit_code == 1
        assert "not calculated yet" in result.output

    def test_ingest_unknown_return(self, db, documents):
        result = runner.invoke(app, ["ingest", "missing", str(documents[0]), "--no-llm", "--db", str(db)])
        assert result.exit_code == 1

    def test_ingest_unsupported_file(self, db, tmp_path):
        return_id = _create_return(db)
        image = tmp_path / "scan.png"
        image.write_bytes(b"\x89PNG")
        result = runner.invoke(app, ["ingest", return_id, str(image), "--no-llm", "--db", str(db)])
        assert result.exit_code == 1
        assert "0 document(s), 1 error(s)" in result.output

    def test_schedule_d(self, db, tmp_path, b_text):
        return_id = _create_return(db)
        brokerage = tmp_path / "b.txt"
        brokerage.write_text(b_text)
        runner.invoke(app, ["ingest", return_id, str(brokerage), "--no-llm", "--db", str(db)])

        result = runner.invoke(app, ["schedule-d", return_id, "--db", str(db)])
        assert result.exit_code == 0, result.output
        assert "FORM 8949" in result.output
        assert "SCHEDULE D" in result.output
        assert "$3,200.00" in result.output


class TestClassify:
    def test_classify(self, documents):
        result = runner.invoke(app, ["classify", str(documents[0])])
        assert result.exit_code == 0
        assert result.stdout.strip() == "W-2"

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["classify", str(tmp_path / "nope.txt")])
        assert result.exit_code == 1
