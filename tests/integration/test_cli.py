"""Integration tests for scripts/cli.py."""

import importlib.util
import json
from pathlib import Path

import httpx
import openpyxl
import pytest

CLI_PATH = Path(__file__).resolve().parents[2] / "scripts" / "cli.py"


@pytest.fixture(name="cli")
def cli_fixture(tmp_path, monkeypatch):
    """Load the CLI module with logging setup disabled and an empty working directory."""
    spec = importlib.util.spec_from_file_location("material_cost_cli", CLI_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(module, "configure_logging", lambda **kwargs: None)
    return module


class TestRunCommand:
    """Tests for `cli.py run`."""

    def test_run_prints_summary(self, cli, sample_workbook, tmp_path, capsys):
        output = tmp_path / "結果.xlsx"
        cli.main(["run", "--input", str(sample_workbook), "--output", str(output)])

        summary = json.loads(capsys.readouterr().out)
        assert summary == {
            "output_file": str(output),
            "batches_processed": 2,
            "batches_failed": 0,
            "history_records": 6,
        }
        assert "入出庫履歴" in openpyxl.load_workbook(output).sheetnames

    def test_missing_input_exits_with_error(self, cli, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["run", "--input", str(tmp_path / "nope.xlsx")])

        assert exc_info.value.code == 1
        assert "Could not open input workbook" in capsys.readouterr().err

    def test_continue_on_error(self, cli, sample_workbook, tmp_path, capsys):
        workbook = openpyxl.load_workbook(sample_workbook)
        workbook["【入庫】生産"].append(
            [3, "2024-01-17", "P999", "L-03", 10, None, None, 1.0, None, None, None, None, None]
        )
        workbook.save(sample_workbook)

        cli.main(
            [
                "run",
                "--input", str(sample_workbook),
                "--output", str(tmp_path / "out.xlsx"),
                "--continue-on-error",
            ]
        )
        summary = json.loads(capsys.readouterr().out)
        assert summary["batches_processed"] == 2
        assert summary["batches_failed"] == 1

    def test_resolve_settings_reads_config_toml(self, cli, tmp_path):
        (tmp_path / "config.toml").write_text(
            '[paths]\ninput_file = "from_toml.xlsx"\n', encoding="utf-8"
        )
        args = cli.build_parser().parse_args(["run", "--output", "x.xlsx"])
        settings = cli.resolve_settings(args)
        assert settings.paths.input_file == Path("from_toml.xlsx")
        assert settings.paths.output_file == Path("x.xlsx")
        assert settings.stop_on_error is True


class TestRemoteCommands:
    """Tests for commands that call a running API."""

    def test_history_passes_product_code(self, cli, monkeypatch, capsys):
        calls = []

        def fake_get(url, params=None, timeout=None):
            calls.append((url, params))
            return httpx.Response(
                200,
                json={"records": [], "total": 0},
                request=httpx.Request("GET", url),
            )

        monkeypatch.setattr(cli.httpx, "get", fake_get)
        cli.main(["--base-url", "http://api:9000", "history", "--product-code", "P001"])

        assert calls == [("http://api:9000/api/inventory-history/", {"product_code": "P001"})]
        assert json.loads(capsys.readouterr().out) == {"records": [], "total": 0}

    def test_costs_error_exits(self, cli, monkeypatch, capsys):
        def fake_get(url, params=None, timeout=None):
            return httpx.Response(
                404,
                json={"detail": "No formula found for product code 'P999'"},
                request=httpx.Request("GET", url),
            )

        monkeypatch.setattr(cli.httpx, "get", fake_get)
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["costs", "--continue-on-error"])

        assert exc_info.value.code == 1
        assert "Error 404" in capsys.readouterr().err


def test_no_command_prints_help(cli):
    with pytest.raises(SystemExit) as exc_info:
        cli.main([])
    assert exc_info.value.code == 1
