"""Unit tests for settings loading."""

from pathlib import Path

from material_cost_engine.config import Settings

CONFIG_TOML = """
stop_on_error = false
history_sheet_name = "履歴"

[paths]
input_file = "data/原価計算表.xlsx"
output_file = "out/結果.xlsx"
"""


class TestSettings:
    """Tests for Settings source priority."""

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = Settings()
        assert settings.paths.input_file == Path("直接材料費原価計算表.xlsx")
        assert settings.paths.output_file == Path("直接材料費原価計算表_結果.xlsx")
        assert settings.history_sheet_name == "入出庫履歴"
        assert settings.stop_on_error is True

    def test_reads_config_toml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.toml").write_text(CONFIG_TOML, encoding="utf-8")

        settings = Settings()
        assert settings.paths.input_file == Path("data/原価計算表.xlsx")
        assert settings.paths.output_file == Path("out/結果.xlsx")
        assert settings.history_sheet_name == "履歴"
        assert settings.stop_on_error is False

    def test_environment_overrides_toml(self, tmp_path, monkeypatch):
        """Nested env values override only the key they name."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.toml").write_text(CONFIG_TOML, encoding="utf-8")
        monkeypatch.setenv("PATHS__INPUT_FILE", "env.xlsx")
        monkeypatch.setenv("STOP_ON_ERROR", "true")

        settings = Settings()
        assert settings.paths.input_file == Path("env.xlsx")
        assert settings.paths.output_file == Path("out/結果.xlsx")
        assert settings.stop_on_error is True

    def test_only_used_fields(self):
        assert set(Settings.model_fields) == {
            "paths",
            "stop_on_error",
            "history_sheet_name",
            "api_host",
            "api_port",
            "api_reload",
            "log_level",
        }
