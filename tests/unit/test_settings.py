"""
Unit tests for settings and config loading.
"""

from pathlib import Path

import pytest

from dump_events.config import (
    ParserSettings,
    Settings,
    check_sops_installed,
    clear_settings_cache,
    decrypt_sops_file,
    get_settings,
    is_encrypted_config,
    load_config,
    load_config_file,
    load_yaml_file,
)


@pytest.fixture(autouse=True)
def _clear_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestParserSettings:
    """Tests for ParserSettings."""

    def test_defaults(self):
        settings = ParserSettings()
        assert settings.encoding == "utf-8"
        assert settings.batch_size == 1000
        assert settings.schemas == []
        assert settings.validate() == []

    def test_validate_errors(self):
        settings = ParserSettings(encoding="no-such-codec", batch_size=0)
        errors = settings.validate()

        assert len(errors) == 2
        assert any("batch_size" in e for e in errors)
        assert any("encoding" in e for e in errors)

    def test_from_dict_accepts_comma_strings(self):
        settings = ParserSettings.from_dict({"schemas": "app, billing", "tables": []})
        assert settings.schemas == ["app", "billing"]
        assert settings.tables == []

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DUMP_BATCH_SIZE", "250")
        monkeypatch.setenv("DUMP_TABLES", "app.users,orders")
        settings = ParserSettings.from_env()

        assert settings.batch_size == 250
        assert settings.tables == ["app.users", "orders"]

    def test_from_env_bad_int_uses_default(self, monkeypatch):
        monkeypatch.setenv("DUMP_BATCH_SIZE", "lots")
        assert ParserSettings.from_env().batch_size == 1000

    def test_round_trip_dict(self):
        settings = ParserSettings(encoding="latin-1", schemas=["app"])
        assert ParserSettings.from_dict(settings.to_dict()) == settings


class TestSettings:
    """Tests for Settings and get_settings."""

    def test_from_dict(self):
        settings = Settings.from_dict(
            {
                "storage": {"sqlite_db_path": "/tmp/replay.db"},
                "parser": {"batch_size": 10},
            }
        )
        assert settings.sqlite_db_path == "/tmp/replay.db"
        assert settings.parser.batch_size == 10

    def test_validate_rejects_other_backends(self):
        settings = Settings(storage_backend="postgres")
        assert settings.validate() == [
            "Only SQLite backend is supported in this version"
        ]

    def test_get_settings_from_yaml(self, tmp_path: Path):
        config = tmp_path / "config.yaml"
        config.write_text(
            "storage:\n"
            "  sqlite_db_path: data/custom.db\n"
            "parser:\n"
            "  schemas: [app]\n"
        )

        settings = get_settings(str(config))

        assert settings.sqlite_db_path == "data/custom.db"
        assert settings.parser.schemas == ["app"]

    def test_get_settings_falls_back_to_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("SQLITE_DB_PATH", "env.db")
        settings = get_settings(str(tmp_path / "missing.yaml"))

        assert settings.sqlite_db_path == "env.db"

    def test_invalid_yaml_falls_back_to_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("SQLITE_DB_PATH", "env.db")
        config = tmp_path / "config.yaml"
        config.write_text("- just\n- a list\n")

        assert get_settings(str(config)).sqlite_db_path == "env.db"

    def test_get_settings_is_cached(self, tmp_path: Path):
        path = str(tmp_path / "missing.yaml")
        assert get_settings(path) is get_settings(path)


class TestConfigLoading:
    """Tests for YAML loading helpers."""

    def test_load_yaml_file(self, tmp_path: Path):
        config = tmp_path / "config.yaml"
        config.write_text("parser:\n  encoding: latin-1\n")
        assert load_yaml_file(config) == {"parser": {"encoding": "latin-1"}}

    def test_empty_yaml_is_empty_dict(self, tmp_path: Path):
        config = tmp_path / "config.yaml"
        config.write_text("")
        assert load_yaml_file(config) == {}

    def test_non_mapping_rejected(self, tmp_path: Path):
        config = tmp_path / "config.yaml"
        config.write_text("42\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config_file(config)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "nope.yaml")

    def test_load_config_env_fallback(self, monkeypatch):
        monkeypatch.setenv("DUMP_SCHEMAS", "app")
        config = load_config(None)

        assert config["storage"]["backend"] == "sqlite"
        assert config["parser"]["schemas"] == "app"


class TestSopsLoading:
    """Tests for SOPS-encrypted config handling."""

    def test_is_encrypted_config(self):
        assert is_encrypted_config(Path("config.enc.yaml"))
        assert is_encrypted_config(Path("secrets/prod.enc.yml"))
        assert not is_encrypted_config(Path("config.yaml"))

    def test_sops_not_installed(self, tmp_path: Path, monkeypatch):
        """A missing sops binary is reported as RuntimeError."""
        config = tmp_path / "config.enc.yaml"
        config.write_text("sops: {}\n")

        def no_sops(*args, **kwargs):
            raise FileNotFoundError("sops")

        monkeypatch.setattr("dump_events.config.sops_loader.subprocess.run", no_sops)

        assert check_sops_installed() is False
        with pytest.raises(RuntimeError, match="SOPS not installed"):
            decrypt_sops_file(config)

    def test_encrypted_config_fallback(self, tmp_path: Path, monkeypatch):
        """get_settings falls back to env when decryption fails."""
        config = tmp_path / "config.enc.yaml"
        config.write_text("sops: {}\n")
        monkeypatch.setenv("SQLITE_DB_PATH", "env.db")

        def no_sops(*args, **kwargs):
            raise FileNotFoundError("sops")

        monkeypatch.setattr("dump_events.config.sops_loader.subprocess.run", no_sops)

        assert get_settings(str(config)).sqlite_db_path == "env.db"
