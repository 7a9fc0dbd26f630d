"""Tests for YAML loading, environment overrides and domain builders."""

from __future__ import annotations

from pathlib import Path

import pytest

from neurowave.core.profile import EvaluationSettings, TargetProfile
from neurowave.utils.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader
from neurowave.utils.errors import ConfigurationError, ErrorCode

CONFIG_TEXT = """
settings:
  sample_rate: 60.0
  success_threshold: 0.8
profiles:
  - profile_id: jock
    display_name: Chad Maxwell
    targets: [0.1, 0.2, 0.6, 0.6, 0.2]
    tolerances: [0.2, 0.2, 0.2, 0.2, 0.2]
server:
  port: 9100
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_TEXT, encoding="utf-8")
    return path


class TestLoadConfig:
    """Tests for ConfigLoader.load_config."""

    def test_loads_and_validates(self, config_file: Path) -> None:
        config = ConfigLoader.load_config(config_file, env_override=False)
        assert config["settings"]["sample_rate"] == 60.0
        # Defaults are filled in by validation.
        assert config["settings"]["overload_threshold"] == 0.25
        assert config["profiles"][0]["weights"] == [1.0] * 5

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader.load_config(tmp_path / "missing.yaml")
        assert exc_info.value.code == ErrorCode.E801_INVALID_CONFIG_FILE

    def test_unsupported_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "config.ini"
        path.write_text("[settings]\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Unsupported"):
            ConfigLoader.load_config(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("settings: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigLoader.load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigLoader.load_config(path)

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        config = ConfigLoader.load_config(path, env_override=False)
        assert config["settings"]["sample_rate"] == 30.0

    def test_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text('{"settings": {"smoothing_tau": 0.5}}', encoding="utf-8")
        config = ConfigLoader.load_config(path, env_override=False)
        assert config["settings"]["smoothing_tau"] == 0.5

    def test_invalid_values_raise(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(
            "profiles:\n  - profile_id: x\n    tolerances: [0.1, 0.1, 0.0, 0.1, 0.1]\n",
            encoding="utf-8",
        )
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigLoader.load_config(path, env_override=False)
        assert exc_info.value.code == ErrorCode.E803_CONFIG_VALIDATION_FAILED


class TestEnvOverrides:
    """Tests for NEUROWAVE_* environment overrides."""

    def test_nested_override(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NEUROWAVE_SETTINGS__SAMPLE_RATE", "120")
        monkeypatch.setenv("NEUROWAVE_SERVER__HOST", "0.0.0.0")
        monkeypatch.setenv("NEUROWAVE_SETTINGS__VERBOSE_LOGGING", "yes")
        config = ConfigLoader.load_config(config_file)
        assert config["settings"]["sample_rate"] == 120.0
        assert config["server"]["host"] == "0.0.0.0"
        assert config["settings"]["verbose_logging"] is True

    def test_non_nested_variables_ignored(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NEUROWAVE_CONFIG_PATH", str(config_file))
        config = ConfigLoader.load_config(config_file)
        assert "config_path" not in config

    def test_override_into_scalar_refused(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NEUROWAVE_SETTINGS__SAMPLE_RATE__X", "1")
        with pytest.raises(ConfigurationError, match="not a mapping"):
            ConfigLoader.load_config(config_file)

    def test_overrides_can_be_disabled(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("NEUROWAVE_SERVER__PORT", "9999")
        config = ConfigLoader.load_config(config_file, env_override=False)
        assert config["server"]["port"] == 9100

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("true", True),
            ("OFF", False),
            ("1", 1),
            ("0", 0),
            ("2.5", 2.5),
            ("INFO", "INFO"),
        ],
    )
    def test_parse_env_value(self, raw: str, expected: object) -> None:
        value = ConfigLoader._parse_env_value(raw)
        assert value == expected
        assert type(value) is type(expected)


class TestBuilders:
    """Tests for building domain objects from validated config."""

    def test_build_settings_and_profiles(self, config_file: Path) -> None:
        config = ConfigLoader.load_validated_config(config_file, env_override=False)
        settings = ConfigLoader.build_settings(config)
        profiles = ConfigLoader.build_profiles(config)

        assert isinstance(settings, EvaluationSettings)
        assert settings.sample_rate == 60.0
        assert settings.success_threshold == 0.8
        assert list(profiles) == ["jock"]
        assert isinstance(profiles["jock"], TargetProfile)
        assert profiles["jock"].targets == (0.1, 0.2, 0.6, 0.6, 0.2)

    def test_bundled_default_config(self) -> None:
        assert DEFAULT_CONFIG_PATH.is_file()
        config = ConfigLoader.load_default_config(env_override=False)
        profiles = ConfigLoader.build_profiles(config)
        assert len(profiles) == 18
        assert profiles["grandma"].display_name == "Edith Witherbottom"
        assert all(p.tolerances == (0.15,) * 5 for p in profiles.values())
