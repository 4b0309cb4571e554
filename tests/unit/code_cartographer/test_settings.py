from pathlib import Path

import pytest

from code_cartographer import settings as settings_module
from code_cartographer.settings import Settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings_module, "ENV_FILE", "")
    for name in (
        "FORMAT",
        "DOCUMENTATION_TYPE",
        "IGNORE_PATTERNS",
        "MAX_FILE_SIZE",
        "USE_CONFIG_FILE",
        "DEBUG_MODE",
        "LOG_FILE",
    ):
        monkeypatch.delenv(f"CARTOGRAPHER_{name}", raising=False)


@pytest.mark.unit
def test_defaults() -> None:
    settings = Settings.from_env()

    assert settings.format == ""
    assert settings.max_file_size is None
    assert settings.use_config_file is True
    assert settings.debug_mode is False
    assert settings.ignore_patterns == []


@pytest.mark.unit
def test_environment_variables_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARTOGRAPHER_FORMAT", "csv")
    monkeypatch.setenv("CARTOGRAPHER_IGNORE_PATTERNS", "**/*.snap, fixtures/** ,")
    monkeypatch.setenv("CARTOGRAPHER_MAX_FILE_SIZE", "1024")
    monkeypatch.setenv("CARTOGRAPHER_USE_CONFIG_FILE", "no")
    monkeypatch.setenv("CARTOGRAPHER_DEBUG_MODE", "TRUE")

    settings = Settings.from_env()

    assert settings.format == "csv"
    assert settings.ignore_patterns == ["**/*.snap", "fixtures/**"]
    assert settings.max_file_size == 1024
    assert settings.use_config_file is False
    assert settings.debug_mode is True


@pytest.mark.unit
def test_dotenv_file_is_overlaid_by_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("CARTOGRAPHER_FORMAT=txt\nCARTOGRAPHER_MAX_FILE_SIZE=10\n", encoding="utf-8")
    monkeypatch.setattr(settings_module, "ENV_FILE", str(env_file))
    monkeypatch.setenv("CARTOGRAPHER_MAX_FILE_SIZE", "20")

    settings = Settings.from_env()

    assert settings.format == "txt"
    assert settings.max_file_size == 20


@pytest.mark.unit
def test_explicit_overrides_win_and_none_is_ignored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARTOGRAPHER_FORMAT", "csv")

    settings = Settings.from_env(repo=tmp_path, format="json", max_file_size=None)

    assert settings.repo == tmp_path
    assert settings.format == "json"
    assert settings.max_file_size is None


@pytest.mark.unit
def test_negative_max_file_size_is_rejected() -> None:
    with pytest.raises(ValueError, match="max_file_size"):
        Settings(max_file_size=-1)
