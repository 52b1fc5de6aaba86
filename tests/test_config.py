import pytest
from pydantic import ValidationError

from recosim.config import Settings, get_settings, set_settings


def test_paths_derive_from_data_dir(tmp_path):
    settings = Settings(data_dir=tmp_path / "data")

    assert settings.get_data_dir() == tmp_path / "data"
    assert settings.get_data_dir().is_dir()
    assert settings.get_database_path() == tmp_path / "data" / "recosim.db"
    assert settings.get_audit_path() == tmp_path / "data" / "activity.jsonl"


def test_explicit_database_path_wins(tmp_path):
    settings = Settings(data_dir=tmp_path / "data", database_path=tmp_path / "db" / "store.db")

    assert settings.get_database_path() == tmp_path / "db" / "store.db"
    assert (tmp_path / "db").is_dir()


def test_xdg_data_home_used_by_default(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("RECOSIM_DATA_DIR", raising=False)

    assert Settings().get_data_dir() == tmp_path / "xdg" / "recosim"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RECOSIM_VECTOR_DIMENSIONS", "64")
    monkeypatch.setenv("RECOSIM_SEGMENT_COUNT", "3")
    monkeypatch.setenv("RECOSIM_AUDIT_ENABLED", "false")

    settings = Settings()

    assert settings.vector_dimensions == 64
    assert settings.segment_count == 3
    assert settings.audit_enabled is False


@pytest.mark.parametrize(
    "field, value",
    [
        ("vector_dimensions", 4),
        ("recent_interactions", 0),
        ("default_top_n", 0),
        ("segment_count", 0),
        ("kmeans_max_iterations", 0),
        ("vector_salt", ""),
        ("log_level", "LOUD"),
    ],
)
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})


def test_global_settings_can_be_replaced(tmp_path):
    import recosim.config as config_module

    original = config_module._settings
    try:
        replacement = Settings(data_dir=tmp_path)
        set_settings(replacement)
        assert get_settings() is replacement
    finally:
        config_module._settings = original
