import pytest
import yaml

from saintdaniels.shared.core.configuration import (
    ENV_OVERRIDES,
    ConfigManager,
    ValidationLevel,
    get_config,
)
from saintdaniels.shared.domain.models import RewardCategory


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_OVERRIDES:
        monkeypatch.delenv(key, raising=False)


def _write(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


def test_packaged_defaults(tmp_path):
    config = ConfigManager(tmp_path).get_config()

    assert config.session.starter_points == 2500
    assert config.auth.sign_in_max_retries == 2
    assert config.logging.file is None
    assert len(config.rewards.catalog) == 5
    assert config.rewards.catalog[0].category is RewardCategory.GIFT_CARDS


def test_project_overrides_user(tmp_path):
    _write(tmp_path / "user.yaml", {"session": {"starter_points": 100}, "auth": {"retry_delay": 2.0}})
    _write(tmp_path / "project.yaml", {"session": {"starter_points": 200}})

    config = ConfigManager(tmp_path).get_config()

    assert config.session.starter_points == 200
    assert config.auth.retry_delay == 2.0
    # Untouched sections keep their defaults
    assert config.auth.sign_in_max_retries == 2


def test_environment_overrides_files(tmp_path, monkeypatch):
    _write(tmp_path / "project.yaml", {"session": {"starter_points": 200}})
    monkeypatch.setenv("SAINTDANIELS_STARTER_POINTS", "300")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = ConfigManager(tmp_path).get_config()

    assert config.session.starter_points == 300
    assert config.logging.level == "debug"


def test_malformed_env_value_is_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("SAINTDANIELS_RETRY_DELAY", "soon")
    assert ConfigManager(tmp_path).get_config().auth.retry_delay == 0.5


def test_strict_validation_raises(tmp_path):
    _write(tmp_path / "project.yaml", {"session": {"starter_points": -5}})
    with pytest.raises(ValueError):
        ConfigManager(tmp_path).get_config(ValidationLevel.STRICT)


def test_lenient_validation_falls_back_to_defaults(tmp_path):
    _write(tmp_path / "project.yaml", {"session": {"starter_points": -5}})
    config = ConfigManager(tmp_path).get_config(ValidationLevel.LENIENT)
    assert config.session.starter_points == 2500
    assert len(config.rewards.catalog) == 5
    assert config.rewards.catalog[0].id == "amazon-25"


def test_unknown_keys_are_rejected(tmp_path):
    _write(tmp_path / "user.yaml", {"session": {"bonus": 1}})
    with pytest.raises(ValueError):
        ConfigManager(tmp_path).get_config()


def test_invalid_yaml_is_skipped(tmp_path):
    (tmp_path / "user.yaml").write_text("session: [unclosed", encoding="utf-8")
    assert ConfigManager(tmp_path).get_config().session.starter_points == 2500


def test_save_project_config(tmp_path):
    manager = ConfigManager(tmp_path / "nested")
    assert manager.get_config().session.starter_points == 2500

    assert manager.save_project_config({"session": {"starter_points": 1234}})
    assert manager.get_config().session.starter_points == 1234

    assert manager.save_project_config({"auth": {"sign_in_max_retries": 0}})
    config = manager.get_config()
    assert config.session.starter_points == 1234
    assert config.auth.sign_in_max_retries == 0


def test_reload_picks_up_file_changes(tmp_path):
    manager = ConfigManager(tmp_path)
    assert manager.get_config().session.starter_points == 2500

    _write(tmp_path / "user.yaml", {"session": {"starter_points": 7}})
    assert manager.get_config().session.starter_points == 2500

    manager.reload_config()
    assert manager.get_config().session.starter_points == 7


def test_get_config_helper(tmp_path):
    assert get_config(tmp_path).session.starter_points == 2500
