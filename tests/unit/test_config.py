"""
Unit tests for settings loading.
"""

import pytest

from catalog_pipeline.config import Settings, load_settings
from catalog_pipeline.core.errors import ConfigurationError

pytestmark = pytest.mark.unit


def test_defaults(clean_env, tmp_path):
    settings = load_settings(env_file=tmp_path / "missing.env")

    assert settings.store_backend == "memory"
    assert settings.transform_cache_max_age == 300
    assert not settings.is_production


def test_environment_variables(clean_env, tmp_path):
    clean_env.setenv("APP_ENV", "production")
    clean_env.setenv("DB_PORT", "6543")
    clean_env.setenv("STORE_BACKEND", "postgres")

    settings = load_settings(env_file=tmp_path / "missing.env")

    assert settings.is_production
    assert settings.db_port == 6543
    assert settings.store_backend == "postgres"


def test_dotenv_file(clean_env, tmp_path):
    env_file = tmp_path / "test.env"
    env_file.write_text("DB_HOST=db.internal\nTRANSFORM_CACHE_MAX_AGE=60\n")

    settings = load_settings(env_file=env_file)

    assert settings.db_host == "db.internal"
    assert settings.transform_cache_max_age == 60


def test_yaml_overlay_wins_over_environment(clean_env, tmp_path):
    clean_env.setenv("DB_HOST", "from-env")
    config = tmp_path / "catalog.yaml"
    config.write_text("db_host: from-yaml\nlog_format: text\n")

    settings = load_settings(config, env_file=tmp_path / "missing.env")

    assert settings.db_host == "from-yaml"
    assert settings.log_format == "text"


def test_overlay_path_from_environment(clean_env, tmp_path):
    config = tmp_path / "catalog.yaml"
    config.write_text("app_env: staging\n")
    clean_env.setenv("CATALOG_CONFIG", str(config))

    assert load_settings(env_file=tmp_path / "missing.env").app_env == "staging"


def test_missing_overlay_raises(clean_env, tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_settings(tmp_path / "nope.yaml", env_file=tmp_path / "missing.env")


def test_invalid_value_raises(clean_env, tmp_path):
    clean_env.setenv("STORE_BACKEND", "redis")

    with pytest.raises(ConfigurationError):
        load_settings(env_file=tmp_path / "missing.env")


def test_non_mapping_overlay_raises(clean_env, tmp_path):
    config = tmp_path / "catalog.yaml"
    config.write_text("- just\n- a list\n")

    with pytest.raises(ConfigurationError, match="mapping"):
        load_settings(config, env_file=tmp_path / "missing.env")


def test_settings_model_defaults():
    assert Settings().api_port == 8000
