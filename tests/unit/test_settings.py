import os

import pytest
from pydantic import ValidationError

from docbatch.config.settings import DEFAULT_SAMPLE_PERIOD, ClientSettings
from docbatch.utils.environment import (find_config_file, load_config,
                                        verify_gcp_credentials)

TOML_CONFIG = """
[client]
project_id = "toml-project"
database_id = "toml-db"
request_timeout_seconds = 12.5
"""


class TestClientSettings:

    def test_defaults(self):
        settings = ClientSettings()
        assert settings.project_id is None
        assert settings.database_id == "(default)"
        assert settings.emulator_host is None
        assert settings.request_timeout_seconds is None
        assert settings.metrics_export_interval_seconds == DEFAULT_SAMPLE_PERIOD

    @pytest.mark.parametrize("env_name", ["DOCBATCH_PROJECT_ID", "GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT"])
    def test_project_from_env(self, monkeypatch, env_name):
        monkeypatch.setenv(env_name, "env-project")
        assert ClientSettings().project_id == "env-project"

    def test_docbatch_project_wins_over_google_cloud_project(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "gcp")
        monkeypatch.setenv("DOCBATCH_PROJECT_ID", "mine")
        assert ClientSettings().project_id == "mine"

    def test_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("DOCBATCH_DATABASE_ID", "db-env")
        monkeypatch.setenv("DOCBATCH_REQUEST_TIMEOUT_SECONDS", "4")
        monkeypatch.setenv("DOCBATCH_BUILTIN_METRICS_ENABLED", "true")
        settings = ClientSettings()
        assert settings.database_id == "db-env"
        assert settings.request_timeout_seconds == 4.0
        assert settings.builtin_metrics_enabled is True

    def test_emulator_host(self, monkeypatch):
        monkeypatch.setenv("FIRESTORE_EMULATOR_HOST", "localhost:8080")
        assert ClientSettings().emulator_host == "localhost:8080"

    def test_toml_file_in_working_directory(self, isolated_env):
        (isolated_env / "docbatch.toml").write_text(TOML_CONFIG)
        settings = ClientSettings()
        assert settings.project_id == "toml-project"
        assert settings.database_id == "toml-db"
        assert settings.request_timeout_seconds == 12.5

    def test_env_overrides_toml(self, isolated_env, monkeypatch):
        (isolated_env / "docbatch.toml").write_text(TOML_CONFIG)
        monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "env-project")
        settings = ClientSettings()
        assert settings.project_id == "env-project"
        assert settings.database_id == "toml-db"

    def test_init_overrides_env(self, monkeypatch):
        monkeypatch.setenv("DOCBATCH_DATABASE_ID", "db-env")
        assert ClientSettings(database_id="db-init").database_id == "db-init"

    def test_dotenv_file(self, isolated_env):
        (isolated_env / ".env").write_text("DOCBATCH_DATABASE_ID=db-dotenv\n")
        assert ClientSettings().database_id == "db-dotenv"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ClientSettings(request_timeout_seconds=0)


class TestConfigFile:

    def test_no_config_file(self):
        assert find_config_file() is None
        assert load_config() == {}

    def test_config_path_env(self, tmp_path, monkeypatch):
        path = tmp_path / "elsewhere.toml"
        path.write_text(TOML_CONFIG)
        monkeypatch.setenv("DOCBATCH_CONFIG_PATH", str(path))
        assert find_config_file() == str(path)
        assert load_config()["client"]["database_id"] == "toml-db"

    def test_found_in_parent_directory(self, isolated_env, monkeypatch):
        (isolated_env / "docbatch.toml").write_text(TOML_CONFIG)
        nested = isolated_env / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert os.path.realpath(find_config_file()) == os.path.realpath(isolated_env / "docbatch.toml")

    def test_unparseable_config_raises(self, isolated_env):
        (isolated_env / "docbatch.toml").write_text("[client\nproject_id = ")
        with pytest.raises(RuntimeError, match="Failed to load configuration"):
            load_config()


class TestVerifyCredentials:

    def test_unset_relies_on_adc(self):
        assert verify_gcp_credentials() is None

    def test_existing_file(self, tmp_path, monkeypatch):
        creds = tmp_path / "sa.json"
        creds.write_text("{}")
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", str(creds))
        assert verify_gcp_credentials() == str(creds)

    def test_missing_file(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/nope/sa.json")
        with pytest.raises(ValueError, match="does not exist"):
            verify_gcp_credentials()
