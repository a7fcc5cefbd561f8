"""Tests for settings loading."""
from cdmi.config import Settings


class TestSettings:
    def test_env_vars_override_defaults(self, monkeypatch):
        monkeypatch.setenv("MAX_PAGE_SIZE", "7")
        monkeypatch.setenv("DELETE_REQUIRES_CREDENTIAL", "true")

        loaded = Settings()

        assert loaded.MAX_PAGE_SIZE == 7
        assert loaded.DELETE_REQUIRES_CREDENTIAL is True

    def test_reads_backend_env_file(self):
        assert Settings.model_config["env_file"] == ".env.backend"
