"""Tests for TasklyConfig loading and gateway selection."""

import pytest

from taskly.adapters import InMemoryGateway, LocalFileGateway, RestGateway
from taskly.config import TasklyConfig, create_gateway


@pytest.fixture(autouse=True)
def _env(clean_env):
    pass


class TestLoad:
    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = TasklyConfig.load(tmp_path / "missing.yaml")
        assert cfg.backend == "local"
        assert cfg.owner_id == "local"
        assert cfg.request_timeout == 10.0

    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("backend: rest\napi_url: https://api.example.test\nrequest_timeout: 3\nunused: 1\n")
        cfg = TasklyConfig.load(path)
        assert cfg.backend == "rest"
        assert cfg.api_url == "https://api.example.test"
        assert cfg.request_timeout == 3

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert TasklyConfig.load(path).backend == "local"

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            TasklyConfig.load(path)

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("backend: rest\n")
        monkeypatch.setenv("TASKLY_BACKEND", "memory")
        monkeypatch.setenv("TASKLY_REQUEST_TIMEOUT", "2.5")
        cfg = TasklyConfig.load(path)
        assert cfg.backend == "memory"
        assert cfg.request_timeout == 2.5

    def test_data_path_expands_user(self):
        cfg = TasklyConfig(data_file="~/boards.json")
        assert "~" not in str(cfg.data_path)


class TestCreateGateway:
    def test_memory(self):
        assert isinstance(create_gateway(TasklyConfig(backend="memory")), InMemoryGateway)

    def test_local(self, tmp_path):
        gateway = create_gateway(TasklyConfig(backend="local", data_file=str(tmp_path / "t.json"), owner_id="me"))
        assert isinstance(gateway, LocalFileGateway)
        assert gateway.owner_id == "me"

    def test_rest(self):
        cfg = TasklyConfig(backend="rest", api_url="https://api.example.test", api_token="t", request_timeout=4)
        gateway = create_gateway(cfg)
        assert isinstance(gateway, RestGateway)
        assert gateway.timeout == 4

    @pytest.mark.parametrize("missing", ["api_url", "api_token"])
    def test_rest_requires_credentials(self, missing):
        cfg = TasklyConfig(backend="rest", api_url="https://api.example.test", api_token="t")
        setattr(cfg, missing, "")
        with pytest.raises(ValueError, match=missing):
            create_gateway(cfg)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown backend"):
            create_gateway(TasklyConfig(backend="carrier-pigeon"))
