import pytest
import yaml

from budget_tracker import config as config_module
from budget_tracker.config import DEFAULT_CONFIG, apply_env_overrides, load_config, save_config


def test_load_config_defaults_when_missing(tmp_path):
    cfg = load_config(tmp_path / "missing.yaml", environ={})

    assert cfg["database"]["url"] is None
    assert cfg["server"]["port"] == 3001
    assert cfg["cors_origins"] == ["http://localhost:3000"]
    assert cfg["pagination"]["default_limit"] == 100

    cfg["pagination"]["default_limit"] = 5
    assert DEFAULT_CONFIG["pagination"]["default_limit"] == 100


def test_load_config_merges_nested_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump({"database": {"path": "custom.db"}, "server": {"port": 8080}})
    )

    cfg = load_config(path, environ={})

    assert cfg["database"]["path"] == "custom.db"
    assert cfg["database"]["url"] is None
    assert cfg["server"]["port"] == 8080
    assert cfg["server"]["host"] == "0.0.0.0"
    assert "csv" in cfg["output_modules"]


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError, match="mapping"):
        load_config(path, environ={})


def test_environment_overrides():
    cfg = load_config(
        environ={
            "DATABASE_URL": "postgresql://budget:secret@db/budget",
            "DB_TYPE": "SQLite",
            "HOST": "127.0.0.1",
            "PORT": "4000",
            "CORS_ORIGINS": "https://budget.example.com, http://localhost:5173,",
            "LOG_LEVEL": "debug",
        }
    )

    assert cfg["database"]["url"] == "postgresql://budget:secret@db/budget"
    assert cfg["database"]["type"] == "sqlite"
    assert cfg["server"] == {"host": "127.0.0.1", "port": 4000}
    assert cfg["cors_origins"] == ["https://budget.example.com", "http://localhost:5173"]
    assert cfg["log_level"] == "DEBUG"


def test_invalid_port_override():
    cfg = load_config(environ={})
    with pytest.raises(ValueError, match="PORT"):
        apply_env_overrides(cfg, {"PORT": "eighty"})


def test_env_defaults_to_process_environment(monkeypatch):
    monkeypatch.setenv("PORT", "5050")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert config_module.load_config()["server"]["port"] == 5050


def test_save_config_roundtrip(tmp_path):
    path = tmp_path / "nested" / "config.yaml"
    save_config({"server": {"port": 9000}}, path)

    cfg = load_config(path, environ={})
    assert cfg["server"]["port"] == 9000
    assert cfg["database"]["path"] == DEFAULT_CONFIG["database"]["path"]
