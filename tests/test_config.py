import pytest

from fallback_docdb import StoreConfig, get_config

ENV_VARS = ("MONGODB_URI", "MONGODB_DATABASE", "MONGODB_APP_NAME", "MONGODB_TIMEOUT_MS", "DOCDB_DATA_DIR", "USE_LOCAL_DB")


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    for name in ENV_VARS:
        # setenv first so teardown also undoes values loaded from .env
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # keep any developer .env out of the way
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_defaults(clean_env):
    cfg = get_config()
    assert cfg == StoreConfig()
    assert cfg.database_name == "akoko"
    assert cfg.data_dir == "data"
    assert not cfg.remote_enabled


def test_env_overrides(clean_env):
    clean_env.setenv("MONGODB_URI", "mongodb+srv://user:pw@cluster.example/akoko")
    clean_env.setenv("MONGODB_DATABASE", "school")
    clean_env.setenv("MONGODB_TIMEOUT_MS", "2500")
    clean_env.setenv("DOCDB_DATA_DIR", "/var/lib/school")
    cfg = get_config()
    assert cfg.mongodb_uri.startswith("mongodb+srv://")
    assert cfg.database_name == "school"
    assert cfg.connect_timeout_ms == 2500
    assert cfg.data_dir == "/var/lib/school"
    assert cfg.remote_enabled

    clean_env.setenv("USE_LOCAL_DB", "true")
    assert not get_config().remote_enabled


def test_dotenv_file_is_loaded(clean_env, tmp_path):
    (tmp_path / ".env").write_text("DOCDB_DATA_DIR=from-dotenv\n", encoding="utf-8")
    assert get_config().data_dir == "from-dotenv"


def test_blank_values_use_defaults(clean_env):
    clean_env.setenv("MONGODB_URI", "   ")
    clean_env.setenv("MONGODB_DATABASE", "")
    cfg = get_config()
    assert cfg.mongodb_uri is None
    assert cfg.database_name == "akoko"


def test_bad_timeout(clean_env):
    clean_env.setenv("MONGODB_TIMEOUT_MS", "soon")
    with pytest.raises(ValueError):
        get_config()
