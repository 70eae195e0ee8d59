# tests/test_config.py
import pytest

from sharepoint_fs.config import (CHUNK_ALIGNMENT, DEFAULT_PUBLIC_CLIENT_ID, ENV_VARS, MAX_CHUNK_SIZE, Config,
                                  align_chunk_size, parse_config)

SITE_URL = "https://contoso.sharepoint.com/sites/Team"


@pytest.fixture
def clean_env(monkeypatch):
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)
    # Keep a developer's .env out of the picture
    monkeypatch.setattr("sharepoint_fs.config.load_dotenv", lambda *args, **kwargs: False)
    return monkeypatch


def test_defaults():
    config = Config(url=SITE_URL + "/", client_id="c", client_secret="s")

    assert config.url == SITE_URL
    assert config.tenant_id == "organizations"
    assert config.login_endpoint == "login.microsoftonline.com"
    assert config.graph_endpoint == "graph.microsoft.com"
    assert config.max_retry == 3
    assert config.upload_threshold == 4 * 1024 * 1024
    assert config.chunk_size % CHUNK_ALIGNMENT == 0
    assert config.hostname == "contoso.sharepoint.com"
    assert config.site_path == "/sites/Team"
    assert config.uses_client_credentials


@pytest.mark.parametrize("requested, expected", [
    (1, CHUNK_ALIGNMENT),
    (CHUNK_ALIGNMENT, CHUNK_ALIGNMENT),
    (CHUNK_ALIGNMENT + 1, 2 * CHUNK_ALIGNMENT),
    (5 * 1024 * 1024, 16 * CHUNK_ALIGNMENT),
    (500 * 1024 * 1024, MAX_CHUNK_SIZE),
])
def test_align_chunk_size(requested, expected):
    assert align_chunk_size(requested) == expected


@pytest.mark.parametrize("options, message", [
    ({"url": ""}, "url"),
    ({"url": "http://contoso.sharepoint.com/sites/Team"}, "https"),
    ({"client_id": None}, "client_id"),
    ({"client_secret": None}, "username and password"),
    ({"max_retry": -1}, "max_retry"),
])
def test_validate_rejects(options, message):
    values = {"url": SITE_URL, "client_id": "c", "client_secret": "s"}
    values.update(options)

    with pytest.raises(ValueError, match=message):
        Config(**values).validate()


def test_validate_accepts_username_password():
    Config(url=SITE_URL, client_id="c", username="robot@contoso.com", password="pw").validate()


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(ValueError, match="passwrd"):
        Config.from_mapping({"url": SITE_URL, "passwrd": "x"})


def test_from_env(clean_env):
    clean_env.setenv("SHAREPOINT_SITE_URL", SITE_URL)
    clean_env.setenv("SHAREPOINT_CLIENT_ID", "client")
    clean_env.setenv("SHAREPOINT_USERNAME", "robot@contoso.com")
    clean_env.setenv("SHAREPOINT_PASSWORD", "pw")
    clean_env.setenv("SHAREPOINT_ROOT", "Projects/Alpha")
    clean_env.setenv("SHAREPOINT_MAX_RETRY", "5")
    clean_env.setenv("SHAREPOINT_LIBRARY", "")

    config = Config.from_env()

    assert config.url == SITE_URL
    assert config.username == "robot@contoso.com"
    assert config.root == "Projects/Alpha"
    assert config.max_retry == 5
    assert config.library is None
    assert not config.uses_client_credentials


def test_parse_config_from_env_requires_url(clean_env):
    with pytest.raises(ValueError, match="url"):
        parse_config()


def test_parse_config_accepts_dict_and_config():
    config = parse_config({"url": SITE_URL, "client_id": "c", "client_secret": "s"})

    assert isinstance(config, Config)
    assert parse_config(config) is config


def test_username_password_without_client_id_uses_public_client():
    config = parse_config({"url": SITE_URL, "username": "robot@contoso.com", "password": "pw"})

    assert config.client_id == DEFAULT_PUBLIC_CLIENT_ID
    assert not config.uses_client_credentials


def test_client_secret_still_needs_client_id():
    with pytest.raises(ValueError, match="app registration"):
        parse_config({"url": SITE_URL, "client_secret": "s"})


def test_access_token_replaces_credentials():
    config = parse_config({"url": SITE_URL, "access_token": "eyJ0eXAi"})

    assert config.access_token == "eyJ0eXAi"
    assert config.client_id is None


def test_access_token_from_env(clean_env):
    clean_env.setenv("SHAREPOINT_SITE_URL", SITE_URL)
    clean_env.setenv("SHAREPOINT_ACCESS_TOKEN", "eyJ0eXAi")

    assert parse_config().access_token == "eyJ0eXAi"
