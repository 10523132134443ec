import pytest

from bulk_export_api.config import ENVIRONMENT_HOSTS, ExportConfig, resolve_base_url


def test_https_required():
    """ExportConfig should reject non-HTTPS base URLs."""
    with pytest.raises(ValueError, match="HTTPS is required"):
        ExportConfig("http://api.example.com/v1")


def test_defaults():
    config = ExportConfig("https://api.example.com/v1/")
    assert config.base_url == "https://api.example.com/v1"
    assert config.max_retries == 5
    assert config.max_wait == 45
    assert config.poll_interval == 15
    assert config.poll_timeout == 30 * 60


def test_config_is_immutable():
    config = ExportConfig("https://api.example.com/v1")
    with pytest.raises(AttributeError):
        config.max_retries = 10


@pytest.mark.parametrize(
    "kwargs",
    [{"max_retries": -1}, {"max_wait": -1}, {"poll_interval": 0}, {"poll_timeout": 0},
     {"request_timeout": 0}, {"chunk_size": 0}, {"api_key_header": ""}],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ValueError):
        ExportConfig("https://api.example.com/v1", **kwargs)


def test_six_environments_differ_only_by_host():
    assert len(ENVIRONMENT_HOSTS) == 6
    urls = {env: resolve_base_url(env, "example.com") for env in ENVIRONMENT_HOSTS}
    assert urls["prod"] == "https://api.example.com/v1"
    assert urls["sandbox-eu"] == "https://sandbox-api.eu.example.com/v1"
    assert len(set(urls.values())) == 6
    assert all(url.endswith(".example.com/v1") for url in urls.values())


def test_resolve_base_url_unknown_environment():
    with pytest.raises(ValueError, match="Unknown environment"):
        resolve_base_url("qa", "example.com")


def test_resolve_base_url_requires_domain():
    with pytest.raises(ValueError, match="domain"):
        resolve_base_url("prod", " ")


def test_from_env_base_url_and_tuning():
    env = {
        "BULK_EXPORT_BASE_URL": "https://api.example.com/v1",
        "BULK_EXPORT_MAX_RETRIES": "2",
        "BULK_EXPORT_POLL_INTERVAL": "5",
        "BULK_EXPORT_API_KEY_HEADER": "X-Vendor-Key",
        "BULK_EXPORT_MAX_WAIT": "",
    }
    config = ExportConfig.from_env(env)
    assert config.base_url == "https://api.example.com/v1"
    assert config.max_retries == 2
    assert config.poll_interval == 5.0
    assert config.api_key_header == "X-Vendor-Key"
    assert config.max_wait == 45


def test_from_env_environment_and_domain():
    config = ExportConfig.from_env({"BULK_EXPORT_ENVIRONMENT": "staging", "BULK_EXPORT_DOMAIN": "example.com"})
    assert config.base_url == "https://staging-api.example.com/v1"


def test_from_env_environment_without_domain():
    with pytest.raises(ValueError, match="DOMAIN"):
        ExportConfig.from_env({"BULK_EXPORT_ENVIRONMENT": "staging"})


def test_from_env_overrides_win_and_none_is_ignored():
    config = ExportConfig.from_env(
        {"BULK_EXPORT_BASE_URL": "https://a.example.com", "BULK_EXPORT_POLL_TIMEOUT": "100"},
        base_url="https://b.example.com",
        poll_timeout=None,
    )
    assert config.base_url == "https://b.example.com"
    assert config.poll_timeout == 100


def test_from_env_missing_base_url():
    with pytest.raises(ValueError, match="No base URL"):
        ExportConfig.from_env({})


def test_from_env_invalid_number():
    with pytest.raises(ValueError, match="BULK_EXPORT_MAX_RETRIES"):
        ExportConfig.from_env({"BULK_EXPORT_BASE_URL": "https://a.example.com", "BULK_EXPORT_MAX_RETRIES": "many"})
