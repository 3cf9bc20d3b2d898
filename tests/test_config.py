import pytest

from models.errors import ConfigurationError
from utils.config import LookupSettings, StorageSettings


def test_lookup_settings_defaults(lookup_env):
    settings = LookupSettings.from_env()

    assert settings.table_name == "searches"
    assert settings.smtp_host == "live.smtp.mailtrap.io"
    assert settings.smtp_port == 587
    assert settings.quote_currency == "usd"
    assert settings.display_timezone == "Australia/Sydney"
    assert settings.allowed_origin == "*"


@pytest.mark.parametrize("missing", [
    "TABLE_NAME",
    "MAILTRAP_SSM_PARAMETER_NAME",
    "MAILTRAP_USER",
    "FROM_EMAIL",
    "COINGECKO_API_KEY_SSM_PARAM_NAME",
])
def test_lookup_settings_fail_fast(lookup_env, monkeypatch: pytest.MonkeyPatch, missing):
    monkeypatch.delenv(missing)

    with pytest.raises(ConfigurationError) as excinfo:
        LookupSettings.from_env()

    assert missing in str(excinfo.value)


def test_invalid_port_is_configuration_error(lookup_env, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SMTP_PORT", "smtp")

    with pytest.raises(ConfigurationError):
        LookupSettings.from_env()


def test_storage_settings_only_needs_table(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("TABLE_NAME", "searches")
    monkeypatch.delenv("ALLOWED_ORIGIN", raising=False)

    assert StorageSettings.from_env().table_name == "searches"
