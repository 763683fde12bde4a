import pytest

from tutorledger.config import Settings, load_settings


def test_defaults_are_local_sqlite():
    s = Settings()
    assert s.is_local and not s.is_prod
    assert s.is_sqlite
    assert s.search_page_size == 50
    assert s.json_logs is False


def test_prod_requires_secret():
    with pytest.raises(ValueError):
        Settings(environment="prod", database_url="postgresql+asyncpg://u:p@db/ledger")


def test_rejects_unknown_database_scheme():
    with pytest.raises(ValueError):
        Settings(database_url="mysql://localhost/ledger")


def test_rejects_non_positive_page_size():
    with pytest.raises(ValueError):
        Settings(search_page_size=0)


def test_log_format_overrides_environment():
    assert Settings(log_format="json").json_logs is True
    assert Settings(environment="prod", jwt_secret="s" * 32, log_format="console").json_logs is False


def test_load_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("SEARCH_PAGE_SIZE", "10")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("JWT_AUDIENCE", "   ")
    s = load_settings()
    assert s.search_page_size == 10
    assert s.cors_origins == ("http://a.test", "http://b.test")
    assert s.jwt_audience is None


def test_safe_dict_masks_secret():
    s = Settings(jwt_secret="super-secret-value-1234")
    assert "super-secret" not in str(s.safe_dict())


def test_phone_redaction_is_off_only_in_local_and_dev():
    assert Settings().redact_pii is False
    assert Settings(environment="dev", jwt_secret="s" * 32).redact_pii is False
    assert Settings(environment="staging", jwt_secret="s" * 32).redact_pii is True
    assert Settings(environment="prod", jwt_secret="s" * 32).redact_pii is True
