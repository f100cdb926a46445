"""
Tests for Settings parsing and the production safety check.
"""
import pytest
from pydantic import ValidationError

from justchiro.core.config import DEFAULT_CORS_ORIGINS, Settings

STRONG_KEY = "k" * 48


def make_settings(**overrides) -> Settings:
    values = {
        "DATABASE_URL": "sqlite+aiosqlite://",
        "SECRET_KEY": STRONG_KEY,
        "ENVIRONMENT": "production",
        "DEBUG": False,
        "BCRYPT_ROUNDS": 12,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestCorsOrigins:

    def test_comma_separated(self):
        s = make_settings(CORS_ORIGINS="https://a.justchiro.com, https://b.justchiro.com")
        assert s.CORS_ORIGINS == ["https://a.justchiro.com", "https://b.justchiro.com"]

    def test_json_array(self):
        s = make_settings(CORS_ORIGINS='["https://a.justchiro.com"]')
        assert s.CORS_ORIGINS == ["https://a.justchiro.com"]

    def test_blank_falls_back(self):
        assert make_settings(CORS_ORIGINS="  ").CORS_ORIGINS == DEFAULT_CORS_ORIGINS

    def test_frontend_url_appended_once(self):
        s = make_settings(CORS_ORIGINS="https://a.justchiro.com", FRONTEND_URL="https://justchiropractor.com")
        assert s.cors_origins == ["https://a.justchiro.com", "https://justchiropractor.com"]
        s = make_settings(CORS_ORIGINS="https://justchiropractor.com", FRONTEND_URL="https://justchiropractor.com")
        assert s.cors_origins == ["https://justchiropractor.com"]


class TestProductionCheck:

    def test_safe_configuration(self):
        assert make_settings().ENVIRONMENT == "production"

    @pytest.mark.parametrize("overrides, problem", [
        ({"DEBUG": True}, "DEBUG must be false"),
        ({"SECRET_KEY": "short"}, "SECRET_KEY"),
        ({"SITE_URL": "http://justchiropractor.com"}, "SITE_URL must use https"),
        ({"BCRYPT_ROUNDS": 4}, "BCRYPT_ROUNDS"),
    ])
    def test_unsafe_configuration(self, overrides, problem):
        with pytest.raises(ValidationError, match=problem):
            make_settings(**overrides)

    def test_development_is_not_checked(self):
        s = make_settings(ENVIRONMENT="development", DEBUG=True, SECRET_KEY="short", BCRYPT_ROUNDS=4)
        assert s.DEBUG is True


class TestTrustedProxies:

    def test_default_trusts_nobody(self):
        assert make_settings().TRUSTED_PROXIES == []

    def test_comma_separated(self):
        s = make_settings(TRUSTED_PROXIES="10.0.0.1, 172.16.0.0/12")
        assert s.TRUSTED_PROXIES == ["10.0.0.1", "172.16.0.0/12"]

    def test_invalid_entry(self):
        with pytest.raises(ValidationError):
            make_settings(TRUSTED_PROXIES="not-an-ip")
