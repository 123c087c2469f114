"""Tests for configuration validation.

Invalid configurations must be rejected at startup.
"""

import pytest
from pydantic import ValidationError

from socialhub.core.config import Settings

SECRETS = {
    "jwt_access_secret_user": "1" * 32,
    "jwt_refresh_secret_user": "2" * 32,
    "jwt_access_secret_admin": "3" * 32,
    "jwt_refresh_secret_admin": "4" * 32,
}


class TestJwtSecretValidation:
    """Tests for the four JWT signing secrets."""

    def test_valid_secrets_accepted(self):
        settings = Settings(_env_file=None, **SECRETS)
        assert settings.jwt_access_secret_admin == "3" * 32

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, **{**SECRETS, "jwt_refresh_secret_admin": "short"})
        assert "at least 32 characters" in str(exc_info.value)

    def test_shared_secret_rejected(self):
        """Test a secret reused across tier or kind is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(
                _env_file=None,
                **{**SECRETS, "jwt_access_secret_admin": SECRETS["jwt_access_secret_user"]},
            )
        assert "distinct" in str(exc_info.value)

    def test_explicit_secrets_produce_no_warning(self):
        settings = Settings(_env_file=None, **SECRETS)
        assert not any("JWT" in w for w in settings.check_security_configuration())


class TestSettingsDefaults:
    def test_token_lifetimes(self):
        settings = Settings(_env_file=None, **SECRETS)
        assert settings.access_token_expire_minutes == 60
        assert settings.refresh_token_expire_days == 14

    def test_log_level_normalised(self):
        assert Settings(_env_file=None, log_level="debug", **SECRETS).log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_level="chatty", **SECRETS)

    def test_cors_origins_list(self):
        settings = Settings(_env_file=None, cors_origins="http://a.test, http://b.test", **SECRETS)
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_security_warnings(self):
        settings = Settings(_env_file=None, debug=True, cors_origins="*", **SECRETS)
        warnings = settings.check_security_configuration()
        assert any("DEBUG" in w for w in warnings)
        assert any("CORS" in w for w in warnings)
