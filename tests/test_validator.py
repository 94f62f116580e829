"""Tests for settings validation."""

import os
from itertools import combinations

import pytest

from stackdeploy.constants import CORE_SETTINGS, MAILER_SETTINGS, S3_SETTINGS
from stackdeploy.core.config_loader import load_env_file
from stackdeploy.core.validator import ConfigValidator, check_private_key, parse_bool
from stackdeploy.exceptions import ConfigError, SecurityError
from stackdeploy.models.deployment import CertificateMode


@pytest.fixture
def validator() -> ConfigValidator:
    return ConfigValidator()


def s3_settings() -> dict:
    return {
        "ENABLE_S3_STORAGE": "true",
        "SPACES_ACCESS_KEY_ID": "AKIA",
        "SPACES_SECRET_ACCESS_KEY": "s3_secret",
        "SPACES_BUCKET_NAME": "notes-attachments",
    }


def mailer_settings() -> dict:
    return {
        "MAILER_ENABLED": "true",
        "MAILER_HOST": "smtp.example.com",
        "MAILER_PORT": "587",
        "MAILER_USERNAME": "mailer",
        "MAILER_PASSWORD": "mail_secret",
        "MAILER_NOREPLY_EMAIL": "noreply@example.com",
        "MAILER_NOREPLY_NAME": "Notes",
    }


class TestParseBool:
    """Tests for flag parsing."""

    @pytest.mark.parametrize("value", ["true", "TRUE", " True "])
    def test_true(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "False", "", None])
    def test_false(self, value):
        assert parse_bool(value) is False

    @pytest.mark.parametrize("value", ["yes", "1", "on"])
    def test_rejects_other_values(self, value):
        with pytest.raises(ValueError):
            parse_bool(value)


class TestRequiredSettings:
    """Tests for aggregated missing-settings reporting."""

    def test_valid_settings(self, validator, raw_settings):
        config = validator.validate(raw_settings)
        assert config.domain == "example.com"
        assert config.certbot_mode == CertificateMode.DRY_RUN
        assert config.fqdns == ["notes.example.com", "wiki.example.com"]
        assert config.s3 is None
        assert config.mailer is None

    @pytest.mark.parametrize(
        "removed",
        [
            ("DIGITALOCEAN_TOKEN",),
            ("DOMAIN_NAME", "ACME_EMAIL"),
            ("CLOUDFLARE_ZONE_ID", "POSTGRES_PASSWORD", "CERTBOT_MODE"),
            CORE_SETTINGS,
        ],
    )
    def test_reports_exactly_missing_keys(self, validator, raw_settings, removed):
        for key in removed:
            del raw_settings[key]

        with pytest.raises(ConfigError) as exc_info:
            validator.validate(raw_settings)

        assert sorted(exc_info.value.missing_keys) == sorted(removed)
        assert len(exc_info.value.problems) == len(removed)

    def test_missing_set_independent_of_other_keys(self, validator, raw_settings):
        optional = ["TRILIUM_SUBDOMAIN", "ENABLE_BLOCK_STORAGE", "MAILER_ENABLED"]
        for subset in combinations(optional, 2):
            settings = {k: v for k, v in raw_settings.items() if k not in subset}
            del settings["DO_REGION"]

            with pytest.raises(ConfigError) as exc_info:
                validator.validate(settings)

            assert exc_info.value.missing_keys == ["DO_REGION"]

    def test_blank_value_counts_as_missing(self, validator, raw_settings):
        raw_settings["POSTGRES_PASSWORD"] = "   "

        with pytest.raises(ConfigError) as exc_info:
            validator.validate(raw_settings)

        assert exc_info.value.missing_keys == ["POSTGRES_PASSWORD"]

    def test_config_error_checked_before_key_file(self, validator, raw_settings, private_key):
        os.chmod(private_key, 0o644)
        del raw_settings["ACME_EMAIL"]

        with pytest.raises(ConfigError):
            validator.validate(raw_settings)


class TestConditionalSettings:
    """Tests for feature-flag dependent settings."""

    def test_s3_keys_required_when_enabled(self, validator, raw_settings):
        raw_settings["ENABLE_S3_STORAGE"] = "true"

        with pytest.raises(ConfigError) as exc_info:
            validator.validate(raw_settings)

        assert sorted(exc_info.value.missing_keys) == sorted(S3_SETTINGS)
        assert all(
            "required because ENABLE_S3_STORAGE is true" in problem
            for problem in exc_info.value.problems
        )

    @pytest.mark.parametrize("flag_value", [None, "false", "FALSE", ""])
    def test_s3_keys_ignored_when_disabled(self, validator, raw_settings, flag_value):
        if flag_value is None:
            del raw_settings["ENABLE_S3_STORAGE"]
        else:
            raw_settings["ENABLE_S3_STORAGE"] = flag_value

        config = validator.validate(raw_settings)
        assert config.enable_s3_storage is False

    def test_mailer_keys_required_when_enabled(self, validator, raw_settings):
        raw_settings["MAILER_ENABLED"] = "true"
        del raw_settings["DO_REGION"]

        with pytest.raises(ConfigError) as exc_info:
            validator.validate(raw_settings)

        assert sorted(exc_info.value.missing_keys) == sorted(
            ("DO_REGION",) + MAILER_SETTINGS
        )
        assert "MAILER_SECURE" not in exc_info.value.missing_keys

    def test_full_feature_config(self, validator, raw_settings):
        raw_settings.update(s3_settings())
        raw_settings.update(mailer_settings())

        config = validator.validate(raw_settings)

        assert config.s3.bucket_name == "notes-attachments"
        assert config.mailer.port == 587
        assert config.mailer.secure is False
        assert "s3_secret" in config.secret_values()
        assert "mail_secret" in config.secret_values()

    def test_mailer_secure_flag(self, validator, raw_settings):
        raw_settings.update(mailer_settings())
        raw_settings["MAILER_SECURE"] = "true"

        assert validator.validate(raw_settings).mailer.secure is True


class TestInvalidValues:
    """Tests for values that are present but unusable."""

    def test_invalid_certificate_mode(self, validator, raw_settings):
        raw_settings["CERTBOT_MODE"] = "live"

        with pytest.raises(ConfigError) as exc_info:
            validator.validate(raw_settings)

        assert exc_info.value.missing_keys == []
        assert any("CERTBOT_MODE" in p for p in exc_info.value.problems)

    def test_invalid_flag_and_missing_key_reported_together(self, validator, raw_settings):
        raw_settings["ENABLE_BLOCK_STORAGE"] = "yes"
        del raw_settings["DO_REGION"]

        with pytest.raises(ConfigError) as exc_info:
            validator.validate(raw_settings)

        problems = exc_info.value.problems
        assert len(problems) == 2
        assert "DO_REGION" in problems
        assert any(p.startswith("ENABLE_BLOCK_STORAGE") for p in problems)

    def test_invalid_mailer_port(self, validator, raw_settings):
        raw_settings.update(mailer_settings())
        raw_settings["MAILER_PORT"] = "smtp"

        with pytest.raises(ConfigError) as exc_info:
            validator.validate(raw_settings)

        assert any("MAILER_PORT" in p for p in exc_info.value.problems)

    @pytest.mark.parametrize("port", ["\u00b2", "5\u00b2", "0", "65536"])
    def test_unusable_mailer_port(self, validator, raw_settings, port):
        raw_settings.update(mailer_settings())
        raw_settings["MAILER_PORT"] = port

        with pytest.raises(ConfigError) as exc_info:
            validator.validate(raw_settings)

        assert exc_info.value.problems == [f"MAILER_PORT: '{port}' is not a port number"]

    def test_mailer_secure_ignored_when_mailer_disabled(self, validator, raw_settings):
        raw_settings["MAILER_SECURE"] = "maybe"

        assert validator.validate(raw_settings).mailer is None

    def test_mailer_secure_checked_when_mailer_enabled(self, validator, raw_settings):
        raw_settings.update(mailer_settings())
        raw_settings["MAILER_SECURE"] = "maybe"

        with pytest.raises(ConfigError) as exc_info:
            validator.validate(raw_settings)

        assert [p.split(":")[0] for p in exc_info.value.problems] == ["MAILER_SECURE"]

    def test_check_values_collects_errors(self, validator, raw_settings):
        raw_settings["ENABLE_BLOCK_STORAGE"] = "yes"
        raw_settings["CERTBOT_MODE"] = "live"

        result = validator.check_values(raw_settings)

        assert [e.split(":")[0] for e in result.errors] == ["ENABLE_BLOCK_STORAGE", "CERTBOT_MODE"]

    @pytest.mark.parametrize("mode", ["dry-run", "staging", "production", "Production"])
    def test_certificate_modes(self, validator, raw_settings, mode):
        raw_settings["CERTBOT_MODE"] = mode
        assert validator.validate(raw_settings).certbot_mode.value == mode.lower()


class TestPrivateKeyPermissions:
    """Tests for the SSH key permission check."""

    @pytest.mark.parametrize("mode", [0o600, 0o400])
    def test_accepts_owner_only(self, private_key, mode):
        os.chmod(private_key, mode)
        assert check_private_key(private_key) == mode

    @pytest.mark.parametrize("mode", [0o644, 0o640, 0o777, 0o700, 0o660])
    def test_rejects_other_modes(self, private_key, mode):
        os.chmod(private_key, mode)

        with pytest.raises(SecurityError) as exc_info:
            check_private_key(private_key)

        message = exc_info.value.message
        assert f"{mode:04o}" in message
        assert "0600" in message
        assert "0400" in message
        assert "chmod 600" in exc_info.value.context

    def test_missing_key(self, tmp_path):
        with pytest.raises(SecurityError, match="not found"):
            check_private_key(tmp_path / "nope")

    def test_validate_raises_security_error(self, validator, raw_settings, private_key):
        os.chmod(private_key, 0o644)

        with pytest.raises(SecurityError):
            validator.validate(raw_settings)


class TestTeardownSettings:
    """Tests for the minimal teardown validation."""

    def test_only_minimal_set_required(self, validator, raw_settings):
        for key in ("JOPLIN_SUBDOMAIN", "POSTGRES_PASSWORD", "CERTBOT_MODE", "ACME_EMAIL"):
            del raw_settings[key]
        raw_settings["ENABLE_S3_STORAGE"] = "true"

        config = validator.validate_teardown(raw_settings)

        assert config.domain == "example.com"
        assert config.certbot_mode is None

    def test_warns_when_primary_subdomain_missing(self, raw_settings, logger):
        del raw_settings["JOPLIN_SUBDOMAIN"]

        ConfigValidator(logger=logger).validate_teardown(raw_settings)

        content = logger.log_path.read_text()
        assert "[WARNING] JOPLIN_SUBDOMAIN is not set" in content

    def test_no_warning_with_primary_subdomain(self, raw_settings, logger):
        ConfigValidator(logger=logger).validate_teardown(raw_settings)

        assert "WARNING" not in logger.log_path.read_text()

    def test_reports_missing_credentials(self, validator, raw_settings):
        del raw_settings["DIGITALOCEAN_TOKEN"]
        del raw_settings["SSH_PUBLIC_KEY_PATH"]

        with pytest.raises(ConfigError) as exc_info:
            validator.validate_teardown(raw_settings)

        assert sorted(exc_info.value.missing_keys) == [
            "DIGITALOCEAN_TOKEN",
            "SSH_PUBLIC_KEY_PATH",
        ]


class TestLoadEnvFile:
    """Tests for .env loading."""

    def test_loads_values(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text('DOMAIN_NAME=example.com\nCERTBOT_MODE="staging"\nEMPTY=\n')

        raw = load_env_file(env_file)

        assert raw["DOMAIN_NAME"] == "example.com"
        assert raw["CERTBOT_MODE"] == "staging"
        assert raw["EMPTY"] == ""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="settings file not found"):
            load_env_file(tmp_path / ".env")
