"""
Settings validation.

Turns the raw .env mapping into a DeploymentConfig. Every missing or invalid
setting is collected before anything is raised so an operator can fix the
file in one pass. The private key check touches the filesystem and only runs
once the settings themselves are complete.
"""

import stat
from pathlib import Path
from typing import Mapping, Optional

from stackdeploy.constants import (
    ALLOWED_KEY_MODES,
    CONDITIONAL_SETTINGS,
    CORE_SETTINGS,
    MAILER_FLAG,
    S3_FLAG,
    TEARDOWN_SETTINGS,
)
from stackdeploy.exceptions import ConfigError, SecurityError
from stackdeploy.logger import DeployLogger
from stackdeploy.models.deployment import (
    CertificateMode,
    DeploymentConfig,
    MailerSettings,
    S3Settings,
)
from stackdeploy.models.results import ValidationResult

TRUE_VALUES = ("true",)
FALSE_VALUES = ("false", "")

BASE_FLAGS = ("ENABLE_BLOCK_STORAGE", "CLOUDFLARE_PROXIED")
DEPLOY_FLAGS = (S3_FLAG, MAILER_FLAG)


def parse_bool(value: Optional[str]) -> bool:
    """
    Parse a "true"/"false" flag. Unset or empty means false.

    Raises:
        ValueError: For any other value
    """
    normalized = (value or "").strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"'{value}' is not 'true' or 'false'")


def format_mode(mode: int) -> str:
    """Render permission bits the way chmod takes them (e.g. 0600)."""
    return f"{mode:04o}"


def check_private_key(key_path: Path) -> int:
    """
    Verify the SSH private key exists and only its owner can read it.

    Args:
        key_path: Path to the private key

    Returns:
        The permission bits of the key

    Raises:
        SecurityError: If the key is missing or permissions are not 0600/0400
    """
    key_path = Path(key_path).expanduser()
    if not key_path.is_file():
        raise SecurityError(
            f"Private key not found at {key_path}",
            context="Set SSH_PRIVATE_KEY_PATH to an existing key file",
        )

    mode = stat.S_IMODE(key_path.stat().st_mode)
    if mode not in ALLOWED_KEY_MODES:
        allowed = " or ".join(format_mode(m) for m in ALLOWED_KEY_MODES)
        raise SecurityError(
            f"Private key {key_path} has unsafe permissions ({format_mode(mode)}); "
            f"expected {allowed}",
            context=f"SSH requires the key to be readable by its owner only. Run: chmod 600 {key_path}",
        )
    return mode


class ConfigValidator:
    """
    Validates settings and builds the immutable DeploymentConfig.

    Responsibilities:
    - Core and flag-conditional required settings
    - Typed parsing of flags, certificate mode and mailer port
    - Private key permission check
    """

    def __init__(self, logger: Optional[DeployLogger] = None):
        self.logger = logger

    def check_required(
        self, raw: Mapping[str, str], required: tuple = CORE_SETTINGS
    ) -> tuple[ValidationResult, list[str]]:
        """
        Collect every missing required setting.

        Args:
            raw: Raw settings mapping
            required: Settings that must always be present

        Returns:
            (ValidationResult with one error per missing key, missing key names)
        """
        result = ValidationResult()
        missing = []

        for key in required:
            if not _value(raw, key):
                result.add_error(key)
                missing.append(key)

        for flag, keys in CONDITIONAL_SETTINGS.items():
            try:
                enabled = parse_bool(raw.get(flag))
            except ValueError:
                # Reported as an invalid value by check_values
                continue
            if not enabled:
                continue
            for key in keys:
                if not _value(raw, key):
                    result.add_error(f"{key} (required because {flag} is true)")
                    missing.append(key)

        return result, missing

    def check_values(
        self, raw: Mapping[str, str], teardown: bool = False
    ) -> ValidationResult:
        """
        Collect settings that are present but cannot be parsed.

        Args:
            raw: Raw settings mapping
            teardown: Only check the settings teardown reads
        """
        result = ValidationResult()

        flags = BASE_FLAGS if teardown else BASE_FLAGS + DEPLOY_FLAGS
        for flag in flags:
            try:
                parse_bool(raw.get(flag))
            except ValueError as e:
                result.add_error(f"{flag}: {e}")

        if teardown:
            return result

        mode = _value(raw, "CERTBOT_MODE")
        if mode:
            try:
                CertificateMode.parse(mode)
            except ValueError as e:
                result.add_error(f"CERTBOT_MODE: {e}")

        try:
            mailer_on = _flag(raw, MAILER_FLAG)
        except ValueError:
            mailer_on = False

        if not mailer_on:
            return result

        try:
            parse_bool(raw.get("MAILER_SECURE"))
        except ValueError as e:
            result.add_error(f"MAILER_SECURE: {e}")

        port = _value(raw, "MAILER_PORT")
        if port and not (port.isascii() and port.isdigit() and 0 < int(port) < 65536):
            result.add_error(f"MAILER_PORT: '{port}' is not a port number")

        return result

    def validate(self, raw: Mapping[str, str]) -> DeploymentConfig:
        """
        Validate settings for a full deployment.

        Args:
            raw: Raw settings mapping (from the .env file)

        Returns:
            DeploymentConfig

        Raises:
            ConfigError: Listing every missing or invalid setting
            SecurityError: If the private key is missing or unsafe
        """
        self._raise_on_problems(raw, CORE_SETTINGS)
        self._check_key(raw)

        s3 = None
        if _flag(raw, S3_FLAG):
            s3 = S3Settings(
                access_key_id=_value(raw, "SPACES_ACCESS_KEY_ID"),
                secret_access_key=_value(raw, "SPACES_SECRET_ACCESS_KEY"),
                bucket_name=_value(raw, "SPACES_BUCKET_NAME"),
            )

        mailer = None
        if _flag(raw, MAILER_FLAG):
            mailer = MailerSettings(
                host=_value(raw, "MAILER_HOST"),
                port=int(_value(raw, "MAILER_PORT")),
                username=_value(raw, "MAILER_USERNAME"),
                password=_value(raw, "MAILER_PASSWORD"),
                noreply_email=_value(raw, "MAILER_NOREPLY_EMAIL"),
                noreply_name=_value(raw, "MAILER_NOREPLY_NAME"),
                secure=_flag(raw, "MAILER_SECURE"),
            )

        config = DeploymentConfig(
            **self._base_fields(raw),
            joplin_subdomain=_value(raw, "JOPLIN_SUBDOMAIN"),
            trilium_subdomain=_value(raw, "TRILIUM_SUBDOMAIN") or None,
            postgres_password=_value(raw, "POSTGRES_PASSWORD"),
            certbot_mode=CertificateMode.parse(_value(raw, "CERTBOT_MODE")),
            acme_email=_value(raw, "ACME_EMAIL"),
            enable_s3_storage=s3 is not None,
            mailer_enabled=mailer is not None,
            s3=s3,
            mailer=mailer,
        )

        if self.logger:
            self.logger.log(f"Settings validated: {config!r}")
        return config

    def validate_teardown(self, raw: Mapping[str, str]) -> DeploymentConfig:
        """
        Validate the minimal settings needed to destroy the deployment.

        Raises:
            ConfigError: Listing every missing or invalid setting
            SecurityError: If the private key is missing or unsafe
        """
        self._raise_on_problems(raw, TEARDOWN_SETTINGS, conditional=False)
        self._check_key(raw)

        if not _value(raw, "JOPLIN_SUBDOMAIN") and self.logger:
            self.logger.warning(
                "JOPLIN_SUBDOMAIN is not set; Terraform variables will differ "
                "from the ones used to deploy"
            )

        config = DeploymentConfig(
            **self._base_fields(raw),
            joplin_subdomain=_value(raw, "JOPLIN_SUBDOMAIN"),
            trilium_subdomain=_value(raw, "TRILIUM_SUBDOMAIN") or None,
        )

        if self.logger:
            self.logger.log(f"Teardown settings validated: {config!r}")
        return config

    def _raise_on_problems(
        self, raw: Mapping[str, str], required: tuple, conditional: bool = True
    ) -> None:
        """Raise one ConfigError for every missing and invalid setting."""
        if conditional:
            missing_result, missing = self.check_required(raw, required)
        else:
            missing_result = ValidationResult()
            missing = [key for key in required if not _value(raw, key)]
            for key in missing:
                missing_result.add_error(key)

        value_result = self.check_values(raw, teardown=not conditional)
        problems = missing_result.errors + value_result.errors
        if problems:
            raise ConfigError(
                problems,
                context="Fix the listed settings in your .env file",
                missing_keys=missing,
            )

    def _check_key(self, raw: Mapping[str, str]) -> None:
        mode = check_private_key(_path(raw, "SSH_PRIVATE_KEY_PATH"))
        if self.logger:
            self.logger.log(f"SSH key permissions verified ({format_mode(mode)})")

    def _base_fields(self, raw: Mapping[str, str]) -> dict:
        """Fields shared by the deploy and teardown configurations."""
        return {
            "do_token": _value(raw, "DIGITALOCEAN_TOKEN"),
            "cloudflare_api_token": _value(raw, "CLOUDFLARE_API_TOKEN"),
            "cloudflare_zone_id": _value(raw, "CLOUDFLARE_ZONE_ID"),
            "region": _value(raw, "DO_REGION"),
            "domain": _value(raw, "DOMAIN_NAME"),
            "ssh_private_key_path": str(_path(raw, "SSH_PRIVATE_KEY_PATH")),
            "ssh_public_key_path": str(_path(raw, "SSH_PUBLIC_KEY_PATH")),
            "enable_block_storage": _flag(raw, "ENABLE_BLOCK_STORAGE"),
            "cloudflare_proxied": _flag(raw, "CLOUDFLARE_PROXIED"),
        }


def _value(raw: Mapping[str, str], key: str) -> str:
    return (raw.get(key) or "").strip()


def _flag(raw: Mapping[str, str], key: str) -> bool:
    return parse_bool(raw.get(key))


def _path(raw: Mapping[str, str], key: str) -> Path:
    return Path(_value(raw, key)).expanduser()
