"""
Deployment Models

Immutable configuration and result models for the deployment workflow.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class CertificateMode(Enum):
    """Let's Encrypt environment certbot is pointed at."""

    DRY_RUN = "dry-run"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: str) -> "CertificateMode":
        """
        Parse a settings value into a mode.

        Raises:
            ValueError: If value is not one of the known modes
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            allowed = ", ".join(mode.value for mode in cls)
            raise ValueError(f"'{value}' is not one of: {allowed}")


class CertificateStatus(Enum):
    """Certificate lifecycle for the primary domain."""

    ABSENT = "absent"
    ISSUING = "issuing"
    DRY_RUN_DONE = "dry-run-done"
    ENABLED = "enabled"


class DeploymentPhase(Enum):
    """Workflow phases, in execution order."""

    VALIDATION = "validation"
    PROVISIONING = "provisioning"
    READINESS = "readiness"
    CONFIGURATION = "configuration"
    CERTIFICATES = "certificates"
    ENABLE_SSL = "enable-ssl"
    TEARDOWN = "teardown"
    COMPLETE = "complete"


@dataclass(frozen=True)
class S3Settings:
    """DigitalOcean Spaces credentials used for attachment storage."""

    access_key_id: str
    secret_access_key: str
    bucket_name: str


@dataclass(frozen=True)
class MailerSettings:
    """SMTP settings for Joplin server notifications."""

    host: str
    port: int
    username: str
    password: str
    noreply_email: str
    noreply_name: str
    secure: bool = False


@dataclass(frozen=True)
class DeploymentConfig:
    """
    Validated deployment settings.

    Built once by ConfigValidator and passed to every component.
    """

    do_token: str
    cloudflare_api_token: str
    cloudflare_zone_id: str
    region: str
    domain: str
    ssh_private_key_path: str
    ssh_public_key_path: str
    joplin_subdomain: str = ""
    trilium_subdomain: Optional[str] = None
    postgres_password: str = ""
    certbot_mode: Optional[CertificateMode] = None
    acme_email: str = ""
    enable_block_storage: bool = False
    enable_s3_storage: bool = False
    mailer_enabled: bool = False
    cloudflare_proxied: bool = False
    s3: Optional[S3Settings] = None
    mailer: Optional[MailerSettings] = None

    @property
    def subdomains(self) -> list[str]:
        """Configured service subdomains, primary first."""
        return [sub for sub in (self.joplin_subdomain, self.trilium_subdomain) if sub]

    @property
    def primary_fqdn(self) -> str:
        """Host name the certificate directory is keyed by."""
        return f"{self.joplin_subdomain}.{self.domain}"

    @property
    def fqdns(self) -> list[str]:
        """Fully qualified names of every service."""
        return [f"{sub}.{self.domain}" for sub in self.subdomains]

    def secret_values(self) -> list[str]:
        """Values that must never appear in logs."""
        secrets = [
            self.do_token,
            self.cloudflare_api_token,
            self.postgres_password,
        ]
        if self.s3:
            secrets.extend([self.s3.access_key_id, self.s3.secret_access_key])
        if self.mailer:
            secrets.append(self.mailer.password)
        return [secret for secret in secrets if secret]

    def __repr__(self) -> str:
        return f"DeploymentConfig(domain={self.domain}, region={self.region}, mode={self.certbot_mode})"


@dataclass(frozen=True)
class ProvisionedHost:
    """Droplet created by Terraform."""

    address: str
    resource_id: Optional[str] = None

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class CertificateState:
    """Outcome of the certificate decision for the primary domain."""

    fqdn: str
    status: CertificateStatus
    mode: Optional[CertificateMode] = None
    issued_now: bool = False

    @property
    def ssl_enabled(self) -> bool:
        """Check if the SSL playbook pass should run."""
        return self.status == CertificateStatus.ENABLED


@dataclass
class DeploymentResult:
    """Aggregate outcome of an apply or teardown run."""

    success: bool
    phase: DeploymentPhase
    endpoints: list[str] = field(default_factory=list)
    ssl_enabled: bool = False
    host: Optional[ProvisionedHost] = None
    certificate: Optional[CertificateState] = None
    error: Optional[Exception] = None

    @property
    def exit_code(self) -> int:
        """Process exit code for this result."""
        if self.success:
            return 0
        return getattr(self.error, "exit_code", 1)

    def __repr__(self) -> str:
        return f"DeploymentResult(success={self.success}, phase={self.phase.value})"
