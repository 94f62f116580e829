"""
Certificate Management

Decides whether Let's Encrypt certificates need to be requested for the
service domains and runs certbot on the droplet when they do.

State for the primary domain:

    absent --(directory present)----------------------> enabled
    absent --(dry-run)---> issuing --(certbot ok)-----> dry-run-done
    absent --(staging/production)---> issuing --(ok)--> enabled

An existing certificate directory is never re-checked or renewed.
"""

import shlex
from typing import Optional

from stackdeploy.constants import (
    CERTBOT_IMAGE,
    CERTBOT_WEBROOT,
    CERTBOT_WEBROOT_HOST,
    LETSENCRYPT_DIR,
    LETSENCRYPT_LIVE_DIR,
)
from stackdeploy.exceptions import CertificateIssuanceError
from stackdeploy.logger import DeployLogger
from stackdeploy.models.deployment import (
    CertificateMode,
    CertificateState,
    CertificateStatus,
    DeploymentConfig,
    ProvisionedHost,
)
from stackdeploy.services.ssh_service import SSHService

# certbot takes a while on first pull of the image
CERTBOT_TIMEOUT = 600

MODE_FLAGS = {
    CertificateMode.DRY_RUN: ["--dry-run"],
    CertificateMode.STAGING: ["--staging"],
    CertificateMode.PRODUCTION: [],
}


class CertificateManager:
    """
    Per-domain certificate state machine.

    Responsibilities:
    - Probe the droplet for an existing certificate directory
    - Build and run the certbot webroot request for the selected mode
    - Report whether the SSL playbook pass should run
    """

    def __init__(
        self,
        config: DeploymentConfig,
        ssh: SSHService,
        logger: Optional[DeployLogger] = None,
    ):
        self.config = config
        self.ssh = ssh
        self.logger = logger

    @property
    def certificate_dir(self) -> str:
        """Directory certbot writes the primary domain's certificate to."""
        return f"{LETSENCRYPT_LIVE_DIR}/{self.config.primary_fqdn}"

    def certificates_present(self, host: ProvisionedHost) -> bool:
        """
        Check for the primary domain's certificate directory.

        Raises:
            CertificateIssuanceError: If the host could not be inspected
        """
        result = self.ssh.directory_exists(host.address, self.certificate_dir)
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False

        raise CertificateIssuanceError(
            f"Could not inspect {self.certificate_dir} on {host.address}",
            context=result.stderr.strip() or f"ssh exit code {result.returncode}",
        )

    def build_certbot_command(self, mode: CertificateMode) -> str:
        """Build the remote docker/certbot command line."""
        args = [
            "docker",
            "run",
            "--rm",
            "-v",
            f"{LETSENCRYPT_DIR}:{LETSENCRYPT_DIR}",
            "-v",
            f"{CERTBOT_WEBROOT_HOST}:{CERTBOT_WEBROOT}",
            CERTBOT_IMAGE,
            "certonly",
            "--webroot",
            "-w",
            CERTBOT_WEBROOT,
        ]
        for fqdn in self.config.fqdns:
            args.extend(["-d", fqdn])
        args.extend(
            [
                "--email",
                self.config.acme_email,
                "--agree-tos",
                "--no-eff-email",
                "--non-interactive",
            ]
        )
        args.extend(MODE_FLAGS[mode])
        return shlex.join(args)

    def ensure_certificates(self, host: ProvisionedHost) -> CertificateState:
        """
        Bring the primary domain to its target certificate state.

        Args:
            host: Provisioned droplet

        Returns:
            CertificateState (ssl_enabled tells whether to run the SSL pass)

        Raises:
            CertificateIssuanceError: If the mode is invalid or certbot fails
        """
        fqdn = self.config.primary_fqdn
        mode = self.config.certbot_mode

        if self.certificates_present(host):
            if self.logger:
                self.logger.success(f"Certificates already exist for {fqdn}, skipping certbot")
            return CertificateState(fqdn=fqdn, status=CertificateStatus.ENABLED, mode=mode)

        if not isinstance(mode, CertificateMode):
            raise CertificateIssuanceError(
                f"Invalid certificate mode: {mode!r}",
                context="Set CERTBOT_MODE to dry-run, staging or production",
            )

        if self.logger:
            self.logger.log(f"No certificates found for {fqdn}; requesting ({mode.value})")

        state = CertificateState(fqdn=fqdn, status=CertificateStatus.ISSUING, mode=mode)
        result = self.ssh.execute_command(
            host.address,
            self.build_certbot_command(mode),
            timeout=CERTBOT_TIMEOUT,
            description=f"Requesting certificates ({mode.value})",
        )

        if result.is_failure:
            raise CertificateIssuanceError(
                f"Certbot failed to obtain certificates for {', '.join(self.config.fqdns)} "
                f"(state: {state.status.value})",
                context="Check that DNS points at the droplet and port 80 is reachable",
            )

        if mode == CertificateMode.DRY_RUN:
            if self.logger:
                self.logger.success("Certbot dry run succeeded; SSL stays disabled")
            return CertificateState(
                fqdn=fqdn, status=CertificateStatus.DRY_RUN_DONE, mode=mode, issued_now=False
            )

        if self.logger:
            self.logger.success(f"Certificates obtained ({mode.value})")
        return CertificateState(
            fqdn=fqdn, status=CertificateStatus.ENABLED, mode=mode, issued_now=True
        )
