"""
Deployment Orchestrator

Sequences validation, Terraform, readiness polling, Ansible and certbot
into the apply workflow, and validation plus Terraform destroy into the
teardown workflow. Stops at the first failing phase.
"""

from pathlib import Path
from typing import Mapping, Optional

from stackdeploy.ansible_runner import ConfigurationRunner
from stackdeploy.constants import ANSIBLE_DIR, TERRAFORM_DIR
from stackdeploy.core.validator import ConfigValidator
from stackdeploy.exceptions import StackDeployError
from stackdeploy.executor import CommandExecutor, SubprocessExecutor
from stackdeploy.logger import DeployLogger
from stackdeploy.models.deployment import (
    CertificateState,
    DeploymentConfig,
    DeploymentPhase,
    DeploymentResult,
    ProvisionedHost,
)
from stackdeploy.models.ssh import SSHConfig
from stackdeploy.services.certificate_service import CertificateManager
from stackdeploy.services.readiness_service import ReadinessWaiter
from stackdeploy.services.ssh_service import SSHService
from stackdeploy.terraform_utils import TerraformManager

APPLY_STEPS = 6


def build_endpoints(config: DeploymentConfig, ssl_enabled: bool) -> list[str]:
    """Public URLs of the deployed services."""
    scheme = "https" if ssl_enabled else "http"
    return [f"{scheme}://{fqdn}" for fqdn in config.fqdns]


class Orchestrator:
    """
    Runs the deployment workflows.

    Responsibilities:
    - Build services from the validated configuration
    - Run phases in order, one logger step per phase
    - Turn the first failure into a DeploymentResult naming its phase
    """

    def __init__(
        self,
        workdir: Path,
        logger: Optional[DeployLogger] = None,
        executor: Optional[CommandExecutor] = None,
        waiter: Optional[ReadinessWaiter] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            workdir: Directory containing terraform/ and ansible/
            logger: DeployLogger instance for logging
            executor: Command executor (defaults to a SubprocessExecutor
                that redacts the configuration's secrets)
            waiter: Readiness waiter (defaults to real TCP polling)
        """
        self.workdir = Path(workdir)
        self.logger = logger
        self.executor = executor
        self.waiter = waiter or ReadinessWaiter(logger=logger)
        self.validator = ConfigValidator(logger=logger)

    def _executor_for(self, config: DeploymentConfig) -> CommandExecutor:
        if self.executor is not None:
            return self.executor
        return SubprocessExecutor(logger=self.logger, secrets=config.secret_values())

    def _step(self, number: int, name: str) -> None:
        if self.logger:
            self.logger.step(f"[{number}/{APPLY_STEPS}] {name}")

    def _fail(
        self,
        error: StackDeployError,
        phase: DeploymentPhase,
        host: Optional[ProvisionedHost] = None,
        certificate: Optional[CertificateState] = None,
    ) -> DeploymentResult:
        if self.logger:
            self.logger.log_error(error.message, context=error.context)
        return DeploymentResult(
            success=False,
            phase=phase,
            host=host,
            certificate=certificate,
            error=error,
        )

    def apply(self, raw: Mapping[str, str]) -> DeploymentResult:
        """
        Run the full deployment.

        Args:
            raw: Settings loaded from the .env file

        Returns:
            DeploymentResult (failure results carry the failing phase)
        """
        phase = DeploymentPhase.VALIDATION
        host = None
        certificate = None

        try:
            self._step(1, "Validating settings")
            config = self.validator.validate(raw)
            if self.logger:
                self.logger.success("Settings and SSH key verified")

            executor = self._executor_for(config)
            ssh = SSHService(SSHConfig(key_path=config.ssh_private_key_path), executor)
            terraform = TerraformManager(
                executor, self.workdir / TERRAFORM_DIR, logger=self.logger
            )
            runner = ConfigurationRunner(
                executor, ssh, self.workdir / ANSIBLE_DIR, logger=self.logger
            )
            certificates = CertificateManager(config, ssh, logger=self.logger)

            phase = DeploymentPhase.PROVISIONING
            self._step(2, "Provisioning infrastructure")
            host = terraform.apply(config)

            phase = DeploymentPhase.READINESS
            self._step(3, "Waiting for SSH")
            attempts = self.waiter.wait_for_reachable(host.address)
            if self.logger:
                self.logger.success(f"SSH is up after {attempts} attempt(s)")
            self._forget_host_key(ssh, host)

            phase = DeploymentPhase.CONFIGURATION
            self._step(4, "Configuring server")
            runner.run_bootstrap(host, config)

            phase = DeploymentPhase.CERTIFICATES
            self._step(5, "Checking SSL certificates")
            certificate = certificates.ensure_certificates(host)

            if certificate.ssl_enabled:
                phase = DeploymentPhase.ENABLE_SSL
                self._step(6, "Enabling SSL")
                runner.run_enable_ssl(host, config)
            elif self.logger:
                self.logger.warning(
                    f"Certificate mode is {certificate.mode.value}; SSL pass skipped"
                )

        except StackDeployError as e:
            return self._fail(e, phase, host=host, certificate=certificate)

        return DeploymentResult(
            success=True,
            phase=DeploymentPhase.COMPLETE,
            endpoints=build_endpoints(config, certificate.ssl_enabled),
            ssl_enabled=certificate.ssl_enabled,
            host=host,
            certificate=certificate,
        )

    def destroy(self, raw: Mapping[str, str]) -> DeploymentResult:
        """
        Destroy everything Terraform created.

        Args:
            raw: Settings loaded from the .env file

        Returns:
            DeploymentResult
        """
        phase = DeploymentPhase.VALIDATION

        try:
            if self.logger:
                self.logger.step("[1/2] Validating settings")
            config = self.validator.validate_teardown(raw)

            phase = DeploymentPhase.TEARDOWN
            if self.logger:
                self.logger.step("[2/2] Destroying infrastructure")
            terraform = TerraformManager(
                self._executor_for(config),
                self.workdir / TERRAFORM_DIR,
                logger=self.logger,
            )
            terraform.destroy(config)

        except StackDeployError as e:
            return self._fail(e, phase)

        return DeploymentResult(success=True, phase=DeploymentPhase.COMPLETE)

    def _forget_host_key(self, ssh: SSHService, host: ProvisionedHost) -> None:
        """Drop a stale known_hosts entry left by a previous droplet at this IP."""
        result = ssh.clean_known_hosts(host.address)
        if result.is_failure and self.logger:
            self.logger.warning(f"Could not remove {host.address} from known_hosts")
