"""
Ansible Runner

Runs the server playbook against the droplet: a bootstrap pass, then an
optional pass with enable_ssl=true once certificates exist.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from stackdeploy.constants import ANSIBLE_PLAYBOOK, REVERSE_PROXY_CONTAINER, SSH_USER
from stackdeploy.exceptions import ConfigurationError, ServiceHealthError
from stackdeploy.executor import CommandExecutor
from stackdeploy.logger import DeployLogger
from stackdeploy.models.deployment import DeploymentConfig, ProvisionedHost
from stackdeploy.services.ssh_service import SSHService


def build_extra_vars(config: DeploymentConfig, enable_ssl: bool = False) -> Dict[str, Any]:
    """
    Extra variables for the playbook.

    Args:
        config: Validated deployment configuration
        enable_ssl: Switch templates to their TLS variants

    Returns:
        Dictionary passed to --extra-vars as JSON
    """
    s3 = config.s3
    mailer = config.mailer

    extra_vars = {
        "postgres_pwd": config.postgres_password,
        "enable_block_storage": config.enable_block_storage,
        "enable_s3_storage": config.enable_s3_storage,
        "s3_key": s3.access_key_id if s3 else "",
        "s3_secret": s3.secret_access_key if s3 else "",
        "s3_bucket": s3.bucket_name if s3 else "",
        "s3_region": config.region,
        "domain": config.domain,
        "joplin_sub": config.joplin_subdomain,
        "trilium_sub": config.trilium_subdomain or "",
        "certbot_mode": config.certbot_mode.value if config.certbot_mode else "",
        "acme_email": config.acme_email,
        "mailer_enabled": config.mailer_enabled,
        "mailer_host": mailer.host if mailer else "",
        "mailer_port": mailer.port if mailer else 0,
        "mailer_user": mailer.username if mailer else "",
        "mailer_password": mailer.password if mailer else "",
        "mailer_noreply_email": mailer.noreply_email if mailer else "",
        "mailer_noreply_name": mailer.noreply_name if mailer else "",
        "mailer_secure": mailer.secure if mailer else False,
    }

    if enable_ssl:
        extra_vars["enable_ssl"] = True

    return extra_vars


class ConfigurationRunner:
    """
    Run the playbook against the single droplet.

    Responsibilities:
    - Build the ansible-playbook command
    - Bootstrap pass followed by a reverse-proxy health check
    - SSL pass once certificates are in place
    """

    def __init__(
        self,
        executor: CommandExecutor,
        ssh: SSHService,
        ansible_dir: Path,
        logger: Optional[DeployLogger] = None,
        playbook: str = ANSIBLE_PLAYBOOK,
    ):
        """
        Initialize Ansible runner.

        Args:
            executor: Runs ansible-playbook
            ssh: Used for the post-bootstrap health check
            ansible_dir: Directory holding the playbook
            logger: DeployLogger instance for logging
            playbook: Playbook file name inside ansible_dir
        """
        self.executor = executor
        self.ssh = ssh
        self.ansible_dir = Path(ansible_dir)
        self.logger = logger
        self.playbook = playbook

    def build_command(
        self, host: ProvisionedHost, config: DeploymentConfig, enable_ssl: bool = False
    ) -> list[str]:
        """Build the ansible-playbook argument list."""
        extra_vars = build_extra_vars(config, enable_ssl=enable_ssl)
        return [
            "ansible-playbook",
            "-i",
            # Trailing comma makes Ansible treat the value as a host list
            f"{host.address},",
            str(self.ansible_dir / self.playbook),
            "--user",
            SSH_USER,
            "--private-key",
            config.ssh_private_key_path,
            "--ssh-common-args=-o IdentitiesOnly=yes",
            "--extra-vars",
            json.dumps(extra_vars),
        ]

    def _run(
        self,
        host: ProvisionedHost,
        config: DeploymentConfig,
        enable_ssl: bool,
        description: str,
    ) -> None:
        result = self.executor.execute(
            self.build_command(host, config, enable_ssl=enable_ssl),
            env={"ANSIBLE_HOST_KEY_CHECKING": "False"},
            description=description,
        )
        if result.is_failure:
            raise ConfigurationError(
                f"Ansible provisioning failed ({description.lower()})",
                context="Check the Ansible output in the log file",
            )

    def run_bootstrap(self, host: ProvisionedHost, config: DeploymentConfig) -> None:
        """
        First playbook pass, then verify the reverse proxy is running.

        Raises:
            ConfigurationError: If the playbook fails
            ServiceHealthError: If the reverse proxy container is not running
        """
        self._run(host, config, enable_ssl=False, description="Configuring server")
        self.check_health(host)

    def run_enable_ssl(self, host: ProvisionedHost, config: DeploymentConfig) -> None:
        """
        Rerun the playbook with enable_ssl=true.

        Raises:
            ConfigurationError: If the playbook fails
        """
        self._run(host, config, enable_ssl=True, description="Enabling SSL")

    def check_health(self, host: ProvisionedHost) -> None:
        """
        Verify the reverse proxy container is running.

        Raises:
            ServiceHealthError: If it is not
        """
        if not self.ssh.container_running(host.address, REVERSE_PROXY_CONTAINER):
            raise ServiceHealthError(
                f"Nginx ({REVERSE_PROXY_CONTAINER}) is not running on {host.address}",
                context=f"Check 'docker logs {REVERSE_PROXY_CONTAINER}' on the server",
            )

        if self.logger:
            self.logger.success(f"{REVERSE_PROXY_CONTAINER} is running")
