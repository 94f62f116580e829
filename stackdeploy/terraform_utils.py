"""
Terraform Utilities

Terraform operations manager with resize-conflict recovery.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from stackdeploy.constants import (
    DROPLET_RESOURCE,
    OUTPUT_DROPLET_ID,
    OUTPUT_DROPLET_IP,
    RESIZE_CONFLICT_PATTERNS,
)
from stackdeploy.exceptions import ProvisionError
from stackdeploy.executor import CommandExecutor
from stackdeploy.logger import DeployLogger
from stackdeploy.models.deployment import DeploymentConfig, ProvisionedHost
from stackdeploy.models.results import ExecutionResult


def is_resize_conflict(diagnostic: str, patterns=RESIZE_CONFLICT_PATTERNS) -> bool:
    """
    Check if Terraform failed because the droplet cannot shrink its disk.

    Args:
        diagnostic: Terraform stdout/stderr
        patterns: Known provider phrases (case-insensitive)

    Returns:
        True if any known phrase occurs in the diagnostic
    """
    text = diagnostic.lower()
    return any(pattern.lower() in text for pattern in patterns)


def terraform_vars(config: DeploymentConfig) -> Dict[str, str]:
    """
    Terraform variables for a deployment.

    Apply and destroy both use this so Terraform never sees drift between
    the two.
    """
    return {
        "do_token": config.do_token,
        "region": config.region,
        "ssh_public_key_path": config.ssh_public_key_path,
        "enable_block_storage": _tf_bool(config.enable_block_storage),
        "cloudflare_api_token": config.cloudflare_api_token,
        "cloudflare_zone_id": config.cloudflare_zone_id,
        "cloudflare_proxied": _tf_bool(config.cloudflare_proxied),
        "domain": config.domain,
        "joplin_subdomain": config.joplin_subdomain,
        "trilium_subdomain": config.trilium_subdomain or "",
    }


def _tf_bool(value: bool) -> str:
    return "true" if value else "false"


@dataclass
class TerraformOutputs:
    """Terraform outputs with type-safe access."""

    raw_outputs: Dict[str, Any]

    def get_value(self, key: str, default: Any = None) -> Any:
        """Get output value by key."""
        output = self.raw_outputs.get(key, {})
        return output.get("value", default)

    def get_droplet_ip(self) -> Optional[str]:
        """Get the droplet's public IPv4 address."""
        return self.get_value(OUTPUT_DROPLET_IP)

    def get_droplet_id(self) -> Optional[str]:
        """Get the droplet id."""
        value = self.get_value(OUTPUT_DROPLET_ID)
        return str(value) if value is not None else None


class TerraformManager:
    """
    Manages Terraform operations with clean interfaces.

    Responsibilities:
    - Initialize Terraform
    - Apply/destroy operations
    - Resize-conflict recovery (one forced droplet replacement)
    - Output queries
    """

    def __init__(
        self,
        executor: CommandExecutor,
        terraform_dir: Path,
        logger: Optional[DeployLogger] = None,
    ):
        """
        Initialize Terraform manager.

        Args:
            executor: Runs the terraform binary
            terraform_dir: Directory holding the Terraform configuration
            logger: DeployLogger instance for logging
        """
        self.executor = executor
        self.terraform_dir = Path(terraform_dir)
        self.logger = logger

    def _run_command(
        self, args: list[str], description: Optional[str] = None
    ) -> ExecutionResult:
        """Run a terraform subcommand in the Terraform directory."""
        return self.executor.execute(
            ["terraform"] + args,
            cwd=self.terraform_dir,
            description=description,
        )

    @staticmethod
    def _var_args(variables: Dict[str, str]) -> list[str]:
        return [f"-var={name}={value}" for name, value in variables.items()]

    def init(self) -> ExecutionResult:
        """
        Initialize Terraform.

        Raises:
            ProvisionError: If init fails
        """
        result = self._run_command(
            ["init", "-input=false", "-no-color"], "Initializing Terraform"
        )
        if result.is_failure:
            raise ProvisionError(
                "Terraform init failed",
                context=_last_lines(result.output) or f"Exit code: {result.returncode}",
            )
        return result

    def apply_command(self, config: DeploymentConfig, replace: bool = False) -> list[str]:
        """Build terraform apply arguments (without the binary)."""
        args = ["apply", "-auto-approve", "-input=false", "-no-color"]
        if replace:
            args.append(f"-replace={DROPLET_RESOURCE}")
        return args + self._var_args(terraform_vars(config))

    def destroy_command(self, config: DeploymentConfig) -> list[str]:
        """Build terraform destroy arguments (without the binary)."""
        args = ["destroy", "-auto-approve", "-input=false", "-no-color"]
        return args + self._var_args(terraform_vars(config))

    def apply(self, config: DeploymentConfig) -> ProvisionedHost:
        """
        Create or update the droplet, volume, firewall and DNS records.

        A failure whose output matches a known resize conflict is retried
        once with the droplet marked for replacement. Any other failure is
        raised as-is.

        Args:
            config: Validated deployment configuration

        Returns:
            ProvisionedHost read from Terraform outputs

        Raises:
            ProvisionError: If apply fails or outputs are incomplete
        """
        self.init()

        result = self._run_command(self.apply_command(config), "Provisioning infrastructure")

        if result.is_failure:
            if not is_resize_conflict(result.output):
                raise ProvisionError(
                    "Terraform failed to provision resources",
                    context=_last_lines(result.output) or f"Exit code: {result.returncode}",
                )

            if self.logger:
                self.logger.warning(
                    "Droplet cannot be resized in place (smaller disk); "
                    f"replacing {DROPLET_RESOURCE}"
                )

            result = self._run_command(
                self.apply_command(config, replace=True), "Replacing droplet"
            )
            if result.is_failure:
                raise ProvisionError(
                    "Terraform failed to replace the droplet after a resize conflict",
                    context=_last_lines(result.output) or f"Exit code: {result.returncode}",
                    resize_conflict=True,
                )

        outputs = self.get_outputs()
        address = outputs.get_droplet_ip()
        if not address:
            raise ProvisionError(
                f"Terraform output '{OUTPUT_DROPLET_IP}' is missing",
                context="Check terraform/outputs.tf",
            )

        host = ProvisionedHost(address=address, resource_id=outputs.get_droplet_id())
        if self.logger:
            self.logger.success(f"Droplet IP: {host.address}")
        return host

    def destroy(self, config: DeploymentConfig) -> None:
        """
        Destroy every Terraform-managed resource.

        Raises:
            ProvisionError: If destroy fails
        """
        self.init()

        result = self._run_command(self.destroy_command(config), "Destroying infrastructure")
        if result.is_failure:
            raise ProvisionError(
                "Terraform failed to destroy resources",
                context=_last_lines(result.output) or f"Exit code: {result.returncode}",
            )

        if self.logger:
            self.logger.success("Infrastructure destroyed")

    def get_outputs(self) -> TerraformOutputs:
        """
        Get Terraform outputs.

        Raises:
            ProvisionError: If the command fails or prints invalid JSON
        """
        result = self._run_command(["output", "-json", "-no-color"], "Reading outputs")
        if result.is_failure:
            raise ProvisionError(
                "Could not read Terraform outputs",
                context=_last_lines(result.output) or f"Exit code: {result.returncode}",
            )

        if not result.stdout.strip():
            return TerraformOutputs(raw_outputs={})

        try:
            return TerraformOutputs(raw_outputs=json.loads(result.stdout))
        except json.JSONDecodeError as e:
            raise ProvisionError("Terraform outputs are not valid JSON", context=str(e))


def _last_lines(text: str, count: int = 15) -> str:
    """Tail of tool output for error context."""
    return "\n".join(text.strip().splitlines()[-count:])
