"""
Up Command

Provision, configure and secure the notes stack.
"""

from pathlib import Path
from typing import Optional

from stackdeploy.base import BaseCommand
from stackdeploy.core.config_loader import load_env_file
from stackdeploy.executor import CommandExecutor
from stackdeploy.orchestrator import Orchestrator
from stackdeploy.services.readiness_service import ReadinessWaiter
from stackdeploy.ui_components import show_deployment_summary


class UpCommand(BaseCommand):
    """Run the full deployment workflow."""

    def __init__(
        self,
        workdir: Path,
        env_file: Path,
        verbose: bool = False,
        executor: Optional[CommandExecutor] = None,
        waiter: Optional[ReadinessWaiter] = None,
    ):
        super().__init__(workdir=workdir, verbose=verbose)
        self.env_file = Path(env_file)
        self.executor = executor
        self.waiter = waiter

    def execute(self) -> int:
        """Execute up command."""
        self.show_header(
            title="Deploy",
            subtitle="Terraform → Ansible → Certbot",
            details={"Settings": self.env_file},
        )

        raw = load_env_file(self.env_file)

        with self.init_logger("up") as logger:
            orchestrator = Orchestrator(
                self.workdir, logger=logger, executor=self.executor, waiter=self.waiter
            )
            result = orchestrator.apply(raw)

        if result.success:
            show_deployment_summary(result, console=self.console)
        else:
            self.print_dim(f"Deployment stopped during: {result.phase.value}")

        self.print_log_location()
        return result.exit_code
