"""
Down Command

Destroy the droplet, volume, firewall and DNS records.
"""

from pathlib import Path
from typing import Optional

from stackdeploy.base import BaseCommand
from stackdeploy.core.config_loader import load_env_file
from stackdeploy.executor import CommandExecutor
from stackdeploy.orchestrator import Orchestrator


class DownCommand(BaseCommand):
    """Run the teardown workflow."""

    def __init__(
        self,
        workdir: Path,
        env_file: Path,
        verbose: bool = False,
        executor: Optional[CommandExecutor] = None,
    ):
        super().__init__(workdir=workdir, verbose=verbose)
        self.env_file = Path(env_file)
        self.executor = executor

    def execute(self) -> int:
        """Execute down command."""
        self.show_header(
            title="Destroy",
            subtitle="terraform destroy",
            details={"Settings": self.env_file},
        )

        raw = load_env_file(self.env_file)

        with self.init_logger("destroy") as logger:
            result = Orchestrator(
                self.workdir, logger=logger, executor=self.executor
            ).destroy(raw)

        if result.success:
            self.print_success("All resources destroyed")
        else:
            self.print_dim(f"Teardown stopped during: {result.phase.value}")

        self.print_log_location()
        return result.exit_code
