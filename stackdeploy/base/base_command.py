"""
Base Command Class

Abstract base for stackdeploy CLI commands.
Provides common functionality and structure.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from stackdeploy.exceptions import StackDeployError
from stackdeploy.logger import DeployLogger
from stackdeploy.ui_components import show_header


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization
    - Header display
    - Error handling and exit codes
    """

    def __init__(self, workdir: Path, verbose: bool = False):
        self.workdir = Path(workdir)
        self.verbose = verbose
        self.console = Console()
        self.logger: Optional[DeployLogger] = None

    def init_logger(self, command_name: str) -> DeployLogger:
        """
        Initialize command logger.

        Args:
            command_name: Command name used in the log file name

        Returns:
            DeployLogger instance
        """
        self.logger = DeployLogger(
            command_name, self.workdir, verbose=self.verbose, console=self.console
        )
        return self.logger

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in verbose mode)."""
        if not self.verbose:
            show_header(
                title=title, subtitle=subtitle, details=details, console=self.console
            )

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓ {escape(message)}[/green]")

    def print_error(self, message: str) -> None:
        self.console.print(f"[red]✗ {escape(message)}[/red]")

    def print_dim(self, message: str) -> None:
        self.console.print(f"[dim]{escape(message)}[/dim]")

    def print_log_location(self) -> None:
        if self.logger:
            self.console.print(f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

    @abstractmethod
    def execute(self, **kwargs) -> int:
        """
        Execute command logic.

        Returns:
            Process exit code
        """

    def run(self, **kwargs) -> None:
        """
        Run command with error handling; always ends in SystemExit.

        Args:
            **kwargs: Command arguments
        """
        try:
            code = self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            self.print_log_location()
            raise SystemExit(130)
        except SystemExit:
            raise
        except StackDeployError as e:
            # Raised before the orchestrator took over (e.g. missing .env)
            self.console.print(f"\n[bold red]✗ Error:[/bold red] {escape(e.message)}\n")
            if e.context:
                self.print_dim(e.context)
            self.print_log_location()
            raise SystemExit(e.exit_code)
        except Exception as e:
            error_type = type(e).__name__
            self.console.print(f"\n[bold red]✗ {error_type}:[/bold red] {escape(str(e))}\n")
            if self.logger:
                self.logger.log_error(f"{error_type}: {e}")
            self.print_log_location()
            raise SystemExit(1)

        raise SystemExit(code)
