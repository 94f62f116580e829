"""
Command Execution

Every external tool (terraform, ansible-playbook, ssh, ssh-keygen) is run
through a CommandExecutor so services can be tested with a fake.
"""

import json
import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from rich.live import Live
from rich.padding import Padding
from rich.spinner import Spinner
from rich.text import Text

from stackdeploy.constants import REDACTED
from stackdeploy.logger import DeployLogger
from stackdeploy.models.results import ExecutionResult


class CommandExecutor(ABC):
    """Runs an external command and reports its outcome."""

    @abstractmethod
    def execute(
        self,
        args: list[str],
        cwd: Optional[Path] = None,
        env: Optional[dict[str, str]] = None,
        timeout: Optional[int] = None,
        description: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Execute a command.

        Args:
            args: Program and arguments
            cwd: Working directory
            env: Extra environment variables for the child process
            timeout: Seconds before the command is abandoned
            description: Short label for progress display

        Returns:
            ExecutionResult (never raises for a non-zero exit)
        """


class SubprocessExecutor(CommandExecutor):
    """
    Runs commands with subprocess.

    Responsibilities:
    - Log every command with secrets redacted
    - Capture stdout/stderr into the deployment log
    - Show a spinner while a tool runs (non-verbose mode)
    """

    def __init__(
        self, logger: Optional[DeployLogger] = None, secrets: Iterable[str] = ()
    ):
        """
        Initialize executor.

        Args:
            logger: DeployLogger for command and output logging
            secrets: Values replaced by *** before anything is logged
        """
        self.logger = logger
        forms = set()
        for secret in secrets:
            if secret:
                forms.update(_encoded_forms(secret))
        # Longest first so a secret containing another is fully masked
        self.secrets = sorted(forms, key=len, reverse=True)

    def redact(self, text: str) -> str:
        """Mask configured secret values in text."""
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text

    def execute(
        self,
        args: list[str],
        cwd: Optional[Path] = None,
        env: Optional[dict[str, str]] = None,
        timeout: Optional[int] = None,
        description: Optional[str] = None,
    ) -> ExecutionResult:
        command = shlex.join(self.redact(str(arg)) for arg in args)
        if self.logger:
            self.logger.log_command(command)

        child_env = None
        if env:
            child_env = os.environ.copy()
            child_env.update(env)

        if self.logger and not self.logger.verbose:
            result = self._run_with_spinner(
                args, cwd, child_env, timeout, description or args[0]
            )
        else:
            result = self._run(args, cwd, child_env, timeout)

        result.command = command

        if self.logger:
            self.logger.log_output(self.redact(result.stdout), "stdout")
            self.logger.log_output(self.redact(result.stderr), "stderr")
            if result.is_failure:
                self.logger.log(f"Exit code: {result.returncode}", "DEBUG")

        return result

    def _run(
        self,
        args: list[str],
        cwd: Optional[Path],
        env: Optional[dict[str, str]],
        timeout: Optional[int],
    ) -> ExecutionResult:
        """Run the process to completion and capture its output."""
        try:
            completed = subprocess.run(
                args,
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError:
            return ExecutionResult(returncode=127, stderr=f"{args[0]}: command not found")
        except subprocess.TimeoutExpired:
            return ExecutionResult(
                returncode=124, stderr=f"{args[0]} timed out after {timeout}s"
            )

        return ExecutionResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

    def _run_with_spinner(
        self,
        args: list[str],
        cwd: Optional[Path],
        env: Optional[dict[str, str]],
        timeout: Optional[int],
        description: str,
    ) -> ExecutionResult:
        """Run the process while a spinner is shown."""
        spinner = Spinner("dots", text=Text(f"{description}...", style="cyan"))
        padded_spinner = Padding(spinner, (0, 0, 0, 2))

        with Live(
            padded_spinner,
            console=self.logger.console,
            refresh_per_second=10,
            transient=False,
        ) as live:
            result = self._run(args, cwd, env, timeout)

            if result.is_success:
                mark = Text("  ✓ ", style="dim")
                mark.append(description, style="dim")
            else:
                mark = Text("  ✗ ", style="red")
                mark.append(description, style="dim")
            live.update(mark)

        return result


def _encoded_forms(secret: str) -> set[str]:
    """A secret as it may appear raw, inside JSON strings, or shell-quoted."""
    return {
        secret,
        json.dumps(secret)[1:-1],
        json.dumps(secret, ensure_ascii=False)[1:-1],
        shlex.quote(secret),
    }
