"""SSH service for executing commands on the droplet."""

import shlex
from typing import Optional

from stackdeploy.constants import SSH_COMMAND_TIMEOUT
from stackdeploy.executor import CommandExecutor
from stackdeploy.models.results import ExecutionResult
from stackdeploy.models.ssh import SSHConfig, SSHConnection


class SSHService:
    """Service for SSH operations."""

    def __init__(self, config: SSHConfig, executor: CommandExecutor):
        """
        Initialize SSH service.

        Args:
            config: SSH configuration
            executor: Runs the ssh/ssh-keygen processes
        """
        self.config = config
        self.executor = executor

    def connection(self, host: str) -> SSHConnection:
        """Get connection details for host."""
        return SSHConnection(host=host, config=self.config)

    def execute_command(
        self,
        host: str,
        command: str,
        timeout: Optional[int] = SSH_COMMAND_TIMEOUT,
        description: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Execute command on remote host via SSH.

        Args:
            host: Host IP or hostname
            command: Shell command run by the remote shell
            timeout: Command timeout in seconds
            description: Label for progress display

        Returns:
            ExecutionResult (exit 255 means ssh itself failed)
        """
        return self.executor.execute(
            self.connection(host).build_command(command),
            timeout=timeout,
            description=description,
        )

    def directory_exists(self, host: str, path: str) -> ExecutionResult:
        """
        Test for a directory on the remote host.

        Returns:
            ExecutionResult: exit 0 if present, 1 if absent, other on ssh failure
        """
        return self.execute_command(host, f"test -d {shlex.quote(path)}")

    def docker_ps(self, host: str, container_filter: Optional[str] = None) -> ExecutionResult:
        """
        List running Docker containers over SSH.

        Args:
            host: Host IP or hostname
            container_filter: Optional filter (e.g., 'name=reverse-proxy')

        Returns:
            ExecutionResult with one "name<TAB>status" line per container
        """
        docker_cmd = "docker ps"

        if container_filter:
            docker_cmd += f" --filter {shlex.quote(container_filter)}"

        docker_cmd += " --format '{{.Names}}\t{{.Status}}'"

        return self.execute_command(host, docker_cmd, timeout=30)

    def container_running(self, host: str, container_name: str) -> bool:
        """Check if a container with exactly this name is running."""
        result = self.docker_ps(host, f"name={container_name}")
        if result.is_failure:
            return False

        names = [line.split("\t")[0].strip() for line in result.stdout.splitlines()]
        return container_name in names

    def clean_known_hosts(self, host: str) -> ExecutionResult:
        """
        Remove host from the local known_hosts file.

        Args:
            host: Host IP or hostname to remove
        """
        return self.executor.execute(["ssh-keygen", "-R", host])
