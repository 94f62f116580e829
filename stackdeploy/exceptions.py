"""
stackdeploy Exception Hierarchy

One exception class per failure kind of the deployment workflow.
`context` carries the remediation hint shown under the error line.
"""

from typing import Optional


class StackDeployError(Exception):
    """Base exception for all stackdeploy errors."""

    exit_code = 1

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigError(StackDeployError):
    """Raised when settings are missing or invalid (aggregates every problem)."""

    def __init__(
        self,
        problems: list[str],
        context: Optional[str] = None,
        missing_keys: Optional[list[str]] = None,
    ):
        self.problems = list(problems)
        self.missing_keys = list(missing_keys or [])
        lines = ["The following settings are missing or invalid:"]
        lines.extend(f"  - {problem}" for problem in self.problems)
        super().__init__("\n".join(lines), context)


class SecurityError(StackDeployError):
    """Raised when the SSH private key is missing or has unsafe permissions."""

    pass


class ProvisionError(StackDeployError):
    """Raised when Terraform apply/destroy fails."""

    def __init__(
        self,
        message: str,
        context: Optional[str] = None,
        resize_conflict: bool = False,
    ):
        self.resize_conflict = resize_conflict
        super().__init__(message, context)


class ReadinessTimeoutError(StackDeployError):
    """Raised when the host never accepted a TCP connection."""

    def __init__(self, host: str, port: int, attempts: int, elapsed_seconds: float):
        self.host = host
        self.port = port
        self.attempts = attempts
        self.elapsed_seconds = elapsed_seconds
        message = (
            f"{host}:{port} not reachable after {attempts} attempts "
            f"({elapsed_seconds:.0f}s)"
        )
        context = "Check the droplet console and firewall rules for port 22"
        super().__init__(message, context)


class ConfigurationError(StackDeployError):
    """Raised when the Ansible playbook run fails."""

    pass


class ServiceHealthError(ConfigurationError):
    """Raised when an expected container is not running after configuration."""

    pass


class CertificateIssuanceError(StackDeployError):
    """Raised when certbot fails or the certificate mode is invalid."""

    pass
