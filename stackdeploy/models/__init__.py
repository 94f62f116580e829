"""
stackdeploy Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .results import (
    ValidationResult,
    ExecutionResult,
)
from .deployment import (
    CertificateMode,
    CertificateStatus,
    CertificateState,
    DeploymentPhase,
    DeploymentConfig,
    DeploymentResult,
    MailerSettings,
    ProvisionedHost,
    S3Settings,
)
from .ssh import (
    SSHConfig,
    SSHConnection,
)

__all__ = [
    # Results
    "ValidationResult",
    "ExecutionResult",
    # Deployment
    "CertificateMode",
    "CertificateStatus",
    "CertificateState",
    "DeploymentPhase",
    "DeploymentConfig",
    "DeploymentResult",
    "MailerSettings",
    "ProvisionedHost",
    "S3Settings",
    # SSH
    "SSHConfig",
    "SSHConnection",
]
