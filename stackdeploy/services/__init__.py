"""
stackdeploy Services Layer

Remote access, readiness polling and certificate management.
"""

from .ssh_service import SSHService
from .readiness_service import ReadinessWaiter, tcp_connect
from .certificate_service import CertificateManager

__all__ = [
    "SSHService",
    "ReadinessWaiter",
    "tcp_connect",
    "CertificateManager",
]
