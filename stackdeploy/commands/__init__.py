"""Deployment commands - up, down."""

from stackdeploy.commands.up import UpCommand
from stackdeploy.commands.down import DownCommand

__all__ = [
    "UpCommand",
    "DownCommand",
]
