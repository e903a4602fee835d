"""
Permission checker strategies.
"""

from .base import BaseChecker, MSG_NO_PERMISSION
from .default import DefaultChecker
from .pod_terminal import PodTerminalChecker

__all__ = ["BaseChecker", "DefaultChecker", "PodTerminalChecker", "MSG_NO_PERMISSION"]
