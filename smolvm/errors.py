"""Exceptions raised by smolvm."""

from __future__ import annotations


class SmolvmError(Exception):
    """Base class of every smolvm error."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AgentError(SmolvmError):
    """Talking to the guest agent failed, or the agent reported a failure."""


class MountError(SmolvmError):
    """A volume mount specification is invalid."""


class ConfigError(SmolvmError):
    """The stored configuration is invalid or cannot be changed as asked."""