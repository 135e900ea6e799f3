"""Service layer interfaces."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class GenerativeModel(Protocol):
    """Protocol for the external text-completion service."""

    async def complete(self, system: str, message: str) -> str:
        """Return the model's reply to one user message."""
        ...


@runtime_checkable
class EmailService(Protocol):
    """Protocol for outbound email."""

    async def send(self, subject: str, content: str) -> None:
        """Deliver one message to the configured recipient."""
        ...


__all__ = ["EmailService", "GenerativeModel"]
