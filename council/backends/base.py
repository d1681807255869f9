"""Abstract base for debate backends, plus reviewer-id routing."""

from abc import ABC, abstractmethod

from council.models import DebateContext


class BackendError(Exception):
    """Raised when a backend call fails or times out."""

    def __init__(self, backend_name: str, message: str) -> None:
        self.backend_name = backend_name
        super().__init__(f"[{backend_name}] {message}")


class DebateBackend(ABC):
    """Anything that can argue one participant's debate round."""

    @abstractmethod
    def name(self) -> str:
        """Return the short backend name (e.g. 'claude', 'grok')."""
        ...

    @abstractmethod
    async def execute(self, context: DebateContext, timeout: float | None = None) -> str:
        """Argue one round for context.reviewer_id.

        Args:
            context: Position, anonymized opponents and round instruction.
            timeout: Seconds before the call is abandoned; None for no limit.

        Returns:
            Raw reply text, parsed later by a ResponseParser.

        Raises:
            BackendError: On API failure, timeout, or empty reply.
        """
        ...


class RoutingBackend(DebateBackend):
    """Dispatch each request to the backend registered for its reviewer."""

    def __init__(self, backends: dict[str, DebateBackend]) -> None:
        self._backends = dict(backends)

    def name(self) -> str:
        return "router"

    @property
    def reviewers(self) -> list[str]:
        return sorted(self._backends)

    async def execute(self, context: DebateContext, timeout: float | None = None) -> str:
        backend = self._backends.get(context.reviewer_id)
        if backend is None:
            raise BackendError(self.name(), f"No backend configured for reviewer {context.reviewer_id!r}")
        return await backend.execute(context, timeout)
