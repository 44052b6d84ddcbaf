"""Collaborator interfaces for the form engine.

The engine is an in-process library. Everything that crosses a process
boundary (form persistence, remote option lists, file storage, final
submission) or reaches the operator (notifications) is injected through
one of these protocols, so tests and alternative transports can swap
implementations without touching the engine.

Design principles:
- Persistence calls are synchronous (authoring runs in one handler turn)
- Option fetch, upload and submit are coroutines (suspension points)
- Notifications are a side-channel, never a control-flow signal
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol, runtime_checkable


@runtime_checkable
class FormsApi(Protocol):
    """Forms persistence API."""

    def create_form(self, definition: Dict[str, Any]) -> Dict[str, Any]:
        """Create a form.

        Args:
            definition: Wire-shaped FormDefinition (camelCase keys).

        Returns:
            Saved form payload containing at least ``id`` and ``slug``.
        """
        ...

    def update_form(self, form_id: str, definition: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the stored definition of ``form_id``; returns the saved payload."""
        ...

    def get_form(self, form_id: str) -> Dict[str, Any]:
        """Fetch the stored definition of ``form_id``."""
        ...


@runtime_checkable
class OptionSource(Protocol):
    """Generic remote list endpoint used by fetch-backed choice fields."""

    async def fetch_items(self, endpoint: str) -> List[Dict[str, Any]]:
        """GET ``endpoint`` and return its item list."""
        ...


@runtime_checkable
class FileStorage(Protocol):
    """File storage API converting local files into persisted URLs."""

    async def upload_file(self, file: Any, folder: str) -> str:
        """Upload ``file`` into ``folder`` and return its public URL."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Operator/end-user notification side-channel."""

    def info(self, message: str) -> None:
        ...

    def success(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...
