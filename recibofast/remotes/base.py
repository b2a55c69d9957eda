"""Base interface for remote receipt stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from recibofast.schemas import Document


class RemoteSource(ABC):
    """Abstract base class for remote receipt stores.

    Every method settles instead of raising: transport failures surface as
    ``None`` / ``False`` so callers never see a raw client exception.
    """

    name: str = "remote"

    @abstractmethod
    async def probe_availability(self) -> bool:
        """Return True when the store can be reached right now."""
        ...

    @abstractmethod
    async def list_records(self) -> Optional[list[dict[str, Any]]]:
        """
        Fetch every raw record visible to the current account.

        Returns:
            The raw records, or None when the listing failed
        """
        ...

    @abstractmethod
    async def create(self, payload: dict[str, Any]) -> Optional[dict[str, Any]]:
        """
        Create a record remotely.

        Args:
            payload: Store-specific body, see ``build_create_payload``

        Returns:
            The created raw record, or None on failure
        """
        ...

    @abstractmethod
    async def remove(self, record_id: str) -> bool:
        """Delete a record remotely. Returns True on success."""
        ...

    @abstractmethod
    def map_record(self, raw: dict[str, Any]) -> Document:
        """Map one raw record into a Document. Raises MappingError."""
        ...

    @abstractmethod
    def build_create_payload(self, document: Document) -> dict[str, Any]:
        """Build the create body this store accepts for a local document."""
        ...

    async def aclose(self) -> None:
        """Release any open connections."""
        return None
