from collections.abc import Iterable, Mapping
from typing import Protocol
from uuid import uuid4

import structlog

from transfer_client.domain.models import Contact


logger = structlog.get_logger()


class ContactSource(Protocol):
    async def list_contacts(self) -> list[Contact]: ...


class StaticContactSource:
    """
    Contacts from a fixed list of raw entries.

    Entries without an id get a generated one; entries without a name are
    shown as "Unknown". A denied permission yields no contacts at all.
    """

    def __init__(
        self,
        entries: Iterable[Mapping[str, str | None]] = (),
        permission_granted: bool = True,
    ) -> None:
        self._entries = list(entries)
        self._permission_granted = permission_granted

    async def list_contacts(self) -> list[Contact]:
        if not self._permission_granted:
            logger.info("contact_permission_denied")
            return []

        return [
            Contact(
                id=entry.get("id") or uuid4().hex[:9],
                name=entry.get("name") or "Unknown",
            )
            for entry in self._entries
        ]
