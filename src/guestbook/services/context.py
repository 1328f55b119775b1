"""Explicit runtime context shared by guestbook services."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from guestbook.core.settings import Settings
from guestbook.db.session import create_engine_for_url, create_sessionmaker
from guestbook.repositories.message_repo import MessageRepository
from guestbook.services.identity import FileIdentityStore, IdentityStore
from guestbook.services.realtime import ChangeNotifier
from guestbook.services.storage import AttachmentStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GuestbookContext:
    """Everything a service call needs, built once at startup.

    Attributes:
        settings: Application settings.
        repository: Persistence adapter for messages, replies and likes.
        notifier: Change notification registry.
        identity: Store holding the current visitor's display name.
        storage: Attachment storage, or None when not configured.
        engine: Engine backing ``repository``; disposed by :meth:`close`.
    """

    settings: Settings
    repository: MessageRepository
    notifier: ChangeNotifier
    identity: IdentityStore
    storage: AttachmentStorage | None = None
    engine: AsyncEngine | None = None

    def with_identity(self, identity: IdentityStore) -> GuestbookContext:
        """Return a copy acting on behalf of a different visitor."""
        return dataclasses.replace(self, identity=identity)

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def build_context(settings: Settings) -> GuestbookContext:
    """Wire the default collaborators from ``settings``."""
    engine = create_engine_for_url(settings.database_url, echo=settings.sql_debug)
    repository = MessageRepository(create_sessionmaker(engine))
    storage = AttachmentStorage(settings) if settings.file_storage_enabled else None
    if storage is None:
        logger.info("Attachment storage disabled; set STORAGE_ACCESS_KEY to enable uploads")
    return GuestbookContext(
        settings=settings,
        repository=repository,
        notifier=ChangeNotifier(),
        identity=FileIdentityStore(settings.identity_file),
        storage=storage,
        engine=engine,
    )
