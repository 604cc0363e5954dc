"""
Per-user object store construction.
"""

import logging
from typing import Dict, List

from .audited import AuditedObjectStore
from .base import ObjectStore
from .google_drive import create_client
from .memory import InMemoryObjectStore
from .oauth import DriveCredentialStore
from ..config.settings import DriveConfig, StorageBackend
from ..data.base import SyncLogRepository
from ..exceptions import DriveNotConnectedError, create_error_context

logger = logging.getLogger(__name__)


class StoreProvider:
    """
    Builds an audited object store for one user per request.

    With the Google Drive backend a new client is created from the user's
    stored tokens on every call. The memory backend keeps one store per
    user for the life of the process.
    """

    def __init__(
        self,
        config: DriveConfig,
        credential_store: DriveCredentialStore,
        sync_log: SyncLogRepository,
    ):
        self.config = config
        self.credential_store = credential_store
        self.sync_log = sync_log
        self._memory_stores: Dict[int, InMemoryObjectStore] = {}

    @property
    def uses_memory(self) -> bool:
        return self.config.backend == StorageBackend.MEMORY

    async def is_connected(self, user_id: int) -> bool:
        if self.uses_memory:
            return True
        return await self.credential_store.has_tokens(user_id)

    async def connected_users(self) -> List[int]:
        if self.uses_memory:
            return sorted(self._memory_stores)
        return await self.credential_store.list_connected_users()

    async def _inner_store(self, user_id: int) -> ObjectStore:
        if self.uses_memory:
            if user_id not in self._memory_stores:
                self._memory_stores[user_id] = InMemoryObjectStore(app_folder_name=self.config.app_folder)
            return self._memory_stores[user_id]

        tokens = await self.credential_store.get_tokens(user_id)
        if tokens is None:
            raise DriveNotConnectedError(
                context=create_error_context(operation="open_store", user_id=user_id),
            )
        return create_client(tokens, self.config)

    async def for_user(self, user_id: int) -> AuditedObjectStore:
        """
        Open the store of a user.

        Raises:
            DriveNotConnectedError: If the user has no usable Drive tokens
        """
        inner = await self._inner_store(user_id)
        return AuditedObjectStore(
            inner,
            self.sync_log,
            user_id,
            timeout=self.config.call_timeout_seconds,
        )
