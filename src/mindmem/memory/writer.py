"""Persists synthesized memory onto the user record."""

import logging

from .store import MemoryStore

logger = logging.getLogger(__name__)


class MemoryWriter:
    """Writes a user's memory string.

    Writes are unconditional overwrites: there is no version check and no
    history of prior values, so the last write wins.
    """

    def __init__(self, store: MemoryStore) -> None:
        self.store = store

    def replace(self, user_id: str, new_memory: str) -> None:
        """Replace the user's memory with new_memory.

        Raises:
            SubjectNotFoundError: If the user does not exist.
        """
        self.store.patch_memory(user_id, new_memory)
        logger.debug("Replaced memory for user %s (%d chars)", user_id, len(new_memory))
