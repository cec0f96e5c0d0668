"""
Session store.

Filesystem persistence for wallet sessions: one JSON file per wallet brand,
``{session_dir}/{wallet_id}-session.json``. An expired, unreadable or
out-of-date snapshot is treated as absent and deleted on read.
"""

from __future__ import annotations
from pathlib import Path
from typing import Optional, Union
import json
import logging
import os

from pydantic import ValidationError

from .constants import SESSION_SCHEMA_VERSION
from .types import StoredSession

logger = logging.getLogger(__name__)


class SessionStore:
    """
    File-based session store for one wallet.

    Args:
        directory: Directory holding session files
        wallet_id: Wallet brand the session belongs to
    """

    def __init__(self, directory: Union[str, Path], wallet_id: str):
        self.directory = Path(os.path.expanduser(str(directory)))
        self.wallet_id = wallet_id
        self.path = self.directory / f"{wallet_id}-session.json"

    def save(self, session: StoredSession) -> None:
        """Write the snapshot, replacing any previous one."""
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        with open(tmp, "w") as f:
            f.write(session.model_dump_json(by_alias=True, indent=2))
        os.replace(tmp, self.path)
        logger.debug(f"Saved {self.wallet_id} session ({len(session.accounts)} account(s))")

    def load(self) -> Optional[StoredSession]:
        """
        Load the snapshot.

        Returns:
            The stored session, or None if there is no usable session
        """
        if not self.path.exists():
            return None

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read session file {self.path}: {e}")
            self.clear()
            return None

        version = data.get("version") if isinstance(data, dict) else None
        if version != SESSION_SCHEMA_VERSION:
            logger.warning(f"Discarding {self.wallet_id} session with schema version {version}")
            self.clear()
            return None

        try:
            session = StoredSession.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding invalid {self.wallet_id} session: {e.error_count()} error(s)")
            self.clear()
            return None

        if session.is_expired():
            logger.info(f"{self.wallet_id} session expired")
            self.clear()
            return None

        return session

    def clear(self) -> None:
        """Delete the snapshot. A missing file is not an error."""
        try:
            self.path.unlink()
            logger.debug(f"Cleared {self.wallet_id} session")
        except FileNotFoundError:
            pass

    def exists(self) -> bool:
        return self.load() is not None


__all__ = ["SessionStore"]
