"""
JSON index of locally held accounts.

Stores non-secret account metadata (name, address, creation time) next to
the secrets held in the OS keyring, so listing accounts never prompts the
keyring.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import json
import logging
import os

from ..runtime.errors import AccountExistsError

logger = logging.getLogger(__name__)

INDEX_FILENAME = "accounts.json"


@dataclass
class IndexedAccount:
    """Metadata for one indexed account."""
    name: str
    address: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "address": self.address, "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> IndexedAccount:
        return cls(name=data["name"], address=data["address"], created_at=data["createdAt"])


class AccountIndex:
    """
    File-based account index.

    The whole index is a single JSON array, rewritten atomically on every
    change.
    """

    def __init__(self, directory: Union[str, Path]):
        """
        Initialize account index.

        Args:
            directory: Directory holding the index file
        """
        self.directory = Path(os.path.expanduser(str(directory)))
        self.path = self.directory / INDEX_FILENAME

    def _load(self) -> Dict[str, IndexedAccount]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                rows = json.load(f)
            return {row["name"]: IndexedAccount.from_dict(row) for row in rows}
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to read account index {self.path}: {e}")
            return {}

    def _save(self, accounts: Dict[str, IndexedAccount]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        with open(tmp, "w") as f:
            json.dump([a.to_dict() for a in accounts.values()], f, indent=2)
        os.replace(tmp, self.path)

    def list(self) -> List[IndexedAccount]:
        """List accounts, newest first."""
        return sorted(self._load().values(), key=lambda a: a.created_at, reverse=True)

    def get(self, name: str) -> Optional[IndexedAccount]:
        return self._load().get(name)

    def has(self, name: str) -> bool:
        return name in self._load()

    def insert(self, name: str, address: str, created_at: Optional[str] = None) -> IndexedAccount:
        """
        Add an account to the index.

        Raises:
            AccountExistsError: If the name is already taken
        """
        accounts = self._load()
        if name in accounts:
            raise AccountExistsError(name)

        entry = IndexedAccount(
            name=name,
            address=address,
            created_at=created_at or datetime.now(timezone.utc).isoformat(),
        )
        accounts[name] = entry
        self._save(accounts)
        logger.debug(f"Indexed account {name} ({address})")
        return entry

    def delete(self, name: str) -> None:
        """Remove an account from the index. Missing names are ignored."""
        accounts = self._load()
        if accounts.pop(name, None) is not None:
            self._save(accounts)
