"""
User stores.

The simulator only talks to the abstract ``UserStore``. Two implementations
ship with the package: an in-memory store for tests and ephemeral runs, and a
JSON-file store that keeps one document per user on disk.

Stores hand out copies: changes to an account only become durable once
``save_user`` succeeds, so a failed save simply drops that tick's changes.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from pydantic import ValidationError

from marketsim.accounts.models import UserAccount, normalize_username, validate_username
from marketsim.utils.helpers import now_in


class UserStore(ABC):
    """Persistence boundary for user accounts."""

    def __init__(
        self,
        initial_balance: float = 100000.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.initial_balance = initial_balance
        self._clock = clock or now_in

    @abstractmethod
    async def find_user(self, username: str) -> Optional[UserAccount]:
        """Load an account, or None if it does not exist."""

    @abstractmethod
    async def save_user(self, account: UserAccount) -> bool:
        """Persist an account. Returns False on failure."""

    @abstractmethod
    async def list_users(self) -> list[UserAccount]:
        """Load every known account."""

    async def create_user(self, username: str) -> UserAccount:
        """Create and persist a seeded account (returns the existing one if present)."""
        username = validate_username(username)
        existing = await self.find_user(username)
        if existing is not None:
            logger.warning(f"User {username} already exists")
            return existing

        account = UserAccount.new(username, self.initial_balance, self._clock())
        if not await self.save_user(account):
            logger.error(f"Could not persist new user {username}")
        else:
            logger.info(f"Created user {account.username}")
        return account


class InMemoryUserStore(UserStore):
    """Dictionary-backed store."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._accounts: dict[str, UserAccount] = {}

    async def find_user(self, username: str) -> Optional[UserAccount]:
        account = self._accounts.get(normalize_username(username))
        return account.model_copy(deep=True) if account else None

    async def save_user(self, account: UserAccount) -> bool:
        self._accounts[account.key] = account.model_copy(deep=True)
        return True

    async def list_users(self) -> list[UserAccount]:
        return [a.model_copy(deep=True) for a in self._accounts.values()]


class JsonFileUserStore(UserStore):
    """
    Stores each account as ``<data_dir>/users/<username>.json``.

    Writes go to a temporary file first and are then moved into place, so a
    failed write never leaves a truncated document behind.
    """

    def __init__(self, data_dir: str | Path = "data", **kwargs):
        super().__init__(**kwargs)
        self._users_dir = Path(data_dir) / "users"
        self._users_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"JsonFileUserStore using {self._users_dir}")

    def _path_for(self, username: str) -> Path:
        path = (self._users_dir / f"{normalize_username(username)}.json").resolve()
        if not path.is_relative_to(self._users_dir.resolve()):
            raise ValueError(f"Username {username!r} resolves outside {self._users_dir}")
        return path

    def _load(self, path: Path) -> Optional[UserAccount]:
        try:
            return UserAccount.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, ValueError) as e:
            logger.error(f"Failed to load user document {path.name}: {e}")
            return None

    async def find_user(self, username: str) -> Optional[UserAccount]:
        path = self._path_for(username)
        if not path.exists():
            return None
        return self._load(path)

    async def save_user(self, account: UserAccount) -> bool:
        tmp_name = None
        try:
            path = self._path_for(account.username)
            payload = account.model_dump(mode="json", exclude={"stats"})
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._users_dir,
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save user {account.username}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False

    async def list_users(self) -> list[UserAccount]:
        accounts = []
        for path in sorted(self._users_dir.glob("*.json")):
            account = self._load(path)
            if account is not None:
                accounts.append(account)
        return accounts
