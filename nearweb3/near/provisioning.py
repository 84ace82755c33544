"""
Account provisioning for test and setup tooling.

``AccountProvisioner.ensure_accounts`` makes sure a number of local accounts
exist. It runs behind a ``SingleFlight`` gate: concurrent callers share the
one in-flight attempt instead of racing duplicate account creations, and
once an attempt has succeeded every later call returns its result.
"""

import asyncio
from typing import Any, Awaitable, Callable, Generic, List, Optional, Protocol, TypeVar

from ..crypto.address import is_valid_account_id
from ..exceptions import ValidationError
from ..logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """At most one run of a coroutine at a time; success is remembered."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._in_flight: Optional["asyncio.Future[T]"] = None
        self._result: Optional[T] = None
        self.completed = False

    async def _execute(self, factory: Callable[[], Awaitable[T]]) -> T:
        try:
            result = await factory()
            self._result = result
            self.completed = True
            return result
        finally:
            self._in_flight = None

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            if self.completed:
                return self._result
            if self._in_flight is None:
                self._in_flight = asyncio.ensure_future(self._execute(factory))
            future = self._in_flight
        # A cancelled waiter must not cancel the attempt the others share
        return await asyncio.shield(future)

    def reset(self) -> None:
        self.completed = False
        self._result = None


class AccountCreator(Protocol):
    """Creates an account upstream and returns its key."""

    async def create_account(self, account_id: str) -> Any:
        ...


class AccountProvisioner:

    def __init__(
        self,
        creator: AccountCreator,
        key_store,
        network_id: str,
        parent_account_id: str,
        gate: Optional[SingleFlight] = None,
        prefix: str = "test",
    ):
        self.creator = creator
        self.key_store = key_store
        self.network_id = network_id
        self.parent_account_id = parent_account_id
        self.prefix = prefix
        self.gate = gate or SingleFlight()

    def _account_id(self, index: int) -> str:
        account_id = f"{self.prefix}{index}.{self.parent_account_id}"
        if not is_valid_account_id(account_id):
            raise ValidationError(f"invalid near accountID: {account_id!r}")
        return account_id

    async def _create_missing(self, count: int) -> List[str]:
        accounts = await self.key_store.get_accounts(self.network_id)
        index = 0
        while len(accounts) < count:
            account_id = self._account_id(index)
            index += 1
            if account_id in accounts:
                continue
            key = await self.creator.create_account(account_id)
            await self.key_store.set_key(self.network_id, account_id, key)
            accounts.append(account_id)
            logger.info(f"Created account {account_id}")
        return accounts

    async def ensure_accounts(self, count: int) -> List[str]:
        """Make sure at least ``count`` accounts exist locally."""
        if count < 0:
            raise ValidationError(f"Account count must be non-negative, got {count}")
        return await self.gate.run(lambda: self._create_missing(count))
