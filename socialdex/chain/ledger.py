"""In-memory host ledger.

Calls are serialized. Every state-mutating contract entry point runs inside a
savepoint: if it raises, all contract storage, native balances, deployed code
and emitted events roll back to where the call started. A caller that catches
the failure of a nested call keeps its own effects, as with try/catch on
chain.
"""

from __future__ import annotations

import copy
import functools
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, TypeVar

from eth_utils import keccak, to_checksum_address
from loguru import logger
from pydantic import BaseModel

from socialdex.core.constants.chains import CHAIN_ID_LOCAL
from socialdex.core.errors import ContractRevert, ReentrantCall
from socialdex.core.utils.create2 import compute_create2_address

# Never snapshotted: wiring and identity, not storage.
_UNTRACKED_ATTRS = frozenset({"ledger", "logger", "address"})

DEFAULT_GENESIS_TIMESTAMP = 1_700_000_000

C = TypeVar("C", bound="Contract")


def label_address(label: str) -> str:
    """Stable pseudo-address for fixtures and local deployments."""
    return to_checksum_address(keccak(text=label)[12:])


class Contract:
    def __init__(self, ledger: Ledger, address: str):
        self.ledger = ledger
        self.address = to_checksum_address(address)
        self.logger = logger.bind(contract=self.__class__.__name__)
        self._entered = False

    def _require(self, condition: bool, reason: str) -> None:
        if not condition:
            raise ContractRevert(reason, contract=self.__class__.__name__)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.address})"


def external(fn: Callable) -> Callable:
    """Run a contract entry point as one atomic unit of work."""

    @functools.wraps(fn)
    def wrapper(self: Contract, *args: Any, **kwargs: Any) -> Any:
        with self.ledger.atomic():
            return fn(self, *args, **kwargs)

    return wrapper


def nonreentrant(fn: Callable) -> Callable:
    @functools.wraps(fn)
    def wrapper(self: Contract, *args: Any, **kwargs: Any) -> Any:
        if self._entered:
            raise ReentrantCall(f"{self.__class__.__name__}.{fn.__name__} re-entered")
        self._entered = True
        try:
            return fn(self, *args, **kwargs)
        finally:
            self._entered = False

    return wrapper


@dataclass
class _Snapshot:
    contracts: dict[str, Contract]
    states: dict[str, dict[str, Any]]
    native: dict[str, int]
    events: list[BaseModel]


class Ledger:
    def __init__(
        self,
        *,
        chain_id: int = CHAIN_ID_LOCAL,
        timestamp: int = DEFAULT_GENESIS_TIMESTAMP,
    ):
        self.chain_id = int(chain_id)
        self.timestamp = int(timestamp)
        self.events: list[BaseModel] = []
        self._contracts: dict[str, Contract] = {}
        self._native: dict[str, int] = {}
        self._depth = 0

    # Code

    def register(self, contract: C) -> C:
        if contract.address in self._contracts:
            raise ContractRevert(f"address {contract.address} already has code")
        self._contracts[contract.address] = contract
        logger.debug(f"Deployed {contract!r}")
        return contract

    def deploy_create2(
        self,
        factory: str,
        salt: bytes,
        init_code_hash: bytes,
        build: Callable[[str], C],
    ) -> C:
        address = compute_create2_address(factory, salt, init_code_hash)
        if self.has_code(address):
            raise ContractRevert(f"create2 collision at {address}", contract="Ledger")
        return self.register(build(address))

    def has_code(self, address: str) -> bool:
        return to_checksum_address(address) in self._contracts

    def contract_at(self, address: str) -> Contract | None:
        return self._contracts.get(to_checksum_address(address))

    # Native currency

    def native_balance(self, account: str) -> int:
        return self._native.get(to_checksum_address(account), 0)

    def mint_native(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("amount must be non-negative")
        account = to_checksum_address(account)
        self._native[account] = self._native.get(account, 0) + int(amount)

    def transfer_native(self, sender: str, to: str, amount: int) -> None:
        sender = to_checksum_address(sender)
        to = to_checksum_address(to)
        if amount < 0:
            raise ContractRevert("negative native transfer", contract="Ledger")
        balance = self._native.get(sender, 0)
        if balance < amount:
            raise ContractRevert(
                f"insufficient native balance: {balance} < {amount}", contract="Ledger"
            )
        self._native[sender] = balance - amount
        self._native[to] = self._native.get(to, 0) + amount

    # Time and events

    def advance_time(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("time only moves forward")
        self.timestamp += int(seconds)
        return self.timestamp

    def emit(self, event: BaseModel) -> None:
        self.events.append(event)
        logger.debug(f"{type(event).__name__} {event.model_dump()}")

    def events_of(self, event_type: type[BaseModel]) -> list[Any]:
        return [e for e in self.events if isinstance(e, event_type)]

    # Savepoints

    @property
    def in_call(self) -> bool:
        return self._depth > 0

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot = self._snapshot()
        self._depth += 1
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            raise
        finally:
            self._depth -= 1

    def _snapshot(self) -> _Snapshot:
        # Contracts map to themselves so cross-contract references survive.
        memo: dict[int, Any] = {id(self): self}
        for contract in self._contracts.values():
            memo[id(contract)] = contract
        states = {
            address: {
                key: copy.deepcopy(value, memo)
                for key, value in vars(contract).items()
                if key not in _UNTRACKED_ATTRS
            }
            for address, contract in self._contracts.items()
        }
        return _Snapshot(
            contracts=dict(self._contracts),
            states=states,
            native=dict(self._native),
            events=list(self.events),
        )

    def _restore(self, snapshot: _Snapshot) -> None:
        self._contracts = snapshot.contracts
        for address, contract in snapshot.contracts.items():
            state = vars(contract)
            for key in [k for k in state if k not in _UNTRACKED_ATTRS]:
                del state[key]
            state.update(snapshot.states[address])
        self._native = snapshot.native
        self.events = snapshot.events
