"""Time-locked custody of liquidity positions with a fee split.

Each position moves Uninitialized -> Locked -> Withdrawn. Withdrawn is
terminal: a withdrawn id is remembered and can never be locked again.
Lock records are keyed by position id; a secondary owner index is updated in
the same step as the primary record so batch collection can enumerate an
owner's positions.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from eth_utils import to_checksum_address

from socialdex.chain.ledger import Contract, Ledger, external, nonreentrant
from socialdex.chain.market import PositionManager
from socialdex.chain.token import Token
from socialdex.core.constants.base import MAX_UINT128, PER_MILLE
from socialdex.core.errors import (
    AlreadyInitialized,
    InvalidFeeCut,
    NotInitialized,
    NotPositionOwner,
    PositionNotHeld,
    StillLocked,
    Unauthorized,
)
from socialdex.launchpad.models import (
    BatchFeeCollection,
    FeeCollection,
    FeesCollected,
    LockOwnershipTransferred,
    LockRecord,
    PositionLocked,
    PositionWithdrawn,
)


def split_fee(amount: int, fee_cut: int) -> tuple[int, int]:
    """Return ``(owner_share, collector_share)`` for ``fee_cut`` per mille."""
    collector_share = amount * fee_cut // PER_MILLE
    return amount - collector_share, collector_share


def _check_fee_cut(fee_cut: int) -> int:
    if not 0 <= int(fee_cut) <= PER_MILLE:
        raise InvalidFeeCut(fee_cut)
    return int(fee_cut)


class PositionLocker(Contract):
    def __init__(
        self,
        ledger: Ledger,
        address: str,
        *,
        owner: str,
        position_manager: PositionManager,
        fee_collector: str,
        default_lock_duration: int,
        default_fee_cut: int,
    ):
        super().__init__(ledger, address)
        self.owner = to_checksum_address(owner)
        self.position_manager = position_manager
        self.fee_collector = to_checksum_address(fee_collector)
        self.default_lock_duration = int(default_lock_duration)
        self.default_fee_cut = _check_fee_cut(default_fee_cut)
        self.locks: dict[int, LockRecord] = {}
        self.owner_positions: dict[str, set[int]] = {}
        self.withdrawn: set[int] = set()
        self._depositors: dict[int, str] = {}

    # Views

    def get_lock(self, token_id: int) -> LockRecord | None:
        record = self.locks.get(int(token_id))
        return replace(record) if record is not None else None

    def positions_of(self, owner: str) -> list[int]:
        return sorted(self.owner_positions.get(to_checksum_address(owner), ()))

    def is_unlocked(self, token_id: int) -> bool:
        record = self._record(token_id)
        return self.ledger.timestamp >= record.unlock_time

    # Custody

    def on_position_received(
        self,
        caller: str,
        operator: str,
        sender: str,
        token_id: int,
        data: bytes = b"",
    ) -> None:
        if to_checksum_address(caller) != self.position_manager.address:
            raise Unauthorized(f"positions are only accepted from {self.position_manager.address}")
        self._require(
            int(token_id) not in self.withdrawn,
            f"position {token_id} was withdrawn and cannot be locked again",
        )
        self._depositors[int(token_id)] = to_checksum_address(sender)
        self.logger.debug(f"Received position {token_id} from {sender} via {operator}")

    @external
    @nonreentrant
    def initialize_position(
        self,
        caller: str,
        token_id: int,
        owner: str,
        unlock_time: int,
        fee_cut: int,
    ) -> LockRecord:
        token_id = int(token_id)
        if token_id in self.locks or token_id in self.withdrawn:
            raise AlreadyInitialized(token_id)
        if self.position_manager.owner_of(token_id) != self.address:
            raise PositionNotHeld(token_id)
        caller = to_checksum_address(caller)
        if caller not in (self._depositors.get(token_id), self.owner):
            raise Unauthorized(f"{caller} did not deposit position {token_id}")
        fee_cut = _check_fee_cut(fee_cut)

        owner = to_checksum_address(owner)
        record = LockRecord(owner=owner, unlock_time=int(unlock_time), fee_cut=fee_cut)
        self.locks[token_id] = record
        self.owner_positions.setdefault(owner, set()).add(token_id)
        self._depositors.pop(token_id, None)

        self.ledger.emit(
            PositionLocked(
                position_id=token_id,
                owner=owner,
                unlock_time=record.unlock_time,
                fee_cut=fee_cut,
            )
        )
        self.logger.info(f"Locked position {token_id} for {owner} until {unlock_time}")
        return replace(record)

    # Fees

    @external
    @nonreentrant
    def collect_fees(self, caller: str, token_id: int) -> FeeCollection:
        return self._collect(to_checksum_address(caller), int(token_id))

    @external
    @nonreentrant
    def collect_all_fees(self, caller: str) -> BatchFeeCollection:
        caller = to_checksum_address(caller)
        return self._collect_batch(caller, self.positions_of(caller))

    @external
    @nonreentrant
    def collect_selected_fees(
        self, caller: str, token_ids: Iterable[int]
    ) -> BatchFeeCollection:
        return self._collect_batch(
            to_checksum_address(caller), [int(t) for t in token_ids]
        )

    def _collect_batch(self, caller: str, token_ids: list[int]) -> BatchFeeCollection:
        batch = BatchFeeCollection()
        for token_id in token_ids:
            batch.add(self._collect(caller, token_id))
        self.logger.info(
            f"Collected fees for {len(batch.collections)} positions of {caller}"
        )
        return batch

    def _collect(self, caller: str, token_id: int) -> FeeCollection:
        record = self._record(token_id)
        if record.owner != caller:
            raise NotPositionOwner(token_id)

        amount0, amount1 = self.position_manager.collect(
            self.address, token_id, self.address, MAX_UINT128, MAX_UINT128
        )
        pos = self.position_manager.positions(token_id)
        owner0, collector0 = split_fee(amount0, record.fee_cut)
        owner1, collector1 = split_fee(amount1, record.fee_cut)

        self._pay(pos.token0, record.owner, owner0)
        self._pay(pos.token0, self.fee_collector, collector0)
        self._pay(pos.token1, record.owner, owner1)
        self._pay(pos.token1, self.fee_collector, collector1)

        self.ledger.emit(
            FeesCollected(
                position_id=token_id,
                owner=record.owner,
                fee_collector=self.fee_collector,
                amount0=amount0,
                amount1=amount1,
                collector_amount0=collector0,
                collector_amount1=collector1,
            )
        )
        return FeeCollection(
            position_id=token_id,
            owner=record.owner,
            token0=pos.token0,
            token1=pos.token1,
            amount0=amount0,
            amount1=amount1,
            owner_amount0=owner0,
            owner_amount1=owner1,
            collector_amount0=collector0,
            collector_amount1=collector1,
        )

    def _pay(self, token_address: str, to: str, amount: int) -> None:
        # Some assets revert on zero-value transfers.
        if amount <= 0:
            return
        token = self.ledger.contract_at(token_address)
        self._require(isinstance(token, Token), f"{token_address} is not a token")
        token.transfer(self.address, to, amount)

    # Ownership and withdrawal

    @external
    @nonreentrant
    def transfer_lock_ownership(
        self, caller: str, token_id: int, new_owner: str
    ) -> None:
        token_id = int(token_id)
        record = self._record(token_id)
        caller = to_checksum_address(caller)
        if record.owner != caller:
            raise NotPositionOwner(token_id)
        new_owner = to_checksum_address(new_owner)

        self._unindex(caller, token_id)
        record.owner = new_owner
        self.owner_positions.setdefault(new_owner, set()).add(token_id)
        self.ledger.emit(
            LockOwnershipTransferred(
                position_id=token_id, previous_owner=caller, new_owner=new_owner
            )
        )

    @external
    @nonreentrant
    def withdraw(self, caller: str, token_id: int) -> None:
        token_id = int(token_id)
        record = self._record(token_id)
        caller = to_checksum_address(caller)
        if record.owner != caller:
            raise NotPositionOwner(token_id)
        now = self.ledger.timestamp
        if now < record.unlock_time:
            raise StillLocked(token_id, record.unlock_time, now)

        del self.locks[token_id]
        self._unindex(caller, token_id)
        self.withdrawn.add(token_id)

        self.position_manager.safe_transfer_from(
            self.address, self.address, record.owner, token_id
        )
        self.ledger.emit(PositionWithdrawn(position_id=token_id, owner=record.owner))
        self.logger.info(f"Position {token_id} withdrawn by {caller}")

    def _record(self, token_id: int) -> LockRecord:
        record = self.locks.get(int(token_id))
        if record is None:
            raise NotInitialized(int(token_id))
        return record

    def _unindex(self, owner: str, token_id: int) -> None:
        ids = self.owner_positions.get(owner)
        if ids is None:
            return
        ids.discard(token_id)
        if not ids:
            del self.owner_positions[owner]

    # Admin

    def _only_owner(self, caller: str) -> None:
        if to_checksum_address(caller) != self.owner:
            raise Unauthorized(f"{caller} is not the locker owner")

    @external
    def set_fee_collector(self, caller: str, fee_collector: str) -> None:
        self._only_owner(caller)
        self.fee_collector = to_checksum_address(fee_collector)

    @external
    def set_default_lock_duration(self, caller: str, seconds: int) -> None:
        self._only_owner(caller)
        self._require(seconds >= 0, "negative lock duration")
        self.default_lock_duration = int(seconds)

    @external
    def set_default_fee_cut(self, caller: str, fee_cut: int) -> None:
        self._only_owner(caller)
        self.default_fee_cut = _check_fee_cut(fee_cut)
