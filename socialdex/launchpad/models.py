from __future__ import annotations

from dataclasses import dataclass

from eth_utils import to_checksum_address
from pydantic import BaseModel, Field, field_validator

from socialdex.core.constants.base import ZERO_ADDRESS


def _checksum(value: str | None) -> str | None:
    if not value:
        return None
    address = to_checksum_address(value)
    # The zero address means "not set".
    return None if address == ZERO_ADDRESS else address


class LaunchParams(BaseModel):
    name: str
    symbol: str
    supply: int = Field(ge=0)
    initial_tick: int
    fee_tier: int
    salt: str
    lock_owner: str | None = None
    recipient: str | None = None
    recipient_amount: int = Field(default=0, ge=0)

    @field_validator("lock_owner", "recipient")
    @classmethod
    def normalize_address(cls, value: str | None) -> str | None:
        return _checksum(value)


class LaunchResult(BaseModel):
    token_address: str
    position_id: int
    pool_address: str
    liquidity: int
    lp_amount: int
    amount0_used: int
    amount1_used: int
    tax_paid: int = 0
    bought: int = 0
    swap_error: str | None = None


@dataclass
class LockRecord:
    owner: str
    unlock_time: int
    fee_cut: int


class FeeCollection(BaseModel):
    position_id: int
    owner: str
    token0: str
    token1: str
    amount0: int
    amount1: int
    owner_amount0: int
    owner_amount1: int
    collector_amount0: int
    collector_amount1: int


class BatchFeeCollection(BaseModel):
    collections: list[FeeCollection] = []
    owner_totals: dict[str, int] = {}
    collector_totals: dict[str, int] = {}

    def add(self, collection: FeeCollection) -> None:
        self.collections.append(collection)
        legs = (
            (collection.token0, collection.owner_amount0, collection.collector_amount0),
            (collection.token1, collection.owner_amount1, collection.collector_amount1),
        )
        for token, owner_amount, collector_amount in legs:
            self.owner_totals[token] = self.owner_totals.get(token, 0) + owner_amount
            self.collector_totals[token] = (
                self.collector_totals.get(token, 0) + collector_amount
            )


# Events


class TokenCreated(BaseModel):
    token_address: str
    position_id: int
    creator: str
    name: str
    symbol: str
    supply: int
    recipient: str | None
    recipient_amount: int
    locker: str


class PositionLocked(BaseModel):
    position_id: int
    owner: str
    unlock_time: int
    fee_cut: int


class FeesCollected(BaseModel):
    position_id: int
    owner: str
    fee_collector: str
    amount0: int
    amount1: int
    collector_amount0: int
    collector_amount1: int


class LockOwnershipTransferred(BaseModel):
    position_id: int
    previous_owner: str
    new_owner: str


class PositionWithdrawn(BaseModel):
    position_id: int
    owner: str
