"""Concentrated-liquidity market collaborators consumed by the launchpad.

This is the surface the launch path needs, not a market maker: pools hold a
fixed price after initialization, swaps fill at that price and pay the pool
fee to in-range positions.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from eth_abi import encode as abi_encode
from eth_utils import keccak, to_checksum_address
from pydantic import BaseModel

from socialdex.chain.ledger import Contract, Ledger, external
from socialdex.chain.token import Token
from socialdex.core.constants.base import (
    DEFAULT_FEE_TIER_TICK_SPACING,
    FEE_DENOMINATOR,
    ZERO_ADDRESS,
)
from socialdex.core.utils.uniswap_v3_math import (
    MAX_TICK,
    MIN_TICK,
    Q96,
    amounts_for_liq_inrange,
    liq_for_amounts,
    sqrt_price_x96_from_tick,
)

POOL_INIT_CODE_HASH = bytes.fromhex(
    "e34f199b19b2b4f47f68442619d555527d244f78a3297ea89325f843f87b8b54"
)
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342


def tick_at_sqrt_price(sqrt_price_x96: int) -> int:
    """Greatest tick whose sqrt price does not exceed ``sqrt_price_x96``."""
    lo, hi = MIN_TICK, MAX_TICK
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if sqrt_price_x96_from_tick(mid) <= sqrt_price_x96:
            lo = mid
        else:
            hi = mid - 1
    return lo


class MintParams(BaseModel):
    token0: str
    token1: str
    fee: int
    tick_lower: int
    tick_upper: int
    amount0_desired: int
    amount1_desired: int
    amount0_min: int = 0
    amount1_min: int = 0
    recipient: str
    deadline: int


class MintResult(BaseModel):
    token_id: int
    liquidity: int
    amount0: int
    amount1: int


class ExactInputSingleParams(BaseModel):
    token_in: str
    token_out: str
    fee: int
    recipient: str
    amount_in: int
    amount_out_minimum: int = 0


@dataclass
class PositionInfo:
    token_id: int
    pool: str
    token0: str
    token1: str
    fee: int
    tick_lower: int
    tick_upper: int
    liquidity: int
    tokens_owed0: int = 0
    tokens_owed1: int = 0


class Pool(Contract):
    def __init__(
        self,
        ledger: Ledger,
        address: str,
        *,
        factory: str,
        token0: str,
        token1: str,
        fee: int,
        tick_spacing: int,
    ):
        super().__init__(ledger, address)
        self.factory = to_checksum_address(factory)
        self.token0 = to_checksum_address(token0)
        self.token1 = to_checksum_address(token1)
        self.fee = int(fee)
        self.tick_spacing = int(tick_spacing)
        self.sqrt_price_x96 = 0
        self.tick = 0
        self.liquidity = 0

    @property
    def initialized(self) -> bool:
        return self.sqrt_price_x96 != 0

    @property
    def price(self) -> Decimal:
        """token1 per token0 in raw units."""
        return (Decimal(self.sqrt_price_x96) / Q96) ** 2

    @external
    def initialize(self, caller: str, sqrt_price_x96: int) -> None:
        self._require(not self.initialized, "already initialized")
        self._require(
            MIN_SQRT_RATIO <= sqrt_price_x96 < MAX_SQRT_RATIO, "sqrt price out of range"
        )
        self.sqrt_price_x96 = int(sqrt_price_x96)
        self.tick = tick_at_sqrt_price(self.sqrt_price_x96)
        self.logger.info(
            f"Initialized pool {self.address} at tick {self.tick} by {caller}"
        )


class PoolFactory(Contract):
    def __init__(
        self,
        ledger: Ledger,
        address: str,
        *,
        fee_tiers: dict[int, int] | None = None,
    ):
        super().__init__(ledger, address)
        self.fee_amount_tick_spacing: dict[int, int] = dict(
            fee_tiers or DEFAULT_FEE_TIER_TICK_SPACING
        )
        self.pools: dict[tuple[str, str, int], str] = {}

    def tick_spacing(self, fee: int) -> int:
        return self.fee_amount_tick_spacing.get(int(fee), 0)

    def get_pool(self, token_a: str, token_b: str, fee: int) -> str | None:
        t0, t1 = sorted_tokens(token_a, token_b)
        return self.pools.get((t0, t1, int(fee)))

    @external
    def create_pool(self, caller: str, token_a: str, token_b: str, fee: int) -> str:
        self._require(
            to_checksum_address(token_a) != to_checksum_address(token_b),
            "identical tokens",
        )
        t0, t1 = sorted_tokens(token_a, token_b)
        self._require(t0 != ZERO_ADDRESS, "zero address token")
        spacing = self.tick_spacing(fee)
        self._require(spacing > 0, f"fee tier {fee} not enabled")
        self._require((t0, t1, int(fee)) not in self.pools, "pool already exists")

        salt = keccak(abi_encode(["address", "address", "uint24"], [t0, t1, int(fee)]))
        pool = self.ledger.deploy_create2(
            self.address,
            salt,
            POOL_INIT_CODE_HASH,
            lambda address: Pool(
                self.ledger,
                address,
                factory=self.address,
                token0=t0,
                token1=t1,
                fee=fee,
                tick_spacing=spacing,
            ),
        )
        self.pools[(t0, t1, int(fee))] = pool.address
        self.logger.info(f"Created pool {pool.address} for {t0}/{t1} fee={fee} by {caller}")
        return pool.address


class PositionManager(Contract):
    """Holds liquidity positions as transferable handles."""

    def __init__(self, ledger: Ledger, address: str, *, factory: PoolFactory):
        super().__init__(ledger, address)
        self.factory = factory
        self.next_token_id = 1
        self._positions: dict[int, PositionInfo] = {}
        self._owners: dict[int, str] = {}
        self._approvals: dict[int, str] = {}

    def positions(self, token_id: int) -> PositionInfo:
        pos = self._positions.get(int(token_id))
        self._require(pos is not None, f"invalid token id {token_id}")
        return replace(pos)

    def owner_of(self, token_id: int) -> str:
        owner = self._owners.get(int(token_id))
        self._require(owner is not None, f"invalid token id {token_id}")
        return owner

    def positions_in_pool(self, pool: str) -> list[PositionInfo]:
        pool = to_checksum_address(pool)
        return [p for p in self._positions.values() if p.pool == pool]

    def _pool(self, token0: str, token1: str, fee: int) -> Pool:
        address = self.factory.get_pool(token0, token1, fee)
        self._require(address is not None, "pool does not exist")
        pool = self.ledger.contract_at(address)
        self._require(isinstance(pool, Pool), "pool does not exist")
        return pool

    def _token(self, address: str) -> Token:
        token = self.ledger.contract_at(address)
        self._require(isinstance(token, Token), f"{address} is not a token")
        return token

    def _is_authorized(self, caller: str, token_id: int) -> bool:
        caller = to_checksum_address(caller)
        return caller in (self._owners.get(token_id), self._approvals.get(token_id))

    @external
    def mint(self, caller: str, params: MintParams) -> MintResult:
        token0 = to_checksum_address(params.token0)
        token1 = to_checksum_address(params.token1)
        self._require(int(token0, 16) < int(token1, 16), "tokens not sorted")
        self._require(params.deadline >= self.ledger.timestamp, "transaction too old")
        pool = self._pool(token0, token1, params.fee)
        self._require(pool.initialized, "pool not initialized")

        lower, upper = params.tick_lower, params.tick_upper
        self._require(lower < upper, "tick lower must be below tick upper")
        self._require(MIN_TICK <= lower and upper <= MAX_TICK, "tick out of range")
        self._require(
            lower % pool.tick_spacing == 0 and upper % pool.tick_spacing == 0,
            "tick not aligned to spacing",
        )

        sqrt_a = sqrt_price_x96_from_tick(lower)
        sqrt_b = sqrt_price_x96_from_tick(upper)
        liquidity = liq_for_amounts(
            pool.sqrt_price_x96,
            sqrt_a,
            sqrt_b,
            params.amount0_desired,
            params.amount1_desired,
        )
        self._require(liquidity > 0, "zero liquidity")
        amount0, amount1 = amounts_for_liq_inrange(
            pool.sqrt_price_x96, sqrt_a, sqrt_b, liquidity
        )
        self._require(
            amount0 >= params.amount0_min and amount1 >= params.amount1_min,
            "price slippage check",
        )

        token_id = self.next_token_id
        self.next_token_id += 1
        self._positions[token_id] = PositionInfo(
            token_id=token_id,
            pool=pool.address,
            token0=token0,
            token1=token1,
            fee=pool.fee,
            tick_lower=lower,
            tick_upper=upper,
            liquidity=liquidity,
        )
        self._owners[token_id] = to_checksum_address(params.recipient)
        if lower <= pool.tick < upper:
            pool.liquidity += liquidity

        if amount0 > 0:
            self._token(token0).transfer_from(self.address, caller, pool.address, amount0)
        if amount1 > 0:
            self._token(token1).transfer_from(self.address, caller, pool.address, amount1)

        self.logger.info(
            f"Minted position {token_id} [{lower}, {upper}] liquidity={liquidity}"
        )
        return MintResult(
            token_id=token_id, liquidity=liquidity, amount0=amount0, amount1=amount1
        )

    @external
    def collect(
        self,
        caller: str,
        token_id: int,
        recipient: str,
        amount0_max: int,
        amount1_max: int,
    ) -> tuple[int, int]:
        pos = self._positions.get(int(token_id))
        self._require(pos is not None, f"invalid token id {token_id}")
        self._require(self._is_authorized(caller, token_id), "not approved")

        amount0 = min(pos.tokens_owed0, amount0_max)
        amount1 = min(pos.tokens_owed1, amount1_max)
        pos.tokens_owed0 -= amount0
        pos.tokens_owed1 -= amount1

        if amount0 > 0:
            self._token(pos.token0).transfer(pos.pool, recipient, amount0)
        if amount1 > 0:
            self._token(pos.token1).transfer(pos.pool, recipient, amount1)
        return amount0, amount1

    @external
    def approve(self, caller: str, to: str, token_id: int) -> None:
        self._require(
            self.owner_of(token_id) == to_checksum_address(caller), "not token owner"
        )
        self._approvals[int(token_id)] = to_checksum_address(to)

    @external
    def safe_transfer_from(
        self,
        caller: str,
        sender: str,
        to: str,
        token_id: int,
        data: bytes = b"",
    ) -> None:
        token_id = int(token_id)
        sender = to_checksum_address(sender)
        to = to_checksum_address(to)
        self._require(self.owner_of(token_id) == sender, "transfer from incorrect owner")
        self._require(self._is_authorized(caller, token_id), "not approved")
        self._require(to != ZERO_ADDRESS, "transfer to zero address")

        self._owners[token_id] = to
        self._approvals.pop(token_id, None)

        receiver = self.ledger.contract_at(to)
        if receiver is not None:
            hook = getattr(receiver, "on_position_received", None)
            self._require(hook is not None, "transfer to non receiver")
            hook(self.address, to_checksum_address(caller), sender, token_id, data)

    def accrue_fees(self, token_id: int, amount0: int, amount1: int) -> None:
        pos = self._positions[int(token_id)]
        pos.tokens_owed0 += int(amount0)
        pos.tokens_owed1 += int(amount1)


class SwapRouter(Contract):
    def __init__(
        self,
        ledger: Ledger,
        address: str,
        *,
        factory: PoolFactory,
        position_manager: PositionManager,
    ):
        super().__init__(ledger, address)
        self.factory = factory
        self.position_manager = position_manager

    @external
    def exact_input_single(self, caller: str, params: ExactInputSingleParams) -> int:
        token_in = to_checksum_address(params.token_in)
        token_out = to_checksum_address(params.token_out)
        self._require(params.amount_in > 0, "zero input")
        pool_address = self.factory.get_pool(token_in, token_out, params.fee)
        self._require(pool_address is not None, "pool does not exist")
        pool = self.ledger.contract_at(pool_address)
        self._require(isinstance(pool, Pool) and pool.initialized, "pool not initialized")

        fee_amount = params.amount_in * pool.fee // FEE_DENOMINATOR
        net_in = Decimal(params.amount_in - fee_amount)
        zero_for_one = token_in == pool.token0
        amount_out = int(net_in * pool.price if zero_for_one else net_in / pool.price)
        self._require(amount_out > 0, "zero output")
        self._require(amount_out >= params.amount_out_minimum, "too little received")

        token_in_c = self.ledger.contract_at(token_in)
        token_out_c = self.ledger.contract_at(token_out)
        self._require(
            token_out_c.balance_of(pool.address) >= amount_out, "insufficient liquidity"
        )
        token_in_c.transfer_from(self.address, caller, pool.address, params.amount_in)
        token_out_c.transfer(pool.address, params.recipient, amount_out)

        self._distribute_fee(pool, fee_amount, zero_for_one)
        return amount_out

    def _distribute_fee(self, pool: Pool, fee_amount: int, zero_for_one: bool) -> None:
        in_range = [
            p
            for p in self.position_manager.positions_in_pool(pool.address)
            if p.liquidity > 0 and p.tick_lower <= pool.tick < p.tick_upper
        ]
        total = sum(p.liquidity for p in in_range)
        if fee_amount <= 0 or total == 0:
            return
        for pos in in_range:
            share = fee_amount * pos.liquidity // total
            if zero_for_one:
                self.position_manager.accrue_fees(pos.token_id, share, 0)
            else:
                self.position_manager.accrue_fees(pos.token_id, 0, share)


def sorted_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    a = to_checksum_address(token_a)
    b = to_checksum_address(token_b)
    return (a, b) if int(a, 16) < int(b, 16) else (b, a)
