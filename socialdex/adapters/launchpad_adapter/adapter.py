from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict
from typing import Any

from eth_utils import to_checksum_address

from socialdex.core.adapters.BaseAdapter import BaseAdapter, require_wallet
from socialdex.core.adapters.decorators import status_tuple
from socialdex.core.config import (
    get_contract_addresses,
    get_launch_defaults,
    get_token_creation_code,
)
from socialdex.core.constants.base import TOKEN_DECIMALS
from socialdex.core.constants.chains import CHAIN_ID_LOCAL
from socialdex.core.errors import SaltSearchExhausted
from socialdex.core.utils.create2 import (
    DEFAULT_TOKEN_CREATION_CODE,
    SaltSearchResult,
    generate_salt_onchain,
)
from socialdex.core.utils.uniswap_v3_math import tick_for_market_cap
from socialdex.core.utils.web3 import code_checker, web3_from_chain_id
from socialdex.launchpad.local import LocalChain
from socialdex.launchpad.models import LaunchParams


class LaunchpadAdapter(BaseAdapter):
    """Launch, fee collection and withdrawal against a launchpad deployment.

    State-changing calls run on the attached :class:`LocalChain`. Salt search
    can also run against a live chain, where only code lookups are needed.
    """

    adapter_type = "LAUNCHPAD"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        chain: LocalChain | None = None,
        wallet_address: str | None = None,
    ) -> None:
        super().__init__("launchpad_adapter", config, wallet_address=wallet_address)
        self.defaults = get_launch_defaults()
        self.chain = chain or LocalChain.create()

    def _spacing(self, fee_tier: int) -> int:
        spacing = self.chain.factory.tick_spacing(fee_tier)
        if spacing <= 0:
            raise ValueError(
                f"Unknown fee tier {fee_tier}; expected one of "
                f"{sorted(self.chain.factory.fee_amount_tick_spacing)}"
            )
        return spacing

    def _quote(
        self,
        market_cap: float,
        reference_price: float,
        supply: int,
        fee_tier: int,
    ):
        whole_supply = supply / 10**TOKEN_DECIMALS
        return tick_for_market_cap(
            market_cap, reference_price, whole_supply, self._spacing(fee_tier)
        )

    @status_tuple
    async def quote_initial_tick(
        self,
        market_cap: float,
        reference_price: float,
        supply: int,
        *,
        fee_tier: int | None = None,
    ) -> dict[str, Any]:
        fee_tier = fee_tier or self.defaults["fee_tier"]
        quote = self._quote(market_cap, reference_price, supply, fee_tier)
        return {**quote.as_dict(), "fee_tier": fee_tier}

    async def _search_salt(
        self,
        creator: str,
        name: str,
        symbol: str,
        supply: int,
        max_iterations: int,
    ) -> SaltSearchResult:
        if self.chain_id == CHAIN_ID_LOCAL:
            return self.chain.deployer.generate_salt(
                creator, name, symbol, supply, max_iterations=max_iterations
            )

        addresses = get_contract_addresses(self.chain_id)
        if not addresses["deployer"] or not addresses["weth"]:
            raise ValueError(
                f"deployer and weth addresses must be configured for chain {self.chain_id}"
            )
        async with web3_from_chain_id(self.chain_id) as w3:
            return await generate_salt_onchain(
                deployer=addresses["deployer"],
                creator=creator,
                name=name,
                symbol=symbol,
                supply=supply,
                reserve_address=addresses["weth"],
                has_code=code_checker(w3),
                max_iterations=max_iterations,
                creation_code=get_token_creation_code() or DEFAULT_TOKEN_CREATION_CODE,
            )

    @require_wallet
    @status_tuple
    async def find_salt(
        self,
        name: str,
        symbol: str,
        supply: int,
        *,
        max_iterations: int | None = None,
    ) -> dict[str, Any]:
        depth = max_iterations or self.defaults["salt_search_depth"]
        result = await self._search_salt(
            self.wallet_address, name, symbol, supply, depth
        )
        if result.exhausted:
            raise SaltSearchExhausted(result.iterations)
        self.logger.info(
            f"Salt {result.salt} -> {result.predicted_address} "
            f"after {result.iterations} candidates"
        )
        return asdict(result)

    @require_wallet
    @status_tuple
    async def launch(
        self,
        name: str,
        symbol: str,
        supply: int,
        *,
        initial_tick: int | None = None,
        market_cap: float | None = None,
        reference_price: float | None = None,
        fee_tier: int | None = None,
        salt: str | None = None,
        lock_owner: str | None = None,
        recipient: str | None = None,
        recipient_amount: int = 0,
        value: int = 0,
    ) -> dict[str, Any]:
        fee_tier = fee_tier or self.defaults["fee_tier"]
        if initial_tick is None:
            if market_cap is None or reference_price is None:
                raise ValueError(
                    "initial_tick or both market_cap and reference_price are required"
                )
            lp_supply = supply - recipient_amount
            initial_tick = self._quote(
                market_cap, reference_price, lp_supply, fee_tier
            ).valid_tick

        if salt is None:
            found = await self._search_salt(
                self.wallet_address,
                name,
                symbol,
                supply,
                self.defaults["salt_search_depth"],
            )
            if found.exhausted:
                raise SaltSearchExhausted(found.iterations)
            salt = found.salt

        params = LaunchParams(
            name=name,
            symbol=symbol,
            supply=supply,
            initial_tick=initial_tick,
            fee_tier=fee_tier,
            salt=salt,
            lock_owner=lock_owner,
            recipient=recipient,
            recipient_amount=recipient_amount,
        )
        result = self.chain.deployer.deploy_token(
            self.wallet_address, params, value=value
        )
        if result.swap_error:
            self.logger.warning(f"Launch succeeded without buy: {result.swap_error}")
        return result.model_dump()

    @require_wallet
    @status_tuple
    async def buy(self, token: str, value: int, *, fee_tier: int | None = None) -> int:
        return self.chain.deployer.initial_swap_tokens(
            self.wallet_address,
            token,
            fee_tier or self.defaults["fee_tier"],
            value=value,
        )

    @require_wallet
    @status_tuple
    async def collect_fees(self, position_id: int) -> dict[str, Any]:
        collection = self.chain.locker.collect_fees(self.wallet_address, position_id)
        return collection.model_dump()

    @require_wallet
    @status_tuple
    async def collect_all_fees(self) -> dict[str, Any]:
        return self.chain.locker.collect_all_fees(self.wallet_address).model_dump()

    @require_wallet
    @status_tuple
    async def collect_selected_fees(self, position_ids: Iterable[int]) -> dict[str, Any]:
        batch = self.chain.locker.collect_selected_fees(
            self.wallet_address, list(position_ids)
        )
        return batch.model_dump()

    @require_wallet
    @status_tuple
    async def transfer_lock(self, position_id: int, new_owner: str) -> str:
        new_owner = to_checksum_address(new_owner)
        self.chain.locker.transfer_lock_ownership(
            self.wallet_address, position_id, new_owner
        )
        return new_owner

    @require_wallet
    @status_tuple
    async def withdraw(self, position_id: int) -> int:
        self.chain.locker.withdraw(self.wallet_address, position_id)
        return int(position_id)

    @status_tuple
    async def get_lock(self, position_id: int) -> dict[str, Any] | None:
        record = self.chain.locker.get_lock(position_id)
        if record is None:
            return None
        now = self.chain.ledger.timestamp
        return {
            **asdict(record),
            "position_id": int(position_id),
            "unlocked": now >= record.unlock_time,
            "seconds_remaining": max(record.unlock_time - now, 0),
        }

    @status_tuple
    async def get_locked_positions(self, owner: str | None = None) -> list[int]:
        owner = owner or self.wallet_address
        if not owner:
            raise ValueError("owner is required when no wallet is configured")
        return self.chain.locker.positions_of(owner)
