"""Fully wired launchpad on an in-memory ledger.

Used by the adapter's local mode, the CLI and the tests. Collaborators sit at
stable labelled addresses; WETH sits at its Base address so salt mining
behaves as it does on the production chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from socialdex.chain.ledger import Ledger, label_address
from socialdex.chain.market import PoolFactory, PositionManager, SwapRouter
from socialdex.chain.token import Token, WrappedNative
from socialdex.core.config import get_launch_defaults, get_token_creation_code
from socialdex.core.constants.chains import CHAIN_ID_LOCAL
from socialdex.core.constants.contracts import WETH
from socialdex.core.utils.create2 import DEFAULT_TOKEN_CREATION_CODE
from socialdex.launchpad.deployer import SocialDexDeployer
from socialdex.launchpad.locker import PositionLocker


@dataclass
class LocalChain:
    ledger: Ledger
    weth: WrappedNative
    factory: PoolFactory
    position_manager: PositionManager
    swap_router: SwapRouter
    locker: PositionLocker
    deployer: SocialDexDeployer
    admin: str
    fee_collector: str
    tax_collector: str

    @classmethod
    def create(
        cls,
        *,
        admin: str | None = None,
        fee_collector: str | None = None,
        tax_collector: str | None = None,
        lock_duration: int | None = None,
        fee_cut: int | None = None,
        tax_rate: int | None = None,
        fee_tiers: dict[int, int] | None = None,
        token_creation_code: bytes | None = None,
        timestamp: int | None = None,
    ) -> LocalChain:
        defaults = get_launch_defaults()
        ledger_kwargs: dict[str, Any] = {"chain_id": CHAIN_ID_LOCAL}
        if timestamp is not None:
            ledger_kwargs["timestamp"] = timestamp
        ledger = Ledger(**ledger_kwargs)

        admin = to_checksum_address(admin or label_address("socialdex.admin"))
        fee_collector = to_checksum_address(
            fee_collector or label_address("socialdex.fee_collector")
        )
        tax_collector = to_checksum_address(
            tax_collector or label_address("socialdex.tax_collector")
        )

        weth = ledger.register(WrappedNative(ledger, WETH[CHAIN_ID_LOCAL]))
        factory = ledger.register(
            PoolFactory(
                ledger, label_address("uniswap.v3.factory"), fee_tiers=fee_tiers
            )
        )
        position_manager = ledger.register(
            PositionManager(
                ledger, label_address("uniswap.v3.position_manager"), factory=factory
            )
        )
        swap_router = ledger.register(
            SwapRouter(
                ledger,
                label_address("uniswap.v3.swap_router"),
                factory=factory,
                position_manager=position_manager,
            )
        )
        locker = ledger.register(
            PositionLocker(
                ledger,
                label_address("socialdex.locker"),
                owner=admin,
                position_manager=position_manager,
                fee_collector=fee_collector,
                default_lock_duration=(
                    defaults["lock_duration"] if lock_duration is None else lock_duration
                ),
                default_fee_cut=defaults["fee_cut"] if fee_cut is None else fee_cut,
            )
        )
        deployer = ledger.register(
            SocialDexDeployer(
                ledger,
                label_address("socialdex.deployer"),
                owner=admin,
                weth=weth,
                factory=factory,
                position_manager=position_manager,
                swap_router=swap_router,
                locker=locker,
                tax_collector=tax_collector,
                tax_rate=defaults["tax_rate"] if tax_rate is None else tax_rate,
                token_creation_code=(
                    token_creation_code
                    or get_token_creation_code()
                    or DEFAULT_TOKEN_CREATION_CODE
                ),
            )
        )
        logger.info(
            f"Local launchpad ready: deployer={deployer.address} locker={locker.address}"
        )
        return cls(
            ledger=ledger,
            weth=weth,
            factory=factory,
            position_manager=position_manager,
            swap_router=swap_router,
            locker=locker,
            deployer=deployer,
            admin=admin,
            fee_collector=fee_collector,
            tax_collector=tax_collector,
        )

    def fund(self, account: str, amount: int) -> int:
        """Credit native currency to ``account`` and return its new balance."""
        self.ledger.mint_native(account, amount)
        return self.ledger.native_balance(account)

    def token(self, address: str) -> Token:
        contract = self.ledger.contract_at(address)
        if not isinstance(contract, Token):
            raise ValueError(f"{address} is not a token on this chain")
        return contract
