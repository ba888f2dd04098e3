"""Single-call token launch.

``deploy_token`` creates the asset, splits the allocation, creates and
initializes the market, provisions one-sided liquidity from the launch tick
up to the top of the usable range, locks the position in the locker and
optionally buys into the new market with the attached funds. Everything but
the buy runs as one atomic unit: any failure reverts the whole launch.
"""

from __future__ import annotations

from eth_utils import to_checksum_address

from socialdex.chain.ledger import Contract, Ledger, external, nonreentrant
from socialdex.chain.market import (
    ExactInputSingleParams,
    MintParams,
    MintResult,
    Pool,
    PoolFactory,
    PositionManager,
    SwapRouter,
)
from socialdex.chain.token import LaunchToken, WrappedNative
from socialdex.core.constants.base import (
    DEFAULT_SALT_SEARCH_DEPTH,
    DEFAULT_TAX_RATE,
    PER_MILLE,
)
from socialdex.core.errors import (
    AddressOrderingViolation,
    AllocationExceedsSupply,
    ContractRevert,
    InvalidTick,
    MarketCreationFailed,
    MarketInitializationFailed,
    PositionMintFailed,
    SocialDexError,
    Unauthorized,
)
from socialdex.core.utils.create2 import (
    DEFAULT_TOKEN_CREATION_CODE,
    SaltSearchResult,
    address_lt,
    derive_salt,
    generate_salt,
    predict_token_address,
    token_init_code_hash,
)
from socialdex.core.utils.uniswap_v3_math import (
    max_usable_tick,
    min_usable_tick,
    sqrt_price_x96_from_tick,
)
from socialdex.launchpad.locker import PositionLocker
from socialdex.launchpad.models import LaunchParams, LaunchResult, TokenCreated


class SocialDexDeployer(Contract):
    def __init__(
        self,
        ledger: Ledger,
        address: str,
        *,
        owner: str,
        weth: WrappedNative,
        factory: PoolFactory,
        position_manager: PositionManager,
        swap_router: SwapRouter,
        locker: PositionLocker,
        tax_collector: str,
        tax_rate: int = DEFAULT_TAX_RATE,
        token_creation_code: bytes = DEFAULT_TOKEN_CREATION_CODE,
    ):
        super().__init__(ledger, address)
        self.owner = to_checksum_address(owner)
        self.weth = weth
        self.factory = factory
        self.position_manager = position_manager
        self.swap_router = swap_router
        self.locker = locker
        self.tax_collector = to_checksum_address(tax_collector)
        self.tax_rate = self._check_rate(tax_rate)
        self.token_creation_code = bytes(token_creation_code)
        self.tokens_by_creator: dict[str, list[str]] = {}

    # Address prediction (read-only)

    def predict_token_address(
        self, creator: str, name: str, symbol: str, supply: int, salt: int | str
    ) -> str:
        return predict_token_address(
            self.address,
            creator,
            name,
            symbol,
            supply,
            salt,
            creation_code=self.token_creation_code,
        )

    def generate_salt(
        self,
        creator: str,
        name: str,
        symbol: str,
        supply: int,
        *,
        max_iterations: int = DEFAULT_SALT_SEARCH_DEPTH,
    ) -> SaltSearchResult:
        return generate_salt(
            deployer=self.address,
            creator=creator,
            name=name,
            symbol=symbol,
            supply=supply,
            reserve_address=self.weth.address,
            has_code=self.ledger.has_code,
            max_iterations=max_iterations,
            creation_code=self.token_creation_code,
        )

    # Launch

    @external
    @nonreentrant
    def deploy_token(
        self, caller: str, params: LaunchParams, *, value: int = 0
    ) -> LaunchResult:
        caller = to_checksum_address(caller)
        log = self.logger.bind(creator=caller, symbol=params.symbol)

        spacing = self._validate_tick(params.initial_tick, params.fee_tier)
        if params.recipient_amount > params.supply:
            raise AllocationExceedsSupply(params.recipient_amount, params.supply)
        lp_amount = params.supply - params.recipient_amount
        log.debug(f"Validated tick {params.initial_tick}, lp amount {lp_amount}")

        if value > 0:
            self.ledger.transfer_native(caller, self.address, value)

        token = self._create_token(caller, params)
        if not address_lt(token.address, self.weth.address):
            raise AddressOrderingViolation(
                f"token {token.address} does not sort below {self.weth.address}"
            )
        if token.total_supply <= 0:
            raise AddressOrderingViolation("supply must be positive")
        self.tokens_by_creator.setdefault(caller, []).append(token.address)

        if params.recipient_amount > 0 and params.recipient:
            token.transfer(self.address, params.recipient, params.recipient_amount)
            log.debug(f"Sent {params.recipient_amount} to {params.recipient}")

        pool = self._create_market(token.address, params.fee_tier, params.initial_tick)
        mint = self._provision(token, params, spacing, lp_amount)
        log.debug(
            f"Minted position {mint.token_id}: liquidity={mint.liquidity} "
            f"used={mint.amount0}/{mint.amount1}"
        )

        lock_owner = params.lock_owner or caller
        self.position_manager.safe_transfer_from(
            self.address, self.address, self.locker.address, mint.token_id
        )
        self.locker.initialize_position(
            self.address,
            mint.token_id,
            lock_owner,
            self.ledger.timestamp + self.locker.default_lock_duration,
            self.locker.default_fee_cut,
        )

        result = LaunchResult(
            token_address=token.address,
            position_id=mint.token_id,
            pool_address=pool.address,
            liquidity=mint.liquidity,
            lp_amount=lp_amount,
            amount0_used=mint.amount0,
            amount1_used=mint.amount1,
        )
        if value > 0:
            self._spend_attached(caller, token.address, params.fee_tier, value, result)

        self.ledger.emit(
            TokenCreated(
                token_address=token.address,
                position_id=mint.token_id,
                creator=caller,
                name=params.name,
                symbol=params.symbol,
                supply=params.supply,
                recipient=params.recipient,
                recipient_amount=params.recipient_amount,
                locker=self.locker.address,
            )
        )
        log.info(f"Launched {token.address} with position {mint.token_id}")
        return result

    def _validate_tick(self, tick: int, fee_tier: int) -> int:
        spacing = self.factory.tick_spacing(fee_tier)
        if spacing <= 0:
            raise InvalidTick(tick, 0, f"fee tier {fee_tier} is not enabled")
        if tick % spacing != 0:
            raise InvalidTick(tick, spacing)
        if not min_usable_tick(spacing) <= tick < max_usable_tick(spacing):
            raise InvalidTick(
                tick, spacing, f"tick {tick} leaves no usable range above it"
            )
        return spacing

    def _create_token(self, creator: str, params: LaunchParams) -> LaunchToken:
        init_hash = token_init_code_hash(
            params.name,
            params.symbol,
            params.supply,
            creation_code=self.token_creation_code,
        )
        return self.ledger.deploy_create2(
            self.address,
            derive_salt(creator, params.salt),
            init_hash,
            lambda address: LaunchToken(
                self.ledger,
                address,
                params.name,
                params.symbol,
                params.supply,
                deployer=self.address,
            ),
        )

    def _create_market(self, token: str, fee_tier: int, tick: int) -> Pool:
        try:
            pool_address = self.factory.create_pool(
                self.address, token, self.weth.address, fee_tier
            )
        except ContractRevert as exc:
            raise MarketCreationFailed(exc.reason) from exc

        pool = self.ledger.contract_at(pool_address)
        try:
            pool.initialize(self.address, sqrt_price_x96_from_tick(tick))
        except (ContractRevert, ValueError) as exc:
            raise MarketInitializationFailed(str(exc)) from exc
        return pool

    def _provision(
        self, token: LaunchToken, params: LaunchParams, spacing: int, lp_amount: int
    ) -> MintResult:
        token.approve(self.address, self.position_manager.address, lp_amount)
        mint_params = MintParams(
            token0=token.address,
            token1=self.weth.address,
            fee=params.fee_tier,
            tick_lower=params.initial_tick,
            tick_upper=max_usable_tick(spacing),
            amount0_desired=lp_amount,
            amount1_desired=0,
            recipient=self.address,
            deadline=self.ledger.timestamp,
        )
        try:
            return self.position_manager.mint(self.address, mint_params)
        except ContractRevert as exc:
            raise PositionMintFailed(exc.reason) from exc

    def _spend_attached(
        self,
        caller: str,
        token: str,
        fee_tier: int,
        value: int,
        result: LaunchResult,
    ) -> None:
        tax = value * self.tax_rate // PER_MILLE
        if tax > 0:
            self.ledger.transfer_native(self.address, self.tax_collector, tax)
            result.tax_paid = tax
        remainder = value - tax
        if remainder <= 0:
            return
        try:
            with self.ledger.atomic():
                result.bought = self._buy(caller, token, fee_tier, remainder)
        except SocialDexError as exc:
            self.ledger.transfer_native(self.address, caller, remainder)
            result.swap_error = str(exc)
            self.logger.warning(f"Initial buy of {token} failed, refunded {remainder}: {exc}")

    def _buy(self, caller: str, token: str, fee_tier: int, amount: int) -> int:
        self.weth.deposit(self.address, amount)
        self.weth.approve(self.address, self.swap_router.address, amount)
        return self.swap_router.exact_input_single(
            self.address,
            ExactInputSingleParams(
                token_in=self.weth.address,
                token_out=token,
                fee=fee_tier,
                recipient=caller,
                amount_in=amount,
            ),
        )

    @external
    @nonreentrant
    def initial_swap_tokens(
        self, caller: str, token: str, fee_tier: int, *, value: int
    ) -> int:
        caller = to_checksum_address(caller)
        self._require(value > 0, "no funds attached")
        self.ledger.transfer_native(caller, self.address, value)
        bought = self._buy(caller, to_checksum_address(token), fee_tier, value)
        self.logger.info(f"{caller} bought {bought} of {token}")
        return bought

    def tokens_of(self, creator: str) -> list[str]:
        return list(self.tokens_by_creator.get(to_checksum_address(creator), ()))

    # Admin

    def _check_rate(self, rate: int) -> int:
        self._require(0 <= int(rate) <= PER_MILLE, f"rate {rate} outside [0, 1000]")
        return int(rate)

    def _only_owner(self, caller: str) -> None:
        if to_checksum_address(caller) != self.owner:
            raise Unauthorized(f"{caller} is not the deployer owner")

    @external
    def update_tax_collector(self, caller: str, tax_collector: str) -> None:
        self._only_owner(caller)
        self.tax_collector = to_checksum_address(tax_collector)

    @external
    def update_tax_rate(self, caller: str, tax_rate: int) -> None:
        self._only_owner(caller)
        self.tax_rate = self._check_rate(tax_rate)
