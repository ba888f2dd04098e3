from __future__ import annotations

import pytest

from socialdex.chain.ledger import label_address
from socialdex.chain.market import Pool
from socialdex.core.constants.base import DEFAULT_LOCK_DURATION, ZERO_ADDRESS
from socialdex.core.errors import (
    AddressOrderingViolation,
    AllocationExceedsSupply,
    ContractRevert,
    InvalidTick,
    MarketCreationFailed,
    MarketInitializationFailed,
    PositionMintFailed,
    Unauthorized,
)
from socialdex.core.utils.create2 import address_lt, salt_to_hex
from socialdex.core.utils.uniswap_v3_math import max_usable_tick, tick_for_market_cap
from socialdex.launchpad.local import LocalChain
from socialdex.launchpad.models import LaunchParams, PositionLocked, TokenCreated

CREATOR = label_address("creator")
RECIPIENT = label_address("recipient")
BUYER = label_address("buyer")
E18 = 10**18
SUPPLY = 1_000_000 * E18
RECIPIENT_AMOUNT = 10_000 * E18
FEE_TIER = 10_000
TICK = -207_000


@pytest.fixture
def chain():
    return LocalChain.create()


def _params(chain: LocalChain, **overrides) -> LaunchParams:
    fields = dict(
        name="Social Token",
        symbol="SOC",
        supply=SUPPLY,
        initial_tick=TICK,
        fee_tier=FEE_TIER,
        recipient=RECIPIENT,
        recipient_amount=RECIPIENT_AMOUNT,
    )
    fields.update(overrides)
    if "salt" not in fields:
        found = chain.deployer.generate_salt(
            CREATOR, fields["name"], fields["symbol"], fields["supply"]
        )
        assert found.found
        fields["salt"] = found.salt
    return LaunchParams(**fields)


def _predicted(chain: LocalChain, params: LaunchParams) -> str:
    return chain.deployer.predict_token_address(
        CREATOR, params.name, params.symbol, params.supply, params.salt
    )


def _assert_nothing_launched(chain: LocalChain, params: LaunchParams) -> None:
    assert not chain.ledger.has_code(_predicted(chain, params))
    assert chain.deployer.tokens_of(CREATOR) == []
    assert chain.ledger.events == []
    assert chain.factory.pools == {}
    assert chain.position_manager.next_token_id == 1


def test_launch_creates_market_and_locks_position(chain):
    params = _params(chain)
    predicted = _predicted(chain, params)

    result = chain.deployer.deploy_token(CREATOR, params)

    assert result.token_address == predicted
    assert address_lt(result.token_address, chain.weth.address)
    assert result.lp_amount == 990_000 * E18
    assert result.bought == 0 and result.swap_error is None

    token = chain.token(result.token_address)
    assert token.total_supply == SUPPLY
    assert token.balance_of(RECIPIENT) == RECIPIENT_AMOUNT

    pool = chain.ledger.contract_at(result.pool_address)
    assert pool.token0 == token.address
    assert pool.token1 == chain.weth.address
    assert pool.tick == TICK
    assert token.balance_of(pool.address) == result.amount0_used
    assert 0 < result.amount0_used <= result.lp_amount
    assert result.amount1_used == 0
    # Unconsumed LP tokens stay with the deployer.
    assert token.balance_of(chain.deployer.address) == result.lp_amount - result.amount0_used

    position = chain.position_manager.positions(result.position_id)
    assert (position.tick_lower, position.tick_upper) == (TICK, max_usable_tick(200))
    assert chain.position_manager.owner_of(result.position_id) == chain.locker.address

    record = chain.locker.get_lock(result.position_id)
    assert record.owner == CREATOR
    assert record.fee_cut == 35
    assert record.unlock_time == chain.ledger.timestamp + DEFAULT_LOCK_DURATION

    created = chain.ledger.events_of(TokenCreated)
    assert len(created) == 1
    assert created[0].token_address == token.address
    assert created[0].position_id == result.position_id
    assert chain.ledger.events_of(PositionLocked)[0].owner == CREATOR
    assert chain.deployer.tokens_of(CREATOR) == [token.address]


def test_misaligned_tick_creates_nothing(chain):
    params = _params(chain, initial_tick=-207_001)

    with pytest.raises(InvalidTick) as excinfo:
        chain.deployer.deploy_token(CREATOR, params)

    assert excinfo.value.tick_spacing == 200
    _assert_nothing_launched(chain, params)


@pytest.mark.parametrize("tick", [max_usable_tick(200), 887_400, -887_400])
def test_tick_outside_usable_range_is_rejected(chain, tick):
    params = _params(chain, initial_tick=tick)
    with pytest.raises(InvalidTick):
        chain.deployer.deploy_token(CREATOR, params)
    _assert_nothing_launched(chain, params)


def test_clamped_market_cap_quote_is_launchable(chain):
    quote = tick_for_market_cap(1e60, 1.0, SUPPLY // E18, 200)
    params = _params(chain, initial_tick=quote.valid_tick)

    result = chain.deployer.deploy_token(CREATOR, params)

    position = chain.position_manager.positions(result.position_id)
    assert (position.tick_lower, position.tick_upper) == (
        max_usable_tick(200) - 200,
        max_usable_tick(200),
    )


def test_unknown_fee_tier_is_rejected(chain):
    params = _params(chain, fee_tier=1_234)
    with pytest.raises(InvalidTick, match="not enabled"):
        chain.deployer.deploy_token(CREATOR, params)
    _assert_nothing_launched(chain, params)


def test_allocation_above_supply_is_rejected(chain):
    params = _params(chain, recipient_amount=SUPPLY + 1)
    with pytest.raises(AllocationExceedsSupply):
        chain.deployer.deploy_token(CREATOR, params)
    _assert_nothing_launched(chain, params)


def test_whole_supply_to_recipient_is_not_a_launch(chain):
    # Nothing left for liquidity, so the mint step fails and the launch reverts.
    params = _params(chain, recipient_amount=SUPPLY)
    with pytest.raises(PositionMintFailed):
        chain.deployer.deploy_token(CREATOR, params)
    _assert_nothing_launched(chain, params)


@pytest.mark.parametrize("recipient", [None, ZERO_ADDRESS])
def test_allocation_without_recipient_stays_with_deployer(chain, recipient):
    params = _params(chain, recipient=recipient)
    assert params.recipient is None

    result = chain.deployer.deploy_token(CREATOR, params)

    assert result.lp_amount == SUPPLY - RECIPIENT_AMOUNT
    token = chain.token(result.token_address)
    assert token.balance_of(ZERO_ADDRESS) == 0
    assert token.balance_of(chain.deployer.address) == (
        RECIPIENT_AMOUNT + result.lp_amount - result.amount0_used
    )
    created = chain.ledger.events_of(TokenCreated)[-1]
    assert created.recipient is None
    assert created.recipient_amount == RECIPIENT_AMOUNT


def test_salt_above_reserve_is_an_ordering_violation(chain):
    salt = next(
        salt_to_hex(i)
        for i in range(1_000)
        if not address_lt(
            chain.deployer.predict_token_address(CREATOR, "Social Token", "SOC", SUPPLY, i),
            chain.weth.address,
        )
    )
    params = _params(chain, salt=salt)

    with pytest.raises(AddressOrderingViolation):
        chain.deployer.deploy_token(CREATOR, params)
    _assert_nothing_launched(chain, params)


def test_zero_supply_aborts_after_creation(chain):
    params = _params(chain, supply=0, recipient=None, recipient_amount=0)
    with pytest.raises(AddressOrderingViolation, match="supply"):
        chain.deployer.deploy_token(CREATOR, params)
    _assert_nothing_launched(chain, params)


def test_reused_salt_cannot_deploy_twice(chain):
    params = _params(chain)
    chain.deployer.deploy_token(CREATOR, params)
    events = len(chain.ledger.events)

    with pytest.raises(ContractRevert, match="collision"):
        chain.deployer.deploy_token(CREATOR, params)
    assert len(chain.ledger.events) == events


def test_next_salt_skips_deployed_address(chain):
    params = _params(chain)
    chain.deployer.deploy_token(CREATOR, params)

    again = chain.deployer.generate_salt(CREATOR, params.name, params.symbol, params.supply)
    assert again.salt != params.salt
    assert not chain.ledger.has_code(again.predicted_address)


def test_market_creation_failure_reverts_launch(chain, monkeypatch):
    def refuse(caller, token_a, token_b, fee):
        raise ContractRevert("factory paused", contract="PoolFactory")

    monkeypatch.setattr(chain.factory, "create_pool", refuse)
    params = _params(chain)

    with pytest.raises(MarketCreationFailed, match="factory paused"):
        chain.deployer.deploy_token(CREATOR, params)
    _assert_nothing_launched(chain, params)


def test_market_initialization_failure_reverts_launch(chain, monkeypatch):
    def refuse(self, caller, sqrt_price_x96):
        raise ContractRevert("cannot initialize", contract="Pool")

    monkeypatch.setattr(Pool, "initialize", refuse)
    params = _params(chain)

    with pytest.raises(MarketInitializationFailed, match="cannot initialize"):
        chain.deployer.deploy_token(CREATOR, params)
    _assert_nothing_launched(chain, params)


def test_mint_failure_reverts_launch(chain, monkeypatch):
    def refuse(caller, params):
        raise ContractRevert("minting disabled", contract="PositionManager")

    monkeypatch.setattr(chain.position_manager, "mint", refuse)
    params = _params(chain)

    with pytest.raises(PositionMintFailed, match="minting disabled"):
        chain.deployer.deploy_token(CREATOR, params)
    _assert_nothing_launched(chain, params)


def test_lock_failure_reverts_launch(chain, monkeypatch):
    def refuse(*args, **kwargs):
        raise Unauthorized("locker closed")

    monkeypatch.setattr(chain.locker, "initialize_position", refuse)
    params = _params(chain)

    with pytest.raises(Unauthorized):
        chain.deployer.deploy_token(CREATOR, params)
    _assert_nothing_launched(chain, params)
    assert chain.locker.locks == {}


def test_lock_owner_override(chain):
    owner = label_address("treasury")
    result = chain.deployer.deploy_token(CREATOR, _params(chain, lock_owner=owner))
    assert chain.locker.get_lock(result.position_id).owner == owner
    assert chain.locker.positions_of(owner) == [result.position_id]
    assert chain.locker.positions_of(CREATOR) == []


def test_attached_funds_buy_into_the_new_market(chain):
    value = 10**14
    chain.fund(CREATOR, value)

    result = chain.deployer.deploy_token(CREATOR, _params(chain), value=value)

    token = chain.token(result.token_address)
    assert result.bought > 0
    assert result.swap_error is None
    assert token.balance_of(CREATOR) == result.bought
    assert chain.weth.balance_of(result.pool_address) == value
    assert chain.ledger.native_balance(CREATOR) == 0
    assert chain.ledger.native_balance(chain.deployer.address) == 0


def test_failed_buy_is_refunded_and_launch_stands(chain):
    # Far more than the pool can fill at the launch price.
    value = 10**18
    chain.fund(CREATOR, value)

    result = chain.deployer.deploy_token(CREATOR, _params(chain), value=value)

    assert result.bought == 0
    assert "insufficient liquidity" in result.swap_error
    assert chain.ledger.native_balance(CREATOR) == value
    assert chain.ledger.native_balance(chain.deployer.address) == 0
    assert chain.weth.total_supply == 0
    assert chain.locker.get_lock(result.position_id).owner == CREATOR
    assert len(chain.ledger.events_of(TokenCreated)) == 1


def test_tax_is_taken_before_the_buy():
    chain = LocalChain.create(tax_rate=100)
    value = 10**14
    chain.fund(CREATOR, value)

    result = chain.deployer.deploy_token(CREATOR, _params(chain), value=value)

    assert result.tax_paid == 10**13
    assert chain.ledger.native_balance(chain.tax_collector) == 10**13
    assert chain.weth.balance_of(result.pool_address) == value - 10**13


def test_tax_is_kept_when_the_buy_fails():
    chain = LocalChain.create(tax_rate=100)
    value = 10**18
    chain.fund(CREATOR, value)

    result = chain.deployer.deploy_token(CREATOR, _params(chain), value=value)

    assert result.tax_paid == 10**17
    assert result.swap_error is not None
    assert chain.ledger.native_balance(CREATOR) == value - 10**17


def test_launch_without_funds_for_value_reverts(chain):
    params = _params(chain)
    with pytest.raises(ContractRevert, match="insufficient native balance"):
        chain.deployer.deploy_token(CREATOR, params, value=1)
    _assert_nothing_launched(chain, params)


def test_trading_fees_flow_to_lock_owner_and_collector(chain):
    result = chain.deployer.deploy_token(CREATOR, _params(chain))
    chain.fund(BUYER, 10**14)

    bought = chain.deployer.initial_swap_tokens(
        BUYER, result.token_address, FEE_TIER, value=10**14
    )
    assert bought > 0
    assert chain.token(result.token_address).balance_of(BUYER) == bought

    collection = chain.locker.collect_fees(CREATOR, result.position_id)
    assert collection.amount1 == 10**12
    assert collection.collector_amount1 == 35 * 10**9
    assert chain.weth.balance_of(CREATOR) == 965 * 10**9
    assert chain.weth.balance_of(chain.fee_collector) == 35 * 10**9


def test_standalone_buy_failure_is_fatal(chain):
    result = chain.deployer.deploy_token(CREATOR, _params(chain))
    chain.fund(BUYER, 10**18)

    with pytest.raises(ContractRevert, match="insufficient liquidity"):
        chain.deployer.initial_swap_tokens(
            BUYER, result.token_address, FEE_TIER, value=10**18
        )
    assert chain.ledger.native_balance(BUYER) == 10**18

    with pytest.raises(ContractRevert, match="no funds"):
        chain.deployer.initial_swap_tokens(BUYER, result.token_address, FEE_TIER, value=0)


def test_tax_settings_are_owner_only(chain):
    with pytest.raises(Unauthorized):
        chain.deployer.update_tax_rate(CREATOR, 10)
    with pytest.raises(Unauthorized):
        chain.deployer.update_tax_collector(CREATOR, CREATOR)

    chain.deployer.update_tax_rate(chain.admin, 50)
    chain.deployer.update_tax_collector(chain.admin, BUYER)
    assert chain.deployer.tax_rate == 50
    assert chain.deployer.tax_collector == BUYER

    with pytest.raises(ContractRevert):
        chain.deployer.update_tax_rate(chain.admin, 1_001)
    assert chain.deployer.tax_rate == 50
