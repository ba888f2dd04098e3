from __future__ import annotations

import asyncio
import json
import sys
from decimal import Decimal
from typing import Any

import click
from loguru import logger

from socialdex.adapters.launchpad_adapter.adapter import LaunchpadAdapter
from socialdex.core.config import get_launch_defaults, load_config
from socialdex.core.constants.base import TOKEN_DECIMALS
from socialdex.core.constants.chains import CHAIN_CODE_TO_ID, CHAIN_ID_LOCAL


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _echo_status(ok: bool, result: Any) -> None:
    if ok:
        _echo_json({"ok": True, "result": result})
        return
    _echo_json({"ok": False, "error": result})
    sys.exit(1)


def _whole_to_raw(supply: float) -> int:
    return int(Decimal(str(supply)) * 10**TOKEN_DECIMALS)


@click.group(name="socialdex", help="Token launchpad tooling.")
@click.option("--config", "config_path", default=None, help="Path to config.json.")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def socialdex_cli(config_path: str | None, log_level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper())
    if config_path:
        load_config(config_path, require_exists=True)


@socialdex_cli.command(name="tick", help="Launch tick for a target market cap.")
@click.option("--market-cap", type=float, required=True, help="Target market cap (USD).")
@click.option(
    "--reference-price",
    type=float,
    required=True,
    help="USD price of the paired reserve asset.",
)
@click.option("--supply", type=float, required=True, help="Whole-token LP supply.")
@click.option("--fee-tier", type=int, default=None, help="Pool fee tier.")
def tick_cmd(
    market_cap: float, reference_price: float, supply: float, fee_tier: int | None
) -> None:
    adapter = LaunchpadAdapter()
    ok, result = asyncio.run(
        adapter.quote_initial_tick(
            market_cap, reference_price, _whole_to_raw(supply), fee_tier=fee_tier
        )
    )
    _echo_status(ok, result)


@socialdex_cli.command(name="salt", help="Find a salt that sorts the token below WETH.")
@click.option("--creator", required=True, help="Address that will call deploy.")
@click.option("--name", required=True)
@click.option("--symbol", required=True)
@click.option("--supply", type=float, required=True, help="Whole-token total supply.")
@click.option(
    "--chain",
    type=click.Choice(sorted(CHAIN_CODE_TO_ID), case_sensitive=False),
    default="local",
    show_default=True,
    help="Check candidate addresses for code on this chain.",
)
@click.option("--max-iterations", type=int, default=None)
def salt_cmd(
    creator: str,
    name: str,
    symbol: str,
    supply: float,
    chain: str,
    max_iterations: int | None,
) -> None:
    chain_id = CHAIN_CODE_TO_ID[chain.lower()]
    adapter = LaunchpadAdapter({"chain_id": chain_id}, wallet_address=creator)
    ok, result = asyncio.run(
        adapter.find_salt(
            name, symbol, _whole_to_raw(supply), max_iterations=max_iterations
        )
    )
    _echo_status(ok, result)


@socialdex_cli.command(
    name="simulate", help="Run a full launch on an in-memory chain and print the result."
)
@click.option("--creator", required=True)
@click.option("--name", required=True)
@click.option("--symbol", required=True)
@click.option("--supply", type=float, required=True, help="Whole-token total supply.")
@click.option("--market-cap", type=float, default=None)
@click.option("--reference-price", type=float, default=None)
@click.option("--tick", "initial_tick", type=int, default=None)
@click.option("--recipient", default=None)
@click.option("--recipient-amount", type=float, default=0.0, show_default=True)
@click.option("--value", type=int, default=0, show_default=True, help="Wei attached.")
def simulate_cmd(
    creator: str,
    name: str,
    symbol: str,
    supply: float,
    market_cap: float | None,
    reference_price: float | None,
    initial_tick: int | None,
    recipient: str | None,
    recipient_amount: float,
    value: int,
) -> None:
    adapter = LaunchpadAdapter({"chain_id": CHAIN_ID_LOCAL}, wallet_address=creator)
    if value:
        adapter.chain.fund(creator, value)
    ok, result = asyncio.run(
        adapter.launch(
            name,
            symbol,
            _whole_to_raw(supply),
            initial_tick=initial_tick,
            market_cap=market_cap,
            reference_price=reference_price,
            fee_tier=get_launch_defaults()["fee_tier"],
            recipient=recipient,
            recipient_amount=_whole_to_raw(recipient_amount),
            value=value,
        )
    )
    _echo_status(ok, result)


def main() -> None:
    socialdex_cli()


if __name__ == "__main__":
    main()
