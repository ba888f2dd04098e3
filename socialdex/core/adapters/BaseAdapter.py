from __future__ import annotations

import functools
from abc import ABC
from collections.abc import Callable
from typing import Any

from eth_utils import to_checksum_address
from loguru import logger

from socialdex.core.constants.chains import CHAIN_ID_LOCAL, SUPPORTED_CHAINS


def require_wallet(fn: Callable) -> Callable:
    """Return ``(False, ...)`` early if ``self.wallet_address`` is not set."""

    @functools.wraps(fn)
    async def wrapper(self: BaseAdapter, *args: Any, **kwargs: Any) -> Any:
        if not getattr(self, "wallet_address", None):
            return False, "wallet address not configured"
        return await fn(self, *args, **kwargs)

    return wrapper


class BaseAdapter(ABC):
    adapter_type: str | None = None

    def __init__(
        self,
        name: str,
        config: dict[str, Any] | None = None,
        *,
        wallet_address: str | None = None,
    ):
        self.name = name
        self.config = config or {}
        self.chain_id = int(self.config.get("chain_id", CHAIN_ID_LOCAL))
        if self.chain_id not in SUPPORTED_CHAINS:
            raise ValueError(
                f"Unsupported chain_id {self.chain_id}. Supported: {SUPPORTED_CHAINS}"
            )
        wallet = wallet_address or (self.config.get("wallet") or {}).get("address")
        self.wallet_address: str | None = (
            to_checksum_address(wallet) if wallet else None
        )
        self.logger = logger.bind(adapter=self.__class__.__name__)

    async def close(self) -> None:
        pass
