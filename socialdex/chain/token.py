from __future__ import annotations

from eth_utils import to_checksum_address

from socialdex.chain.ledger import Contract, Ledger, external
from socialdex.core.constants.base import MAX_UINT256, TOKEN_DECIMALS


class Token(Contract):
    """Fungible asset with the standard balance / transfer / approve surface."""

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        name: str,
        symbol: str,
        *,
        decimals: int = TOKEN_DECIMALS,
        reject_zero_transfers: bool = False,
    ):
        super().__init__(ledger, address)
        self.name = name
        self.symbol = symbol
        self.decimals = int(decimals)
        self.total_supply = 0
        self.reject_zero_transfers = reject_zero_transfers
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}

    def balance_of(self, account: str) -> int:
        return self.balances.get(to_checksum_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        key = (to_checksum_address(owner), to_checksum_address(spender))
        return self.allowances.get(key, 0)

    @external
    def transfer(self, caller: str, to: str, amount: int) -> bool:
        self._transfer(caller, to, amount)
        return True

    @external
    def approve(self, caller: str, spender: str, amount: int) -> bool:
        self._require(amount >= 0, "negative allowance")
        key = (to_checksum_address(caller), to_checksum_address(spender))
        self.allowances[key] = int(amount)
        return True

    @external
    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        key = (to_checksum_address(owner), to_checksum_address(caller))
        allowed = self.allowances.get(key, 0)
        self._require(allowed >= amount, "insufficient allowance")
        if allowed != MAX_UINT256:
            self.allowances[key] = allowed - amount
        self._transfer(owner, to, amount)
        return True

    def _transfer(self, sender: str, to: str, amount: int) -> None:
        sender = to_checksum_address(sender)
        to = to_checksum_address(to)
        self._require(amount >= 0, "negative transfer")
        if self.reject_zero_transfers:
            self._require(amount > 0, "zero-value transfer")
        balance = self.balances.get(sender, 0)
        self._require(balance >= amount, "transfer amount exceeds balance")
        self.balances[sender] = balance - amount
        self.balances[to] = self.balances.get(to, 0) + amount

    def _mint(self, to: str, amount: int) -> None:
        to = to_checksum_address(to)
        self.balances[to] = self.balances.get(to, 0) + amount
        self.total_supply += amount

    def _burn(self, account: str, amount: int) -> None:
        account = to_checksum_address(account)
        balance = self.balances.get(account, 0)
        self._require(balance >= amount, "burn amount exceeds balance")
        self.balances[account] = balance - amount
        self.total_supply -= amount


class LaunchToken(Token):
    """Asset created by the launchpad; the whole supply is minted at construction."""

    def __init__(
        self,
        ledger: Ledger,
        address: str,
        name: str,
        symbol: str,
        supply: int,
        *,
        deployer: str,
    ):
        super().__init__(ledger, address, name, symbol)
        self.deployer = to_checksum_address(deployer)
        self._mint(self.deployer, int(supply))


class WrappedNative(Token):
    def __init__(self, ledger: Ledger, address: str, *, symbol: str = "WETH"):
        super().__init__(ledger, address, "Wrapped Ether", symbol)

    @external
    def deposit(self, caller: str, amount: int) -> None:
        self.ledger.transfer_native(caller, self.address, amount)
        self._mint(caller, amount)

    @external
    def withdraw(self, caller: str, amount: int) -> None:
        self._burn(caller, amount)
        self.ledger.transfer_native(self.address, caller, amount)
