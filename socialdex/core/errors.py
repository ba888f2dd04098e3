from __future__ import annotations


class SocialDexError(RuntimeError):
    """Base class for every failure raised by launchpad contracts."""

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__name__)


class ContractRevert(SocialDexError):
    """A collaborator contract reverted with a reason string."""

    def __init__(self, reason: str, *, contract: str | None = None):
        self.reason = reason
        self.contract = contract
        prefix = f"{contract}: " if contract else ""
        super().__init__(f"{prefix}{reason}")


class Unauthorized(SocialDexError):
    pass


class ReentrantCall(SocialDexError):
    pass


# Launch


class LaunchError(SocialDexError):
    pass


class InvalidTick(LaunchError):
    def __init__(self, tick: int, tick_spacing: int, message: str | None = None):
        self.tick = tick
        self.tick_spacing = tick_spacing
        super().__init__(
            message or f"tick {tick} is not a multiple of tick spacing {tick_spacing}"
        )


class AllocationExceedsSupply(LaunchError):
    def __init__(self, recipient_amount: int, supply: int):
        self.recipient_amount = recipient_amount
        self.supply = supply
        super().__init__(
            f"recipient allocation {recipient_amount} exceeds supply {supply}"
        )


class AddressOrderingViolation(LaunchError):
    pass


class MarketCreationFailed(LaunchError):
    pass


class MarketInitializationFailed(LaunchError):
    pass


class PositionMintFailed(LaunchError):
    pass


class SaltSearchExhausted(LaunchError):
    def __init__(self, iterations: int):
        self.iterations = iterations
        super().__init__(f"no usable salt found in {iterations} candidates")


# Locker


class LockerError(SocialDexError):
    def __init__(self, token_id: int, message: str | None = None):
        self.token_id = token_id
        super().__init__(message or f"{self.__class__.__name__}: position {token_id}")


class AlreadyInitialized(LockerError):
    pass


class NotInitialized(LockerError):
    pass


class NotPositionOwner(LockerError):
    pass


class StillLocked(LockerError):
    def __init__(self, token_id: int, unlock_time: int, now: int):
        self.unlock_time = unlock_time
        self.now = now
        super().__init__(
            token_id,
            f"position {token_id} is still locked until {unlock_time} (now {now})",
        )


class PositionNotHeld(LockerError):
    pass


class InvalidFeeCut(SocialDexError):
    def __init__(self, fee_cut: int):
        self.fee_cut = fee_cut
        super().__init__(f"fee cut {fee_cut} outside [0, 1000]")
