from socialdex.launchpad.deployer import SocialDexDeployer
from socialdex.launchpad.local import LocalChain
from socialdex.launchpad.locker import PositionLocker
from socialdex.launchpad.models import LaunchParams, LaunchResult, LockRecord

__all__ = [
    "LaunchParams",
    "LaunchResult",
    "LocalChain",
    "LockRecord",
    "PositionLocker",
    "SocialDexDeployer",
]
