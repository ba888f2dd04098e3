__version__ = "0.1.0"

from socialdex.core import BaseAdapter, SocialDexError

__all__ = [
    "__version__",
    "BaseAdapter",
    "SocialDexError",
]
