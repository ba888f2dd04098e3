from socialdex.core.adapters.BaseAdapter import BaseAdapter
from socialdex.core.errors import SocialDexError

__all__ = [
    "BaseAdapter",
    "SocialDexError",
]
