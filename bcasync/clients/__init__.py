"""HTTP clients for the bank portal and the target ledgers."""

from .bca import KlikBCAClient
from .firefly import FireflyClient
from .public_ip import get_public_ip
from .ynab import YNABClient

__all__ = [
    "FireflyClient",
    "KlikBCAClient",
    "YNABClient",
    "get_public_ip",
]
