"""Filesystem operators used by the protection engine."""

from ccguard.operators.base import PathActionResult
from ccguard.operators.cache import CacheCleaner
from ccguard.operators.deleter import VersionDeleter
from ccguard.operators.locks import BlockerPlanter, ConfigLocker

__all__ = [
    "BlockerPlanter",
    "CacheCleaner",
    "ConfigLocker",
    "PathActionResult",
    "VersionDeleter",
]
