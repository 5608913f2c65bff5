"""
Sync Engine Module

Content hashing, skip comparison, and destination verification used by
the core engine.

Author: nsync Project
License: MIT
"""

from .hasher import Hasher, digests_match
from .comparator import Comparator
from .verifier import check_destination, verify_destination, verify_multiple_destinations

__all__ = [
    'Hasher', 'digests_match', 'Comparator',
    'check_destination', 'verify_destination', 'verify_multiple_destinations',
]
