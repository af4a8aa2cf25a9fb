"""
Identifier helpers for pools and accounts.

Includes:
- normalize_token_id: Checksum form for hex addresses, opaque ids untouched
- random_address: Fresh random 20-byte address (demo harness, tests)
"""

import logging

from eth_account import Account
from web3 import Web3

logger = logging.getLogger(__name__)


def normalize_token_id(token_id: str) -> str:
    """
    Normalize a token identifier.

    Pool treats token ids as opaque. The only normalization applied is
    checksumming strings that are valid hex addresses, so that
    "0xabc..." and "0xABC..." refer to the same token.
    """
    if not isinstance(token_id, str) or not token_id:
        raise ValueError(f"Token id must be a non-empty string, got {token_id!r}")

    if Web3.is_address(token_id):
        return Web3.to_checksum_address(token_id)
    return token_id


def random_address() -> str:
    """Random checksummed address from a throwaway key."""
    address = Account.create().address
    logger.debug(f"Generated address {address}")
    return address
