"""Local signing backend.

Uses an in-memory private key loaded from ``PRIVATE_KEY``. Suitable for
scripts and small hot wallets.
"""

import logging

from eth_account import Account
from eth_account.signers.local import LocalAccount

from swapintent.errors import SigningFailure
from swapintent.signing.base import TypedDataSigner, strip_domain_type

logger = logging.getLogger(__name__)


class LocalSigner(TypedDataSigner):
    """Signer backed by an eth-account ``LocalAccount``."""

    def __init__(self, private_key: str):
        try:
            self._account: LocalAccount = Account.from_key(private_key)
        except (ValueError, TypeError) as e:
            # Never echo the key itself
            raise SigningFailure(f"Invalid private key: {type(e).__name__}") from None

    @property
    def address(self) -> str:
        return self._account.address

    async def sign_typed_data(self, domain: dict, types: dict, message: dict) -> str:
        """Sign EIP-712 typed data with the local key."""
        try:
            signed = self._account.sign_typed_data(
                domain_data=domain,
                message_types=strip_domain_type(types),
                message_data=message,
            )
        except Exception as e:
            logger.error(f"Local typed-data signing failed: {e}")
            raise SigningFailure(f"Typed-data signing failed: {e}") from e

        return "0x" + bytes(signed.signature).hex()

    async def sign_transaction(self, tx_params: dict) -> bytes:
        """Sign a transaction with the local key."""
        try:
            signed_tx = self._account.sign_transaction(tx_params)
        except Exception as e:
            logger.error(f"Local transaction signing failed: {e}")
            raise SigningFailure(f"Transaction signing failed: {e}") from e

        # eth-account >= 0.13 exposes raw_transaction, older versions rawTransaction
        raw_tx = getattr(signed_tx, "raw_transaction", None) or signed_tx.rawTransaction
        return bytes(raw_tx)
