"""Base interface for the signing collaborator.

Signing flow:
1. Order builder produces EIP-712 (domain, types, message)
2. Signer returns a 65-byte signature (never the key)
3. Signature travels with the order to the venue

Approval transactions are signed through the same collaborator so the
key lives in exactly one place.
"""

from abc import ABC, abstractmethod


class TypedDataSigner(ABC):
    """Abstract signer for EIP-712 messages and EVM transactions.

    Implementations raise ``SigningFailure`` when they cannot sign. There
    are no retries: a signature either comes back or the attempt fails.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """Checksummed address of the signing key."""
        pass

    @abstractmethod
    async def sign_typed_data(self, domain: dict, types: dict, message: dict) -> str:
        """Sign EIP-712 typed data.

        Args:
            domain: EIP-712 domain values
            types: Struct definitions, without ``EIP712Domain``
            message: Values of the primary struct

        Returns:
            0x-prefixed signature hex
        """
        pass

    @abstractmethod
    async def sign_transaction(self, tx_params: dict) -> bytes:
        """Sign an EVM transaction and return the raw bytes to broadcast."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(address={self.address})"


def strip_domain_type(types: dict) -> dict:
    """Drop ``EIP712Domain`` from a types mapping; the domain is passed separately."""
    return {name: fields for name, fields in types.items() if name != "EIP712Domain"}
