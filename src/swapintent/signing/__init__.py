"""Signing services.

- TypedDataSigner: interface the swap flow signs through
- LocalSigner: in-memory private key (eth-account)
"""

from swapintent.signing.base import TypedDataSigner, strip_domain_type
from swapintent.signing.local import LocalSigner

__all__ = [
    "TypedDataSigner",
    "LocalSigner",
    "strip_domain_type",
]
