"""Limit order construction: maker traits, extensions, typed data and signing."""

from swapintent.orders.builder import (
    ORDER_TYPES,
    OrderBuilder,
    SignedOrder,
    UnsignedOrder,
    lop_domain,
    sign_order,
    typed_data_hash,
)
from swapintent.orders.extension import AuctionDetails, Extension
from swapintent.orders.traits import MakerTraits

__all__ = [
    "AuctionDetails",
    "Extension",
    "MakerTraits",
    "ORDER_TYPES",
    "OrderBuilder",
    "SignedOrder",
    "UnsignedOrder",
    "lop_domain",
    "sign_order",
    "typed_data_hash",
]
