"""On-chain collaborators: ERC-20 reads and approvals, and the allowance guard."""

from swapintent.chain.allowance import MAX_UINT256, AllowanceGuard
from swapintent.chain.erc20 import ERC20_ABI, Erc20Client, TokenClient, TokenInfo

__all__ = [
    "AllowanceGuard",
    "MAX_UINT256",
    "ERC20_ABI",
    "Erc20Client",
    "TokenClient",
    "TokenInfo",
]
