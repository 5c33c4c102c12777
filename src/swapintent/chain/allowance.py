"""Allowance guard.

Makes sure the router may move the swap amount before an order is signed.
Read-then-approve is not atomic; a concurrent approval by someone else
only wastes one transaction, because approvals are idempotent once they
cover the required amount.
"""

import logging

from swapintent.chain.erc20 import TokenClient
from swapintent.models import AllowanceResult, is_native_asset

logger = logging.getLogger(__name__)

MAX_UINT256 = 2**256 - 1


class AllowanceGuard:
    """Approves the maximum amount when the current allowance is short."""

    def __init__(self, token_client: TokenClient, approval_amount: int = MAX_UINT256):
        self.token_client = token_client
        self.approval_amount = approval_amount

    async def ensure_allowance(
        self,
        token: str,
        owner: str,
        spender: str,
        required_amount: int,
    ) -> AllowanceResult:
        """Check allowance and approve if it is below ``required_amount``.

        Args:
            token: ERC-20 address (native sentinel is skipped)
            owner: Wallet that holds the tokens
            spender: Contract that will transfer them
            required_amount: Amount in smallest units

        Returns:
            AllowanceResult; ``approved`` is True only if a transaction was sent

        Raises:
            ChainTransactionFailure: If the approval fails; never retried here
        """
        if is_native_asset(token):
            logger.debug("Native asset source, no allowance needed")
            return AllowanceResult(approved=False, skipped=True)

        logger.info(f"Checking allowance for {token} to spender {spender}")
        current = await self.token_client.allowance(token, owner, spender)
        logger.info(f"Current allowance: {current}")

        if current >= required_amount:
            logger.info("Token allowance is sufficient")
            return AllowanceResult(approved=False, current_allowance=current)

        logger.info(f"Setting approval for {token}")
        tx_hash = await self.token_client.approve(token, spender, self.approval_amount)
        return AllowanceResult(
            approved=True,
            current_allowance=self.approval_amount,
            tx_hash=tx_hash,
        )
