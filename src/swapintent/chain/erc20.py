"""ERC-20 access over JSON-RPC.

Reads allowance, balance and metadata (and Permit2 allowances), and
sends approval transactions signed through the ``TypedDataSigner``
collaborator.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from web3 import AsyncWeb3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from swapintent.errors import ChainReadFailure, ChainTransactionFailure, ContractCallReverted
from swapintent.models import is_native_asset
from swapintent.signing.base import TypedDataSigner

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18

# Canonical Permit2 deployment, same address on every chain
PERMIT2_ADDRESS = "0x000000000022D473030F116dDEE9F6B43aC78BA3"

ERC20_ABI = [
    {
        "inputs": [{"name": "owner", "type": "address"}, {"name": "spender", "type": "address"}],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "spender", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    # EIP-2612
    {
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "version",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "nonces",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "DOMAIN_SEPARATOR",
        "outputs": [{"name": "", "type": "bytes32"}],
        "stateMutability": "view",
        "type": "function",
    },
]

PERMIT2_ABI = [
    {
        "inputs": [
            {"name": "user", "type": "address"},
            {"name": "token", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [
            {"name": "amount", "type": "uint160"},
            {"name": "expiration", "type": "uint48"},
            {"name": "nonce", "type": "uint48"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]


@dataclass
class TokenInfo:
    """Token metadata plus an owner's balance."""

    address: str
    symbol: str
    decimals: int
    balance: int


@dataclass
class Permit2Allowance:
    """An owner's Permit2 allowance for one (token, spender) pair."""

    amount: int
    expiration: int
    nonce: int


def _read_error(what: str, error: Exception) -> ChainReadFailure:
    if isinstance(error, (ContractLogicError, BadFunctionCallOutput)):
        return ContractCallReverted(f"{what} reverted: {error}")
    return ChainReadFailure(f"{what} failed: {error}")


class TokenClient(ABC):
    """The chain operations the swap flow needs.

    Read methods raise ``ChainReadFailure`` (``ContractCallReverted`` when
    the contract rejects the call).
    """

    @abstractmethod
    async def allowance(self, token: str, owner: str, spender: str) -> int:
        """Currently authorized amount for (owner, spender) on ``token``."""
        pass

    @abstractmethod
    async def approve(self, token: str, spender: str, amount: int) -> str:
        """Send approve(spender, amount), wait for one confirmation, return tx hash.

        Raises:
            ChainTransactionFailure: If the transaction fails or reverts
        """
        pass

    @abstractmethod
    async def get_token_info(self, token: str, owner: str) -> TokenInfo:
        pass

    @abstractmethod
    async def call(self, token: str, function: str, *args: Any) -> Any:
        """Call a read-only ERC-20 function."""
        pass

    @abstractmethod
    async def permit2_allowance(self, token: str, owner: str, spender: str) -> Permit2Allowance:
        """Read ``Permit2.allowance(owner, token, spender)``."""
        pass

    @abstractmethod
    async def chain_id(self) -> int:
        pass


class Erc20Client(TokenClient):
    """TokenClient over an ``AsyncWeb3`` HTTP provider."""

    def __init__(
        self,
        rpc_url: str,
        signer: TypedDataSigner,
        gas_limit: int = 100000,
        gas_price_buffer_percent: int = 0,
        confirmation_timeout: float = 120.0,
        request_timeout: float = 30.0,
        web3: Optional[AsyncWeb3] = None,
    ):
        self.rpc_url = rpc_url
        self.signer = signer
        self.gas_limit = gas_limit
        self.gas_price_buffer_percent = gas_price_buffer_percent
        self.confirmation_timeout = confirmation_timeout
        self.request_timeout = request_timeout
        self._web3 = web3

    @property
    def web3(self) -> AsyncWeb3:
        """Lazy load web3 instance."""
        if self._web3 is None:
            self._web3 = AsyncWeb3(
                AsyncWeb3.AsyncHTTPProvider(
                    self.rpc_url,
                    request_kwargs={"timeout": self.request_timeout},
                )
            )
        return self._web3

    def _contract(self, address: str, abi: list = ERC20_ABI):
        return self.web3.eth.contract(
            address=AsyncWeb3.to_checksum_address(address),
            abi=abi,
        )

    async def allowance(self, token: str, owner: str, spender: str) -> int:
        try:
            contract = self._contract(token)
            return await contract.functions.allowance(
                AsyncWeb3.to_checksum_address(owner),
                AsyncWeb3.to_checksum_address(spender),
            ).call()
        except Exception as e:
            raise _read_error(f"allowance() on {token}", e) from e

    async def call(self, token: str, function: str, *args: Any) -> Any:
        try:
            contract = self._contract(token)
            return await getattr(contract.functions, function)(*args).call()
        except Exception as e:
            raise _read_error(f"{function}() on {token}", e) from e

    async def permit2_allowance(self, token: str, owner: str, spender: str) -> Permit2Allowance:
        try:
            permit2 = self._contract(PERMIT2_ADDRESS, PERMIT2_ABI)
            amount, expiration, nonce = await permit2.functions.allowance(
                AsyncWeb3.to_checksum_address(owner),
                AsyncWeb3.to_checksum_address(token),
                AsyncWeb3.to_checksum_address(spender),
            ).call()
        except Exception as e:
            raise _read_error(f"Permit2 allowance() for {token}", e) from e
        return Permit2Allowance(amount=int(amount), expiration=int(expiration), nonce=int(nonce))

    async def chain_id(self) -> int:
        try:
            return await self.web3.eth.chain_id
        except Exception as e:
            raise ChainReadFailure(f"chain id read failed: {e}") from e

    async def get_token_info(self, token: str, owner: str) -> TokenInfo:
        """Get symbol, decimals and the owner's balance.

        The native-asset sentinel has no contract; its balance is read
        from the account itself.
        """
        owner_checksum = AsyncWeb3.to_checksum_address(owner)

        try:
            if is_native_asset(token):
                balance = await self.web3.eth.get_balance(owner_checksum)
                return TokenInfo(address=token, symbol="NATIVE", decimals=NATIVE_DECIMALS, balance=balance)

            contract = self._contract(token)
            symbol = await contract.functions.symbol().call()
            decimals = await contract.functions.decimals().call()
            balance = await contract.functions.balanceOf(owner_checksum).call()
        except Exception as e:
            raise _read_error(f"token info for {token}", e) from e
        return TokenInfo(address=token, symbol=symbol, decimals=int(decimals), balance=int(balance))

    async def approve(self, token: str, spender: str, amount: int) -> str:
        """Sign and send an approval, then wait for its receipt."""
        web3 = self.web3
        owner = self.signer.address
        contract = self._contract(token)

        try:
            gas_price = await web3.eth.gas_price
            gas_price = gas_price * (100 + self.gas_price_buffer_percent) // 100
            tx = await contract.functions.approve(
                AsyncWeb3.to_checksum_address(spender), amount
            ).build_transaction({
                "from": owner,
                "nonce": await web3.eth.get_transaction_count(owner, "pending"),
                "chainId": await web3.eth.chain_id,
                "gas": self.gas_limit,
                "gasPrice": gas_price,
            })
        except Exception as e:
            raise ChainTransactionFailure(f"Failed to prepare approval for {token}: {e}") from e

        raw_tx = await self.signer.sign_transaction(tx)

        try:
            tx_hash = AsyncWeb3.to_hex(await web3.eth.send_raw_transaction(raw_tx))
        except Exception as e:
            raise ChainTransactionFailure(f"Failed to broadcast approval for {token}: {e}") from e

        logger.info(f"Approval transaction sent: {tx_hash}")
        logger.info("Waiting for approval confirmation...")

        try:
            receipt = await web3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.confirmation_timeout, poll_latency=2
            )
        except Exception as e:
            raise ChainTransactionFailure(f"Approval not confirmed: {e}", tx_hash=tx_hash) from e

        if receipt["status"] != 1:
            raise ChainTransactionFailure("Approval transaction reverted", tx_hash=tx_hash)

        logger.info(f"Approval confirmed in block {receipt['blockNumber']}")
        return tx_hash
