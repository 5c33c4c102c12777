"""Maker permits.

A maker permit lets the order carry its own token authorization, so no
approval transaction is needed before submission. Two kinds exist:

* ERC-2612: the token signs off on the router directly. Payload is
  ``token || abi.encode(owner, spender, value, deadline, v, r, s)``.
* Permit2: the token is approved once to the Permit2 contract, and each
  order carries a signed ``PermitSingle``. Payload is
  ``token || abi.encode(owner, PermitSingle, compact signature)``; the
  order must set the ``use_permit2`` maker trait.
"""

import logging

from eth_abi import encode
from eth_utils import to_canonical_address, to_checksum_address

from swapintent.chain.erc20 import PERMIT2_ADDRESS, TokenClient
from swapintent.errors import ContractCallReverted, SigningFailure
from swapintent.signing.base import TypedDataSigner

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

PERMIT_TYPES = {
    "Permit": [
        {"name": "owner", "type": "address"},
        {"name": "spender", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
    ]
}

PERMIT2_TYPES = {
    "PermitSingle": [
        {"name": "details", "type": "PermitDetails"},
        {"name": "spender", "type": "address"},
        {"name": "sigDeadline", "type": "uint256"},
    ],
    "PermitDetails": [
        {"name": "token", "type": "address"},
        {"name": "amount", "type": "uint160"},
        {"name": "expiration", "type": "uint48"},
        {"name": "nonce", "type": "uint48"},
    ],
}

PERMIT2_PAYLOAD_TYPES = ["address", "((address,uint160,uint48,uint48),address,uint256)", "bytes"]

MAX_UINT160 = 2**160 - 1
MAX_UINT48 = 2**48 - 1


async def supports_permit(token_client: TokenClient, token: str) -> bool:
    """Check for DOMAIN_SEPARATOR() and nonces() on the token."""
    try:
        await token_client.call(token, "DOMAIN_SEPARATOR")
        await token_client.call(token, "nonces", ZERO_ADDRESS)
    except ContractCallReverted as e:
        logger.info(f"Token {token} does not support ERC-2612 Permit: {e}")
        return False
    return True


def split_signature(signature: str) -> tuple[int, bytes, bytes]:
    """Split a 65-byte ``r || s || v`` signature into (v, r, s)."""
    raw = bytes.fromhex(signature[2:] if signature.startswith("0x") else signature)
    if len(raw) != 65:
        raise SigningFailure(f"Expected a 65-byte signature, got {len(raw)} bytes")
    r, s, v = raw[:32], raw[32:64], raw[64]
    if v < 27:
        v += 27
    return v, r, s


def compact_signature(signature: str) -> bytes:
    """EIP-2098 form: ``r || vs`` where the top bit of ``vs`` is the y parity."""
    v, r, s = split_signature(signature)
    vs = int.from_bytes(s, "big") | ((v - 27) << 255)
    return r + vs.to_bytes(32, "big")


async def build_erc2612_permit(
    token_client: TokenClient,
    signer: TypedDataSigner,
    token: str,
    spender: str,
    value: int,
    deadline: int,
) -> bytes:
    """Sign an ERC-2612 permit and pack it as a maker permit.

    Args:
        token_client: Chain reads for name, version and nonce
        signer: Token owner
        token: Permit-capable ERC-20
        spender: Contract being authorized (the router)
        value: Amount in smallest units
        deadline: Unix timestamp after which the permit is void

    Returns:
        Bytes ready for ``SwapIntent.permit``
    """
    owner = signer.address
    name = await token_client.call(token, "name")
    nonce = await token_client.call(token, "nonces", to_checksum_address(owner))
    try:
        version = await token_client.call(token, "version")
    except ContractCallReverted:
        version = "1"

    domain = {
        "name": name,
        "version": version,
        "chainId": await token_client.chain_id(),
        "verifyingContract": to_checksum_address(token),
    }
    message = {
        "owner": to_checksum_address(owner),
        "spender": to_checksum_address(spender),
        "value": value,
        "nonce": int(nonce),
        "deadline": deadline,
    }

    logger.info(f"Signing permit for {token} (nonce {nonce}, deadline {deadline})")
    signature = await signer.sign_typed_data(domain, PERMIT_TYPES, message)
    v, r, s = split_signature(signature)

    args = encode(
        ["address", "address", "uint256", "uint256", "uint8", "bytes32", "bytes32"],
        [message["owner"], message["spender"], value, deadline, v, r, s],
    )
    return to_canonical_address(token) + args


def permit2_domain(chain_id: int) -> dict:
    return {
        "name": "Permit2",
        "chainId": chain_id,
        "verifyingContract": PERMIT2_ADDRESS,
    }


async def build_permit2_permit(
    token_client: TokenClient,
    signer: TypedDataSigner,
    token: str,
    spender: str,
    amount: int,
    expiration: int,
    sig_deadline: int,
) -> bytes:
    """Sign a Permit2 ``PermitSingle`` and pack it as a maker permit.

    The nonce comes from the owner's current Permit2 allowance for
    (token, spender). The token itself must already be approved to the
    Permit2 contract.

    Args:
        token_client: Chain reads for the Permit2 allowance and chain id
        signer: Token owner
        token: Any ERC-20
        spender: Contract being authorized (the router)
        amount: Amount in smallest units, at most 2**160 - 1
        expiration: When the Permit2 allowance lapses
        sig_deadline: When the signature itself stops being valid

    Returns:
        Bytes ready for ``SwapIntent.permit`` (with ``use_permit2=True``)
    """
    if not 0 < amount <= MAX_UINT160:
        raise ValueError(f"Permit2 amount out of range: {amount}")
    if not 0 <= expiration <= MAX_UINT48:
        raise ValueError(f"Permit2 expiration out of range: {expiration}")

    owner = to_checksum_address(signer.address)
    current = await token_client.permit2_allowance(token, owner, spender)

    message = {
        "details": {
            "token": to_checksum_address(token),
            "amount": amount,
            "expiration": expiration,
            "nonce": current.nonce,
        },
        "spender": to_checksum_address(spender),
        "sigDeadline": sig_deadline,
    }

    logger.info(f"Signing Permit2 permit for {token} (nonce {current.nonce}, deadline {sig_deadline})")
    domain = permit2_domain(await token_client.chain_id())
    signature = await signer.sign_typed_data(domain, PERMIT2_TYPES, message)

    details = message["details"]
    args = encode(
        PERMIT2_PAYLOAD_TYPES,
        [
            owner,
            (
                (details["token"], amount, expiration, current.nonce),
                message["spender"],
                sig_deadline,
            ),
            compact_signature(signature),
        ],
    )
    return to_canonical_address(token) + args
