"""Tests for ERC-2612 and Permit2 maker permits."""

import pytest
from eth_abi import decode
from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import to_canonical_address

from swapintent.chain.erc20 import Permit2Allowance
from swapintent.errors import ChainReadFailure, ContractCallReverted, SigningFailure
from swapintent.orders.builder import OrderBuilder
from swapintent.orders.traits import MakerTraits
from swapintent.permit import (
    PERMIT2_PAYLOAD_TYPES,
    PERMIT2_TYPES,
    PERMIT_TYPES,
    build_erc2612_permit,
    build_permit2_permit,
    compact_signature,
    permit2_domain,
    split_signature,
    supports_permit,
)
from swapintent.signing.local import LocalSigner

from conftest import ROUTER, TEST_ADDRESS, TEST_PRIVATE_KEY, USDC, FakeTokenClient, make_intent, make_quote


def permit_token(**overrides) -> FakeTokenClient:
    functions = {
        "name": "USD Coin",
        "version": "2",
        "nonces": lambda owner: 4,
        "DOMAIN_SEPARATOR": b"\x00" * 32,
    }
    functions.update(overrides)
    return FakeTokenClient(functions=functions)


class TestSupportsPermit:
    """Tests for permit detection."""

    @pytest.mark.asyncio
    async def test_permit_token(self):
        assert await supports_permit(permit_token(), USDC) is True

    @pytest.mark.asyncio
    async def test_plain_token(self):
        token = permit_token(DOMAIN_SEPARATOR=ContractCallReverted("execution reverted"))
        assert await supports_permit(token, USDC) is False

    @pytest.mark.asyncio
    async def test_rpc_failure_is_not_a_plain_token(self):
        """Only a reverted call means no permit; an unreachable node propagates."""
        token = permit_token(DOMAIN_SEPARATOR=ChainReadFailure("DOMAIN_SEPARATOR() failed: connection refused"))

        with pytest.raises(ChainReadFailure):
            await supports_permit(token, USDC)


class TestBuildPermit:
    """Tests for build_erc2612_permit."""

    @pytest.mark.asyncio
    async def test_payload_layout_and_signature(self):
        signer = LocalSigner(TEST_PRIVATE_KEY)

        payload = await build_erc2612_permit(permit_token(), signer, USDC, ROUTER, 1_000_000, 1_800_000_000)

        assert payload[:20] == to_canonical_address(USDC)
        owner, spender, value, deadline, v, r, s = decode(
            ["address", "address", "uint256", "uint256", "uint8", "bytes32", "bytes32"],
            payload[20:],
        )
        assert owner.lower() == TEST_ADDRESS.lower()
        assert spender.lower() == ROUTER.lower()
        assert (value, deadline) == (1_000_000, 1_800_000_000)
        assert v in (27, 28)

        signable = encode_typed_data(
            domain_data={"name": "USD Coin", "version": "2", "chainId": 42161, "verifyingContract": USDC},
            message_types=PERMIT_TYPES,
            message_data={
                "owner": TEST_ADDRESS,
                "spender": ROUTER,
                "value": 1_000_000,
                "nonce": 4,
                "deadline": 1_800_000_000,
            },
        )
        assert Account.recover_message(signable, vrs=(v, r, s)) == TEST_ADDRESS

    @pytest.mark.asyncio
    async def test_version_defaults_to_one(self):
        signer = LocalSigner(TEST_PRIVATE_KEY)
        token = permit_token(version=ContractCallReverted("no version()"))

        payload = await build_erc2612_permit(token, signer, USDC, ROUTER, 1, 1_800_000_000)
        _, _, _, _, v, r, s = decode(
            ["address", "address", "uint256", "uint256", "uint8", "bytes32", "bytes32"], payload[20:]
        )

        signable = encode_typed_data(
            domain_data={"name": "USD Coin", "version": "1", "chainId": 42161, "verifyingContract": USDC},
            message_types=PERMIT_TYPES,
            message_data={"owner": TEST_ADDRESS, "spender": ROUTER, "value": 1, "nonce": 4, "deadline": 1_800_000_000},
        )
        assert Account.recover_message(signable, vrs=(v, r, s)) == TEST_ADDRESS


class TestSplitSignature:
    """Tests for signature splitting."""

    def test_normalizes_v(self):
        v, r, s = split_signature("0x" + "aa" * 32 + "bb" * 32 + "01")

        assert v == 28
        assert r == b"\xaa" * 32
        assert s == b"\xbb" * 32

    def test_wrong_length(self):
        with pytest.raises(SigningFailure):
            split_signature("0x1234")

    def test_compact_signature_packs_parity_into_s(self):
        r, s = "aa" * 32, "11" * 32

        assert compact_signature("0x" + r + s + "1b") == bytes.fromhex(r + s)
        assert compact_signature("0x" + r + s + "1c") == bytes.fromhex(r + "91" + "11" * 31)


def permit2_token(nonce: int = 3) -> FakeTokenClient:
    token = FakeTokenClient()
    token.permit2 = Permit2Allowance(amount=0, expiration=0, nonce=nonce)
    return token


def recover_permit2_signer(message: dict, compact: bytes) -> str:
    r = compact[:32]
    vs = int.from_bytes(compact[32:], "big")
    v, s = 27 + (vs >> 255), vs & ((1 << 255) - 1)
    signable = encode_typed_data(
        domain_data=permit2_domain(42161),
        message_types=PERMIT2_TYPES,
        message_data=message,
    )
    return Account.recover_message(signable, vrs=(v, r, s))


class TestBuildPermit2:
    """Tests for build_permit2_permit."""

    @pytest.mark.asyncio
    async def test_payload_layout_and_signature(self):
        signer = LocalSigner(TEST_PRIVATE_KEY)

        payload = await build_permit2_permit(
            permit2_token(nonce=3), signer, USDC, ROUTER, 153524, expiration=1_800_000_000, sig_deadline=1_800_000_100
        )

        assert payload[:20] == to_canonical_address(USDC)
        owner, permit_single, compact = decode(PERMIT2_PAYLOAD_TYPES, payload[20:])
        (token, amount, expiration, nonce), spender, sig_deadline = permit_single
        assert owner.lower() == TEST_ADDRESS.lower()
        assert token.lower() == USDC.lower()
        assert (amount, expiration, nonce) == (153524, 1_800_000_000, 3)
        assert spender.lower() == ROUTER.lower()
        assert sig_deadline == 1_800_000_100
        assert len(compact) == 64

        message = {
            "details": {"token": USDC, "amount": 153524, "expiration": 1_800_000_000, "nonce": 3},
            "spender": ROUTER,
            "sigDeadline": 1_800_000_100,
        }
        assert recover_permit2_signer(message, compact) == TEST_ADDRESS

    @pytest.mark.asyncio
    async def test_nonce_comes_from_permit2_allowance(self):
        signer = LocalSigner(TEST_PRIVATE_KEY)

        payload = await build_permit2_permit(
            permit2_token(nonce=11), signer, USDC, ROUTER, 1, expiration=1_800_000_000, sig_deadline=1_800_000_000
        )

        _, ((_, _, _, nonce), _, _), _ = decode(PERMIT2_PAYLOAD_TYPES, payload[20:])
        assert nonce == 11

    @pytest.mark.asyncio
    async def test_amount_must_fit_uint160(self):
        signer = LocalSigner(TEST_PRIVATE_KEY)

        with pytest.raises(ValueError):
            await build_permit2_permit(
                permit2_token(), signer, USDC, ROUTER, 2**160, expiration=1, sig_deadline=1
            )

    @pytest.mark.asyncio
    async def test_order_sets_permit2_trait(self):
        """A Permit2 intent carries the payload in the extension and sets the trait."""
        signer = LocalSigner(TEST_PRIVATE_KEY)
        permit = await build_permit2_permit(
            permit2_token(), signer, USDC, ROUTER, 1_000_000, expiration=1_800_000_000, sig_deadline=1_800_000_000
        )
        builder = OrderBuilder(ROUTER, now=lambda: 1_700_000_000)

        order = builder.build_fusion_order(make_intent(permit=permit, use_permit2=True), make_quote())
        plain = builder.build_fusion_order(make_intent(permit=permit), make_quote())

        assert MakerTraits.decode(order.message["makerTraits"]).use_permit2 is True
        assert MakerTraits.decode(plain.message["makerTraits"]).use_permit2 is False
        assert permit.hex() in order.extension
