"""Tests for the core data types."""

import pytest

from swapintent.models import (
    NATIVE_ASSET_ADDRESS,
    MonitorOutcome,
    OrderStatus,
    Preset,
    is_native_asset,
)

from conftest import make_intent, make_preset, make_quote


class TestSwapIntent:
    def test_cross_chain(self):
        assert make_intent(dst_chain_id=8453).is_cross_chain
        assert not make_intent().is_cross_chain

    def test_native_sentinel_case_insensitive(self):
        assert is_native_asset(NATIVE_ASSET_ADDRESS.lower())
        assert make_intent(src_token=NATIVE_ASSET_ADDRESS).is_native_source

    def test_frozen(self):
        intent = make_intent()
        with pytest.raises(AttributeError):
            intent.amount = 5


class TestPresetChoice:
    """Tests for Quote.choose_preset."""

    def test_named_preset(self):
        assert make_quote().choose_preset("slow").name == "slow"

    def test_recommended_preset(self):
        assert make_quote(recommended="slow").choose_preset().name == "slow"

    def test_fast_fallback(self):
        quote = make_quote(recommended=None)
        assert quote.choose_preset().name == "fast"

    def test_missing_preset(self):
        quote = make_quote()
        quote.presets = {"medium": make_preset("medium")}

        with pytest.raises(ValueError):
            quote.choose_preset()

    def test_from_api_defaults(self):
        preset = Preset.from_api("fast", {"auctionDuration": "180"})

        assert preset.auction_duration == 180
        assert preset.secrets_count == 1
        assert preset.points == []


class TestStatuses:
    """Tests for the status vocabulary."""

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.FILLED, OrderStatus.EXECUTED, OrderStatus.EXPIRED, OrderStatus.CANCELLED, OrderStatus.REFUNDED],
    )
    def test_terminal(self, status):
        assert status.is_terminal

    @pytest.mark.parametrize(
        "status",
        [
            OrderStatus.SUBMITTED,
            OrderStatus.PENDING,
            OrderStatus.PARTIALLY_FILLED,
            OrderStatus.REFUNDING,
            OrderStatus.INVALID_SIGNATURE,
        ],
    )
    def test_not_terminal(self, status):
        assert not status.is_terminal

    def test_outcome_for_non_terminal(self):
        with pytest.raises(ValueError):
            MonitorOutcome.for_status(OrderStatus.PENDING)
