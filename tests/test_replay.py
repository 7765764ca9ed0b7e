"""
Tests for ledger replay into positions and cash.
"""

from decimal import Decimal

from folio_ledger.dates import DateNormalizer
from folio_ledger.models import LedgerConfig, Position
from folio_ledger.portfolio.replay import (
    Holding,
    build_positions,
    replay_ledger,
    replay_positions,
    sort_trades,
)


def _by_asset(positions: list[Position]) -> dict[str, Position]:
    return {p.asset: p for p in positions}


class TestSortTrades:
    """Tests for chronological sorting."""

    def test_sorts_by_normalized_date(self, scenario_trades, normalizer: DateNormalizer):
        ordered = sort_trades(scenario_trades, normalizer)
        assert [t.date for t in ordered] == ["Jun 20", "Jul 1"]

    def test_sort_is_stable_for_same_date(self, make_trade, normalizer: DateNormalizer):
        trades = [
            make_trade("Jun 20", "BUY", "BTC", "1", "10"),
            make_trade("Jun 19", "BUY", "SOL", "1", "10"),
            make_trade("Jun 20", "SELL", "BTC", "1", "11"),
            make_trade("Jun 20", "BUY", "ETH", "1", "12"),
        ]
        ordered = sort_trades(trades, normalizer)
        assert [(t.asset, t.action.value) for t in ordered] == [
            ("SOL", "BUY"),
            ("BTC", "BUY"),
            ("BTC", "SELL"),
            ("ETH", "BUY"),
        ]


class TestReplayLedger:
    """Tests for replay_ledger."""

    def test_scenario_positions_and_cash(self, scenario_trades, sample_config, normalizer):
        """Buy 0.1 BTC, sell half: 0.05 BTC left at the original cost basis."""
        state = replay_ledger(scenario_trades, sample_config, normalizer)

        assert state.cash == Decimal("6000")
        assert state.holdings["BTC"].amount == Decimal("0.05")
        assert state.holdings["BTC"].cost_basis == Decimal("100000")

        positions = _by_asset(build_positions(state, sample_config))
        assert positions["BTC"].amount == Decimal("0.05")
        assert positions["BTC"].cost_basis == Decimal("100000")
        assert positions["USDC"].amount == Decimal("6000")
        assert positions["USDC"].cost_basis == Decimal("1")

    def test_partial_sell_is_proportional(self, make_trade, sample_config, normalizer):
        """Selling half of 10 units costing 1000 leaves 5 units costing 500."""
        trades = [
            make_trade("Jun 1", "BUY", "SOL", "10", "100"),
            make_trade("Jun 2", "SELL", "SOL", "5", "120"),
        ]
        state = replay_ledger(trades, sample_config, normalizer)

        assert state.holdings["SOL"].amount == Decimal("5")
        assert state.holdings["SOL"].total_cost == Decimal("500")
        assert state.holdings["SOL"].cost_basis == Decimal("100")

    def test_full_exit_resets_holding(self, make_trade, sample_config, normalizer):
        """Selling 99% or more zeroes amount and cost regardless of residue."""
        trades = [
            make_trade("Jun 1", "BUY", "ETH", "1", "2000"),
            make_trade("Jun 2", "SELL", "ETH", "0.995", "2100"),
        ]
        state = replay_ledger(trades, sample_config, normalizer)

        assert state.holdings["ETH"].amount == Decimal("0")
        assert state.holdings["ETH"].total_cost == Decimal("0")
        assert state.cash == Decimal("10000") - Decimal("2000") + Decimal("0.995") * Decimal("2100")
        assert "ETH" not in _by_asset(build_positions(state, sample_config))

    def test_full_exit_threshold_is_configurable(self, make_trade, sample_config, normalizer):
        sample_config.full_exit_threshold = Decimal("0.9")
        trades = [
            make_trade("Jun 1", "BUY", "ETH", "1", "2000"),
            make_trade("Jun 2", "SELL", "ETH", "0.95", "2100"),
        ]
        state = replay_ledger(trades, sample_config, normalizer)
        assert state.holdings["ETH"].amount == Decimal("0")

    def test_just_below_threshold_keeps_remainder(self, make_trade, sample_config, normalizer):
        trades = [
            make_trade("Jun 1", "BUY", "ETH", "1", "2000"),
            make_trade("Jun 2", "SELL", "ETH", "0.98", "2100"),
        ]
        positions = _by_asset(replay_positions(trades, sample_config, normalizer))
        assert positions["ETH"].amount == Decimal("0.02")
        assert positions["ETH"].cost_basis == Decimal("2000")

    def test_buy_then_sell_restores_cash_exactly(self, make_trade, sample_config, normalizer):
        """Replaying BUY then SELL of the same quantity/price is cash neutral."""
        trades = [
            make_trade("Jun 1", "BUY", "BTC", "0.0333", "$101,234.57"),
            make_trade("Jun 2", "SELL", "BTC", "0.0333", "$101,234.57"),
        ]
        state = replay_ledger(trades, sample_config, normalizer)

        assert state.cash == sample_config.starting_capital
        assert state.holdings["BTC"] == Holding()

    def test_cash_plus_cost_is_conserved_for_buys(self, mixed_trades, sample_config, normalizer):
        """Buys move value from cash into cost basis without loss."""
        buys = [t for t in mixed_trades if t.action.value == "BUY"]
        state = replay_ledger(buys, sample_config, normalizer)

        total_cost = sum(h.total_cost for h in state.holdings.values())
        assert state.cash + total_cost == sample_config.starting_capital

    def test_oversell_never_goes_negative(self, make_trade, sample_config, normalizer):
        trades = [
            make_trade("Jun 1", "BUY", "SOL", "1", "100"),
            make_trade("Jun 2", "SELL", "SOL", "3", "100"),
        ]
        state = replay_ledger(trades, sample_config, normalizer)

        assert state.holdings["SOL"].amount == Decimal("0")
        assert state.cash == Decimal("10200")

    def test_sell_without_buy_is_tolerated(self, make_trade, sample_config, normalizer):
        trades = [make_trade("Jun 1", "SELL", "ETH", "1", "2000")]
        state = replay_ledger(trades, sample_config, normalizer)

        assert state.holdings["ETH"].amount == Decimal("0")
        assert state.cash == Decimal("12000")
        assert [p.asset for p in build_positions(state, sample_config)] == ["USDC"]

    def test_malformed_fields_parse_to_zero(self, make_trade, sample_config, normalizer):
        trades = [make_trade("Jun 1", "BUY", "SOL", "n/a", "$150")]
        state = replay_ledger(trades, sample_config, normalizer)

        assert state.holdings["SOL"].amount == Decimal("0")
        assert state.cash == sample_config.starting_capital

    def test_negative_amount_is_clamped(self, make_trade, sample_config, normalizer):
        trades = [
            make_trade("Jun 1", "BUY", "SOL", "10", "100"),
            make_trade("Jun 2", "SELL", "SOL", "-1", "120"),
        ]
        state = replay_ledger(trades, sample_config, normalizer)

        assert trades[1].amount == Decimal("0")
        assert state.holdings["SOL"].amount == Decimal("10")
        assert state.holdings["SOL"].total_cost == Decimal("1000")
        assert state.cash == Decimal("9000")

    def test_empty_ledger(self, sample_config, normalizer):
        state = replay_ledger([], sample_config, normalizer)
        assert state.holdings == {}
        assert build_positions(state, sample_config) == [
            Position(asset="USDC", amount=Decimal("10000"), cost_basis=Decimal("1"))
        ]

    def test_replay_is_not_shared_between_calls(self, scenario_trades, sample_config, normalizer):
        first = replay_ledger(scenario_trades, sample_config, normalizer)
        second = replay_ledger(scenario_trades, sample_config, normalizer)
        assert first == second
        assert first.holdings["BTC"] is not second.holdings["BTC"]


class TestBuildPositions:
    """Tests for the dust filter and synthetic cash position."""

    def test_dust_is_dropped(self, make_trade, sample_config, normalizer):
        trades = [
            make_trade("Jun 1", "BUY", "BTC", "0.0001", "100000"),
            make_trade("Jun 1", "BUY", "ETH", "0.00011", "2000"),
        ]
        positions = _by_asset(replay_positions(trades, sample_config, normalizer))

        assert "BTC" not in positions
        assert positions["ETH"].amount == Decimal("0.00011")

    def test_positions_are_never_negative(self, mixed_trades, sample_config, normalizer):
        for position in replay_positions(mixed_trades, sample_config, normalizer):
            assert position.amount > sample_config.dust_threshold

    def test_cash_below_threshold_not_reported(self, make_trade, sample_config, normalizer):
        trades = [make_trade("Jun 1", "BUY", "BTC", "0.1", "99995")]
        positions = _by_asset(replay_positions(trades, sample_config, normalizer))

        assert "USDC" not in positions

    def test_cash_merges_into_traded_cash_asset(self, make_trade, normalizer):
        config = LedgerConfig(
            portfolio_id="TEST002",
            starting_capital=Decimal("1000"),
            reference_year=2025,
        )
        trades = [make_trade("Jun 1", "BUY", "USDC", "500", "1")]
        positions = replay_positions(trades, config, normalizer)

        assert positions == [
            Position(asset="USDC", amount=Decimal("1000"), cost_basis=Decimal("1"))
        ]

    def test_positions_keep_first_seen_order(self, mixed_trades, sample_config, normalizer):
        positions = replay_positions(mixed_trades, sample_config, normalizer)
        assert [p.asset for p in positions] == ["BTC", "SOL", "USDC"]
