"""
Tests for FIFO lot matching and realized P&L statistics.
"""

from decimal import Decimal

from folio_ledger.analytics.lots import get_open_lots, match_lots
from folio_ledger.analytics.pnl import (
    calculate_win_rate,
    find_best_and_worst,
    realized_pnl_by_asset,
    summarize_round_trips,
)
from folio_ledger.models import CompletedRoundTrip
from folio_ledger.portfolio.replay import sort_trades


def _round_trip(profit: str, hold_days: int = 1, asset: str = "BTC") -> CompletedRoundTrip:
    return CompletedRoundTrip(
        asset=asset,
        buy_date="Jun 1",
        sell_date="Jun 2",
        buy_price=Decimal("100"),
        sell_price=Decimal("100") + Decimal(profit),
        amount=Decimal("1"),
        profit=Decimal(profit),
        profit_pct=Decimal(profit),
        hold_days=hold_days,
    )


class TestMatchLots:
    """Tests for match_lots."""

    def test_sell_matches_oldest_lot(self, make_trade, normalizer):
        """BUY 1@100, BUY 1@200, SELL 1@300 matches the first lot only."""
        trades = [
            make_trade("Jun 3", "SELL", "BTC", "1", "300"),
            make_trade("Jun 2", "BUY", "BTC", "1", "200"),
            make_trade("Jun 1", "BUY", "BTC", "1", "100"),
        ]
        result = match_lots(sort_trades(trades, normalizer), normalizer)

        assert len(result.round_trips) == 1
        rt = result.round_trips[0]
        assert rt.buy_price == Decimal("100")
        assert rt.buy_date == "Jun 1"
        assert rt.profit == Decimal("200")
        assert rt.profit_pct == Decimal("200")
        assert rt.hold_days == 2

        open_lots = get_open_lots(result, "BTC")
        assert [(lot.price, lot.remaining) for lot in open_lots] == [(Decimal("200"), Decimal("1"))]

    def test_scenario_round_trip(self, scenario_trades, normalizer):
        result = match_lots(sort_trades(scenario_trades, normalizer), normalizer)

        assert len(result.round_trips) == 1
        rt = result.round_trips[0]
        assert rt.amount == Decimal("0.05")
        assert rt.profit == Decimal("1000")
        assert rt.profit_pct == Decimal("20")
        assert rt.hold_days == 11

    def test_sell_spanning_lots_creates_multiple_round_trips(self, make_trade, normalizer):
        trades = [
            make_trade("Jun 1", "BUY", "ETH", "1", "100"),
            make_trade("Jun 2", "BUY", "ETH", "1", "200"),
            make_trade("Jun 5", "SELL", "ETH", "1.5", "300"),
        ]
        result = match_lots(trades, normalizer)

        assert [(rt.amount, rt.buy_price, rt.profit) for rt in result.round_trips] == [
            (Decimal("1"), Decimal("100"), Decimal("200")),
            (Decimal("0.5"), Decimal("200"), Decimal("50")),
        ]
        assert [rt.hold_days for rt in result.round_trips] == [4, 3]
        # Exhausted lots stay in the queue
        assert [lot.remaining for lot in result.open_lots["ETH"]] == [Decimal("0"), Decimal("0.5")]

    def test_assets_are_matched_independently(self, mixed_trades, normalizer):
        result = match_lots(sort_trades(mixed_trades, normalizer), normalizer)

        assert [(rt.asset, rt.amount) for rt in result.round_trips] == [
            ("ETH", Decimal("1")),
            ("SOL", Decimal("4")),
        ]
        assert result.round_trips[0].profit == Decimal("400")
        assert result.round_trips[1].profit == Decimal("-40")
        assert len(get_open_lots(result, "BTC")) == 2

    def test_oversell_excess_is_not_matched(self, make_trade, normalizer):
        trades = [
            make_trade("Jun 1", "BUY", "SOL", "1", "100"),
            make_trade("Jun 2", "SELL", "SOL", "3", "120"),
        ]
        result = match_lots(trades, normalizer)

        assert len(result.round_trips) == 1
        assert result.round_trips[0].amount == Decimal("1")
        assert result.unmatched == {"SOL": Decimal("2")}

    def test_sell_without_buy_produces_nothing(self, make_trade, normalizer):
        trades = [make_trade("Jun 2", "SELL", "SOL", "3", "120")]
        result = match_lots(trades, normalizer)

        assert result.round_trips == []
        assert result.unmatched == {"SOL": Decimal("3")}

    def test_hold_days_with_long_month_names(self, make_trade, normalizer):
        trades = [
            make_trade("June 20", "BUY", "BTC", "0.1", "100000"),
            make_trade("Jul 1", "SELL", "BTC", "0.1", "110000"),
        ]
        result = match_lots(sort_trades(trades, normalizer), normalizer)

        assert result.round_trips[0].hold_days == 11

    def test_zero_lot_price_gives_zero_pct(self, make_trade, normalizer):
        trades = [
            make_trade("Jun 1", "BUY", "AIR", "10", "0"),
            make_trade("Jun 2", "SELL", "AIR", "10", "5"),
        ]
        rt = match_lots(trades, normalizer).round_trips[0]

        assert rt.profit == Decimal("50")
        assert rt.profit_pct == Decimal("0")


class TestSummarizeRoundTrips:
    """Tests for summarize_round_trips."""

    def test_no_trades_returns_none(self):
        assert summarize_round_trips([], total_trades=0) is None

    def test_no_round_trips_has_null_win_rate(self):
        summary = summarize_round_trips([], total_trades=3)

        assert summary is not None
        assert summary.total_trades == 3
        assert summary.round_trip_count == 0
        assert summary.win_rate is None
        assert summary.best_trade is None
        assert summary.worst_trade is None
        assert summary.avg_hold_days is None
        assert summary.total_realized_profit == Decimal("0")
        assert not summary.has_round_trips

    def test_statistics(self):
        round_trips = [
            _round_trip("100", hold_days=10),
            _round_trip("-50", hold_days=5),
            _round_trip("0", hold_days=3),
            _round_trip("25", hold_days=2),
        ]
        summary = summarize_round_trips(round_trips, total_trades=6)

        assert summary.round_trip_count == 4
        assert summary.winners == 2
        assert summary.losers == 1
        assert summary.win_rate == Decimal("50")
        assert summary.best_trade is round_trips[0]
        assert summary.worst_trade is round_trips[1]
        assert summary.avg_hold_days == Decimal("5")
        assert summary.total_realized_profit == Decimal("75")

    def test_scenario_summary(self, scenario_trades, normalizer):
        result = match_lots(sort_trades(scenario_trades, normalizer), normalizer)
        summary = summarize_round_trips(result.round_trips, len(scenario_trades))

        assert summary.total_trades == 2
        assert summary.round_trip_count == 1
        assert summary.win_rate == Decimal("100")
        assert summary.avg_hold_days == Decimal("11")
        assert summary.total_realized_profit == Decimal("1000")


class TestBestAndWorst:
    """Tests for best/worst selection."""

    def test_ties_keep_first(self):
        first = _round_trip("10")
        second = _round_trip("10")
        best, worst = find_best_and_worst([first, second])

        assert best is first
        assert worst is first

    def test_selected_by_dollar_profit_not_percentage(self):
        big_dollar = CompletedRoundTrip(
            asset="BTC", buy_date="Jun 1", sell_date="Jun 2",
            buy_price=Decimal("100000"), sell_price=Decimal("101000"),
            amount=Decimal("1"), profit=Decimal("1000"), profit_pct=Decimal("1"),
            hold_days=1,
        )
        big_pct = CompletedRoundTrip(
            asset="SOL", buy_date="Jun 1", sell_date="Jun 2",
            buy_price=Decimal("1"), sell_price=Decimal("2"),
            amount=Decimal("10"), profit=Decimal("10"), profit_pct=Decimal("100"),
            hold_days=1,
        )
        best, _ = find_best_and_worst([big_pct, big_dollar])
        assert best is big_dollar

    def test_empty(self):
        assert find_best_and_worst([]) == (None, None)


class TestWinRateAndByAsset:
    """Tests for calculate_win_rate and realized_pnl_by_asset."""

    def test_win_rate_empty_is_none(self):
        stats = calculate_win_rate([])
        assert stats["win_rate"] is None
        assert stats["win_count"] == 0

    def test_realized_by_asset(self):
        round_trips = [
            _round_trip("100", asset="BTC"),
            _round_trip("-20", asset="ETH"),
            _round_trip("30", asset="BTC"),
        ]
        by_asset = realized_pnl_by_asset(round_trips)

        assert by_asset["BTC"]["realized_pnl"] == Decimal("130")
        assert by_asset["BTC"]["amount"] == Decimal("2")
        assert by_asset["BTC"]["proceeds"] == Decimal("330")
        assert by_asset["ETH"]["cost_basis"] == Decimal("100")
