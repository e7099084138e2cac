"""
Tests for the analytics layer: summaries and position views.
"""
import pytest

from tradelog.account.ledger import new_position, record_exit
from tradelog.analytics.summary import open_position_groups, sector_pnl, summarize, summary_frame
from tradelog.analytics.view import ViewState, apply_filters, select, sort_positions
from tradelog.domain.position import AccountType

FX = 100.0


def make(ticker, shares, price, exits=(), sector="", account=AccountType.NISA, entry_date="2025-01-10", name=""):
    position = new_position(
        ticker, entry_date, shares, price, FX, account=account, sector=sector, name=name
    )
    for exit_shares, exit_price in exits:
        position = record_exit(position, exit_shares, exit_price, "2025-06-01", FX)
    return position


@pytest.fixture
def book():
    """
    WIN   +2000 (Tech)      LOSS   -1000 (Tech)
    CUT   -1500 (Energy, partial)
    FLAT      0 (no sector) OPEN   no exits (Tech)
    """
    return [
        make("WIN", 10, 10.0, [(10, 12.0)], sector="Tech", entry_date="2025-01-01", name="Winner Inc"),
        make("LOSS", 10, 10.0, [(10, 9.0)], sector="Tech", entry_date="2025-02-01"),
        make("CUT", 10, 10.0, [(5, 7.0)], sector="Energy", entry_date="2025-03-01",
             account=AccountType.MOOMOO),
        make("FLAT", 10, 10.0, [(10, 10.0)], entry_date="2025-04-01"),
        make("OPEN", 10, 20.0, sector="Tech", entry_date="2025-05-01", name="Still Holding"),
    ]


class TestSummarize:

    def test_counts(self, book):
        s = summarize(book)
        assert s.trade_count == 5
        assert s.open_count == 2
        assert s.closed_count == 4
        assert s.win_count == 1
        assert s.loss_count == 2

    def test_totals(self, book):
        s = summarize(book)
        assert s.total_realized_pnl == 2000 - 1000 - 1500
        assert s.total_invested == 4 * 10_000 + 20_000

    def test_ratios(self, book):
        s = summarize(book)
        assert s.win_rate == pytest.approx(25.0)
        assert s.average_win == pytest.approx(2000.0)
        assert s.average_loss == pytest.approx(-1250.0)
        assert s.profit_factor == pytest.approx(1.6)

    def test_extremes(self, book):
        s = summarize(book)
        assert s.largest_win.position.ticker == "WIN"
        assert s.largest_win.pnl == 2000
        assert s.largest_loss.position.ticker == "CUT"
        assert s.largest_loss.pnl == -1500

    def test_extremes_tie_goes_to_last(self):
        first = make("FIRST", 10, 10.0, [(10, 12.0)])
        last = make("LAST", 10, 10.0, [(10, 12.0)])
        first_loss = make("DOWN1", 10, 10.0, [(10, 9.0)])
        last_loss = make("DOWN2", 10, 10.0, [(10, 9.0)])
        s = summarize([first, first_loss, last, last_loss])
        assert s.largest_win.position.ticker == "LAST"
        assert s.largest_loss.position.ticker == "DOWN2"

    def test_empty(self):
        s = summarize([])
        assert s.trade_count == 0
        assert s.total_realized_pnl == 0
        assert s.win_rate is None
        assert s.average_win is None
        assert s.profit_factor is None
        assert s.largest_win is None
        assert s.largest_loss is None

    def test_no_losses_leaves_profit_factor_undefined(self, book):
        s = summarize([book[0], book[4]])
        assert s.win_rate == pytest.approx(100.0)
        assert s.average_loss is None
        assert s.profit_factor is None

    def test_only_open_positions(self, book):
        s = summarize([book[4]])
        assert s.closed_count == 0
        assert s.win_rate is None
        assert s.total_invested == 20_000


class TestSectorPnl:

    def test_grouped_and_sorted(self, book):
        assert sector_pnl(book) == [("Tech", 1000), ("Energy", -1500)]

    def test_open_positions_do_not_contribute(self, book):
        assert sector_pnl([book[4]]) == []


class TestOpenPositionGroups:

    def test_groups_by_ticker(self):
        positions = [
            make("AAPL", 10, 10.0, name="Apple"),
            make("AAPL", 10, 20.0, [(5, 25.0)]),
            make("MSFT", 10, 10.0, [(10, 11.0)]),
        ]
        groups = open_position_groups(positions, fallback_fx=150.0)
        assert [g.ticker for g in groups] == ["AAPL"]

        g = groups[0]
        assert g.entries == 2
        assert g.name == "Apple"
        assert g.remaining_shares == 15
        assert g.cost == pytest.approx(20_000)
        assert g.average_cost == pytest.approx(20_000 / 15)
        assert g.average_cost_usd == pytest.approx(20_000 / 15 / FX)


class TestSummaryFrame:

    def test_frame(self, book):
        frame = summary_frame(book)
        assert len(frame) == 5
        assert list(frame["status"]) == ["closed", "closed", "partial", "closed", "open"]
        assert frame.loc[0, "realized_pnl"] == 2000

    def test_empty(self):
        assert summary_frame([]).empty


class TestFilters:

    def test_query_matches_ticker_and_name(self, book):
        assert [p.ticker for p in apply_filters(book, ViewState(query="win"))] == ["WIN"]
        assert [p.ticker for p in apply_filters(book, ViewState(query="holding"))] == ["OPEN"]

    def test_status(self, book):
        assert [p.ticker for p in apply_filters(book, ViewState(status="partial"))] == ["CUT"]
        assert [p.ticker for p in apply_filters(book, ViewState(status="open"))] == ["OPEN"]

    def test_account(self, book):
        assert [p.ticker for p in apply_filters(book, ViewState(account="moomoo"))] == ["CUT"]

    def test_result(self, book):
        assert [p.ticker for p in apply_filters(book, ViewState(result="win"))] == ["WIN"]
        # Zero and unrealized PnL are neither wins nor losses
        assert [p.ticker for p in apply_filters(book, ViewState(result="loss"))] == ["LOSS", "CUT"]

    def test_predicates_combine(self, book):
        view = ViewState(result="loss", account="nisa")
        assert [p.ticker for p in apply_filters(book, view)] == ["LOSS"]


class TestSort:

    def test_default_is_newest_entry_first(self, book):
        assert [p.ticker for p in select(book, ViewState())] == ["OPEN", "FLAT", "CUT", "LOSS", "WIN"]

    def test_missing_values_last_descending(self, book):
        view = ViewState(sort_key="realized_pnl")
        assert [p.ticker for p in sort_positions(book, view)] == ["WIN", "FLAT", "LOSS", "CUT", "OPEN"]

    def test_missing_values_last_ascending(self, book):
        view = ViewState(sort_key="realized_pnl", ascending=True)
        assert [p.ticker for p in sort_positions(book, view)] == ["CUT", "LOSS", "FLAT", "WIN", "OPEN"]

    def test_string_key(self, book):
        view = ViewState(sort_key="ticker", ascending=True)
        assert [p.ticker for p in sort_positions(book, view)] == ["CUT", "FLAT", "LOSS", "OPEN", "WIN"]

    def test_string_key_ignores_case(self):
        positions = [make(t, 1, 10.0, name=n) for t, n in [("A", "apple"), ("B", "Banana"), ("C", "cherry")]]
        view = ViewState(sort_key="name", ascending=True)
        assert [p.name for p in sort_positions(positions, view)] == ["apple", "Banana", "cherry"]

        view = view.sort_by("name")
        assert [p.name for p in sort_positions(positions, view)] == ["cherry", "Banana", "apple"]

    def test_string_key_case_and_kana_ties(self):
        positions = [make(t, 1, 10.0, name=n) for t, n in [("A", "ABC"), ("B", "abc"), ("C", "き"), ("D", "カ")]]
        view = ViewState(sort_key="name", ascending=True)
        assert [p.name for p in sort_positions(positions, view)] == ["abc", "ABC", "カ", "き"]

    def test_status_key(self, book):
        view = ViewState(sort_key="status", ascending=True)
        assert [p.ticker for p in sort_positions(book, view)][-1] == "CUT"

    def test_sort_by_toggles(self):
        view = ViewState()
        assert view.sort_by("entry_date").ascending is True
        assert view.sort_by("entry_date").sort_by("entry_date").ascending is False

        by_pnl = view.sort_by("entry_date").sort_by("realized_pnl_pct")
        assert by_pnl.sort_key == "realized_pnl_pct"
        assert by_pnl.ascending is False

    def test_unknown_key(self, book):
        with pytest.raises(ValueError):
            ViewState().sort_by("colour")
        with pytest.raises(ValueError):
            sort_positions(book, ViewState(sort_key="colour"))

    def test_views_are_independent(self, book):
        a = ViewState(sort_key="ticker", ascending=True)
        b = a.sort_by("ticker")
        assert a.ascending is True
        assert [p.ticker for p in sort_positions(book, b)][0] == "WIN"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
