"""
Tests for the data layer: documents, store, FX quotes, CSV import and export.
"""
import httpx
import pytest
from datetime import date

from tradelog.account.accounting import derive
from tradelog.account.ledger import new_position, record_exit
from tradelog.config import LedgerSettings
from tradelog.data.documents import position_from_document, position_to_document
from tradelog.data.export import export_csv
from tradelog.data.fx import FxRateService
from tradelog.data.importer import import_positions, normalize_date, parse_number, resolve_columns
from tradelog.data.store import InMemoryPositionStore
from tradelog.domain.position import PositionStatus
from tradelog.errors import FxRateError, StorageError


@pytest.fixture
def closed_position():
    position = new_position(
        "abc", "2025-01-10", 100, 50.0, 150.0, account="rakuten",
        name="ABC Corp", sector="Tech", stop_loss=45.0, delivery_date="2025-01-14",
    )
    return record_exit(position, 100, 55.0, "2025-02-01", 150.0, reason="target")


class TestDocuments:

    def test_document_fields(self, closed_position):
        doc = position_to_document(closed_position)
        assert doc["entryDate"] == "2025-01-10"
        assert doc["deliveryDate"] == "2025-01-14"
        assert doc["totalCost"] == derive(closed_position).total_cost
        assert doc["exits"][0]["exitDate"] == "2025-02-01"
        assert doc["exits"][0]["pnl"] == closed_position.exits[0].pnl

    def test_round_trip(self, closed_position):
        loaded = position_from_document(position_to_document(closed_position), "id-1")
        assert loaded.id == "id-1"
        assert loaded.exits == closed_position.exits
        assert derive(loaded) == derive(closed_position)

    def test_sparse_document(self):
        position = position_from_document({"ticker": "xyz", "exits": None})
        assert position.ticker == "XYZ"
        assert position.shares == 0
        assert position.entry_date is None
        assert position.stop_loss is None
        assert position.exits == ()


class TestInMemoryPositionStore:

    @pytest.fixture
    def store(self):
        return InMemoryPositionStore()

    def test_owner_scope_and_order(self, store):
        store.add("alice", {"ticker": "OLD", "entryDate": "2024-05-01"})
        store.add("alice", {"ticker": "NEW", "entryDate": "2025-05-01"})
        store.add("bob", {"ticker": "BOB", "entryDate": "2025-06-01"})

        tickers = [doc["ticker"] for _, doc in store.list_positions("alice")]
        assert tickers == ["NEW", "OLD"]
        assert len(store) == 3

    def test_replace_keeps_owner(self, store):
        record_id = store.add("alice", {"ticker": "ABC"})
        store.replace(record_id, {"ticker": "ABD"})
        doc = store.get(record_id)
        assert doc["ticker"] == "ABD"
        assert doc["uid"] == "alice"

    def test_snapshots_are_copies(self, store):
        record_id = store.add("alice", {"ticker": "ABC", "exits": []})
        store.get(record_id)["exits"].append({"shares": 1})
        assert store.get(record_id)["exits"] == []

    def test_missing_records(self, store):
        assert store.get("nope") is None
        with pytest.raises(StorageError):
            store.replace("nope", {})
        with pytest.raises(StorageError):
            store.delete("nope")


class TestFxRateService:

    @staticmethod
    def service(handler, rate=153.0):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return FxRateService(initial_rate=rate, endpoint="https://fx.test/latest/USD", client=client)

    def test_refresh(self):
        fx = self.service(lambda request: httpx.Response(200, json={"rates": {"JPY": 149.5}}))
        assert fx.refresh() is True
        assert fx.rate == 149.5

    def test_failed_refresh_keeps_last_rate(self):
        fx = self.service(lambda request: httpx.Response(500))
        assert fx.refresh() is False
        assert fx.rate == 153.0

    def test_missing_rate(self):
        fx = self.service(lambda request: httpx.Response(200, json={"rates": {"EUR": 0.9}}))
        with pytest.raises(FxRateError):
            fx.fetch()

    @pytest.mark.parametrize("body", [["maintenance"], {"rates": ["JPY", 150.0]}, {"rates": {"JPY": "150"}}])
    def test_malformed_body_keeps_last_rate(self, body):
        fx = self.service(lambda request: httpx.Response(200, json=body))
        with pytest.raises(FxRateError):
            fx.fetch()
        assert fx.refresh() is False
        assert fx.rate == 153.0

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        fx = self.service(handler)
        with pytest.raises(FxRateError):
            fx.fetch()

    def test_manual_rate(self):
        fx = self.service(lambda request: httpx.Response(500))
        assert fx.set_rate(140.0) is True
        assert fx.set_rate(0) is False
        assert fx.set_rate(-5.0) is False
        assert fx.rate == 140.0


NOTION_CSV = (
    "ティッカー,銘柄名,エントリー,取得単価（ドル）,取得株数,クローズ,売却株数,損益（円）,備考\n"
    'aapl,Apple,2025/1/5,100,10,2025/3/1,10,"¥15,000",first\n'
    "msft,,2024-12-20,200,5,,,,\n"
    ",,2025/1/1,1,1,,,,\n"
    "nvda,,bad-date,,,,,,\n"
).encode("utf-8")


class TestImport:

    def test_helpers(self):
        assert normalize_date("2025/1/5") == date(2025, 1, 5)
        assert normalize_date("2025-12-31") == date(2025, 12, 31)
        assert normalize_date("January 5") is None
        assert normalize_date("2025/13/40") is None
        assert parse_number("¥15,000") == 15000
        assert parse_number("-1,200.5") == -1200.5
        assert parse_number("") is None
        assert parse_number("n/a") is None

    def test_resolve_columns(self):
        columns = resolve_columns(["Ticker", "Entry Date", "Entry Price", "Shares"])
        assert columns["ticker"] == "Ticker"
        assert columns["entry_price"] == "Entry Price"
        assert columns["exit_shares"] is None

    def test_import(self):
        positions = import_positions(NOTION_CSV, fx_rate=150.0)
        assert [p.ticker for p in positions] == ["AAPL", "MSFT", "NVDA"]
        assert all(p.imported and p.account == "nisa" and p.entry_fx == 150.0 for p in positions)

    def test_imported_exit_keeps_recorded_pnl(self):
        aapl = import_positions(NOTION_CSV, fx_rate=150.0)[0]
        assert aapl.entry_date == date(2025, 1, 5)
        assert aapl.note == "first"
        assert len(aapl.exits) == 1
        assert aapl.exits[0].pnl == 15_000
        assert aapl.exits[0].exit_date == date(2025, 3, 1)

        m = derive(aapl)
        assert m.status == PositionStatus.CLOSED
        assert m.realized_pnl == 15_000
        assert m.realized_pnl_pct == pytest.approx(10.0)

    def test_absent_fields_default(self):
        nvda = import_positions(NOTION_CSV, fx_rate=150.0)[2]
        assert nvda.entry_date is None
        assert nvda.shares == 0
        assert nvda.entry_price == 0.0
        assert nvda.exits == ()

    def test_import_from_file(self, tmp_path):
        path = tmp_path / "trades.csv"
        path.write_bytes(NOTION_CSV)
        assert len(import_positions(path, fx_rate=150.0)) == 3


class TestExport:

    def test_export_text(self, closed_position):
        text = export_csv([closed_position])
        assert text.startswith("\ufeff")
        header, row = text.lstrip("\ufeff").strip().splitlines()
        assert header.startswith("Ticker,Name,Account")
        assert "PnL (JPY)" in header
        assert row.startswith("ABC,ABC Corp,rakuten")
        assert ",closed," in row
        assert str(closed_position.exits[0].pnl) in row

    def test_export_file(self, tmp_path, closed_position):
        path = tmp_path / "out.csv"
        assert export_csv([closed_position], path) is None
        assert path.read_text(encoding="utf-8-sig").startswith("Ticker,")

    def test_export_reimports_with_exits(self, closed_position):
        text = export_csv([closed_position])
        assert "Exit Date" in text and "Exit Shares" in text

        [imported] = import_positions(text.encode("utf-8"), fx_rate=150.0)
        assert imported.ticker == "ABC"
        assert imported.entry_date == date(2025, 1, 10)
        assert len(imported.exits) == 1
        assert imported.exits[0].exit_date == date(2025, 2, 1)
        assert imported.exits[0].shares == 100

        m = derive(imported)
        assert m.status == PositionStatus.CLOSED
        assert m.realized_pnl == derive(closed_position).realized_pnl

    def test_export_empty(self):
        assert export_csv([]).lstrip("\ufeff").startswith("Ticker,")


class TestSettings:

    def test_defaults(self):
        settings = LedgerSettings()
        assert settings.quota_limit == 2_400_000
        assert settings.default_fx_rate == 153.0

    def test_from_env(self):
        settings = LedgerSettings.from_env({"TRADELOG_QUOTA_LIMIT": "3600000", "TRADELOG_FX_RATE": "148.2"})
        assert settings.quota_limit == 3_600_000
        assert settings.default_fx_rate == 148.2
        assert settings.fx_timeout == 10.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
