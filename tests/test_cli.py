from __future__ import annotations

import json
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from creator_analytics import cli
from creator_analytics.config import Settings
from creator_analytics.models import DateRangeFilter

from fakes import FakeCollection, FakeDB

UTC = timezone.utc


def _settings() -> Settings:
    return Settings(
        mongo_uri="mongodb://localhost:27017",
        mongo_db="test",
        mongo_tls=False,
        default_date_range="30d",
        log_path=Path("logs/analytics.log"),
        log_level="INFO",
    )


def _db() -> FakeDB:
    db = FakeDB()
    db["members"] = FakeCollection("members", [
        {"id": "m1", "company_id": "c1", "joined_at": datetime(2026, 3, 20, tzinfo=UTC),
         "status": "active", "lifetime_value": "40"},
        {"id": "m2", "company_id": "c1", "joined_at": datetime(2026, 1, 5, tzinfo=UTC),
         "status": "churned", "lifetime_value": 0, "updated_at": datetime(2026, 3, 1, tzinfo=UTC)},
        {"id": "m3", "company_id": "c1", "joined_at": datetime(2026, 1, 5, tzinfo=UTC),
         "status": "expired"},
    ])
    db["purchases"] = FakeCollection("purchases", [
        {"id": "p1", "company_id": "c1", "member_id": "m1", "product_id": "x", "product_name": "X",
         "amount": 40, "purchased_at": datetime(2026, 3, 21, tzinfo=UTC)},
    ])
    db["member_engagement"] = FakeCollection("member_engagement", [
        {"company_id": "c1", "member_id": "m1", "date": "2026-03-25",
         "messages_sent": 3, "messages_received": 1, "interactions": 2},
        {"company_id": "c1", "member_id": "m2", "date": "2025-01-01",
         "messages_sent": 50, "messages_received": 0, "interactions": 0},
    ])
    return db


@pytest.fixture
def fake_backend(monkeypatch: pytest.MonkeyPatch) -> FakeDB:
    db = _db()
    monkeypatch.setattr(cli, "get_settings", _settings)
    monkeypatch.setattr(cli, "get_db", lambda _s: db)
    return db


def _run(argv: list[str]) -> None:
    args = cli.build_parser().parse_args(argv)
    cli.COMMANDS[args.cmd](args)


def test_parser_requires_company_id() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["summary"])


def test_parser_options() -> None:
    args = cli.build_parser().parse_args(
        ["products", "--company-id", "c1", "--top", "3", "--format", "csv", "--range", "7d"]
    )
    assert args.top == 3
    assert args.format == "csv"
    assert args.range == "7d"


def test_summary_command_prints_json(fake_backend: FakeDB, capsys: pytest.CaptureFixture[str]) -> None:
    _run(["summary", "--company-id", "c1", "--as-of", "2026-03-31T12:00:00+00:00"])
    out = json.loads(capsys.readouterr().out)
    # the row with an unknown status is dropped by validation
    assert out["totalMembers"] == 2
    assert out["churnedMembers"] == 1
    assert out["monthlyRecurringRevenue"] == 40.0


def test_engagement_command_limits_rows_to_window(
    fake_backend: FakeDB, capsys: pytest.CaptureFixture[str]
) -> None:
    _run(["engagement", "--company-id", "c1", "--as-of", "2026-03-31T12:00:00+00:00", "--range", "7d"])
    out = json.loads(capsys.readouterr().out)
    assert out["totalMessages"] == 4
    assert out["activeUsers"] == 1
    assert len(out["heatmapData"]) == 8


def test_growth_command_writes_csv(fake_backend: FakeDB, tmp_path: Path) -> None:
    target = tmp_path / "growth.csv"
    _run([
        "growth", "--company-id", "c1", "--as-of", "2026-03-31T12:00:00+00:00",
        "--range", "7d", "--format", "csv", "--output", str(target),
    ])
    lines = target.read_text(encoding="utf-8").strip().splitlines()
    assert lines[0] == "date,newMembers,totalMembers,activeMembers,churnedMembers"
    assert len(lines) == 9


def test_gold_command_loads_collections(fake_backend: FakeDB) -> None:
    _run(["gold", "--company-id", "c1", "--as-of", "2026-03-31T12:00:00+00:00"])
    assert fake_backend["gold_metrics_summary"].writes
    assert fake_backend["gold_daily_revenue"].writes


def test_in_range_filters_engagement_days() -> None:
    r = DateRangeFilter(
        start_date=datetime(2026, 3, 1, tzinfo=UTC),
        end_date=datetime(2026, 3, 2, 23, 59, tzinfo=UTC),
    )
    rows = [{"date": date(2026, 2, 28)}, {"date": date(2026, 3, 1)}, {"date": date(2026, 3, 2)}]
    assert cli._in_range(rows, r) == rows[1:]


def test_products_command_uses_reporting_window(
    fake_backend: FakeDB, capsys: pytest.CaptureFixture[str]
) -> None:
    as_of = ["--company-id", "c1", "--as-of", "2026-03-31T12:00:00+00:00"]
    _run(["products", *as_of, "--range", "7d"])
    assert json.loads(capsys.readouterr().out) == []

    _run(["products", *as_of, "--range", "30d", "--top", "5"])
    assert [p["product_id"] for p in json.loads(capsys.readouterr().out)] == ["x"]


def test_breakdown_command(fake_backend: FakeDB, capsys: pytest.CaptureFixture[str]) -> None:
    _run(["breakdown", "--company-id", "c1", "--as-of", "2026-03-31T12:00:00+00:00"])
    out = json.loads(capsys.readouterr().out)
    assert out["totalRevenue"] == 40.0
    assert out["purchaseCount"] == 1
    assert out["byProduct"][0]["product_name"] == "X"


def test_ltv_stats_command(fake_backend: FakeDB, capsys: pytest.CaptureFixture[str]) -> None:
    _run(["ltv-stats", "--company-id", "c1"])
    assert json.loads(capsys.readouterr().out) == {"average": 20.0, "median": 20.0, "max": 40.0}


def test_main_dispatches_subcommand(
    fake_backend: FakeDB, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda *_a: None)
    monkeypatch.setattr(
        "sys.argv",
        ["creator-analytics", "summary", "--company-id", "c1", "--as-of", "2026-03-31T12:00:00+00:00"],
    )
    cli.main()
    assert json.loads(capsys.readouterr().out)["totalMembers"] == 2


def test_main_rejects_unknown_subcommand(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.argv", ["creator-analytics", "nope", "--company-id", "c1"])
    with pytest.raises(SystemExit) as exc:
        cli.main()
    assert exc.value.code == 2


def test_empty_products_csv_has_header(
    fake_backend: FakeDB, capsys: pytest.CaptureFixture[str]
) -> None:
    _run([
        "products", "--company-id", "c1", "--as-of", "2026-03-31T12:00:00+00:00",
        "--range", "7d", "--format", "csv",
    ])
    assert capsys.readouterr().out.strip().startswith("product_id,product_name,totalRevenue")
