"""Tests for the console renderers and the command line entry point."""

from datetime import date

import pytest
from sqlalchemy import text

from conftest import COMPANY, plan_with, production
from distillery_capacity.capacity.bottlenecks import identify_bottlenecks, suggest_resolutions
from distillery_capacity.capacity.capacity_usecase import get_capacity_overview
from distillery_capacity.cli import main
from distillery_capacity.data.sql_source import build_engine
from distillery_capacity.planning.plan_validator import validate_plan
from distillery_capacity.presentation.console import (
    format_bottlenecks,
    format_overview,
    format_validation,
)
from test_sql_source import ROWS, SCHEMA


@pytest.fixture
def database_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    engine = build_engine(url)
    with engine.begin() as conn:
        for statement in SCHEMA + ROWS:
            conn.execute(text(statement))
    engine.dispose()
    return url


class TestConsole:
    def test_overview_lists_equipment_and_alerts(self, store):
        store.save_plan(plan_with(production(1, date(2024, 1, 1), date(2024, 1, 7), 108)))
        overview = get_capacity_overview(store, COMPANY, date(2024, 1, 1), date(2024, 1, 7))
        rendered = format_overview(overview, date(2024, 1, 1), date(2024, 1, 7))

        assert "CAPACITY OVERVIEW" in rendered
        assert "Pot Still" in rendered
        assert "[Critical] Critical Utilization" in rendered

    def test_bottlenecks_with_resolutions(self, store):
        store.save_plan(plan_with(production(1, date(2024, 1, 1), date(2024, 1, 7), 108)))
        found = identify_bottlenecks(store, COMPANY, date(2024, 1, 1), date(2024, 1, 7))
        rendered = format_bottlenecks(found, [suggest_resolutions(b) for b in found])

        assert "Critical" in rendered
        assert "Add another Still to increase capacity" in rendered

    def test_no_bottlenecks(self):
        assert "No bottlenecks found." in format_bottlenecks(())

    def test_validation(self):
        plan = plan_with(
            production(1, date(2024, 1, 1), date(2024, 1, 10), 40),
            production(1, date(2024, 1, 5), date(2024, 1, 15), 40),
        )
        rendered = format_validation(validate_plan(plan, equipment_names={1: "Pot Still"}))
        assert rendered.startswith("INVALID")
        assert "OVERLAP: Overlapping allocations for Pot Still" in rendered


class TestCli:
    def test_overview(self, database_url, capsys):
        code = main(
            [
                "--company-id", "1", "--database-url", database_url,
                "overview", "--start-date", "2024-01-01", "--end-date", "2024-01-07",
            ]
        )
        assert code == 0
        assert "Fermenter A" in capsys.readouterr().out

    def test_validate_plan(self, database_url, capsys):
        code = main(["--company-id", "1", "--database-url", database_url, "validate-plan", "--plan-id", "10"])
        assert code == 0
        assert capsys.readouterr().out.startswith("VALID")

    def test_missing_plan_returns_error_code(self, database_url):
        code = main(["--company-id", "1", "--database-url", database_url, "validate-plan", "--plan-id", "77"])
        assert code == 2

    def test_inverted_range_returns_error_code(self, database_url):
        code = main(
            [
                "--company-id", "1", "--database-url", database_url,
                "utilization", "--start-date", "2024-02-01", "--end-date", "2024-01-01",
            ]
        )
        assert code == 2

    def test_bad_date_exits(self, database_url):
        with pytest.raises(SystemExit):
            main(["--company-id", "1", "--database-url", database_url, "overview", "--start-date", "01/02/2024"])
