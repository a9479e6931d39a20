import argparse
from datetime import date, timedelta
from typing import List, Optional

from distillery_capacity.capacity.bottlenecks import identify_bottlenecks, suggest_resolutions
from distillery_capacity.capacity.capacity_usecase import get_capacity_overview
from distillery_capacity.capacity.utilization import (
    GROUP_BY_OPTIONS,
    calculate_utilization,
    get_utilization_trend,
)
from distillery_capacity.data.sql_source import SqlCapacityDataSource, build_engine
from distillery_capacity.enums import BottleneckSeverity, ForecastMethod, parse_optional_enum
from distillery_capacity.errors import CapacityError
from distillery_capacity.forecasting.capacity_forecast import analyze_capacity_gap, forecast_capacity
from distillery_capacity.planning.plan_service import get_capacity_plan
from distillery_capacity.planning.plan_validator import validate_capacity_plan
from distillery_capacity.presentation.console import (
    format_bottlenecks,
    format_forecast,
    format_gap_analysis,
    format_overview,
    format_trend,
    format_utilization,
    format_validation,
)
from distillery_capacity.utils.logger import get_logger

logger = get_logger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}") from exc


def _add_range(parser: argparse.ArgumentParser) -> None:
    today = date.today()
    parser.add_argument(
        "--start-date",
        type=_parse_date,
        default=today,
        help="Range start (YYYY-MM-DD, default: today)",
    )
    parser.add_argument(
        "--end-date",
        type=_parse_date,
        default=today + timedelta(days=30),
        help="Range end (YYYY-MM-DD, default: today + 30 days)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Distillery production capacity analysis")
    parser.add_argument("--company-id", type=int, required=True, help="Company to analyse")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy URL (default: DATABASE_URL)")

    sub = parser.add_subparsers(dest="command", required=True)

    overview = sub.add_parser("overview", help="Capacity overview for a date range")
    _add_range(overview)

    utilization = sub.add_parser("utilization", help="Utilization broken down by period")
    _add_range(utilization)
    utilization.add_argument("--group-by", choices=GROUP_BY_OPTIONS, default="week")
    utilization.add_argument(
        "--trend-months",
        type=int,
        default=0,
        help="Also show a monthly trend over this many months (default: off)",
    )

    bottlenecks = sub.add_parser("bottlenecks", help="Equipment running at or above the warning threshold")
    _add_range(bottlenecks)
    bottlenecks.add_argument("--min-severity", default=None, help="Low, Medium, High or Critical")
    bottlenecks.add_argument("--resolutions", action="store_true", help="Include suggested resolutions")

    forecast = sub.add_parser("forecast", help="Weekly utilization forecast")
    forecast.add_argument("--weeks", type=int, default=4)
    forecast.add_argument(
        "--method",
        default=ForecastMethod.MOVING_AVERAGE.value,
        help="MovingAverage, ExponentialSmoothing, LinearRegression or SeasonalAdjusted",
    )
    forecast.add_argument("--gap", action="store_true", help="Compare against demand for the next --weeks")

    validate = sub.add_parser("validate-plan", help="Validate a stored capacity plan")
    validate.add_argument("--plan-id", type=int, required=True)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    source = SqlCapacityDataSource(build_engine(args.database_url))

    try:
        if args.command == "overview":
            result = get_capacity_overview(source, args.company_id, args.start_date, args.end_date)
            print(format_overview(result, args.start_date, args.end_date))

        elif args.command == "utilization":
            report = calculate_utilization(
                source, args.company_id, args.start_date, args.end_date, args.group_by
            )
            print(format_utilization(report))
            if args.trend_months > 0:
                trend = get_utilization_trend(source, args.company_id, args.trend_months)
                print(format_trend(trend))

        elif args.command == "bottlenecks":
            min_severity = parse_optional_enum(BottleneckSeverity, args.min_severity).unwrap()
            found = identify_bottlenecks(
                source, args.company_id, args.start_date, args.end_date, min_severity
            )
            resolutions = [suggest_resolutions(b) for b in found] if args.resolutions else None
            print(format_bottlenecks(found, resolutions))

        elif args.command == "forecast":
            result = forecast_capacity(source, args.company_id, args.weeks, args.method)
            print(format_forecast(result))
            if args.gap:
                start = date.today()
                end = start + timedelta(days=7 * args.weeks - 1)
                print(format_gap_analysis(analyze_capacity_gap(source, args.company_id, start, end)))

        elif args.command == "validate-plan":
            plan = get_capacity_plan(source, args.plan_id, args.company_id)
            validation = validate_capacity_plan(source, plan)
            print(format_validation(validation))
            return 0 if validation.is_valid else 1

    except CapacityError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 2

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
