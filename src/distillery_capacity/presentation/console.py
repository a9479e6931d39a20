from __future__ import annotations

import io
from typing import List, Optional, Sequence

from distillery_capacity.capacity.capacity_models import (
    Bottleneck,
    BottleneckResolution,
    CapacityOverview,
    UtilizationReport,
    UtilizationTrend,
)
from distillery_capacity.forecasting.forecast_models import CapacityForecast, GapAnalysis
from distillery_capacity.planning.plan_models import CapacityValidation
from distillery_capacity.scenarios.simulator import ScenarioResult


def _format_table(rows: Sequence[Sequence[object]], headers: List[str], max_rows: Optional[int] = None) -> str:
    output = io.StringIO()
    rows = list(rows)

    if max_rows is not None and len(rows) > max_rows:
        shown = rows[:max_rows]
        omitted = len(rows) - max_rows
    else:
        shown = rows
        omitted = 0

    widths = [len(h) for h in headers]
    for row in shown:
        for i, v in enumerate(row):
            widths[i] = max(widths[i], len(str(v)))

    def fmt(r):
        return " ".join(str(r[i]).ljust(widths[i]) for i in range(len(headers)))

    print(fmt(headers), file=output)
    print(" ".join("-" * w for w in widths), file=output)
    for row in shown:
        print(fmt(row), file=output)

    if omitted:
        print(f"... ({omitted} more rows omitted) ...", file=output)

    return output.getvalue()


def _banner(title: str, out: io.StringIO) -> None:
    print("=" * 80, file=out)
    print(title, file=out)
    print("=" * 80, file=out)


# ----------------------------
# Overview
# ----------------------------

def format_overview(overview: CapacityOverview, start=None, end=None) -> str:
    out = io.StringIO()
    _banner("CAPACITY OVERVIEW", out)
    if start is not None and end is not None:
        print(f"Period: {start.isoformat()} to {end.isoformat()}", file=out)
    print(f"Active Equipment:  {overview.equipment_count}", file=out)
    print(f"Total Capacity:    {overview.total_capacity_hours:.1f}h", file=out)
    print(f"Allocated:         {overview.allocated_hours:.1f}h", file=out)
    print(f"Available:         {overview.available_hours:.1f}h", file=out)
    print(f"Utilization:       {overview.utilization_percent:.2f}%", file=out)
    print(file=out)

    rows = [
        (
            s.equipment_name,
            s.equipment_type,
            f"{s.total_capacity_hours:.1f}",
            f"{s.allocated_hours:.1f}",
            f"{s.available_hours:.1f}",
            f"{s.utilization_percent:.2f}",
        )
        for s in overview.equipment_summaries
    ]
    print(_format_table(rows, ["equipment", "type", "capacity_h", "allocated_h", "available_h", "util_pct"]), file=out)

    if overview.alerts:
        print("Alerts:", file=out)
        for alert in overview.alerts:
            print(f"  [{alert.severity.label}] {alert.title}: {alert.description}", file=out)

    return out.getvalue()


def format_utilization(report: UtilizationReport) -> str:
    out = io.StringIO()
    _banner(f"UTILIZATION {report.period_start.isoformat()} -> {report.period_end.isoformat()}", out)
    print(f"Overall: {report.utilization_percent:.2f}% of {report.capacity_hours:.1f}h", file=out)
    print(file=out)
    rows = [
        (
            b.period_start.isoformat(),
            b.period_end.isoformat(),
            f"{b.capacity_hours:.1f}",
            f"{b.allocated_hours:.1f}",
            f"{b.utilization_percent:.2f}",
        )
        for b in report.breakdowns
    ]
    print(_format_table(rows, ["start", "end", "capacity_h", "allocated_h", "util_pct"], max_rows=200), file=out)
    return out.getvalue()


def format_trend(trend: UtilizationTrend) -> str:
    rows = [(f"{m.year}-{m.month:02d}", f"{m.utilization_percent:.2f}") for m in trend.monthly]
    out = io.StringIO()
    print(_format_table(rows, ["month", "util_pct"]), file=out)
    print(f"Trend: {trend.direction.value} ({trend.trend_change:+.2f} pts)", file=out)
    return out.getvalue()


# ----------------------------
# Bottlenecks
# ----------------------------

def format_bottlenecks(
    bottlenecks: Sequence[Bottleneck],
    resolutions: Optional[Sequence[Sequence[BottleneckResolution]]] = None,
) -> str:
    out = io.StringIO()
    _banner("BOTTLENECKS", out)
    if not bottlenecks:
        print("No bottlenecks found.", file=out)
        return out.getvalue()

    rows = [
        (
            b.equipment_name,
            b.severity.label,
            f"{b.utilization_percent:.2f}",
            b.affected_production_runs,
            f"{b.estimated_lost_capacity:.1f}",
        )
        for b in bottlenecks
    ]
    print(_format_table(rows, ["equipment", "severity", "util_pct", "runs", "lost_h"]), file=out)

    for b, options in zip(bottlenecks, resolutions or ()):
        print(f"{b.equipment_name}:", file=out)
        for r in options:
            print(
                f"  • {r.description} (cost {r.estimated_cost:,.0f}, "
                f"+{r.estimated_capacity_gain:.1f}h, {r.implementation_days}d, score {r.effectiveness_score})",
                file=out,
            )
    return out.getvalue()


# ----------------------------
# Forecast / gap
# ----------------------------

def format_forecast(forecast: CapacityForecast) -> str:
    out = io.StringIO()
    _banner(f"CAPACITY FORECAST ({forecast.method.value})", out)
    rows = [
        (
            w.week_start.isoformat(),
            f"{w.predicted_utilization:.2f}",
            f"{w.lower_bound:.2f}",
            f"{w.upper_bound:.2f}",
            f"{w.predicted_hours_used:.1f}",
            f"{w.available_hours:.1f}",
        )
        for w in forecast.weekly_forecasts
    ]
    print(_format_table(rows, ["week", "util_pct", "low", "high", "hours_used", "capacity_h"]), file=out)
    print(f"Confidence: {forecast.confidence_level:.2f}", file=out)
    for a in forecast.assumptions:
        print(f"  - {a}", file=out)
    return out.getvalue()


def format_gap_analysis(gap: GapAnalysis) -> str:
    out = io.StringIO()
    _banner("CAPACITY VS DEMAND", out)
    rows = [
        (w.week_start.isoformat(), f"{w.available_capacity:.1f}", f"{w.demand_hours:.1f}", f"{w.gap:.1f}")
        for w in gap.weekly_gaps
    ]
    print(_format_table(rows, ["week", "capacity_h", "demand_h", "gap_h"]), file=out)
    status = "SHORTFALL" if gap.has_shortfall else "OK"
    print(f"Total gap: {gap.gap_hours:.1f}h ({gap.gap_percent:.2f}%) {status}", file=out)
    for r in gap.recommendations:
        print(f"  - {r}", file=out)
    return out.getvalue()


# ----------------------------
# Plans / scenarios
# ----------------------------

def format_validation(validation: CapacityValidation) -> str:
    out = io.StringIO()
    print("VALID" if validation.is_valid else "INVALID", file=out)
    for issue in validation.issues:
        print(f"  ERROR   {issue.code}: {issue.description}", file=out)
    for warning in validation.warnings:
        print(f"  WARNING {warning.code}: {warning.description}", file=out)
    return out.getvalue()


def format_scenario(result: ScenarioResult) -> str:
    out = io.StringIO()
    _banner(f"WHAT-IF: {result.scenario_name}", out)
    projected = result.projected_overview
    print(result.summary, file=out)
    print(f"Projected capacity:    {projected.total_capacity_hours:.1f}h", file=out)
    print(f"Projected utilization: {projected.utilization_percent:.2f}%", file=out)
    print(f"Cost impact:           {result.cost_impact:,.0f}", file=out)
    return out.getvalue()
