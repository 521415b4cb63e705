"""
CSV export of a query result's breakdowns.

One row per breakdown item: section, label, count, percentage (one
decimal). Country rollup rows carry views in `count` and the visitor count
in `visitors`.
"""

from __future__ import annotations

import csv
import io

from visitor_analytics.components.analytics import AggregateResult

CSV_HEADER = ["section", "label", "count", "percentage", "visitors"]


def breakdown_rows(result: AggregateResult) -> list[list[str | int | float]]:
    sections = (
        ("pages", result.top_pages),
        ("browsers", result.top_browsers),
        ("os", result.top_os),
        ("devices", result.top_devices),
        ("referrers", result.top_referrers),
        ("countries", result.top_countries),
    )
    rows: list[list[str | int | float]] = []
    for section, items in sections:
        for item in items:
            rows.append([section, item.label, item.count, round(item.percentage, 1), ""])
    for country in result.country_rollup:
        rows.append(["geo", country.name, country.views, "", country.visitors])
    return rows


def result_to_csv(result: AggregateResult) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADER)
    writer.writerows(breakdown_rows(result))
    return output.getvalue()
