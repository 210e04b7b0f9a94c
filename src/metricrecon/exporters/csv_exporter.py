"""CSV export of a comparison report.

layout: a key/value header block, a blank line, the metric table, then one
section of sample rows per environment (only when there are samples).
"""

import csv
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from metricrecon.models.comparison import ComparisonReport

DEFAULT_TITLE = "Data Comparison"


def sample_columns(samples: list[dict[str, Any]]) -> list[str]:
    """Union of keys across sample rows, sorted, with Id first."""
    columns = sorted({key for row in samples for key in row})
    if "Id" in columns:
        columns.remove("Id")
        columns.insert(0, "Id")
    return columns


def _cell(value: Any) -> Any:
    return "" if value is None else value


def export_comparison_to_csv(
    report: ComparisonReport,
    output_file: str | Path,
    title: str | None = None,
    generated_at: datetime | None = None,
) -> Path:
    """Write the report as CSV and return the resolved output path."""
    generated_at = generated_at or datetime.now(timezone.utc)
    path = Path(output_file).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator="\n")

        writer.writerow(["Report Title", title or DEFAULT_TITLE])
        writer.writerow(["Generated At", generated_at.isoformat()])
        writer.writerow(["Source", f"{report.source.name} ({report.source.environment_id})"])
        writer.writerow(["Target", f"{report.target.name} ({report.target.environment_id})"])
        writer.writerow(["Object", report.object])
        writer.writerow(["Metrics", " | ".join(row.label for row in report.metrics)])
        writer.writerow(["Filter", report.filters.where or ""])
        writer.writerow(["Sample Size", report.filters.sample_size])
        writer.writerow([])

        writer.writerow(["Metric", "Source", "Target", "Difference"])
        for row in report.metrics:
            writer.writerow(
                [row.label, _cell(row.source_value), _cell(row.target_value), _cell(row.difference)]
            )

        for label, samples in (
            ("Sample Records - Source", report.samples.source),
            ("Sample Records - Target", report.samples.target),
        ):
            if not samples:
                continue
            writer.writerow([])
            writer.writerow([label])
            columns = sample_columns(samples)
            writer.writerow(columns)
            for record in samples:
                writer.writerow([_cell(record.get(column)) for column in columns])

    return path
