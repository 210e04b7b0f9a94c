"""Basic usage example for metricrecon.

run ``python data/init_db.py`` first to create the two sample databases.
"""

from pathlib import Path

from metricrecon import DataComparisonService, DuckDBEnvironment, MetadataCache
from metricrecon.exporters.csv_exporter import export_comparison_to_csv
from metricrecon.observability import configure_logging


def main():
    """Compare the sample source and target environments."""
    configure_logging()

    source = DuckDBEnvironment("data/source.duckdb", name="prod", read_only=True)
    target = DuckDBEnvironment("data/target.duckdb", name="sandbox", read_only=True)
    service = DataComparisonService(source, target, MetadataCache(0, "metadata-cache.json"))

    print("=" * 60)
    print("metricrecon Opportunity comparison")
    print("=" * 60)

    # 1. Row counts
    print("\n1. Row count:")
    report = service.compare("Opportunity")
    row = report.metrics[0]
    print(f"   {row.label}: {row.source_value} -> {row.target_value} ({row.difference:+})")

    # 2. Several metrics at once
    print("\n2. Pipeline summary:")
    report = service.compare(
        "Opportunity",
        ["sum:Amount", "avg:Amount", "count-distinct:StageName", "ratio:sum:Amount/avg:Amount"],
    )
    for row in report.metrics:
        print(f"   {row.label}: {row.source_value} -> {row.target_value} (diff {row.difference})")

    # 3. Dates are compared but not subtracted
    print("\n3. Close date range:")
    report = service.compare("Opportunity", ["min:CloseDate", "max:CloseDate"])
    for row in report.metrics:
        print(f"   {row.label}: {row.source_value} / {row.target_value}")

    # 4. Conditional metrics with a base filter
    print("\n4. Won business in H2:")
    report = service.compare(
        "Opportunity",
        ["count-if:StageName = Closed Won", "sum-if:Amount:IsWon = true"],
        where="CloseDate >= 2024-07-01",
    )
    for row in report.metrics:
        print(f"   {row.label}: {row.source_value} -> {row.target_value}")

    # 5. The queries that ran
    print("\n5. Compiled queries:")
    planned = service.plan("Opportunity", ["count", "sum:Amount", "count-if:IsWon = true"])
    print(f"   {planned.plan.aggregate_query}")
    for conditional in planned.plan.conditional_metrics:
        print(f"   {conditional.aggregate_query}")

    # 6. Export with samples
    print("\n6. CSV export:")
    report = service.compare("Opportunity", ["sum:Amount"], sample_size=5)
    path = export_comparison_to_csv(report, Path("comparison.csv"), title="Sample comparison")
    print(f"   Wrote {path}")

    print("\n" + "=" * 60)
    print("Demo complete!")
    print("=" * 60)

    source.close()
    target.close()


if __name__ == "__main__":
    main()
