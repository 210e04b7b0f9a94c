"""Initialize source and target DuckDB databases with sample data."""

from pathlib import Path

from generate_sample_data import OPPORTUNITY_COLUMNS, generate_sample_data

from metricrecon.executor.duckdb_executor import DuckDBEnvironment


def init_databases(data_dir: str = "data") -> None:
    """Create source.duckdb and target.duckdb with a drifted Opportunity table."""
    source_rows, target_rows = generate_sample_data()

    for name, rows in (("source", source_rows), ("target", target_rows)):
        path = Path(data_dir) / f"{name}.duckdb"
        with DuckDBEnvironment(path, name=name) as env:
            env.create_table_from_data("Opportunity", OPPORTUNITY_COLUMNS, rows)
            count = env.run_aggregate_query("SELECT COUNT(Id) c FROM Opportunity")["c"]
        print(f"Database initialized at {path}")
        print(f"  - {count} opportunities")


if __name__ == "__main__":
    init_databases()
