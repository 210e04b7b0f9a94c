"""Pytest fixtures for metricrecon tests."""

from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from metricrecon.executor.duckdb_executor import DuckDBEnvironment
from metricrecon.models.schema import FieldMetadata, ObjectSchema

OPPORTUNITY_COLUMNS = [
    "Id VARCHAR",
    "Name VARCHAR",
    "Amount DECIMAL(12, 2)",
    "StageName VARCHAR",
    "IsWon BOOLEAN",
    "CloseDate DATE",
]


@pytest.fixture
def opportunity_schema() -> ObjectSchema:
    """Describe result for an Opportunity object."""
    return ObjectSchema(
        name="Opportunity",
        label="Opportunity",
        fields=[
            FieldMetadata(name="Id", type="id", aggregatable=True, filterable=True),
            FieldMetadata(name="Name", type="string", aggregatable=True, filterable=True),
            FieldMetadata(name="Amount", type="currency", aggregatable=True, filterable=True),
            FieldMetadata(name="Probability", type="percent", aggregatable=True),
            FieldMetadata(name="StageName", type="picklist", aggregatable=True, filterable=True),
            FieldMetadata(name="CloseDate", type="date", aggregatable=True, filterable=True),
            FieldMetadata(name="Description", type="textarea", aggregatable=False),
            FieldMetadata(name="IsWon", type="boolean", aggregatable=False, filterable=True),
        ],
    )


@pytest.fixture
def source_rows() -> list[tuple]:
    """Opportunity rows in the source environment."""
    return [
        ("006A", "Acme renewal", 1000.00, "Closed Won", True, "2024-01-15"),
        ("006B", "Globex upsell", 2500.00, "Closed Won", True, "2024-02-01"),
        ("006C", "Initech pilot", 500.00, "Prospecting", False, "2024-02-20"),
        ("006D", "Umbrella expansion", 1000.00, "Closed Lost", False, "2024-03-05"),
    ]


@pytest.fixture
def target_rows(source_rows: list[tuple]) -> list[tuple]:
    """Source rows plus one extra opportunity and one changed amount."""
    rows = list(source_rows)
    rows[2] = ("006C", "Initech pilot", 750.00, "Prospecting", False, "2024-02-20")
    rows.append(("006E", "Hooli new logo", 3000.00, "Closed Won", True, "2024-03-30"))
    return rows


def _environment(name: str, rows: list[tuple]) -> DuckDBEnvironment:
    env = DuckDBEnvironment(name=name)
    env.create_table_from_data("Opportunity", OPPORTUNITY_COLUMNS, rows)
    return env


@pytest.fixture
def source_env(source_rows: list[tuple]) -> Generator[DuckDBEnvironment, None, None]:
    """In-memory source environment."""
    env = _environment("source", source_rows)
    yield env
    env.close()


@pytest.fixture
def target_env(target_rows: list[tuple]) -> Generator[DuckDBEnvironment, None, None]:
    """In-memory target environment."""
    env = _environment("target", target_rows)
    yield env
    env.close()


@pytest.fixture
def database_files(
    tmp_path: Path, source_rows: list[tuple], target_rows: list[tuple]
) -> tuple[Path, Path]:
    """Source and target DuckDB files on disk."""
    paths = []
    for name, rows in (("source", source_rows), ("target", target_rows)):
        path = tmp_path / f"{name}.duckdb"
        with DuckDBEnvironment(path, name=name) as env:
            env.create_table_from_data("Opportunity", OPPORTUNITY_COLUMNS, rows)
        paths.append(path)
    return paths[0], paths[1]


@pytest.fixture
def environments_file(tmp_path: Path, database_files: tuple[Path, Path]) -> Path:
    """Environment registry pointing at the two database files."""
    path = tmp_path / "environments.yaml"
    path.write_text(
        "environments:\n"
        "  prod:\n"
        "    type: duckdb\n"
        "    database: source.duckdb\n"
        "  sandbox:\n"
        "    database: target.duckdb\n"
    )
    return path


@pytest.fixture(autouse=True)
def isolated_data_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep the describe cache out of the real home directory."""
    home = tmp_path / "home"
    monkeypatch.setenv("METRICRECON_DATA_HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo logging configured by CLI commands, whose streams close after each run."""
    yield
    structlog.reset_defaults()
