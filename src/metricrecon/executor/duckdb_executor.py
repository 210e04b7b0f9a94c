"""DuckDB-backed environment for metricrecon.

a duckdb file stands in for one environment: each table is an object, each
column a field. handy for local reconciliation of exports and for tests,
since it needs no server.

the compiler speaks the vendor query syntax, so queries are run through
sqlglot before they hit duckdb (COUNT_DISTINCT(x) -> COUNT(DISTINCT x), bare
ISO dates -> typed literals).
"""

import re
import time
from datetime import date, datetime, time as dt_time
from decimal import Decimal
from pathlib import Path
from typing import Any

import duckdb
import sqlglot
import structlog
from sqlglot import exp

from metricrecon.errors import ObjectNotFoundError
from metricrecon.models.query import QueryResult
from metricrecon.models.schema import FieldMetadata, ObjectSchema

logger = structlog.get_logger()

# vendor string literals use backslash escapes, which the mysql reader understands
SOURCE_DIALECT = "mysql"
TARGET_DIALECT = "duckdb"

_BARE_DATETIME = re.compile(
    r"(?<!['\w-])(\d{4}-\d{2}-\d{2})(T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?(Z|[+-]\d{2}:?\d{2})?(?![\w'-])"
)
_QUOTED = re.compile(r"('(?:\\.|[^'\\])*')")

# duckdb type prefix -> (vendor type, aggregatable)
_TYPE_MAP = [
    ("TIMESTAMP", "datetime", True),
    ("DATE", "date", True),
    ("TIME", "time", True),
    ("DECIMAL", "currency", True),
    ("NUMERIC", "currency", True),
    ("DOUBLE", "double", True),
    ("FLOAT", "double", True),
    ("REAL", "double", True),
    ("HUGEINT", "long", True),
    ("UHUGEINT", "long", True),
    ("BIGINT", "long", True),
    ("UBIGINT", "long", True),
    ("INTEGER", "int", True),
    ("UINTEGER", "int", True),
    ("SMALLINT", "int", True),
    ("USMALLINT", "int", True),
    ("TINYINT", "int", True),
    ("UTINYINT", "int", True),
    ("BOOLEAN", "boolean", False),
    ("VARCHAR", "string", True),
    ("UUID", "string", True),
    ("BLOB", "base64", False),
]


def vendor_field_type(column_name: str, duckdb_type: str) -> tuple[str, bool]:
    """Map a duckdb column type to (vendor type, aggregatable).

    nested types (LIST, STRUCT, MAP, ...) fall through to anyType and aren't
    aggregatable.
    """
    if column_name.lower() == "id":
        return "id", True
    upper = duckdb_type.upper()
    if upper.endswith("[]"):
        return "anyType", False
    for prefix, vendor_type, aggregatable in _TYPE_MAP:
        if upper.startswith(prefix):
            return vendor_type, aggregatable
    return "anyType", False


def translate_query(query: str) -> str:
    """Translate a vendor aggregate/sample query into duckdb sql."""
    parts = _QUOTED.split(query)
    # odd indexes are the quoted strings, leave those alone
    prepared = "".join(
        part if index % 2 else _BARE_DATETIME.sub(_typed_literal, part)
        for index, part in enumerate(parts)
    )
    tree = sqlglot.parse_one(prepared, read=SOURCE_DIALECT)
    return tree.transform(_rewrite_vendor_functions).sql(dialect=TARGET_DIALECT)


def _typed_literal(match: re.Match) -> str:
    day, clock, _zone = match.groups()
    if clock:
        return f"CAST('{day} {clock[1:]}' AS TIMESTAMP)"
    return f"CAST('{day}' AS DATE)"


def _rewrite_vendor_functions(node: exp.Expression) -> exp.Expression:
    if isinstance(node, exp.Anonymous) and node.name.upper() == "COUNT_DISTINCT":
        return exp.Count(this=exp.Distinct(expressions=list(node.expressions)))
    return node


def _plain_value(value: Any) -> Any:
    """Make driver values json/csv friendly for sample rows."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date, dt_time)):
        return value.isoformat()
    return value


class DuckDBEnvironment:
    """One environment backed by a duckdb database.

    lazy connection like the rest of the executors - nothing is opened until
    the first query or describe.
    """

    def __init__(
        self,
        database_path: str | Path | None = None,
        name: str | None = None,
        read_only: bool = False,
    ) -> None:
        """Initialize the environment.

        Args:
            database_path: Path to a DuckDB file, or None for in-memory.
            name: Label used in logs and error messages.
            read_only: Open the file read-only (ignored for in-memory).
        """
        self.database_path = str(database_path) if database_path else None
        self.name = name or (Path(self.database_path).stem if self.database_path else "memory")
        self.read_only = read_only and self.database_path is not None
        self._conn: duckdb.DuckDBPyConnection | None = None

    @property
    def environment_id(self) -> str:
        if self.database_path is None:
            return f"duckdb:memory:{self.name}"
        return f"duckdb:{Path(self.database_path).resolve()}"

    @property
    def schema_version(self) -> str:
        return duckdb.__version__

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self._conn = duckdb.connect(self.database_path or ":memory:", read_only=self.read_only)
        return self._conn

    def execute(self, sql: str, parameters: list[Any] | None = None) -> QueryResult:
        """Execute duckdb sql as-is and return structured results."""
        start = time.perf_counter()

        result = self.conn.execute(sql, parameters) if parameters else self.conn.execute(sql)
        columns = [desc[0] for desc in result.description] if result.description else []
        rows = result.fetchall() if columns else []

        elapsed_ms = (time.perf_counter() - start) * 1000
        data = [dict(zip(columns, row)) for row in rows]

        logger.debug(
            "query_executed",
            environment=self.name,
            sql=sql,
            row_count=len(data),
            elapsed_ms=round(elapsed_ms, 2),
        )
        return QueryResult(
            sql=sql,
            columns=columns,
            data=data,
            row_count=len(data),
            execution_time_ms=round(elapsed_ms, 2),
        )

    def run_aggregate_query(self, query: str) -> dict[str, Any]:
        result = self.execute(translate_query(query))
        return result.data[0] if result.data else {}

    def run_sample_query(self, query: str) -> list[dict[str, Any]]:
        result = self.execute(translate_query(query))
        return [{key: _plain_value(value) for key, value in row.items()} for row in result.data]

    def describe_object(self, object_name: str) -> ObjectSchema:
        """Describe a table as an object schema.

        table lookup ignores case, the returned schema uses the catalog's name.
        """
        table = self._resolve_table(object_name)
        if table is None:
            raise ObjectNotFoundError(object_name, self.name)

        rows = self.conn.execute(
            "SELECT column_name, data_type FROM information_schema.columns "
            "WHERE table_name = ? ORDER BY ordinal_position",
            [table],
        ).fetchall()

        fields = []
        for column_name, data_type in rows:
            vendor_type, aggregatable = vendor_field_type(column_name, data_type)
            fields.append(
                FieldMetadata(
                    name=column_name,
                    label=column_name.replace("_", " "),
                    type=vendor_type,
                    aggregatable=aggregatable,
                    filterable=vendor_type != "base64",
                )
            )
        return ObjectSchema(name=table, label=table, fields=fields)

    def _resolve_table(self, object_name: str) -> str | None:
        row = self.conn.execute(
            "SELECT table_name FROM information_schema.tables "
            "WHERE lower(table_name) = lower(?) ORDER BY table_name LIMIT 1",
            [object_name.strip()],
        ).fetchone()
        return row[0] if row else None

    def create_table_from_data(
        self, table_name: str, columns: list[str], data: list[tuple[Any, ...]]
    ) -> None:
        """Create a table from in-memory rows.

        ``columns`` are full column definitions, e.g. ``"Amount DECIMAL(12, 2)"``.
        """
        if not data:
            raise ValueError("Cannot create table from empty data")

        placeholders = ", ".join(["?"] * len(columns))
        self.conn.execute(f"CREATE OR REPLACE TABLE {table_name} ({', '.join(columns)})")
        self.conn.executemany(f"INSERT INTO {table_name} VALUES ({placeholders})", data)

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "DuckDBEnvironment":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
