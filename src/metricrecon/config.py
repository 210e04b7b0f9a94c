"""Environment registry loaded from YAML.

the file maps short names to connection settings, so the cli can say
`--source prod --target sandbox` instead of repeating paths:

    environments:
      prod:
        type: duckdb
        database: exports/prod.duckdb
      sandbox:
        database: exports/sandbox.duckdb
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel

from metricrecon.errors import EnvironmentNotFoundError
from metricrecon.executor.duckdb_executor import DuckDBEnvironment

# files with these suffixes can be passed directly instead of a configured name
_DATABASE_SUFFIXES = (".duckdb", ".db")


class EnvironmentConfig(BaseModel):
    name: str
    type: Literal["duckdb"] = "duckdb"
    database: str
    read_only: bool = True


def load_environments(path: str | Path) -> dict[str, EnvironmentConfig]:
    """Load the environment registry. A missing file is an empty registry."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        data = yaml.safe_load(f)

    if not data:
        return {}

    environments = {}
    for name, settings in (data.get("environments") or {}).items():
        settings = dict(settings or {})
        database = settings.get("database")
        # relative paths are relative to the config file, not the cwd
        if database and not Path(database).is_absolute():
            settings["database"] = str(path.parent / database)
        environments[name] = EnvironmentConfig.model_validate({"name": name, **settings})
    return environments


def resolve_environment(
    name: str, environments: dict[str, EnvironmentConfig]
) -> EnvironmentConfig:
    """Look up a configured environment, or accept a database file path as-is."""
    if name in environments:
        return environments[name]

    candidate = Path(name)
    if candidate.suffix in _DATABASE_SUFFIXES and candidate.exists():
        return EnvironmentConfig(name=candidate.stem, database=str(candidate))

    known = ", ".join(sorted(environments)) or "none configured"
    raise EnvironmentNotFoundError(f"Unknown environment '{name}' (known: {known}).")


def connect(config: EnvironmentConfig) -> DuckDBEnvironment:
    return DuckDBEnvironment(config.database, name=config.name, read_only=config.read_only)
