"""CLI for metricrecon."""

from pathlib import Path
from typing import Annotated

import duckdb
import sqlglot
import typer
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from sqlglot.errors import SqlglotError

from metricrecon.config import connect, load_environments, resolve_environment
from metricrecon.errors import MetricReconError, OutputFileRequiredError
from metricrecon.exporters.csv_exporter import export_comparison_to_csv
from metricrecon.exporters.pdf_exporter import export_comparison_to_pdf
from metricrecon.metadata.cache import MetadataCache
from metricrecon.metadata.discovery import MetadataDiscovery
from metricrecon.models.comparison import ComparisonReport
from metricrecon.observability import configure_logging
from metricrecon.service import DataComparisonService
from metricrecon.settings import Settings

app = typer.Typer(
    name="metricrecon",
    help="metricrecon - compare aggregate metrics across two environments",
    no_args_is_help=True,
)
console = Console()

FORMATS = ("table", "json", "csv", "pdf")
FILE_FORMATS = ("csv", "pdf")
# backend failures: bad database files, queries duckdb or sqlglot reject
QUERY_ERRORS = (duckdb.Error, SqlglotError)

ConfigOption = Annotated[
    Path | None, typer.Option("--config", help="Environment registry (YAML)")
]
CacheOption = Annotated[
    int | None,
    typer.Option("--metadata-cache", help="Describe cache TTL in minutes, 0 disables"),
]


def _settings() -> Settings:
    settings = Settings()
    configure_logging(settings.log_level, settings.log_json)
    return settings


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]{escape(message)}[/red]")
    return typer.Exit(1)


def _build_service(
    settings: Settings,
    source: str,
    target: str,
    config: Path | None,
    cache_minutes: int | None,
    timeout_minutes: float | None,
) -> DataComparisonService:
    environments = load_environments(config or settings.environments_file)
    ttl = settings.metadata_cache_minutes if cache_minutes is None else cache_minutes
    timeout = settings.timeout_minutes if timeout_minutes is None else timeout_minutes
    return DataComparisonService(
        connect(resolve_environment(source, environments)),
        connect(resolve_environment(target, environments)),
        MetadataCache(ttl, settings.metadata_cache_path),
        timeout_seconds=timeout * 60 if timeout > 0 else None,
    )


def _close(service: DataComparisonService) -> None:
    service.source.close()
    service.target.close()


@app.command()
def compare(
    source: Annotated[str, typer.Option("--source", "-s", help="Source environment")],
    target: Annotated[str, typer.Option("--target", "-t", help="Target environment")],
    object_name: Annotated[str, typer.Option("--object", help="Object (table) to compare")],
    metrics: Annotated[
        list[str] | None,
        typer.Option("--metrics", "-m", help="Metric tokens, repeatable or comma-separated"),
    ] = None,
    where: Annotated[str | None, typer.Option("--where", help="Base filter")] = None,
    sample_size: Annotated[
        int, typer.Option("--sample-size", min=0, help="Rows to sample per environment")
    ] = 0,
    metadata_cache: CacheOption = None,
    output_format: Annotated[
        str, typer.Option("--format", help="Output format: table, json, csv, pdf")
    ] = "table",
    output_file: Annotated[
        Path | None, typer.Option("--output-file", help="Report path for csv/pdf")
    ] = None,
    report_title: Annotated[
        str | None, typer.Option("--report-title", help="Title for csv/pdf reports")
    ] = None,
    timeout: Annotated[
        float | None, typer.Option("--timeout", help="Timeout in minutes, 0 for none")
    ] = None,
    config: ConfigOption = None,
) -> None:
    """Compare metrics for one object between two environments."""
    settings = _settings()

    output_format = output_format.lower()
    if output_format not in FORMATS:
        raise _fail(f"Unknown format: {output_format}. Use: {', '.join(FORMATS)}")

    try:
        # checked before any environment is contacted
        if output_format in FILE_FORMATS and output_file is None:
            raise OutputFileRequiredError(
                f"--output-file is required for {output_format} output."
            )
        service = _build_service(settings, source, target, config, metadata_cache, timeout)
        try:
            report = service.compare(object_name, metrics, where, sample_size)
        finally:
            _close(service)
    except MetricReconError as e:
        raise _fail(f"{e.code}: {e}")
    except QUERY_ERRORS as e:
        raise _fail(f"Query error: {e}")

    if output_format == "json":
        typer.echo(report.model_dump_json(indent=2))
    elif output_format == "csv":
        path = export_comparison_to_csv(report, output_file, report_title)
        console.print(f"[green]Wrote {escape(str(path))}[/green]")
    elif output_format == "pdf":
        path = export_comparison_to_pdf(report, output_file, report_title)
        console.print(f"[green]Wrote {escape(str(path))}[/green]")
    else:
        _print_report(report)


def _format_value(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:,.4f}".rstrip("0").rstrip(".")
    return str(value)


def _print_report(report: ComparisonReport) -> None:
    table = Table(
        title=f"{report.object}: {report.source.name} vs {report.target.name}",
        caption=f"where: {report.filters.where}" if report.filters.where else None,
    )
    table.add_column("Metric", style="cyan")
    table.add_column("Source", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Target - Source", justify="right")

    for row in report.metrics:
        diff = _format_value(row.difference)
        if row.difference:
            diff = f"[yellow]{diff}[/yellow]"
        table.add_row(
            escape(row.label),
            escape(_format_value(row.source_value)),
            escape(_format_value(row.target_value)),
            diff,
        )

    console.print(table)

    for label, samples in (
        (report.source.name, report.samples.source),
        (report.target.name, report.samples.target),
    ):
        if samples:
            _print_samples(f"Sample records - {label}", samples)


def _print_samples(title: str, samples: list[dict]) -> None:
    columns = list(samples[0].keys())
    table = Table(title=title)
    for col in columns:
        table.add_column(col)
    for record in samples:
        table.add_row(*[escape(_format_value(record.get(c))) for c in columns])
    console.print(table)


@app.command()
def plan(
    source: Annotated[str, typer.Option("--source", "-s", help="Source environment")],
    target: Annotated[str, typer.Option("--target", "-t", help="Target environment")],
    object_name: Annotated[str, typer.Option("--object", help="Object (table) to compare")],
    metrics: Annotated[
        list[str] | None,
        typer.Option("--metrics", "-m", help="Metric tokens, repeatable or comma-separated"),
    ] = None,
    where: Annotated[str | None, typer.Option("--where", help="Base filter")] = None,
    sample_size: Annotated[
        int, typer.Option("--sample-size", min=0, help="Rows to sample per environment")
    ] = 0,
    metadata_cache: CacheOption = None,
    pretty: Annotated[bool, typer.Option("--pretty", help="Format queries")] = False,
    config: ConfigOption = None,
) -> None:
    """Show the compiled queries without executing them."""
    settings = _settings()

    try:
        service = _build_service(settings, source, target, config, metadata_cache, None)
        try:
            planned = service.plan(object_name, metrics, where, sample_size)
        finally:
            _close(service)
    except MetricReconError as e:
        raise _fail(f"{e.code}: {e}")
    except QUERY_ERRORS as e:
        raise _fail(f"Query error: {e}")

    queries = []
    if planned.plan.aggregate_query:
        queries.append(("Aggregate query", planned.plan.aggregate_query))
    for conditional in planned.plan.conditional_metrics:
        queries.append((f"Conditional query ({conditional.alias})", conditional.aggregate_query))
    if planned.sample_query:
        queries.append(("Sample query", planned.sample_query))

    for title, query in queries:
        console.print(f"[bold]{title}[/bold]")
        if pretty:
            console.print(Syntax(_pretty(query), "sql", theme="monokai"))
        else:
            typer.echo(query)
        console.print()


def _pretty(query: str) -> str:
    try:
        return sqlglot.transpile(query, read="mysql", write="mysql", pretty=True)[0]
    except SqlglotError:
        return query


@app.command()
def describe(
    environment: Annotated[str, typer.Option("--env", "-e", help="Environment to describe")],
    object_name: Annotated[str, typer.Option("--object", help="Object (table) to describe")],
    metadata_cache: CacheOption = None,
    config: ConfigOption = None,
) -> None:
    """Show the fields of an object in one environment."""
    settings = _settings()
    ttl = settings.metadata_cache_minutes if metadata_cache is None else metadata_cache

    try:
        env = connect(
            resolve_environment(environment, load_environments(config or settings.environments_file))
        )
        try:
            schema = MetadataDiscovery(
                env, MetadataCache(ttl, settings.metadata_cache_path)
            ).describe_object(object_name)
        finally:
            env.close()
    except MetricReconError as e:
        raise _fail(f"{e.code}: {e}")
    except QUERY_ERRORS as e:
        raise _fail(f"Query error: {e}")

    table = Table(title=f"{schema.name} ({env.name})")
    table.add_column("Field", style="cyan")
    table.add_column("Label")
    table.add_column("Type", style="green")
    table.add_column("Aggregatable")
    table.add_column("Filterable")

    for field in schema.fields:
        table.add_row(
            field.name,
            field.label or "-",
            field.type,
            "yes" if field.aggregatable else "no",
            "yes" if field.filterable else "no",
        )

    console.print(table)


if __name__ == "__main__":
    app()
