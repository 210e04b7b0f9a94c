"""Minimal PDF export of a comparison report.

writes a plain text report in a monospace base font (Courier needs no
embedding), paginated at a fixed line count. no layout engine, no images -
the point is a file that can be attached to a ticket.
"""

from datetime import datetime, timezone
from pathlib import Path

from metricrecon.models.comparison import ComparisonReport

DEFAULT_TITLE = "Data Comparison"
LINES_PER_PAGE = 60
_FONT_SIZE = 9
_LEADING = 11
_NULL = "-"


def _escape(text: str) -> str:
    # pdf string literals: escape backslash and parens, keep to latin-1
    escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    return escaped.encode("latin-1", errors="replace").decode("latin-1")


def _fmt(value: object) -> str:
    return _NULL if value is None else str(value)


def report_lines(
    report: ComparisonReport, title: str | None = None, generated_at: datetime | None = None
) -> list[str]:
    """Plain text lines making up the report body."""
    generated_at = generated_at or datetime.now(timezone.utc)
    lines = [
        f"Report Title: {title or DEFAULT_TITLE}",
        f"Generated At: {generated_at.isoformat()}",
        f"Source: {report.source.name} ({report.source.environment_id})",
        f"Target: {report.target.name} ({report.target.environment_id})",
        f"Object: {report.object}",
        f"Metrics: {' | '.join(row.label for row in report.metrics)}",
        f"Filter: {report.filters.where or ''}",
        f"Sample Size: {report.filters.sample_size}",
        "",
        f"{'Metric':<40}{'Source':<18}{'Target':<18}Difference",
    ]
    for row in report.metrics:
        lines.append(
            f"{row.label[:39]:<40}{_fmt(row.source_value):<18}"
            f"{_fmt(row.target_value):<18}{_fmt(row.difference)}"
        )
    lines.append("")
    lines.append(f"Source Samples: {len(report.samples.source)}")
    lines.append(f"Target Samples: {len(report.samples.target)}")
    return lines


def _content_stream(lines: list[str]) -> bytes:
    body = "\nT*\n".join(f"({_escape(line)}) Tj" for line in lines)
    stream = f"BT\n/F1 {_FONT_SIZE} Tf\n{_LEADING} TL\n50 750 Td\n{body}\nET"
    return stream.encode("latin-1")


def build_pdf(lines: list[str]) -> bytes:
    """Assemble a PDF document with one page per LINES_PER_PAGE lines."""
    pages = [lines[i : i + LINES_PER_PAGE] for i in range(0, len(lines), LINES_PER_PAGE)] or [[]]

    # object numbering: 1 catalog, 2 pages, 3 font, then (page, contents) pairs
    objects: list[bytes] = []
    page_refs = [f"{4 + 2 * i} 0 R" for i in range(len(pages))]
    objects.append(b"<< /Type /Catalog /Pages 2 0 R >>")
    objects.append(
        f"<< /Type /Pages /Kids [{' '.join(page_refs)}] /Count {len(pages)} >>".encode()
    )
    objects.append(b"<< /Type /Font /Subtype /Type1 /BaseFont /Courier >>")

    for index, page_lines in enumerate(pages):
        contents_number = 5 + 2 * index
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Contents {contents_number} 0 R /Resources << /Font << /F1 3 0 R >> >> >>"
            ).encode()
        )
        stream = _content_stream(page_lines)
        objects.append(
            f"<< /Length {len(stream)} >>\nstream\n".encode() + stream + b"\nendstream"
        )

    output = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(output)
    output += f"xref\n0 {len(objects) + 1}\n".encode()
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += f"{offset:010d} 00000 n \n".encode()
    output += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return bytes(output)


def export_comparison_to_pdf(
    report: ComparisonReport,
    output_file: str | Path,
    title: str | None = None,
    generated_at: datetime | None = None,
) -> Path:
    """Write the report as PDF and return the resolved output path."""
    path = Path(output_file).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(build_pdf(report_lines(report, title, generated_at)))
    return path
