"""
Export rendering for JSON, CSV and plain text.
"""

import csv
import io
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Union

from .documents import Checklist, ChecklistItem, ExportDocument
from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

RULE = "=" * 50


class ExportKind(str, Enum):
    JSON = "json"
    CSV = "csv"
    TEXT = "text"


CONTENT_TYPES = {
    ExportKind.JSON: "application/json",
    ExportKind.CSV: "text/csv; charset=utf-8",
    ExportKind.TEXT: "text/plain; charset=utf-8",
}

EXTENSIONS = {
    ExportKind.JSON: "json",
    ExportKind.CSV: "csv",
    ExportKind.TEXT: "txt",
}


@dataclass
class ExportResult:
    content_type: str
    body: bytes
    filename: str


def parse_export_kind(value: Union[str, ExportKind, None], default: ExportKind = ExportKind.JSON) -> ExportKind:
    if value is None or value == "":
        return default
    try:
        return ExportKind(value)
    except ValueError:
        raise ValidationError(f"Unsupported export format: {value}", error_code="INVALID_FORMAT")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _money(amount: float) -> str:
    return f"${amount:.2f}"


class ExportFormatter:
    """Renders export documents."""

    def format(self, document: ExportDocument, kind: Union[str, ExportKind]) -> ExportResult:
        """
        Render a document.

        Args:
            document: Document to render
            kind: json, csv or text

        Returns:
            Content type, encoded body and a suggested file name

        Raises:
            ValidationError: If the format is not supported
        """
        kind = parse_export_kind(kind)
        if kind is ExportKind.JSON:
            body = self.to_json(document)
        elif kind is ExportKind.CSV:
            body = self.to_csv(document)
        else:
            body = self.to_text(document)

        logger.debug(f"Rendered {document.filename_stem} as {kind.value} ({len(body)} chars)")
        return ExportResult(
            content_type=CONTENT_TYPES[kind],
            body=body.encode("utf-8"),
            filename=f"{document.filename_stem}.{EXTENSIONS[kind]}",
        )

    def to_json(self, document: ExportDocument) -> str:
        return json.dumps(document.to_dict(), indent=2)

    def to_csv(self, document: ExportDocument) -> str:
        """Every cell is quoted; embedded quotes are doubled."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")

        for row in document.csv_preamble():
            writer.writerow([_cell(v) for v in row])

        sections = document.sections()
        for index, section in enumerate(sections):
            if index > 0:
                writer.writerow([""])
            if section.name:
                writer.writerow([section.name])
            writer.writerow(section.headers)
            for row in section.rows:
                writer.writerow([_cell(v) for v in row])

        return buffer.getvalue()

    def to_text(self, document: ExportDocument) -> str:
        header = "\n".join([document.title, *document.header_lines(), RULE]) + "\n\n"
        checklist = document.checklist()
        if checklist is not None:
            return header + self._render_checklist(checklist)

        lines = []
        for section in document.sections():
            lines.extend(self._render_section(section.name, section.headers, section.rows))
        lines.append(RULE)
        return header + "\n".join(lines) + "\n"

    def _render_section(self, name, headers: List[str], rows: List[List[Any]]) -> List[str]:
        lines = []
        if name:
            lines.extend([f"{name} ({len(rows)})", "-" * len(name)])
        for row in rows:
            fields = [f"{h}: {_cell(v)}" for h, v in zip(headers, row) if _cell(v)]
            lines.append("  " + ", ".join(fields))
        if not rows:
            lines.append("  (none)")
        lines.append("")
        return lines

    def _render_checklist(self, checklist: Checklist) -> str:
        text = ""
        if checklist.pending:
            text += f"{checklist.pending_heading}:\n"
            for item in checklist.pending:
                text += self._pending_line(item) + "\n"

        if checklist.done:
            text += f"\n\n{checklist.done_heading}:\n"
            for item in checklist.done:
                text += self._done_line(item) + "\n"

        text += "\n" + RULE + "\n"
        text += f"{checklist.pending_total_label}: {_money(checklist.pending_total)}\n"
        text += f"{checklist.done_total_label}: {_money(checklist.done_total)}\n"
        return text

    @staticmethod
    def _pending_line(item: ChecklistItem) -> str:
        line = f"□ {item.quantity}x {item.label}"
        if item.amount:
            line += f" ({_money(item.amount)})"
        if item.vendor:
            line += f" @ {item.vendor}"
        if item.notes:
            line += f"\n   Notes: {item.notes}"
        return line

    @staticmethod
    def _done_line(item: ChecklistItem) -> str:
        line = f"☑ {item.quantity}x {item.label}"
        if item.amount:
            line += f" ({_money(item.amount)})"
        if item.done_on:
            line += f" - {item.done_on.isoformat()}"
        return line
