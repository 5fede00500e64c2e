"""
FILE: snackboard/core/csv_import.py
PURPOSE: Bulk task creation from pasted CSV text
EXPORTS:
  - ImportResult (dataclass)
  - parse_csv_line(line) -> List[str]
  - import_tasks_from_csv(store, csv_text, project_id) -> ImportResult
DEPENDENCIES:
  - re (stdlib)
  - logging (stdlib)
  - snackboard.core.constants, snackboard.core.exceptions
NOTES:
  - Header: Title, Focus, Size, Column (required, any order, case-insensitive), Type (optional)
  - Quotes only toggle "commas are literal"; there is no escaped-quote handling
  - Rows with a blank title are skipped and counted
  - Unknown sizes fall back to 5, unknown columns to backlog
"""

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

from .constants import (
    CSV_COLUMN_MAP,
    CSV_PROMPT_TYPE,
    CSV_REQUIRED_FIELDS,
    DEFAULT_COLUMN,
    DEFAULT_SIZE,
    SIZE_OPTIONS,
)
from .exceptions import CSVImportError

if TYPE_CHECKING:
    from .store import Store

logger = logging.getLogger(__name__)

_SIZE_PATTERN = re.compile(r"(\d+)m?")


@dataclass
class ImportResult:
    """Outcome of a CSV import."""

    imported: int = 0
    skipped: int = 0

    @property
    def message(self) -> str:
        text = f"Imported {self.imported} task{'' if self.imported == 1 else 's'}"
        if self.skipped:
            text += f", {self.skipped} skipped"
        return text


def parse_csv_line(line: str) -> List[str]:
    """
    Split one CSV line on commas outside double quotes.

    Quote characters are dropped and each field is trimmed.
    """
    fields = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


def _field(values: List[str], index: int) -> str:
    if index < 0 or index >= len(values):
        return ""
    return values[index].strip()


def _parse_size(text: str) -> int:
    match = _SIZE_PATTERN.search(text)
    if match:
        size = int(match.group(1))
        if size in SIZE_OPTIONS:
            return size
    return DEFAULT_SIZE


def import_tasks_from_csv(
    store: "Store",
    csv_text: str,
    project_id: Optional[str] = None,
) -> ImportResult:
    """
    Create one task per data row.

    Args:
        store: Store to create tasks in
        csv_text: Header line plus at least one data row
        project_id: Project for every created task ('all' or None means no project)

    Returns:
        ImportResult with imported/skipped counts and a user-facing message

    Raises:
        CSVImportError: If there is no data row or a required header is missing
    """
    lines = [line for line in csv_text.strip().splitlines() if line.strip()]
    if len(lines) < 2:
        raise CSVImportError("CSV must have at least a header and one data row")

    header = [name.lower() for name in parse_csv_line(lines[0])]
    if not all(name in header for name in CSV_REQUIRED_FIELDS):
        raise CSVImportError("CSV header must be: Title,Focus,Size,Column (optional: Type)")

    title_index = header.index("title")
    focus_index = header.index("focus")
    size_index = header.index("size")
    column_index = header.index("column")
    type_index = header.index("type") if "type" in header else -1

    result = ImportResult()

    for line in lines[1:]:
        values = parse_csv_line(line)

        title = _field(values, title_index)
        if not title:
            result.skipped += 1
            continue

        focus = _field(values, focus_index)
        prompt_only = _field(values, type_index).lower() == CSV_PROMPT_TYPE
        column_id = CSV_COLUMN_MAP.get(_field(values, column_index).lower(), DEFAULT_COLUMN)
        size_id = None if prompt_only else _parse_size(_field(values, size_index).lower())

        if focus:
            store.ensure_labels([focus])

        store.create_task(
            title,
            project_id=project_id,
            column_id=column_id,
            prompt_only=prompt_only,
            size_id=size_id,
            labels=[focus] if focus else None,
        )
        result.imported += 1

    logger.info("CSV import: %s imported, %s skipped", result.imported, result.skipped)
    return result
