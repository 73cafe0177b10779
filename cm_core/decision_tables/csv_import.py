# cm_core/decision_tables/csv_import.py
"""
Decision-table CSV importer.

Layout of the spreadsheet export (";"-separated, one record per line):

    row 0  group marker      "Primeiro Grupo" / "Segundo Grupo", carried to the right
    row 1  column sequence   numeric, otherwise sorts last (9999)
    row 2  category label    empty / "Fim" / "Coluna Extra" drop the column
    row 3  reserved          not consumed
    row 4  "Marcar" marker   only meaningful inside the first group
    row 5+ data              column 1 holds the clinical case code

Columns 0 and 1 are row labels; product columns start at index 2.
"""
from __future__ import annotations

import csv
import logging
import math
import re
from dataclasses import dataclass
from functools import reduce
from typing import Iterable, Optional

from django.core.files.base import ContentFile
from django.db import transaction
from rest_framework.exceptions import ValidationError

from cm_core.decision_tables.models import (
    UNSEQUENCED_COLUMN,
    DecisionEntry,
    DecisionTable,
    EntryGroup,
)
from cm_core.decision_tables.services import DecisionTableService

logger = logging.getLogger(__name__)

DELIMITER = ";"

GROUPS_ROW = 0
SEQUENCE_ROW = 1
CATEGORIES_ROW = 2
RESERVED_ROW = 3
MARK_ROW = 4
HEADER_ROWS = 5
MIN_LINES = HEADER_ROWS + 1

FIRST_PRODUCT_COLUMN = 2
CASE_CODE_COLUMN = 1

FIRST_GROUP_TOKEN = "primeiro grupo"
SECOND_GROUP_TOKEN = "segundo grupo"
MARK_TOKEN = "marcar"

EXCLUDED_CATEGORIES = {"Fim", "Coluna Extra"}
SKIPPED_CELLS = {"*****", "Fim"}

CASE_CODE_RE = re.compile(r"^P[SNRMO]", re.IGNORECASE)
LEGEND_CELL_RE = re.compile(r"^Linhas?\s+\d+$", re.IGNORECASE)
NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
MAX_SEQUENCE = 2**31 - 1

MSG_TOO_SHORT = "CSV must have at least 6 lines (5 header rows + data)."
MSG_NO_FIRST_GROUP = 'Row 1 must contain "Primeiro Grupo".'
MSG_NO_CATEGORIES = "Row 3 must contain the product categories."
MSG_NO_CASES = (
    "No valid clinical case found "
    "(case codes must start with P followed by S, N, R, M or O)."
)


@dataclass(frozen=True)
class ProductColumn:
    index: int
    category: str
    group: str
    should_mark: bool
    sequence: int


@dataclass(frozen=True)
class ParsedEntry:
    clinical_case_code: str
    category: str
    product_code: str
    group: str
    should_mark: bool
    display_order: int
    column_sequence: int


# -------------------------------------------------------------------
# Parsing (pure)
# -------------------------------------------------------------------

def decode_csv_bytes(raw: bytes) -> str:
    """
    Spreadsheet exports arrive as UTF-8 (with or without BOM) or latin-1.
    """
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def parse_csv_lines(content: str) -> list[list[str]]:
    """
    Split raw text into cell lists. Blank lines are dropped, quoting follows
    the csv module's defaults.
    """
    text = (content or "").lstrip("\ufeff")
    lines: list[list[str]] = []
    for raw in text.split("\n"):
        row = raw.strip("\r\n")
        if not row:
            continue
        lines.append(next(csv.reader([row], delimiter=DELIMITER)))
    return lines


def _cell(row: list[str], index: int) -> str:
    return row[index].strip() if index < len(row) else ""


def _sequence(value: str) -> int:
    if not NUMERIC_RE.match(value):
        return UNSEQUENCED_COLUMN
    number = float(value)
    # "1e400" parses to inf; huge values would not fit the column
    if not math.isfinite(number) or abs(number) > MAX_SEQUENCE:
        return UNSEQUENCED_COLUMN
    return int(number)


def product_columns(lines: list[list[str]]) -> dict[int, ProductColumn]:
    """
    Left fold over the header columns, carrying the current group.
    Columns without a usable category are dropped before their group marker
    is read.
    """
    groups_row = lines[GROUPS_ROW] if len(lines) > GROUPS_ROW else []
    sequence_row = lines[SEQUENCE_ROW] if len(lines) > SEQUENCE_ROW else []
    categories_row = lines[CATEGORIES_ROW] if len(lines) > CATEGORIES_ROW else []
    mark_row = lines[MARK_ROW] if len(lines) > MARK_ROW else []

    def step(acc: tuple[str, dict[int, ProductColumn]], index: int):
        current_group, columns = acc

        category = _cell(categories_row, index)
        if not category or category in EXCLUDED_CATEGORIES:
            return acc

        marker = _cell(groups_row, index).lower()
        if SECOND_GROUP_TOKEN in marker:
            current_group = EntryGroup.SECOND
        elif FIRST_GROUP_TOKEN in marker:
            current_group = EntryGroup.FIRST

        # second-group columns are never marked, whatever the marker says
        is_first = current_group == EntryGroup.FIRST
        marked = MARK_TOKEN in _cell(mark_row, index).lower() or is_first

        column = ProductColumn(
            index=index,
            category=category,
            group=current_group,
            should_mark=marked and is_first,
            sequence=_sequence(_cell(sequence_row, index)),
        )
        return current_group, {**columns, index: column}

    _, columns = reduce(
        step,
        range(FIRST_PRODUCT_COLUMN, len(categories_row)),
        (EntryGroup.FIRST, {}),
    )
    return columns


def is_case_code(value: str) -> bool:
    return bool(value) and CASE_CODE_RE.match(value) is not None


def _is_product_cell(value: str) -> bool:
    if not value or value in SKIPPED_CELLS:
        return False
    return LEGEND_CELL_RE.match(value) is None


def parse_entries(lines: list[list[str]], columns: dict[int, ProductColumn]) -> Iterable[ParsedEntry]:
    display_order = 0
    for row in lines[HEADER_ROWS:]:
        if len(row) <= CASE_CODE_COLUMN:
            continue
        case_code = _cell(row, CASE_CODE_COLUMN)
        if not is_case_code(case_code):
            continue

        for index, column in columns.items():
            value = _cell(row, index)
            if not _is_product_cell(value):
                continue
            yield ParsedEntry(
                clinical_case_code=case_code,
                category=column.category,
                product_code=value,
                group=column.group,
                should_mark=column.should_mark,
                display_order=display_order,
                column_sequence=column.sequence,
            )

        display_order += 1


# -------------------------------------------------------------------
# Validation (advisory, never raises)
# -------------------------------------------------------------------

def validate_csv(content: str) -> list[str]:
    issues: list[str] = []
    lines = parse_csv_lines(content)

    if len(lines) < MIN_LINES:
        return [MSG_TOO_SHORT]

    if not any(FIRST_GROUP_TOKEN in cell.lower() for cell in lines[GROUPS_ROW]):
        issues.append(MSG_NO_FIRST_GROUP)

    if not any(cell.strip() for cell in lines[CATEGORIES_ROW]):
        issues.append(MSG_NO_CATEGORIES)

    valid_cases = sum(1 for row in lines[HEADER_ROWS:] if is_case_code(_cell(row, CASE_CODE_COLUMN)))
    if valid_cases == 0:
        issues.append(MSG_NO_CASES)

    return issues


# -------------------------------------------------------------------
# Import (atomic)
# -------------------------------------------------------------------

def import_csv(
    content: str,
    *,
    name: str,
    description: Optional[str] = None,
    file_name: Optional[str] = None,
    set_default: bool = False,
) -> DecisionTable:
    """
    Create a DecisionTable with all entries parsed from `content`.

    Table, entries, the stored CSV and the default flag flip share one
    transaction: a failure anywhere leaves no rows behind.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError({"name": "Table name is required."})

    lines = parse_csv_lines(content)
    if len(lines) < MIN_LINES:
        raise ValidationError({"detail": MSG_TOO_SHORT})

    columns = product_columns(lines)

    with transaction.atomic():
        table = DecisionTable.objects.create(
            name=name,
            description=description or "",
            source_file_name=file_name or "",
            is_active=True,
            is_default=False,
        )

        entries = [
            DecisionEntry(
                table=table,
                clinical_case_code=e.clinical_case_code,
                category=e.category,
                product_code=e.product_code,
                group=e.group,
                should_mark=e.should_mark,
                display_order=e.display_order,
                column_sequence=e.column_sequence,
            )
            for e in parse_entries(lines, columns)
        ]
        DecisionEntry.objects.bulk_create(entries)

        table.source_file.save(f"{table.id}.csv", ContentFile(content.encode("utf-8")), save=False)
        table.save(update_fields=["source_file", "updated_at"])

        if set_default:
            DecisionTableService.set_default(table=table)

    logger.info(
        "Imported decision table id=%s name=%r: %d product columns, %d entries, default=%s",
        table.id,
        table.name,
        len(columns),
        len(entries),
        set_default,
    )
    return DecisionTable.objects.get(id=table.id)
