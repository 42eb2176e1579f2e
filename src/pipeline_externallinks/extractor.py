"""
Extracts (url, path) string pairs from the rows of an INSERT statement.
"""

from typing import List, Optional, Sequence

from .config import Config
from .results import ExtractionResult
from .schema import SchemaBinding, wrong_table_error
from .statements import Literal, LiteralKind, ParsedStatement


def format_row(row: Sequence[Literal]) -> str:
    return "(" + ", ".join(str(value) for value in row) + ")"


def extract_row(row: Sequence[Literal], binding: SchemaBinding) -> ExtractionResult:
    url_pos, path_pos = binding
    if len(row) <= url_pos or len(row) <= path_pos:
        return ExtractionResult.error(f"Too few inserted values: {format_row(row)}")

    url, path = row[url_pos], row[path_pos]
    if url.kind is LiteralKind.STRING and path.kind is LiteralKind.STRING:
        return ExtractionResult.pair(url.value, path.value)
    return ExtractionResult.error(
        f"Invalid value types at indices {binding}: {format_row(row)}"
    )


def extract_insert(
    statement: ParsedStatement,
    binding: Optional[SchemaBinding],
    config: Config
) -> List[ExtractionResult]:
    """One result per row, or a single error for the whole statement"""
    error = wrong_table_error(statement, config)
    if error is not None:
        return [error]
    if binding is None:
        return [ExtractionResult.error("Insert statement before create table")]
    return [extract_row(row, binding) for row in statement.rows]
