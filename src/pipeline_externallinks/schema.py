"""
Resolves where the target columns sit in the target table's rows.
"""

from typing import List, Optional, Sequence, Tuple

from .config import Config
from .results import ExtractionResult
from .statements import ParsedStatement

# (url column position, path column position), zero-based
SchemaBinding = Tuple[int, int]


def wrong_table_error(statement: ParsedStatement, config: Config) -> Optional[ExtractionResult]:
    """Error result if the statement is for a table other than the target"""
    if statement.table != config.table:
        return ExtractionResult.error(f"Wrong table: '{statement.table}'")
    return None


def find_target_columns(columns: Sequence[str], targets: Sequence[str]) -> Optional[SchemaBinding]:
    """Positions of both target names in the column list, or None if either is missing"""
    positions = [None, None]
    for i, name in enumerate(columns):
        for j, target in enumerate(targets):
            if name == target:
                positions[j] = i

    if positions[0] is None or positions[1] is None:
        return None
    return positions[0], positions[1]


def resolve_schema(
    statement: ParsedStatement,
    config: Config
) -> Tuple[Optional[SchemaBinding], List[ExtractionResult]]:
    """
    Resolve the binding from a CREATE TABLE statement.

    Returns (binding, []) on success and (None, [error]) when the statement
    is for another table or lacks one of the target columns.
    """
    error = wrong_table_error(statement, config)
    if error is not None:
        return None, [error]

    binding = find_target_columns(statement.columns, config.columns)
    if binding is None:
        missing = [c for c in config.columns if c not in statement.columns]
        return None, [ExtractionResult.error(
            f"Target field not found: {', '.join(missing)} (table '{statement.table}')"
        )]
    return binding, []
