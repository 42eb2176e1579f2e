"""Extract external link URLs from Wikipedia externallinks SQL dumps.

The scan runs in two stages. A sequential stage reassembles statements and
resolves the target columns. A pool of worker processes then parses INSERT
statements and extracts (url, path) pairs. See ``pipeline`` for the details.
"""

from .config import Config
from .pipeline import ScanCounts, iter_extraction_results
from .results import DumpReadError, ExtractionError, ExtractionResult, ResultKind, SqlSyntaxError

__all__ = [
    "Config",
    "DumpReadError",
    "ExtractionError",
    "ExtractionResult",
    "ResultKind",
    "ScanCounts",
    "SqlSyntaxError",
    "iter_extraction_results",
]
