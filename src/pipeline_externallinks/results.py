"""
Result values and exceptions shared by every stage of the extractor.

Successful extractions and per-statement failures travel through the same
stream as ExtractionResult values. Only a failure to read the input is raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ResultKind(Enum):
    PAIR = "pair"
    ERROR = "error"


@dataclass(frozen=True)
class ExtractionResult:
    """One extracted (url, path) pair or one error message"""
    kind: ResultKind
    url: Optional[str] = None
    path: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def pair(cls, url: str, path: str) -> "ExtractionResult":
        return cls(ResultKind.PAIR, url=url, path=path)

    @classmethod
    def error(cls, message: str) -> "ExtractionResult":
        return cls(ResultKind.ERROR, message=message)

    @property
    def is_error(self) -> bool:
        return self.kind is ResultKind.ERROR


class ExtractionError(Exception):
    """Base class for errors raised by the extractor"""


class SqlSyntaxError(ExtractionError):
    """A statement could not be parsed"""


class DumpReadError(ExtractionError):
    """The input stream failed while being read. Ends the scan."""
