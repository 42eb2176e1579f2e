"""
Rebuilds complete SQL statements from the physical lines of a dump.

A statement ends exactly where an appended line ends with ';'. Semicolons
inside quoted literals are not recognised, so a string value that happens to
end a line with ';' splits its statement early. The resulting fragments are
reported as parse errors downstream.
"""

from typing import List, Optional

COMMENT_PREFIXES = (b"--", b"/*")
STATEMENT_END = b";"


def is_comment(line: bytes) -> bool:
    return not line or line.startswith(COMMENT_PREFIXES)


class StatementReassembler:
    """
    Accumulates non-comment lines until a statement is complete.

    Lines are kept as separate chunks and joined once per statement, so a
    multi-megabyte INSERT is never copied while it grows.
    """

    def __init__(self):
        self.chunks: List[bytes] = []
        self.size = 0

    def consume(self, line: bytes) -> Optional[bytes]:
        """
        Feed one line (without its terminator). Returns the complete
        statement when this line finishes one, otherwise None.
        """
        if is_comment(line):
            return None

        self.chunks.append(line)
        self.size += len(line)
        # Only non-empty lines get here, so the buffer ends where the line does
        if not line.endswith(STATEMENT_END):
            return None

        statement = b"".join(self.chunks)
        self.chunks = []
        self.size = 0
        return statement

    @property
    def pending_bytes(self) -> int:
        """Size of the incomplete statement still buffered"""
        return self.size


def strip_line_terminator(line: bytes) -> bytes:
    """Drop a trailing '\\n' (and a '\\r' before it) from a raw line"""
    if line.endswith(b"\n"):
        line = line[:-1]
    if line.endswith(b"\r"):
        line = line[:-1]
    return line
