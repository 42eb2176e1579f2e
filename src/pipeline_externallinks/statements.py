"""
SQL STATEMENT PARSER

Turns one complete dump statement (bytes) into a ParsedStatement. Covers the
MySQL dump subset the extractor needs: CREATE TABLE column declarations and
INSERT ... VALUES rows. Any other keyword-led statement parses as OTHER.

Tokenizing is done by a sqlparse lexer with a MySQL string rule. Grouping is
not used: sqlparse's statement tree is far too slow for multi-megabyte
INSERT statements.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from sqlparse import keywords
from sqlparse import tokens as T
from sqlparse.lexer import Lexer

from .results import SqlSyntaxError

# First words of CREATE TABLE body entries that are not column declarations
CONSTRAINT_KEYWORDS = frozenset({
    "CONSTRAINT", "PRIMARY", "KEY", "INDEX", "UNIQUE",
    "FOREIGN", "FULLTEXT", "SPATIAL", "CHECK",
})

INSERT_MODIFIERS = frozenset({"LOW_PRIORITY", "DELAYED", "HIGH_PRIORITY", "IGNORE", "INTO"})

MYSQL_ESCAPES = {
    "0": "\0",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "Z": "\x1a",
}
ESCAPE_REGEX = re.compile(r"\\(.)|''", re.DOTALL)

# MySQL escapes backslashes inside strings, so 'C:\\' ends at its last quote.
# sqlparse's own string rule reads that \\' as an escaped quote.
MYSQL_STRING_REGEX = r"'(?:''|\\[\s\S]|[^'\\])*'"


def _mysql_lexer() -> Lexer:
    mysql_lexer = Lexer()
    mysql_lexer.default_initialization()
    mysql_lexer.set_SQL_REGEX([(MYSQL_STRING_REGEX, T.String.Single)] + list(keywords.SQL_REGEX))
    return mysql_lexer


MYSQL_LEXER = _mysql_lexer()


class StatementKind(Enum):
    CREATE_TABLE = "create_table"
    INSERT = "insert"
    OTHER = "other"


class LiteralKind(Enum):
    STRING = "string"
    OTHER = "other"


@dataclass(frozen=True)
class Literal:
    """A scalar value from an INSERT tuple"""
    kind: LiteralKind
    value: str

    def __str__(self) -> str:
        if self.kind is LiteralKind.STRING:
            return repr(self.value)
        return self.value


@dataclass
class ParsedStatement:
    """Tagged result of parsing one statement"""
    kind: StatementKind
    table: Optional[str] = None
    columns: List[str] = field(default_factory=list)
    rows: List[List[Literal]] = field(default_factory=list)
    keyword: Optional[str] = None


def _unescape(match: re.Match) -> str:
    escaped = match.group(1)
    if escaped is None:
        return "'"
    if escaped in "%_":
        # MySQL keeps the backslash for LIKE wildcards
        return "\\" + escaped
    return MYSQL_ESCAPES.get(escaped, escaped)


def unescape_string(token: str) -> str:
    """Strip the quotes off a single-quoted MySQL literal and resolve escapes"""
    return ESCAPE_REGEX.sub(_unescape, token[1:-1])


def unquote_name(name: str) -> str:
    if len(name) >= 2:
        if name[0] == name[-1] == "`":
            return name[1:-1].replace("``", "`")
        if name[0] == name[-1] == '"':
            return name[1:-1].replace('""', '"')
        if name[0] == "[" and name[-1] == "]":
            return name[1:-1]
    return name


def _significant_tokens(sql: str) -> Iterator[Tuple[object, str]]:
    for ttype, value in MYSQL_LEXER.get_tokens(sql):
        if ttype in T.Whitespace or ttype in T.Comment:
            continue
        yield ttype, value


class TokenStream:
    """Cursor over the significant tokens of one statement"""

    def __init__(self, sql: str):
        self.tokens = list(_significant_tokens(sql))
        self.pos = 0

    def peek(self) -> Optional[Tuple[object, str]]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def next(self, expecting: str) -> Tuple[object, str]:
        token = self.peek()
        if token is None:
            raise SqlSyntaxError(f"Unexpected end of statement, expected {expecting}")
        self.pos += 1
        return token

    def at_punct(self, char: str) -> bool:
        token = self.peek()
        return token is not None and token[0] in T.Punctuation and token[1] == char

    def expect_punct(self, char: str):
        ttype, value = self.next(repr(char))
        if ttype not in T.Punctuation or value != char:
            raise SqlSyntaxError(f"Expected {char!r}, found {value!r}")

    def keyword(self) -> Optional[str]:
        """Upper-cased text of the next token if it is a keyword"""
        token = self.peek()
        if token is not None and token[0] in T.Keyword:
            return token[1].upper()
        return None

    def skip_keywords(self, words):
        while self.keyword() in words:
            self.pos += 1

    def read_name(self) -> str:
        """Read a possibly schema-qualified identifier and return its last part"""
        name = self._identifier()
        while self.at_punct("."):
            self.pos += 1
            name = self._identifier()
        return name

    def _identifier(self) -> str:
        ttype, value = self.next("a name")
        if ttype in T.Name or ttype in T.Keyword or ttype in T.String.Symbol:
            return unquote_name(value)
        raise SqlSyntaxError(f"Expected a name, found {value!r}")

    def read_group(self) -> List[List[Tuple[object, str]]]:
        """
        Read a parenthesised, comma separated list. The opening '(' must
        already be consumed. Returns the tokens of each top-level item.
        """
        items = []
        current = []
        depth = 0
        while True:
            ttype, value = self.next("')'")
            if ttype in T.Punctuation:
                if value == "(":
                    depth += 1
                elif value == ")":
                    if depth == 0:
                        if current or items:
                            items.append(current)
                        return items
                    depth -= 1
                elif value == "," and depth == 0:
                    items.append(current)
                    current = []
                    continue
            current.append((ttype, value))


# ============================================================================
# STATEMENT PARSERS
# ============================================================================

def _parse_create(stream: TokenStream) -> ParsedStatement:
    stream.skip_keywords({"TEMPORARY"})
    if stream.keyword() != "TABLE":
        return ParsedStatement(StatementKind.OTHER, keyword="CREATE")
    stream.pos += 1
    stream.skip_keywords({"IF", "NOT", "EXISTS", "NOT EXISTS"})

    table = stream.read_name()
    stream.expect_punct("(")

    columns = []
    for item in stream.read_group():
        if not item:
            raise SqlSyntaxError(f"Empty column declaration in table {table!r}")
        ttype, value = item[0]
        first_word = value.split()[0].upper()
        if ttype in T.Keyword and first_word in CONSTRAINT_KEYWORDS:
            continue
        if ttype in T.Name or ttype in T.Keyword or ttype in T.String.Symbol:
            columns.append(unquote_name(value))
        else:
            raise SqlSyntaxError(f"Expected a column name in table {table!r}, found {value!r}")

    return ParsedStatement(StatementKind.CREATE_TABLE, table=table, columns=columns)


def _literal(tokens: List[Tuple[object, str]]) -> Literal:
    if not tokens:
        raise SqlSyntaxError("Empty value in VALUES list")
    if len(tokens) == 1 and tokens[0][0] in T.String.Single:
        return Literal(LiteralKind.STRING, unescape_string(tokens[0][1]))
    return Literal(LiteralKind.OTHER, "".join(value for _, value in tokens))


def _parse_insert(stream: TokenStream) -> ParsedStatement:
    stream.skip_keywords(INSERT_MODIFIERS)
    table = stream.read_name()

    if stream.at_punct("("):
        # Explicit column list; rows are read positionally regardless
        stream.pos += 1
        stream.read_group()

    if stream.keyword() not in ("VALUES", "VALUE"):
        token = stream.peek()
        found = token[1] if token else "end of statement"
        raise SqlSyntaxError(f"Expected VALUES, found {found!r}")
    stream.pos += 1

    rows = []
    while True:
        stream.expect_punct("(")
        rows.append([_literal(item) for item in stream.read_group()])
        if not stream.at_punct(","):
            break
        stream.pos += 1

    if stream.at_punct(";"):
        stream.pos += 1
    token = stream.peek()
    if token is not None and token[0] not in T.Keyword:
        raise SqlSyntaxError(f"Unexpected {token[1]!r} after VALUES list")

    return ParsedStatement(StatementKind.INSERT, table=table, rows=rows)


def parse_statement(data: bytes) -> ParsedStatement:
    """
    Parse one complete statement.

    Raises SqlSyntaxError when the bytes are not a statement this parser
    understands.
    """
    sql = data.decode("utf-8", errors="replace")
    stream = TokenStream(sql)

    token = stream.peek()
    if token is None:
        raise SqlSyntaxError("Empty statement")
    ttype, value = token
    if ttype not in T.Keyword:
        raise SqlSyntaxError(f"Expected a statement keyword, found {value!r}")

    stream.pos += 1
    word = value.split()[0].upper()
    if word == "CREATE":
        return _parse_create(stream)
    if word == "INSERT":
        return _parse_insert(stream)
    return ParsedStatement(StatementKind.OTHER, keyword=word)
