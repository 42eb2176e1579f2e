import pytest

from pipeline_externallinks.results import SqlSyntaxError
from pipeline_externallinks.statements import (
    Literal,
    LiteralKind,
    StatementKind,
    parse_statement,
    unescape_string,
    unquote_name,
)


def string(value):
    return Literal(LiteralKind.STRING, value)


def other(value):
    return Literal(LiteralKind.OTHER, value)


class TestCreateTable:
    def test_columns_in_declaration_order(self, create_table):
        parsed = parse_statement(b"".join(create_table))
        assert parsed.kind is StatementKind.CREATE_TABLE
        assert parsed.table == "externallinks"
        assert parsed.columns == ["el_id", "el_to_domain_index", "el_to_path"]

    def test_unquoted_names(self):
        parsed = parse_statement(b"CREATE TABLE externallinks (el_id int, el_to_path blob);")
        assert parsed.table == "externallinks"
        assert parsed.columns == ["el_id", "el_to_path"]

    def test_schema_qualified_table(self):
        parsed = parse_statement(b"CREATE TABLE `enwiki`.`externallinks` (`el_id` int);")
        assert parsed.table == "externallinks"

    def test_constraints_are_not_columns(self):
        parsed = parse_statement(
            b"CREATE TABLE `t` (`a` int, `b` int, PRIMARY KEY (`a`), UNIQUE KEY `ab` (`a`,`b`), KEY `b` (`b`));"
        )
        assert parsed.columns == ["a", "b"]

    def test_other_create_statements(self):
        parsed = parse_statement(b"CREATE INDEX `idx` ON `t` (`a`);")
        assert parsed.kind is StatementKind.OTHER

    def test_unterminated_column_list(self):
        with pytest.raises(SqlSyntaxError):
            parse_statement(b"CREATE TABLE `t` (`a` int, `b` int")


class TestInsert:
    def test_rows_and_literal_kinds(self):
        parsed = parse_statement(
            b"INSERT INTO `externallinks` VALUES (1,'https://org.wikipedia.en.','/wiki/A'),(2,NULL,'/b');"
        )
        assert parsed.kind is StatementKind.INSERT
        assert parsed.table == "externallinks"
        assert parsed.rows == [
            [other("1"), string("https://org.wikipedia.en."), string("/wiki/A")],
            [other("2"), other("NULL"), string("/b")],
        ]

    def test_escaped_strings(self):
        parsed = parse_statement(br"INSERT INTO `t` VALUES ('it\'s','a''b','line\nbreak');")
        assert parsed.rows == [[string("it's"), string("a'b"), string("line\nbreak")]]

    def test_escaped_backslash_before_closing_quote(self):
        parsed = parse_statement(
            br"INSERT INTO `t` VALUES (1,'http://com.a.','/x\\'),(2,'http://com.b.','/y'),(3,'C:\\','\\');"
        )
        assert parsed.rows == [
            [other("1"), string("http://com.a."), string("/x\\")],
            [other("2"), string("http://com.b."), string("/y")],
            [other("3"), string("C:\\"), string("\\")],
        ]

    def test_explicit_column_list_is_skipped(self):
        parsed = parse_statement(b"INSERT INTO `t` (`a`,`b`) VALUES ('x','y');")
        assert parsed.table == "t"
        assert parsed.rows == [[string("x"), string("y")]]

    def test_separators_inside_strings(self):
        parsed = parse_statement(b"INSERT INTO `t` VALUES ('a,b','(c)');")
        assert parsed.rows == [[string("a,b"), string("(c)")]]

    def test_missing_closing_paren(self):
        with pytest.raises(SqlSyntaxError):
            parse_statement(b"INSERT INTO `t` VALUES (1,'a';")

    def test_missing_values_keyword(self):
        with pytest.raises(SqlSyntaxError, match="VALUES"):
            parse_statement(b"INSERT INTO `t` (1,'a');")

    def test_fragment_of_a_split_literal(self):
        with pytest.raises(SqlSyntaxError):
            parse_statement(b"INSERT INTO `t` VALUES (1,'a;")


def test_other_statements_keep_their_keyword():
    parsed = parse_statement(b"DROP TABLE IF EXISTS `externallinks`;")
    assert parsed.kind is StatementKind.OTHER
    assert parsed.keyword == "DROP"


@pytest.mark.parametrize("statement", [b";", b"'oops';", b""])
def test_statements_not_starting_with_a_keyword(statement):
    with pytest.raises(SqlSyntaxError):
        parse_statement(statement)


def test_unescape_string():
    assert unescape_string(r"'C:\\dir'") == "C:\\dir"
    assert unescape_string(r"'100\%'") == "100\\%"
    assert unescape_string("''") == ""


def test_unquote_name():
    assert unquote_name("`el_to_path`") == "el_to_path"
    assert unquote_name('"el_to_path"') == "el_to_path"
    assert unquote_name("el_to_path") == "el_to_path"
