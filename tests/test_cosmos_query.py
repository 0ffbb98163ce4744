import pytest

from dbtunnel.backends.cosmos_query import clean_cosmos_query


@pytest.mark.parametrize("query, expected", [
    ("```sql\nSELECT * FROM c\n```", "SELECT * FROM c"),
    ("SELECT ISNULL(c.name, 'x') FROM c", "SELECT COALESCE(c.name, 'x') FROM c"),
    ("SELECT LEN(c.name) FROM c", "SELECT LENGTH(c.name) FROM c"),
    ("SELECT DATEPART(year, c.created) FROM c", 'SELECT DateTimePart("year", c.created) FROM c'),
    ("SELECT STRING(c.age) FROM c", "SELECT ToString(c.age) FROM c"),
    ("SELECT * FROM c WHERE c.x = NULL", "SELECT * FROM c WHERE c.x = null"),
    ("SELECT * FROM c WHERE IS_STRING(c.name)", "SELECT * FROM c WHERE IS_STRING(c.name)"),
])
def test_rewrites(query, expected):
    assert clean_cosmos_query(query) == expected


def test_date_functions():
    cleaned = clean_cosmos_query("SELECT DATEADD('dd', 1, c.d), DATEDIFF('dd', c.a, c.b) FROM c")
    assert cleaned == "SELECT DateTimeAdd('dd', 1, c.d), DateTimeDiff('dd', c.a, c.b) FROM c"


def test_blank_queries_pass_through():
    assert clean_cosmos_query("") == ""
    assert clean_cosmos_query(None) is None
