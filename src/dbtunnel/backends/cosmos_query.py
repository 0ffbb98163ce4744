import re


_FLAGS = re.IGNORECASE

_FUNCTION_REWRITES = [
    (re.compile(r"\bISNULL\(", _FLAGS), "COALESCE("),
    (re.compile(r"\bLEN\(", _FLAGS), "LENGTH("),
    (re.compile(r"\bDATEADD\(", _FLAGS), "DateTimeAdd("),
    (re.compile(r"\bDATEDIFF\(", _FLAGS), "DateTimeDiff("),
]

_DATEPART_UNITS = ("year", "month", "day", "hour", "minute", "second")

_DATEPART_GENERIC = re.compile(r"\bDATEPART\s*\(\s*([^,]+?)\s*,\s*([^)]+)\)", _FLAGS)
_STRING_CALL = re.compile(r"\bSTRING\s*\(\s*([^)]+)\)", _FLAGS)
_NULL_LITERAL = re.compile(r"\bNULL\b", _FLAGS)
_CODE_FENCE = re.compile(r"```(?:sql|cosmos)?", _FLAGS | re.MULTILINE)


def clean_cosmos_query(query: str) -> str:
    """
    Normalize a Cosmos SQL query written with SQL Server habits.

    Strips Markdown code fences and rewrites ISNULL, LEN, DATEADD,
    DATEDIFF, DATEPART, STRING and NULL to their Cosmos spellings.
    """
    if query is None or not query.strip():
        return query

    cleaned = _CODE_FENCE.sub("", query.strip())
    cleaned = cleaned.replace("```", "").strip()

    for pattern, replacement in _FUNCTION_REWRITES:
        cleaned = pattern.sub(replacement, cleaned)

    for unit in _DATEPART_UNITS:
        pattern = re.compile(
            rf"\bDATEPART\s*\(\s*{unit}\s*,\s*([^)]+)\)", _FLAGS
        )
        cleaned = pattern.sub(lambda m, u=unit: f'DateTimePart("{u}", {m.group(1)})', cleaned)

    cleaned = _DATEPART_GENERIC.sub(r"DateTimePart(\1, \2)", cleaned)
    cleaned = _STRING_CALL.sub(r"ToString(\1)", cleaned)
    cleaned = _NULL_LITERAL.sub("null", cleaned)

    return cleaned.strip()
