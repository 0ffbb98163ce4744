from typing import Iterable, List, Tuple


# Engine-generated document properties. Matched case-insensitively.
SYSTEM_COLUMN_NAMES = frozenset({
    "id",
    "_rid",
    "_self",
    "_etag",
    "_attachments",
    "_ts",
    "_lsn",
})


def is_system_column(name: str) -> bool:
    return (name or "").lower() in SYSTEM_COLUMN_NAMES


def partition_columns(names: Iterable[str]) -> Tuple[List[str], List[str]]:
    """
    Split column names into (system, business), each sorted ascending.
    """
    system = []
    business = []
    for name in names:
        if is_system_column(name):
            system.append(name)
        else:
            business.append(name)
    return sorted(system), sorted(business)
