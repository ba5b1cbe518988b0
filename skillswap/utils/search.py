from sqlalchemy import ColumnElement, func, select

LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """``%term%`` with the LIKE wildcards in ``term`` matched literally."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


def json_list_contains(column, term: str, dialect_name: str) -> ColumnElement[bool]:
    """True when any string in the JSON list ``column`` contains ``term``, ignoring case.

    Elements are unpacked by the database, so the JSON encoding (brackets,
    quotes, escaped non-ASCII) never takes part in the match.
    """
    if dialect_name == "postgresql":
        elements = func.json_array_elements_text(column).table_valued("value")
    else:
        elements = func.json_each(column).table_valued("value")

    return (
        select(elements.c.value)
        .where(elements.c.value.ilike(contains_pattern(term), escape=LIKE_ESCAPE))
        .exists()
    )
