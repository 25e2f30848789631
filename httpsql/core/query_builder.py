import re
from typing import Any, Callable, Dict, Iterable, List, Tuple

# -----------------------------------------------------------------------------
# QUERY BUILDER
# Templates carry two kinds of tokens:
#   #name  inline, replaced by a sanitized copy of the value (identifiers)
#   $name  bound, replaced by the driver's positional marker (values)
# -----------------------------------------------------------------------------

# Values this long or longer are never substituted
MAX_VALUE_LENGTH = 64

# Query-string flags that pick the output format instead of feeding the query
CONTROL_FLAGS = frozenset({"json", "text"})

UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_.$]+")

# Internal marker for a bound value until the final renumbering pass
_SLOT = "\x00{}\x00"
_SLOT_PATTERN = re.compile("\x00(\\d+)\x00")


def qmark(position: int) -> str:
    return "?"


def first_values(items: Iterable[Tuple[str, str]]) -> Dict[str, str]:
    """
    Collapse repeated query-string keys, keeping the first value of each.
    Control flags are dropped.
    """
    params: Dict[str, str] = {}
    for key, value in items:
        if key in CONTROL_FLAGS or key in params:
            continue
        params[key] = value
    return params


def sanitize(value: str) -> str:
    """Strip everything but letters, digits, '_', '.' and '$'."""
    return UNSAFE_CHARS.sub("", value)


def build_query(
    template: str,
    params: Dict[str, str],
    placeholder: Callable[[int], str] = qmark,
) -> Tuple[str, List[Any]]:
    """
    Turn a metric template into an executable statement.

    Args:
        template: Raw SQL with #name / $name tokens.
        params: Parameter name -> first value from the query string.
        placeholder: Driver marker for the n-th (1-based) bound value.

    Returns:
        (statement, positional params)

    Every #name occurrence is replaced, but only the first $name occurrence
    is bound; later ones stay in the text as-is. Tokens without a matching
    parameter are left untouched.

    Example:
        build_query("SELECT * FROM #t WHERE id=$id", {"t": "orders", "id": "42"})
        -> ("SELECT * FROM orders WHERE id=?", ["42"])
    """
    query = template
    bound: List[Any] = []

    for name, value in params.items():
        if len(value) >= MAX_VALUE_LENGTH:
            continue

        query = query.replace(f"#{name}", sanitize(value))

        token = f"${name}"
        if token in query:
            query = query.replace(token, _SLOT.format(len(bound)), 1)
            bound.append(value)

    # Markers are numbered by where they sit in the text, not by the order
    # the parameters arrived in
    ordered: List[Any] = []

    def _renumber(match: "re.Match[str]") -> str:
        ordered.append(bound[int(match.group(1))])
        return placeholder(len(ordered))

    query = _SLOT_PATTERN.sub(_renumber, query)
    return query, ordered
