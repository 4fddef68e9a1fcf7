"""
Best-effort source location for violations.

Given a violation's structural path, search the text for the declaration
header, then for the nested field or join header, in path order. The result
can be imprecise when names repeat; it is only used to place editor markers.
"""

import re

from .lexer import split_lines

# Path collection -> block type of its members.
_NESTED_BLOCK_TYPES = {
    "dimensions": "dimension",
    "dimension_groups": "dimension_group",
    "measures": "measure",
    "filters": "filter",
    "parameters": "parameter",
    "joins": "join",
}

_DECLARATION_TYPES = {
    "views": "view",
    "explores": "explore",
    "models": "model",
}


def _header_pattern(block_type: str, name: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![\w]){block_type}\s*:\s*{re.escape(name)}\s*\{{")


def path_patterns(path: list[str]) -> list[re.Pattern[str]]:
    """Header patterns to search for, outermost first."""
    patterns: list[re.Pattern[str]] = []
    if len(path) < 2 or path[0] not in _DECLARATION_TYPES:
        return patterns

    patterns.append(_header_pattern(_DECLARATION_TYPES[path[0]], path[1]))
    if len(path) >= 4 and path[2] in _NESTED_BLOCK_TYPES:
        patterns.append(_header_pattern(_NESTED_BLOCK_TYPES[path[2]], path[3]))
    return patterns


def find_line_by_path(text: str, path: list[str]) -> int:
    """
    Find the 0-based line of the element a path points to.

    Each pattern is searched starting at the line where the previous one
    matched. Returns the deepest line found, or 0 if nothing matched.
    """
    patterns = path_patterns(path)
    if not patterns:
        return 0

    lines = split_lines(text)
    found: int | None = None
    start = 0
    for pattern in patterns:
        for number in range(start, len(lines)):
            if pattern.search(lines[number]):
                found = number
                start = number + 1
                break
        else:
            break

    return found if found is not None else 0
