"""
Scan grammar compiled from the board settings.

The grammar depends only on the columns and priority labels, so compilation
is memoized on a fingerprint of those values. A settings change yields a new
fingerprint and therefore a freshly compiled grammar on the next scan.
"""

import re
from dataclasses import dataclass
from functools import lru_cache

from kodo.core.config.models import KodoSettings

COMMENT_PREFIX = r"(//|#|--|<!--)"

# Alternation used when there is nothing to alternate over
_NEVER = r"((?!))"

_Fingerprint = tuple[tuple[tuple[str, str, str | None], ...], tuple[str, ...]]


@dataclass(frozen=True)
class CompiledPatterns:
    """
    The four scan regexes plus the rewriter's status-line alternation.

    Group layout:
        item: 1 prefix, 2 keyword, 3 title (may be None)
        description: 1 prefix, 2 text
        priority: 1 prefix, 2 label
        status_annotation: 1 prefix, 2 column name, 3 timestamp, 4 user
        status_line: 1 prefix, 2 keyword or column name
    """

    item: re.Pattern[str]
    description: re.Pattern[str]
    priority: re.Pattern[str]
    status_annotation: re.Pattern[str]
    status_line: re.Pattern[str]
    keywords: tuple[str, ...]
    annotation_names: tuple[str, ...]

    @property
    def matches_nothing(self) -> bool:
        return not self.keywords


def _alternation(values: tuple[str, ...]) -> str:
    if not values:
        return _NEVER
    # Longest first so "IN PROGRESS" wins over a hypothetical "IN"
    ordered = sorted(set(values), key=len, reverse=True)
    return "(" + "|".join(re.escape(v) for v in ordered) + ")"


def fingerprint(settings: KodoSettings) -> _Fingerprint:
    columns = tuple((c.id, c.name, c.auto_assign_pattern) for c in settings.kanban_columns)
    return columns, tuple(settings.priority_patterns.labels())


@lru_cache(maxsize=32)
def _compile(key: _Fingerprint) -> CompiledPatterns:
    columns, priority_labels = key

    keywords: list[str] = []
    annotation_names: list[str] = []
    for _col_id, name, pattern in columns:
        if pattern is not None:
            keywords.extend(p.strip() for p in pattern.split("|") if p.strip())
        else:
            annotation_names.append(name)

    keyword_alt = _alternation(tuple(keywords))
    name_alt = _alternation(tuple(annotation_names))
    priority_alt = _alternation(priority_labels)
    status_alt = _alternation(tuple(keywords) + tuple(annotation_names))

    return CompiledPatterns(
        item=re.compile(rf"^\s*{COMMENT_PREFIX}\s*{keyword_alt}:\s*(.+)?"),
        description=re.compile(rf"^\s*{COMMENT_PREFIX}\s*(.*)"),
        priority=re.compile(rf"^\s*{COMMENT_PREFIX}\s*{priority_alt}(?!\w)"),
        status_annotation=re.compile(
            rf"^\s*{COMMENT_PREFIX}\s*{name_alt}\s+(\d{{4}}-\d{{2}}-\d{{2}}\s+\d{{2}}:\d{{2}})"
            r"\s+by\s+(.+?)(\s*-->)?\s*$"
        ),
        status_line=re.compile(rf"^\s*{COMMENT_PREFIX}\s*{status_alt}(?=:|\s|-->|$)"),
        keywords=tuple(keywords),
        annotation_names=tuple(annotation_names),
    )


def compile_patterns(settings: KodoSettings) -> CompiledPatterns:
    """
    Build the scan grammar for the given settings.

    With no keyword-entered columns the item pattern can never match, so a
    scan degrades to zero items rather than failing.
    """
    return _compile(fingerprint(settings))


def clear_cache() -> None:
    _compile.cache_clear()
