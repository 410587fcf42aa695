"""
Static SQL analysis.

Pure heuristics over the statement text and a PostgreSQL
``EXPLAIN (FORMAT JSON)`` plan; nothing here touches a database.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

_SELECT_ALL = re.compile(r"SELECT\s+\*", re.IGNORECASE)
_WHERE = re.compile(r"WHERE", re.IGNORECASE)
_WRITE = re.compile(r"DELETE|UPDATE", re.IGNORECASE)
_LIMIT_ONE = re.compile(r"LIMIT\s+1\b", re.IGNORECASE)
_IN_LIST = re.compile(r"SELECT.*WHERE.*IN\s*\(", re.IGNORECASE | re.DOTALL)
_LEADING_WILDCARD = re.compile(r"I?LIKE\s+['\"]%", re.IGNORECASE)
_FILTER_COLUMN = re.compile(r"\((\w+)\)?(?:::\w+(?: \w+)*)?\s*[=<>]")
_PLACEHOLDER = re.compile(r"\?|%s")

TEMP_TABLE_NODES = frozenset({"Hash", "HashAggregate", "Materialize"})


@dataclass
class QueryIssues:
    select_all: bool = False
    missing_where: bool = False
    n_plus_one: bool = False
    leading_wildcard: bool = False
    missing_index: List[str] = field(default_factory=list)
    filesort: bool = False
    temp_table: bool = False

    def merge(self, other: "QueryIssues") -> "QueryIssues":
        return QueryIssues(
            select_all=self.select_all or other.select_all,
            missing_where=self.missing_where or other.missing_where,
            n_plus_one=self.n_plus_one or other.n_plus_one,
            leading_wildcard=self.leading_wildcard or other.leading_wildcard,
            missing_index=_unique([*self.missing_index, *other.missing_index]),
            filesort=self.filesort or other.filesort,
            temp_table=self.temp_table or other.temp_table,
        )


def _unique(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for v in values:
        seen.setdefault(v, None)
    return list(seen)


def analyze_sql(sql: str) -> QueryIssues:
    limited_to_one = bool(_LIMIT_ONE.search(sql))
    return QueryIssues(
        select_all=bool(_SELECT_ALL.search(sql)),
        missing_where=not limited_to_one and not _WHERE.search(sql) and not _WRITE.search(sql),
        n_plus_one=bool(_IN_LIST.search(sql)) and not limited_to_one,
        leading_wildcard=bool(_LEADING_WILDCARD.search(sql)),
    )


def _root_plan(plan: Any) -> Optional[Mapping[str, Any]]:
    # EXPLAIN (FORMAT JSON) yields a one-element list wrapping {"Plan": {...}}
    if isinstance(plan, list):
        plan = plan[0] if plan else None
    if not isinstance(plan, Mapping):
        return None
    root = plan.get("Plan")
    return root if isinstance(root, Mapping) else None


def _walk(node: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    yield node
    for child in node.get("Plans") or ():
        if isinstance(child, Mapping):
            yield from _walk(child)


def analyze_plan(plan: Any) -> QueryIssues:
    issues = QueryIssues()
    root = _root_plan(plan)
    if root is None:
        return issues

    columns: List[str] = []
    for node in _walk(root):
        node_type = node.get("Node Type")
        if node_type == "Seq Scan" and node.get("Filter"):
            columns.extend(_FILTER_COLUMN.findall(str(node["Filter"])))
        elif node_type == "Sort":
            issues.filesort = True
        elif node_type in TEMP_TABLE_NODES:
            issues.temp_table = True
    issues.missing_index = _unique(columns)
    return issues


def suggestions(issues: QueryIssues) -> List[Dict[str, str]]:
    """Human readable advice, one entry per detected issue."""
    out: List[Dict[str, str]] = []
    if issues.select_all:
        out.append({
            "type": "select_all",
            "severity": "medium",
            "message": "Avoid using SELECT * - specify only needed columns",
            "impact": "Reduces memory usage and network transfer",
        })
    if issues.missing_where:
        out.append({
            "type": "missing_where",
            "severity": "high",
            "message": "Query has no WHERE clause - may scan entire table",
            "impact": "Poor performance on large tables",
        })
    if issues.n_plus_one:
        out.append({
            "type": "n_plus_one",
            "severity": "high",
            "message": "Potential N+1 query detected - consider eager loading",
            "impact": "Multiple queries instead of one JOIN",
        })
    if issues.leading_wildcard:
        out.append({
            "type": "leading_wildcard",
            "severity": "high",
            "message": "LIKE pattern starts with wildcard - cannot use index",
            "impact": "Full table scan instead of index scan",
        })
    if issues.missing_index:
        out.append({
            "type": "missing_index",
            "severity": "critical",
            "message": "Missing index detected on: " + ", ".join(issues.missing_index),
            "impact": "Full table scan - add indexes to improve performance",
        })
    if issues.filesort:
        out.append({
            "type": "filesort",
            "severity": "medium",
            "message": "Query uses filesort - consider adding composite index for ORDER BY columns",
            "impact": "Sorting in memory or temp files instead of using index",
        })
    if issues.temp_table:
        out.append({
            "type": "temp_table",
            "severity": "medium",
            "message": "Query uses temporary table - optimize JOIN or GROUP BY",
            "impact": "Additional I/O operations",
        })
    return out


def _literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


def bind_values(sql: str, params: Optional[Sequence[Any]]) -> str:
    """
    Inline positional parameters for EXPLAIN and logging.

    Placeholders beyond the supplied values are left untouched.
    """
    if not params:
        return sql
    values = iter(params)

    def _sub(match: "re.Match[str]") -> str:
        try:
            return _literal(next(values))
        except StopIteration:
            return match.group(0)

    return _PLACEHOLDER.sub(_sub, sql)
