"""SuiteQL query building and execution.

Every search the sync engine makes (customers, transactions, campaigns) is a
SuiteQL read against the /query/v1/suiteql endpoint. Queries are assembled
with the SuiteQL builder so identifiers are checked and values are escaped
in exactly one place.

Usage:
    query = (
        SuiteQL.select("id", "email", "isperson")
        .from_("customer")
        .where(ieq("email", "a@x.com"))
        .where(eq("isperson", "F"))
    )
    row = await executor.first(query)
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

from connectors.netsuite.ns_client import ApiGateway, SUITEQL_ENDPOINT

logger = logging.getLogger(__name__)


DEFAULT_PAGE_SIZE = 1000

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")


# =============================================================================
# Escaping
# =============================================================================

def identifier(name: str) -> str:
    """Validate a column or table name."""
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SuiteQL identifier: {name!r}")
    return name


def literal(value: Any) -> str:
    """Render a Python value as a SuiteQL literal.

    Strings are single-quoted with embedded quotes doubled. Booleans map to
    NetSuite's 'T'/'F' flags.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "'T'" if value else "'F'"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    text = str(value).replace("'", "''")
    return f"'{text}'"


def int_literal(value: Any) -> str:
    """Render a record id; rejects anything that is not an integer."""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError(f"Expected a numeric id, got {value!r}")
    return str(number)


# =============================================================================
# Condition fragments
# =============================================================================

def eq(column: str, value: Any) -> str:
    """column = value"""
    return f"{identifier(column)} = {literal(value)}"


def ieq(column: str, value: Any) -> str:
    """Case-insensitive string equality."""
    return f"LOWER({identifier(column)}) = LOWER({literal(value)})"


def id_eq(column: str, value: Any) -> str:
    """column = <numeric id>"""
    return f"{identifier(column)} = {int_literal(value)}"


def in_(column: str, values: Iterable[Any]) -> str:
    """column IN (v1, v2, ...)"""
    rendered = [literal(v) for v in values]
    if not rendered:
        raise ValueError("IN list must not be empty")
    return f"{identifier(column)} IN ({', '.join(rendered)})"


def any_of(*conditions: str) -> str:
    """(c1 OR c2 ...)"""
    parts = [c for c in conditions if c]
    if not parts:
        raise ValueError("any_of needs at least one condition")
    if len(parts) == 1:
        return parts[0]
    return "(" + " OR ".join(parts) + ")"


# =============================================================================
# Builder
# =============================================================================

class SuiteQL:
    """Small immutable-ish SELECT builder."""

    def __init__(self, columns: List[str]):
        self._columns = [identifier(c) for c in columns]
        self._table: Optional[str] = None
        self._conditions: List[str] = []
        self._order_by: Optional[str] = None

    @classmethod
    def select(cls, *columns: str) -> "SuiteQL":
        if not columns:
            raise ValueError("select() needs at least one column")
        return cls(list(columns))

    def from_(self, table: str) -> "SuiteQL":
        self._table = identifier(table)
        return self

    def where(self, condition: str) -> "SuiteQL":
        """AND a condition fragment built with eq/ieq/in_/any_of."""
        if condition:
            self._conditions.append(condition)
        return self

    def where_eq(self, column: str, value: Any) -> "SuiteQL":
        return self.where(eq(column, value))

    def where_ieq(self, column: str, value: Any) -> "SuiteQL":
        return self.where(ieq(column, value))

    def where_id(self, column: str, value: Any) -> "SuiteQL":
        return self.where(id_eq(column, value))

    def where_in(self, column: str, values: Iterable[Any]) -> "SuiteQL":
        return self.where(in_(column, values))

    def where_any(self, *conditions: str) -> "SuiteQL":
        return self.where(any_of(*conditions))

    def where_raw(self, condition: str) -> "SuiteQL":
        """Trusted fragment, passed through unescaped."""
        return self.where(condition)

    def order_by(self, column: str, descending: bool = False) -> "SuiteQL":
        self._order_by = f"{identifier(column)}{' DESC' if descending else ''}"
        return self

    def build(self) -> str:
        if not self._table:
            raise ValueError("from_() must be called before build()")
        sql = f"SELECT {', '.join(self._columns)} FROM {self._table}"
        if self._conditions:
            sql += " WHERE " + " AND ".join(self._conditions)
        if self._order_by:
            sql += f" ORDER BY {self._order_by}"
        return sql

    def __str__(self) -> str:
        return self.build()


# =============================================================================
# Executor
# =============================================================================

@dataclass
class QueryResult:
    """One page of SuiteQL rows."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    has_more: bool = False
    total_results: Optional[int] = None
    offset: int = 0


class QueryExecutor:
    """Runs SuiteQL through the ApiGateway.

    Usage:
        executor = QueryExecutor(gateway)
        result = await executor.execute("SELECT id FROM customer")
        rows = await executor.fetch_all(query)
        row = await executor.first(query)
    """

    def __init__(self, gateway: ApiGateway, page_size: int = DEFAULT_PAGE_SIZE):
        self.gateway = gateway
        self.page_size = page_size

    async def execute(
        self,
        query: Union[str, SuiteQL],
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> QueryResult:
        """Run one page of a query.

        Args:
            query: SuiteQL text or builder
            limit: Page size (defaults to the executor's page size)
            offset: Row offset for pagination

        Returns:
            QueryResult with the page's rows and the hasMore flag
        """
        sql = str(query)
        params: Dict[str, Any] = {"limit": limit or self.page_size}
        if offset:
            params["offset"] = offset

        logger.debug(f"SuiteQL: {sql} (offset={offset})")
        result = await self.gateway.execute("POST", SUITEQL_ENDPOINT, body={"q": sql}, query_params=params)

        body = result.body or {}
        return QueryResult(
            items=list(body.get("items") or []),
            has_more=bool(body.get("hasMore", False)),
            total_results=body.get("totalResults"),
            offset=offset,
        )

    async def fetch_all(self, query: Union[str, SuiteQL], max_pages: Optional[int] = None) -> List[Dict[str, Any]]:
        """Run a query and follow hasMore until exhausted."""
        rows: List[Dict[str, Any]] = []
        offset = 0
        pages = 0

        while True:
            page = await self.execute(query, offset=offset)
            rows.extend(page.items)
            pages += 1

            if not page.has_more or not page.items:
                break
            if max_pages is not None and pages >= max_pages:
                logger.warning(f"Stopped after {pages} pages of SuiteQL results")
                break

            offset += len(page.items)

        return rows

    async def first(self, query: Union[str, SuiteQL]) -> Optional[Dict[str, Any]]:
        """First row of a query, or None. Multi-row results take the first match."""
        page = await self.execute(query, limit=1)
        return page.items[0] if page.items else None
