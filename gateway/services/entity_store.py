"""
Entity Store Adapter

Generic access to any named table of the business database. Tables are
reflected once at start-up; every operation runs in its own transaction and
maps straight onto the store, so constraint checking, defaults and row-level
security stay the store's responsibility.
"""

import json
import logging
import operator
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import MetaData, Table, delete, func, inspect, insert, select, text, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

from gateway.errors import NotFoundError, StoreError, StoreValidationError

logger = logging.getLogger(__name__)

# (table, human label) for every table exposed through the generic CRUD tools
ENTITY_TABLES: Tuple[Tuple[str, str], ...] = (
    ("accounts", "Account"),
    ("contacts", "Contact"),
    ("projects", "Project"),
    ("team_members", "Team Member"),
    ("tasks", "Task"),
    ("time_entries", "Time Entry"),
    ("leads", "Lead"),
    ("activities", "Activity"),
    ("payments", "Payment"),
    ("transactions", "Transaction"),
    ("expenses", "Expense"),
    ("invoices", "Invoice"),
    ("stripe_products", "Stripe Product"),
    ("stripe_subscriptions", "Stripe Subscription"),
    ("social_posts", "Social Post"),
    ("sops", "SOP"),
    ("notifications", "Notification"),
    ("branding_settings", "Branding Settings"),
    ("user_profiles", "User Profile"),
    ("kpi_entries", "KPI Entry"),
    ("brokers", "Broker"),
    ("broker_activities", "Broker Activity"),
    ("referral_partners", "Referral Partner"),
    ("referrals", "Referral"),
    ("referral_payouts", "Referral Payout"),
    ("project_documents", "Project Document"),
)

ENTITY_TABLE_NAMES: Tuple[str, ...] = tuple(name for name, _ in ENTITY_TABLES)

# Tables the gateway reads internally but never exposes as tools
INTERNAL_TABLES: Tuple[str, ...] = ("mcp_api_keys",)

DEFAULT_ORDER = "-created_at"
DEFAULT_LIMIT = 50

_RANGE_OPERATORS = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}

Range = Tuple[str, str, Any]


@dataclass(frozen=True)
class StoreScope:
    """Row-level identity forwarded to the store for one request."""
    claims: Dict[str, Any] = field(default_factory=dict)
    role: str = "authenticated"

    @property
    def user_id(self) -> Optional[str]:
        return self.claims.get("sub")


class StoreBackend:
    """Engine plus the table metadata reflected at start-up (read-only afterwards)."""

    def __init__(self, engine: Engine, metadata: MetaData):
        self.engine = engine
        self.metadata = metadata

    @classmethod
    def connect(cls, engine: Engine, table_names: Iterable[str] = ENTITY_TABLE_NAMES + INTERNAL_TABLES) -> "StoreBackend":
        wanted = list(table_names)
        existing = set(inspect(engine).get_table_names())
        available = [name for name in wanted if name in existing]

        metadata = MetaData()
        metadata.reflect(bind=engine, only=available)

        missing = sorted(set(wanted) - existing)
        if missing:
            logger.warning(f"Tables not present in the store: {', '.join(missing)}")
        logger.info(f"Reflected {len(available)} store tables")
        return cls(engine, metadata)

    @classmethod
    def empty(cls, engine: Engine) -> "StoreBackend":
        """Backend with no reflected tables, for a store that was unreachable at start-up."""
        return cls(engine, MetaData())

    def table(self, name: str) -> Table:
        table = self.metadata.tables.get(name)
        if table is None:
            raise StoreError(f"Table '{name}' is not available in the store")
        return table


class EntityStore:
    """
    Scoped data-access handle handed to tool and resource handlers.

    A handle without a scope runs with the service identity of the engine.
    A scoped handle switches every transaction to the caller's role and JWT
    claims so the database's row-level policies apply (PostgreSQL only).
    """

    def __init__(self, backend: StoreBackend, scope: Optional[StoreScope] = None):
        self.backend = backend
        self.scope = scope

    @property
    def user_id(self) -> Optional[str]:
        return self.scope.user_id if self.scope else None

    def table(self, name: str) -> "EntityTable":
        return EntityTable(self, self.backend.table(name))

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        try:
            with self.backend.engine.begin() as conn:
                self._apply_scope(conn)
                yield conn
        except (IntegrityError, DataError) as e:
            raise StoreValidationError(str(e.orig or e)) from e
        except SQLAlchemyError as e:
            raise StoreError(f"Store request failed: {e}") from e

    def _apply_scope(self, conn: Connection) -> None:
        if self.scope is None or conn.dialect.name != "postgresql":
            return
        conn.execute(
            text("SELECT set_config('request.jwt.claims', :claims, true)"),
            {"claims": json.dumps(self.scope.claims, default=str)},
        )
        role = conn.dialect.identifier_preparer.quote(self.scope.role)
        conn.execute(text(f"SET LOCAL ROLE {role}"))

    def describe_tables(self, names: Sequence[str] = ENTITY_TABLE_NAMES) -> Dict[str, List[Dict[str, Any]]]:
        """Live column catalogue (column, type, nullability) grouped by table."""
        catalogue: Dict[str, List[Dict[str, Any]]] = {}
        with self.transaction() as conn:
            inspector = inspect(conn)
            try:
                existing = set(inspector.get_table_names())
                for name in names:
                    if name not in existing:
                        continue
                    catalogue[name] = [
                        {
                            "column": column["name"],
                            "type": str(column["type"]),
                            "nullable": bool(column.get("nullable", True)),
                        }
                        for column in inspector.get_columns(name)
                    ]
            except NotImplementedError as e:
                raise StoreError(f"Store does not support catalogue introspection: {e}") from e
        return catalogue


class EntityTable:
    """The six-operation CRUD contract (plus upsert) for one table."""

    def __init__(self, store: EntityStore, table: Table):
        self.store = store
        self.table = table

    @property
    def name(self) -> str:
        return self.table.name

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------

    def list(self, order_by: str = DEFAULT_ORDER, limit: int = DEFAULT_LIMIT, offset: int = 0) -> Dict[str, Any]:
        stmt = select(self.table).order_by(*self._ordering(order_by)).limit(limit).offset(offset)
        count_stmt = select(func.count()).select_from(self.table)
        with self.store.transaction() as conn:
            rows = conn.execute(stmt).mappings().all()
            total = conn.execute(count_stmt).scalar_one()
        return {"data": [dict(row) for row in rows], "total": total, "limit": limit, "offset": offset}

    def get(self, record_id: Any) -> Dict[str, Any]:
        key = self._key_column()
        stmt = select(self.table).where(key == self._coerce(key, record_id))
        with self.store.transaction() as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:
            raise NotFoundError(self.name, record_id)
        return dict(row)

    def filter(self, filters: Optional[Dict[str, Any]] = None, order_by: str = DEFAULT_ORDER,
               limit: Optional[int] = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
        """Exact-match AND of every non-null filter entry."""
        where = {k: v for k, v in (filters or {}).items() if v is not None}
        return self.select(where, order_by=order_by, limit=limit)

    def create(self, record: Dict[str, Any]) -> Dict[str, Any]:
        values = self._values(record)
        stmt = insert(self.table).values(**values).returning(self.table)
        with self.store.transaction() as conn:
            row = conn.execute(stmt).mappings().one()
        return dict(row)

    def update(self, record_id: Any, updates: Dict[str, Any]) -> Dict[str, Any]:
        values = self._values(updates)
        if not values:
            raise StoreValidationError("No fields to update")
        if "updated_at" in self.table.c and "updated_at" not in values:
            values["updated_at"] = utcnow()
        key = self._key_column()
        stmt = (
            update(self.table)
            .where(key == self._coerce(key, record_id))
            .values(**values)
            .returning(self.table)
        )
        with self.store.transaction() as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:
            raise NotFoundError(self.name, record_id)
        return dict(row)

    def delete(self, record_id: Any) -> Dict[str, Any]:
        key = self._key_column()
        stmt = delete(self.table).where(key == self._coerce(key, record_id))
        with self.store.transaction() as conn:
            result = conn.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError(self.name, record_id)
        return {"success": True, "id": record_id}

    def upsert(self, record: Dict[str, Any], conflict_column: str = "id") -> Dict[str, Any]:
        values = self._values(record)
        if conflict_column not in values:
            raise StoreValidationError(f"Upsert requires a value for '{conflict_column}'")
        conflict = self._column(conflict_column)

        with self.store.transaction() as conn:
            dialect = conn.dialect.name
            if dialect in ("postgresql", "sqlite"):
                if dialect == "postgresql":
                    from sqlalchemy.dialects.postgresql import insert as dialect_insert
                else:
                    from sqlalchemy.dialects.sqlite import insert as dialect_insert
                stmt = dialect_insert(self.table).values(**values)
                changes = {k: stmt.excluded[k] for k in values if k != conflict_column}
                if changes:
                    stmt = stmt.on_conflict_do_update(index_elements=[conflict_column], set_=changes)
                else:
                    stmt = stmt.on_conflict_do_nothing(index_elements=[conflict_column])
                row = conn.execute(stmt.returning(self.table)).mappings().first()
                if row is None:
                    row = conn.execute(
                        select(self.table).where(conflict == values[conflict_column])
                    ).mappings().one()
                return dict(row)

            existing = conn.execute(
                select(self.table).where(conflict == values[conflict_column])
            ).mappings().first()
            if existing is None:
                stmt = insert(self.table).values(**values).returning(self.table)
            else:
                stmt = (
                    update(self.table)
                    .where(conflict == values[conflict_column])
                    .values(**values)
                    .returning(self.table)
                )
            return dict(conn.execute(stmt).mappings().one())

    # ------------------------------------------------------------------
    # Capabilities used by the KPI, report and notification services
    # ------------------------------------------------------------------

    def select(self, where: Optional[Dict[str, Any]] = None, ranges: Sequence[Range] = (),
               order_by: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Rows matching `where` (None means IS NULL) and every range condition."""
        stmt = select(self.table).where(*self._conditions(where, ranges))
        if order_by:
            stmt = stmt.order_by(*self._ordering(order_by))
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.store.transaction() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [dict(row) for row in rows]

    def aggregate(self, kind: str, field_name: Optional[str] = None,
                  where: Optional[Dict[str, Any]] = None, ranges: Sequence[Range] = ()) -> float:
        if kind == "count":
            expression = func.count()
        elif kind == "sum":
            if not field_name:
                raise StoreValidationError("A sum aggregate needs a field")
            expression = func.coalesce(func.sum(self._column(field_name)), 0)
        else:
            raise StoreValidationError(f"Unsupported aggregate '{kind}'")

        stmt = select(expression).select_from(self.table).where(*self._conditions(where, ranges))
        with self.store.transaction() as conn:
            value = conn.execute(stmt).scalar_one()
        if isinstance(value, Decimal):
            return float(value)
        return value

    def update_where(self, where: Dict[str, Any], updates: Dict[str, Any]) -> List[Dict[str, Any]]:
        values = self._values(updates)
        stmt = update(self.table).where(*self._conditions(where, ())).values(**values).returning(self.table)
        with self.store.transaction() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [dict(row) for row in rows]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _column(self, name: str):
        if name not in self.table.c:
            raise StoreValidationError(f"Unknown column '{name}' on table '{self.name}'")
        return self.table.c[name]

    def _key_column(self):
        primary = list(self.table.primary_key.columns)
        return primary[0] if primary else self._column("id")

    def _ordering(self, order_by: Optional[str]) -> List[Any]:
        order_by = order_by or DEFAULT_ORDER
        descending = order_by.startswith("-")
        name = order_by[1:] if descending else order_by

        key = self._key_column()
        if name not in self.table.c and order_by == DEFAULT_ORDER:
            return [key.desc()]

        column = self._column(name)
        clauses = [column.desc() if descending else column.asc()]
        if column is not key:
            clauses.append(key.desc() if descending else key.asc())
        return clauses

    def _conditions(self, where: Optional[Dict[str, Any]], ranges: Sequence[Range]) -> List[Any]:
        conditions = []
        for name, value in (where or {}).items():
            column = self._column(name)
            if value is None:
                conditions.append(column.is_(None))
            else:
                conditions.append(column == self._coerce(column, value))
        for name, op, value in ranges:
            if op not in _RANGE_OPERATORS:
                raise StoreValidationError(f"Unsupported range operator '{op}'")
            column = self._column(name)
            conditions.append(_RANGE_OPERATORS[op](column, self._coerce(column, value)))
        return conditions

    def _values(self, record: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(record, dict):
            raise StoreValidationError("Record must be an object")
        return {name: self._coerce(self._column(name), value) for name, value in record.items()}

    def _coerce(self, column, value: Any) -> Any:
        """Convert JSON values into what the reflected column type expects."""
        if value is None:
            return None
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return value

        try:
            if python_type is datetime:
                if isinstance(value, str):
                    return datetime.fromisoformat(value.replace("Z", "+00:00"))
                if isinstance(value, date) and not isinstance(value, datetime):
                    return datetime.combine(value, time.min)
            elif python_type is date:
                if isinstance(value, str):
                    return date.fromisoformat(value[:10])
                if isinstance(value, datetime):
                    return value.date()
            elif python_type is int and isinstance(value, str):
                return int(value)
            elif python_type is uuid.UUID and isinstance(value, str):
                return uuid.UUID(value)
        except ValueError as e:
            raise StoreValidationError(
                f"Invalid value {value!r} for column '{self.name}.{column.name}'"
            ) from e
        return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
