"""
Schema capability probing.

Deployments of different ages carry different optional columns (and, for
the oldest ones, a ``students`` table instead of ``student_profiles``).
The probe inspects the live schema once, reflects the tables the engine
writes through, and hands out an immutable ``SchemaCapabilities`` snapshot
that services receive as a parameter.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Mapping, Optional, Tuple, Union

from sqlalchemy import MetaData, Table, inspect
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from hostel_engine.core.exceptions import SchemaMismatchError
from hostel_engine.core.logging import get_logger
from hostel_engine.db.session import Database

logger = get_logger(__name__)

Bind = Union[Engine, Connection]

# Tables the engine reads or writes through reflection
PROBED_TABLES: Tuple[str, ...] = (
    "users",
    "rooms",
    "semesters",
    "semester_enrollments",
    "student_room_assignments",
    "payments",
    "student_profiles",
    "students",
    "room_reservations",
    "public_hostel_bookings",
    "hostels",
)

USER_COLUMN_PREFERENCE: Tuple[str, ...] = ("student_id", "user_id")


class SchemaProbe:
    """
    Read-only view of the live schema.

    Absence of a table or column is a normal answer, so no method raises:
    inspection failures are logged and reported as absence.
    """

    def __init__(self, bind: Bind):
        self.bind = bind
        self._inspector = None
        self._columns: Dict[str, FrozenSet[str]] = {}

    def _get_inspector(self):
        if self._inspector is None:
            self._inspector = inspect(self.bind)
        return self._inspector

    def has_table(self, table: str) -> bool:
        try:
            return self._get_inspector().has_table(table)
        except SQLAlchemyError as e:
            logger.warning(f"Could not inspect table {table}: {e}", extra={"table": table})
            return False

    def columns(self, table: str) -> FrozenSet[str]:
        """Return the column names of ``table`` (empty when the table is absent)."""
        if table in self._columns:
            return self._columns[table]

        names: FrozenSet[str] = frozenset()
        if self.has_table(table):
            try:
                names = frozenset(col["name"] for col in self._get_inspector().get_columns(table))
            except SQLAlchemyError as e:
                logger.warning(f"Could not read columns of {table}: {e}", extra={"table": table})

        self._columns[table] = names
        return names

    def has_column(self, table: str, column: str) -> bool:
        return column in self.columns(table)

    def resolve_user_column(self, table: str) -> Optional[str]:
        """Name of the column holding the student's user id (``student_id`` wins)."""
        present = self.columns(table)
        for candidate in USER_COLUMN_PREFERENCE:
            if candidate in present:
                return candidate
        return None

    def resolve_assignment_user_column(self) -> Optional[str]:
        return self.resolve_user_column("student_room_assignments")

    def reflect(self, table: str) -> Optional[Table]:
        if not self.has_table(table):
            return None
        try:
            return Table(table, MetaData(), autoload_with=self.bind, resolve_fks=False)
        except SQLAlchemyError as e:
            logger.warning(f"Could not reflect {table}: {e}", extra={"table": table})
            return None

    def capabilities(self) -> "SchemaCapabilities":
        """Probe every engine table and return an immutable snapshot."""
        started = time.perf_counter()
        tables: Dict[str, Table] = {}
        for name in PROBED_TABLES:
            reflected = self.reflect(name)
            if reflected is not None:
                tables[name] = reflected

        columns = {
            name: frozenset(col.name for col in table.columns)
            for name, table in tables.items()
        }
        caps = SchemaCapabilities(columns=columns, tables=tables)

        logger.info(
            "Schema capabilities probed",
            extra={
                "tables": sorted(tables),
                "assignment_user_column": caps.assignment_user_column,
                "profile_table": caps.profile_table,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return caps


@dataclass(frozen=True, eq=False)
class SchemaCapabilities:
    """Which tables and optional columns the connected schema has."""

    columns: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    tables: Mapping[str, Table] = field(default_factory=dict)

    def has_table(self, table: str) -> bool:
        return table in self.tables

    def has_column(self, table: str, column: str) -> bool:
        return column in self.columns.get(table, frozenset())

    def table(self, name: str) -> Table:
        """Reflected table, or ``SchemaMismatchError`` when it does not exist."""
        try:
            return self.tables[name]
        except KeyError:
            raise SchemaMismatchError(name) from None

    def require(self, table: str, *columns: str) -> Table:
        """Return the table after checking that every listed column exists."""
        reflected = self.table(table)
        for column in columns:
            if not self.has_column(table, column):
                raise SchemaMismatchError(table, column)
        return reflected

    def _user_column(self, table: str) -> Optional[str]:
        present = self.columns.get(table, frozenset())
        for candidate in USER_COLUMN_PREFERENCE:
            if candidate in present:
                return candidate
        return None

    @property
    def assignment_user_column(self) -> Optional[str]:
        return self._user_column("student_room_assignments")

    @property
    def payment_user_column(self) -> Optional[str]:
        return self._user_column("payments")

    @property
    def assignment_date_column(self) -> Optional[str]:
        for candidate in ("assigned_at", "assignment_date"):
            if self.has_column("student_room_assignments", candidate):
                return candidate
        return None

    @property
    def profile_table(self) -> Optional[str]:
        if self.has_table("student_profiles"):
            return "student_profiles"
        if self.has_table("students"):
            return "students"
        return None

    @property
    def enrollment_has_room(self) -> bool:
        return self.has_column("semester_enrollments", "room_id")

    @property
    def enrollment_has_completed_at(self) -> bool:
        return self.has_column("semester_enrollments", "completed_at")

    @property
    def payment_has_hostel(self) -> bool:
        return self.has_column("payments", "hostel_id")

    @property
    def payment_has_semester(self) -> bool:
        return self.has_column("payments", "semester_id")

    @property
    def room_has_gender_policy(self) -> bool:
        return self.has_column("rooms", "gender_allowed")

    @property
    def semester_has_reminder_marker(self) -> bool:
        return self.has_column("semesters", "reminder_sent_at")

    @property
    def has_public_bookings(self) -> bool:
        return self.has_table("public_hostel_bookings")

    @property
    def has_reservations(self) -> bool:
        return self.has_table("room_reservations")


class SchemaCapabilityCache:
    """
    Per-engine capability snapshots with a time-to-live.

    Thread-safe; a stale entry is re-probed on the next ``get``.
    """

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[int, Tuple[SchemaCapabilities, float]] = {}
        self._lock = threading.Lock()

    def get(self, database: Database) -> SchemaCapabilities:
        key = id(database.engine)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now - entry[1] < self.ttl_seconds:
                return entry[0]

            caps = SchemaProbe(database.engine).capabilities()
            self._entries[key] = (caps, now)
            return caps

    def invalidate(self, database: Optional[Database] = None) -> None:
        """Drop one engine's snapshot, or all of them."""
        with self._lock:
            if database is None:
                self._entries.clear()
            else:
                self._entries.pop(id(database.engine), None)
