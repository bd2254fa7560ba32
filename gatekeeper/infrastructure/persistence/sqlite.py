import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from ...domain.errors import NotFound, UserNotFound
from ...domain.models import (
    Admin,
    AdminRole,
    Approved,
    Page,
    PaymentMethod,
    Rejected,
    User,
    UserQuery,
    UserStatus,
)
from ...domain.ports.persistence import PersistenceGateway


def _casefold(value: Optional[str]) -> Optional[str]:
    # SQLite's LIKE and lower() only fold ASCII letters.
    return value.casefold() if value else value


class SQLitePersistence(PersistenceGateway):
    """SQLite-backed implementation of the persistence gateway."""

    def __init__(self, path: Path) -> None:
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.create_function("casefold", 1, _casefold, deterministic=True)
        self._lock = threading.Lock()
        self._initialize()

    def _initialize(self) -> None:
        with self._conn:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                    password_hash TEXT NOT NULL,
                    payment_method TEXT NOT NULL
                        CHECK (payment_method IN ('binance', 'easypaisa', 'nayapay')),
                    payment_screenshot TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending'
                        CHECK (status IN ('pending', 'approved', 'rejected')),
                    is_approved INTEGER NOT NULL DEFAULT 0,
                    rejection_reason TEXT,
                    subscription_start_date TEXT,
                    subscription_end_date TEXT,
                    last_login TEXT,
                    login_count INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    CHECK ((status = 'approved') = (is_approved = 1)),
                    CHECK (rejection_reason IS NULL OR status = 'rejected')
                );

                CREATE INDEX IF NOT EXISTS idx_users_status_created
                    ON users(status, created_at DESC);

                CREATE INDEX IF NOT EXISTS idx_users_created
                    ON users(created_at DESC);

                CREATE TABLE IF NOT EXISTS admins (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                    password_hash TEXT NOT NULL,
                    name TEXT NOT NULL,
                    role TEXT NOT NULL DEFAULT 'admin',
                    last_login TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    def close(self) -> None:
        self._conn.close()

    def ping(self) -> bool:
        try:
            with self._lock:
                self._conn.execute("SELECT 1").fetchone()
        except sqlite3.Error:
            return False
        return True

    # UserRepository API ----------------------------------------------------
    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        payment_method: PaymentMethod,
        payment_screenshot: str,
    ) -> User:
        now = self._now()
        with self._lock, self._conn:
            cur = self._conn.execute(
                """
                INSERT INTO users (
                    name, email, password_hash, payment_method, payment_screenshot,
                    status, is_approved, login_count, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, 'pending', 0, 0, ?, ?)
                """,
                (
                    name,
                    email.strip().lower(),
                    password_hash,
                    PaymentMethod(payment_method).value,
                    payment_screenshot,
                    now,
                    now,
                ),
            )
            user_id = cur.lastrowid
            cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
        if not row:
            raise RuntimeError("Failed to persist user.")
        return self._row_to_user(row)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM users WHERE email = ?", (email.strip().lower(),))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
            row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def find_users(self, query: UserQuery) -> Page[User]:
        where, params = self._build_filter(query.status, query.search)
        with self._lock:
            cur = self._conn.execute(f"SELECT COUNT(*) FROM users{where}", params)
            total = cur.fetchone()[0]
            cur = self._conn.execute(
                f"SELECT * FROM users{where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                [*params, query.page_size, query.offset],
            )
            rows = cur.fetchall()
        return Page(
            items=[self._row_to_user(row) for row in rows],
            total=total,
            page=query.page,
            page_size=query.page_size,
        )

    def update_user_name(self, user_id: int, name: str) -> User:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE users SET name = ?, updated_at = ? WHERE id = ?",
                (name, self._now(), user_id),
            )
            row = self._fetch_user_locked(user_id)
        return self._row_to_user(row)

    def set_user_lifecycle(self, user_id: int, state: Union[Approved, Rejected]) -> User:
        if isinstance(state, Approved):
            statement = """
                UPDATE users
                SET status = 'approved', is_approved = 1, rejection_reason = NULL,
                    subscription_start_date = ?, subscription_end_date = ?, updated_at = ?
                WHERE id = ?
            """
            params: Tuple[Any, ...] = (
                self._to_iso(state.since),
                self._to_iso(state.until),
                self._now(),
                user_id,
            )
        elif isinstance(state, Rejected):
            statement = """
                UPDATE users
                SET status = 'rejected', is_approved = 0, rejection_reason = ?, updated_at = ?
                WHERE id = ?
            """
            params = (state.reason, self._now(), user_id)
        else:
            raise TypeError(f"Unsupported lifecycle state: {state!r}")

        with self._lock, self._conn:
            self._conn.execute(statement, params)
            row = self._fetch_user_locked(user_id)
        return self._row_to_user(row)

    def record_user_login(self, user_id: int, at: datetime) -> User:
        with self._lock, self._conn:
            self._conn.execute(
                """
                UPDATE users
                SET login_count = login_count + 1, last_login = ?, updated_at = ?
                WHERE id = ?
                """,
                (self._to_iso(at), self._now(), user_id),
            )
            row = self._fetch_user_locked(user_id)
        return self._row_to_user(row)

    def delete_user(self, user_id: int) -> bool:
        with self._lock, self._conn:
            cur = self._conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            return cur.rowcount > 0

    def count_users(
        self,
        *,
        status: Optional[UserStatus] = None,
        approved_only: bool = False,
        logged_in_since: Optional[datetime] = None,
        created_since: Optional[datetime] = None,
    ) -> int:
        clauses: List[str] = []
        params: List[Any] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(UserStatus(status).value)
        if approved_only:
            clauses.append("is_approved = 1")
        if logged_in_since is not None:
            clauses.append("last_login >= ?")
            params.append(self._to_iso(logged_in_since))
        if created_since is not None:
            clauses.append("created_at >= ?")
            params.append(self._to_iso(created_since))
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._lock:
            cur = self._conn.execute(f"SELECT COUNT(*) FROM users{where}", params)
            return cur.fetchone()[0]

    def recent_users(self, limit: int, status: Optional[UserStatus] = None) -> List[User]:
        where, params = self._build_filter(status, None)
        with self._lock:
            cur = self._conn.execute(
                f"SELECT * FROM users{where} ORDER BY created_at DESC, id DESC LIMIT ?",
                [*params, limit],
            )
            rows = cur.fetchall()
        return [self._row_to_user(row) for row in rows]

    # AdminRepository API ---------------------------------------------------
    def create_admin(self, email: str, password_hash: str, name: str, role: AdminRole) -> Admin:
        now = self._now()
        with self._lock, self._conn:
            cur = self._conn.execute(
                """
                INSERT INTO admins (email, password_hash, name, role, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (email.strip().lower(), password_hash, name, AdminRole(role).value, now, now),
            )
            admin_id = cur.lastrowid
            cur = self._conn.execute("SELECT * FROM admins WHERE id = ?", (admin_id,))
            row = cur.fetchone()
        if not row:
            raise RuntimeError("Failed to persist administrator.")
        return self._row_to_admin(row)

    def get_admin_by_email(self, email: str) -> Optional[Admin]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM admins WHERE email = ?", (email.strip().lower(),))
            row = cur.fetchone()
        return self._row_to_admin(row) if row else None

    def get_admin_by_id(self, admin_id: int) -> Optional[Admin]:
        with self._lock:
            cur = self._conn.execute("SELECT * FROM admins WHERE id = ?", (admin_id,))
            row = cur.fetchone()
        return self._row_to_admin(row) if row else None

    def record_admin_login(self, admin_id: int, at: datetime) -> Admin:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE admins SET last_login = ?, updated_at = ? WHERE id = ?",
                (self._to_iso(at), self._now(), admin_id),
            )
            cur = self._conn.execute("SELECT * FROM admins WHERE id = ?", (admin_id,))
            row = cur.fetchone()
        if not row:
            raise NotFound(f"Administrator {admin_id} not found")
        return self._row_to_admin(row)

    # Helpers ----------------------------------------------------------------
    def _fetch_user_locked(self, user_id: int) -> sqlite3.Row:
        cur = self._conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = cur.fetchone()
        if not row:
            raise UserNotFound()
        return row

    @staticmethod
    def _build_filter(status: Optional[UserStatus], search: Optional[str]) -> Tuple[str, List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []
        if status is not None:
            clauses.append("status = ?")
            params.append(UserStatus(status).value)
        if search:
            needle = search.casefold()
            clauses.append("(instr(casefold(name), ?) > 0 OR instr(casefold(email), ?) > 0)")
            params.extend([needle, needle])
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).replace(microsecond=0).isoformat()

    @staticmethod
    def _to_iso(value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(microsecond=0).isoformat()

    @staticmethod
    def _parse_datetime(value: str) -> datetime:
        try:
            result = datetime.fromisoformat(value)
        except ValueError:
            # Fallback for legacy formats without 'T'
            result = datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
        if result.tzinfo is None:
            return result.replace(tzinfo=timezone.utc)
        return result.astimezone(timezone.utc)

    def _parse_optional(self, value: Optional[str]) -> Optional[datetime]:
        return self._parse_datetime(value) if value else None

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            payment_method=PaymentMethod(row["payment_method"]),
            payment_screenshot=row["payment_screenshot"],
            status=UserStatus(row["status"]),
            is_approved=bool(row["is_approved"]),
            rejection_reason=row["rejection_reason"],
            subscription_start_date=self._parse_optional(row["subscription_start_date"]),
            subscription_end_date=self._parse_optional(row["subscription_end_date"]),
            last_login=self._parse_optional(row["last_login"]),
            login_count=row["login_count"],
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )

    def _row_to_admin(self, row: sqlite3.Row) -> Admin:
        return Admin(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            name=row["name"],
            role=AdminRole(row["role"]),
            last_login=self._parse_optional(row["last_login"]),
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
        )
