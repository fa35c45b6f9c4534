"""
SQLite storage for the marketplace.

Services open a short-lived connection per call with ``get_connection``.
The schema lives in ``MIGRATIONS``; ``init_db`` applies every entry whose
version is newer than the highest one recorded in ``migrations``. The
JSON and UTC timestamp helpers keep column formats consistent.
"""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from .config import settings

logger = logging.getLogger(__name__)

# Role identifiers seeded by ``init_db``.
ROLE_ADMIN = 1
ROLE_MODEL = 2
ROLE_CLIENT = 3


def get_database_path() -> str:
    """Absolute path of the SQLite file named by ``DATABASE_URL``.

    Relative paths are taken from the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is switched on for the lifetime of
    the connection; SQLite leaves it off by default.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def dumps_json(value: Any) -> Optional[str]:
    """Serialise a list/dict column value, keeping ``None`` as NULL."""
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def loads_json(raw: Optional[str], default: Any = None) -> Any:
    """Deserialise a JSON column, falling back to ``default`` on bad data."""
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed JSON column value: %r", raw)
        return default


def to_utc_iso(value: datetime) -> str:
    """Normalise a datetime to a naive UTC ISO string (second precision).

    Naive datetimes are assumed to already be in UTC.  A single format
    keeps lexical comparison in SQL equal to chronological comparison.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="seconds")


def utcnow_iso() -> str:
    return to_utc_iso(datetime.now(timezone.utc))


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS roles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE
        );

        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            full_name TEXT NOT NULL,
            phone TEXT,
            password TEXT,
            role_id INTEGER NOT NULL DEFAULT 3,
            is_verified INTEGER NOT NULL DEFAULT 0,
            avatar_url TEXT,
            date_of_birth TEXT,
            location TEXT,
            bio TEXT,
            preferences TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            last_login TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(role_id) REFERENCES roles(id)
        );

        CREATE TABLE IF NOT EXISTS models (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER,
            stage_name TEXT NOT NULL,
            age INTEGER NOT NULL,
            location TEXT NOT NULL,
            category TEXT NOT NULL,
            bio TEXT,
            main_photo_url TEXT,
            gallery_photos TEXT,
            specialties TEXT,
            languages TEXT,
            hourly_rate REAL,
            availability TEXT NOT NULL DEFAULT 'available',
            availability_schedule TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            is_featured INTEGER NOT NULL DEFAULT 0,
            rating REAL NOT NULL DEFAULT 5.0,
            total_reviews INTEGER NOT NULL DEFAULT 0,
            total_bookings INTEGER NOT NULL DEFAULT 0,
            whatsapp TEXT,
            instagram TEXT,
            twitter TEXT,
            verification_status TEXT NOT NULL DEFAULT 'pending',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(user_id) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS services (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT,
            icon TEXT,
            category TEXT NOT NULL DEFAULT 'standard',
            base_price REAL,
            duration_hours INTEGER NOT NULL DEFAULT 1,
            is_active INTEGER NOT NULL DEFAULT 1,
            requirements TEXT,
            includes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS model_services (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            model_id INTEGER NOT NULL,
            service_id INTEGER NOT NULL,
            custom_price REAL,
            custom_duration INTEGER,
            is_available INTEGER NOT NULL DEFAULT 1,
            special_notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(model_id, service_id),
            FOREIGN KEY(model_id) REFERENCES models(id),
            FOREIGN KEY(service_id) REFERENCES services(id)
        );

        CREATE TABLE IF NOT EXISTS bookings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            client_id INTEGER NOT NULL,
            model_id INTEGER NOT NULL,
            service_id INTEGER,
            booking_date TIMESTAMP NOT NULL,
            duration_hours INTEGER NOT NULL,
            total_amount REAL NOT NULL,
            deposit_amount REAL NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            payment_status TEXT NOT NULL DEFAULT 'pending',
            special_requests TEXT,
            location TEXT,
            meeting_point TEXT,
            client_notes TEXT,
            model_notes TEXT,
            cancellation_reason TEXT,
            cancelled_by INTEGER,
            cancelled_at TIMESTAMP,
            confirmed_at TIMESTAMP,
            completed_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(client_id) REFERENCES users(id),
            FOREIGN KEY(model_id) REFERENCES models(id),
            FOREIGN KEY(service_id) REFERENCES services(id),
            FOREIGN KEY(cancelled_by) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS payments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            booking_id INTEGER NOT NULL,
            payer_id INTEGER NOT NULL,
            amount REAL NOT NULL,
            currency TEXT NOT NULL DEFAULT 'MZN',
            payment_method TEXT NOT NULL,
            payment_status TEXT NOT NULL DEFAULT 'pending',
            transaction_id TEXT,
            external_reference TEXT,
            payment_data TEXT,
            processed_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(booking_id) REFERENCES bookings(id),
            FOREIGN KEY(payer_id) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS reviews (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            client_id INTEGER NOT NULL,
            model_id INTEGER NOT NULL,
            booking_id INTEGER NOT NULL,
            rating INTEGER NOT NULL,
            comment TEXT,
            pros TEXT,
            cons TEXT,
            is_anonymous INTEGER NOT NULL DEFAULT 0,
            is_verified INTEGER NOT NULL DEFAULT 0,
            is_featured INTEGER NOT NULL DEFAULT 0,
            admin_approved INTEGER NOT NULL DEFAULT 0,
            response_from_model TEXT,
            response_date TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(client_id, booking_id),
            FOREIGN KEY(client_id) REFERENCES users(id),
            FOREIGN KEY(model_id) REFERENCES models(id),
            FOREIGN KEY(booking_id) REFERENCES bookings(id)
        );

        CREATE TABLE IF NOT EXISTS notifications (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            title TEXT NOT NULL,
            message TEXT NOT NULL,
            type TEXT NOT NULL DEFAULT 'info',
            data TEXT,
            is_read INTEGER NOT NULL DEFAULT 0,
            read_at TIMESTAMP,
            action_url TEXT,
            expires_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(user_id) REFERENCES users(id)
        );

        CREATE TABLE IF NOT EXISTS messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            sender_id INTEGER NOT NULL,
            receiver_id INTEGER NOT NULL,
            booking_id INTEGER,
            content TEXT NOT NULL,
            message_type TEXT NOT NULL DEFAULT 'text',
            attachment_url TEXT,
            is_read INTEGER NOT NULL DEFAULT 0,
            read_at TIMESTAMP,
            is_deleted INTEGER NOT NULL DEFAULT 0,
            deleted_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(sender_id) REFERENCES users(id),
            FOREIGN KEY(receiver_id) REFERENCES users(id),
            FOREIGN KEY(booking_id) REFERENCES bookings(id)
        );

        CREATE TABLE IF NOT EXISTS candidaturas (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            nome TEXT NOT NULL,
            idade INTEGER NOT NULL,
            pais TEXT NOT NULL,
            provincia TEXT NOT NULL,
            cidade TEXT,
            email TEXT NOT NULL,
            whatsapp TEXT NOT NULL,
            instagram TEXT,
            foto_url TEXT,
            fotos_adicionais TEXT,
            experiencia TEXT,
            motivacao TEXT,
            disponibilidade TEXT,
            expectativas_financeiras TEXT,
            termos_aceitos INTEGER NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'pendente',
            observacoes TEXT,
            admin_notes TEXT,
            interview_date TIMESTAMP,
            processed_by INTEGER,
            processed_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(processed_by) REFERENCES users(id)
        );
        """,
    ),
    # Migration 2: runtime settings and audit trail
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            type TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER,
            action TEXT NOT NULL,
            object_type TEXT,
            object_id INTEGER,
            timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            details TEXT
        );
        """,
    ),
    # Migration 3: indices on the foreign keys used by listings
    (
        3,
        """
        CREATE INDEX IF NOT EXISTS idx_models_user_id ON models(user_id);
        CREATE INDEX IF NOT EXISTS idx_bookings_client_id ON bookings(client_id);
        CREATE INDEX IF NOT EXISTS idx_bookings_model_id ON bookings(model_id);
        CREATE INDEX IF NOT EXISTS idx_payments_booking_id ON payments(booking_id);
        CREATE INDEX IF NOT EXISTS idx_reviews_model_id ON reviews(model_id);
        CREATE INDEX IF NOT EXISTS idx_notifications_user_id ON notifications(user_id);
        CREATE INDEX IF NOT EXISTS idx_messages_sender_id ON messages(sender_id);
        CREATE INDEX IF NOT EXISTS idx_messages_receiver_id ON messages(receiver_id);
        CREATE INDEX IF NOT EXISTS idx_candidaturas_status ON candidaturas(status);
        """,
    ),
]


def init_db() -> None:
    """Bring the schema up to the newest version in ``MIGRATIONS``."""
    with get_cursor() as cursor:
        cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
        applied = cursor.execute("SELECT COALESCE(MAX(version), 0) AS v FROM migrations").fetchone()["v"]
        pending = [(version, sql) for version, sql in MIGRATIONS if version > applied]
        for version, sql in pending:
            logger.info("Applying migration %s", version)
            cursor.executescript(sql)
            cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))

        cursor.executemany(
            "INSERT OR IGNORE INTO roles (id, name) VALUES (?, ?)",
            [(ROLE_ADMIN, "admin"), (ROLE_MODEL, "model"), (ROLE_CLIENT, "client")],
        )
    if pending:
        logger.info("Database schema at version %s", pending[-1][0])
