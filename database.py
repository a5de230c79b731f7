import logging
import sqlite3
import threading

import config

logger = logging.getLogger(__name__)

USER_COLUMNS = ("id", "username", "password_hash", "password_salt", "role", "created_at")
EVENT_COLUMNS = (
    "id", "title", "description", "event_type", "image_url", "location",
    "start_date", "end_date", "created_by", "created_at", "updated_at",
)
# Columns an update may touch; id, created_by and created_at are fixed at insert
EVENT_MUTABLE_COLUMNS = (
    "title", "description", "event_type", "image_url", "location",
    "start_date", "end_date", "updated_at",
)


class Database:
    def __init__(self, db_name=":memory:"):
        """
        Initialize SQLite database connection.
        The default ":memory:" database lives and dies with the process;
        pass a file path to keep users and events across restarts.
        """
        self.conn = sqlite3.connect(db_name, check_same_thread=False)
        # FastAPI runs sync handlers on a thread pool; serialize every access
        self.lock = threading.RLock()
        self.create_tables()

    def create_tables(self):
        """Create database tables with appropriate indexes."""
        with self.lock:
            cursor = self.conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL UNIQUE,
                    password_hash BLOB NOT NULL,
                    password_salt BLOB NOT NULL,
                    role TEXT NOT NULL CHECK(role IN ('user', 'admin')),
                    created_at TEXT NOT NULL
                )
            ''')
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    image_url TEXT NOT NULL,
                    location TEXT,
                    start_date TEXT,
                    end_date TEXT,
                    created_by INTEGER NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT,
                    FOREIGN KEY (created_by) REFERENCES users(id)
                )
            ''')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_events_created_by ON events(created_by)')
            self.conn.commit()

    def add_user(self, username, password_hash, password_salt, role, created_at):
        """Insert a user and return its id, or None if the username is taken."""
        with self.lock:
            cursor = self.conn.cursor()
            try:
                cursor.execute('''
                    INSERT INTO users (username, password_hash, password_salt, role, created_at)
                    VALUES (?, ?, ?, ?, ?)
                ''', (username, password_hash, password_salt, role, created_at))
            except sqlite3.IntegrityError:
                self.conn.rollback()
                return None
            self.conn.commit()
            return cursor.lastrowid

    def get_user(self, user_id):
        """Retrieve a user by ID."""
        with self.lock:
            cursor = self.conn.cursor()
            cursor.execute('SELECT * FROM users WHERE id = ?', (user_id,))
            row = cursor.fetchone()
        return dict(zip(USER_COLUMNS, row)) if row else None

    def get_user_by_username(self, username):
        """Retrieve a user by username (exact, case-sensitive match)."""
        with self.lock:
            cursor = self.conn.cursor()
            cursor.execute('SELECT * FROM users WHERE username = ?', (username,))
            row = cursor.fetchone()
        return dict(zip(USER_COLUMNS, row)) if row else None

    def list_users(self):
        """Retrieve all users in registration order."""
        with self.lock:
            cursor = self.conn.cursor()
            cursor.execute('SELECT * FROM users ORDER BY id')
            rows = cursor.fetchall()
        return [dict(zip(USER_COLUMNS, r)) for r in rows]

    def add_event(self, event):
        """Insert an event dict (without id) and return the assigned id."""
        with self.lock:
            cursor = self.conn.cursor()
            cursor.execute('''
                INSERT INTO events (title, description, event_type, image_url, location,
                                    start_date, end_date, created_by, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (event["title"], event["description"], event["event_type"], event["image_url"],
                  event.get("location"), event.get("start_date"), event.get("end_date"),
                  event["created_by"], event["created_at"], event.get("updated_at")))
            self.conn.commit()
            return cursor.lastrowid

    def get_event(self, event_id):
        """Retrieve an event by ID."""
        with self.lock:
            cursor = self.conn.cursor()
            cursor.execute('SELECT * FROM events WHERE id = ?', (event_id,))
            row = cursor.fetchone()
        return dict(zip(EVENT_COLUMNS, row)) if row else None

    def list_events(self, created_by=None):
        """Retrieve all events in insertion order, optionally for one creator."""
        with self.lock:
            cursor = self.conn.cursor()
            if created_by is None:
                cursor.execute('SELECT * FROM events ORDER BY id')
            else:
                cursor.execute('SELECT * FROM events WHERE created_by = ? ORDER BY id', (created_by,))
            rows = cursor.fetchall()
        return [dict(zip(EVENT_COLUMNS, r)) for r in rows]

    def update_event(self, event_id, **fields):
        """Update an event's mutable columns; unknown columns are ignored."""
        updates = {k: v for k, v in fields.items() if k in EVENT_MUTABLE_COLUMNS}
        if not updates:
            return False
        set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
        values = list(updates.values()) + [event_id]
        with self.lock:
            cursor = self.conn.cursor()
            cursor.execute(f'UPDATE events SET {set_clause} WHERE id = ?', values)
            self.conn.commit()
            return cursor.rowcount > 0

    def delete_event(self, event_id):
        """Delete an event."""
        with self.lock:
            cursor = self.conn.cursor()
            cursor.execute('DELETE FROM events WHERE id = ?', (event_id,))
            self.conn.commit()
            return cursor.rowcount > 0

    def reset(self):
        """Drop all rows and restart id sequences."""
        with self.lock:
            cursor = self.conn.cursor()
            cursor.execute('DELETE FROM events')
            cursor.execute('DELETE FROM users')
            cursor.execute("DELETE FROM sqlite_sequence WHERE name IN ('events', 'users')")
            self.conn.commit()
        logger.debug("Database reset")

    def close(self):
        """Close the database connection."""
        with self.lock:
            self.conn.close()


# Shared store for the running app; tests reset it between cases
db = Database(config.DATABASE_PATH)


def get_db():
    return db
