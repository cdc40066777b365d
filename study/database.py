# study/database.py
import os
import sqlite3
from typing import Optional


class Database:
    def __init__(self, db_path: Optional[str] = None):
        if db_path is None:
            base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
            db_path = os.path.join(base_dir, "studyfocus.db")
        self.db_path = db_path

        # shared with the camera thread; SessionTracker serializes writes
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")

        self._create_tables()

    def get_connection(self):
        return self.conn

    def close(self):
        self.conn.close()

    def _create_tables(self):
        cur = self.conn.cursor()

        cur.execute("""
            CREATE TABLE IF NOT EXISTS study_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                subject TEXT NOT NULL,
                date TEXT NOT NULL,
                duration_minutes INTEGER NOT NULL,
                focus_score INTEGER NOT NULL,
                category TEXT NOT NULL,
                phone_detections INTEGER NOT NULL DEFAULT 0,
                focused_ticks INTEGER NOT NULL DEFAULT 0,
                distracted_ticks INTEGER NOT NULL DEFAULT 0,
                away_ticks INTEGER NOT NULL DEFAULT 0,
                focused_seconds REAL NOT NULL DEFAULT 0,
                distracted_seconds REAL NOT NULL DEFAULT 0,
                away_seconds REAL NOT NULL DEFAULT 0,
                transition_events INTEGER NOT NULL DEFAULT 0,
                hourly_focus TEXT NOT NULL,
                recovery_rate REAL NOT NULL,
                distraction_resistance REAL NOT NULL
            )
        """)

        cur.execute("""
            CREATE TABLE IF NOT EXISTS achievements (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                type TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT,
                category TEXT NOT NULL,
                unlocked_at TEXT NOT NULL,
                UNIQUE (user_id, title)
            )
        """)

        cur.execute("""
            CREATE INDEX IF NOT EXISTS idx_study_sessions_user_date
            ON study_sessions (user_id, date)
        """)

        self.conn.commit()
