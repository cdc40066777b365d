# study/services/achievement_service.py

import datetime
from typing import List, Optional

from study.database import Database
from study.models.achievement import AchievementRecord
from tracking.focus_score_engine import Achievement


class AchievementService:
    """Access to the `achievements` table. One row per (user, title)."""

    def __init__(self, db: Database):
        self.db = db

    def unlock(
        self,
        user_id: str,
        achievement: Achievement,
        when: Optional[datetime.datetime] = None,
    ) -> AchievementRecord:
        """
        Store an achievement for a user. Unlocking the same title twice
        keeps the first row and returns it unchanged.
        """
        unlocked_at = (when or datetime.datetime.now()).isoformat(timespec="seconds")

        conn = self.db.get_connection()
        cur = conn.cursor()
        cur.execute(
            """
            INSERT OR IGNORE INTO achievements (
                user_id, type, title, description, category, unlocked_at
            )
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                achievement.type,
                achievement.title,
                achievement.description,
                achievement.category,
                unlocked_at,
            ),
        )
        conn.commit()

        cur.execute(
            "SELECT * FROM achievements WHERE user_id = ? AND title = ?",
            (user_id, achievement.title),
        )
        return _row_to_record(cur.fetchone())

    def list_achievements(self, user_id: str) -> List[AchievementRecord]:
        cur = self.db.get_connection().cursor()
        cur.execute(
            "SELECT * FROM achievements WHERE user_id = ? ORDER BY unlocked_at DESC, id DESC",
            (user_id,),
        )
        return [_row_to_record(row) for row in cur.fetchall()]


def _row_to_record(row) -> AchievementRecord:
    return AchievementRecord(
        id=row["id"],
        user_id=row["user_id"],
        type=row["type"],
        title=row["title"],
        description=row["description"],
        category=row["category"],
        unlocked_at=row["unlocked_at"],
    )
