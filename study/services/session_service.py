# study/services/session_service.py

import datetime
import json
from typing import Any, Dict, List, Optional

from study.database import Database
from study.models.study_session import StudySession
from tracking.base_focus_score_engine import FocusCategory, categorize
from tracking.session_summary import SessionSummary

# consecutive-day streak never looks further back than this
MAX_STREAK_DAYS = 365


class SessionService:
    """Read/write access for the `study_sessions` table."""

    def __init__(self, db: Database):
        self.db = db

    def save_session(self, user_id: str, summary: SessionSummary) -> StudySession:
        """
        Insert one finished session and return it with its new id.

        Raises ValueError when the focus score is outside 0..100.
        """
        if not 0 <= summary.focus_score <= 100:
            raise ValueError(f"focus score must be within 0..100, got {summary.focus_score}")

        date = datetime.datetime.fromtimestamp(summary.started_at).isoformat(timespec="seconds")
        detections = dict(summary.detections)

        conn = self.db.get_connection()
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO study_sessions (
                user_id, subject, date, duration_minutes, focus_score, category,
                phone_detections, focused_ticks, distracted_ticks, away_ticks,
                focused_seconds, distracted_seconds, away_seconds, transition_events,
                hourly_focus, recovery_rate, distraction_resistance
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                summary.subject,
                date,
                max(0, summary.duration_minutes),
                summary.focus_score,
                summary.category,
                detections.get("phone", 0),
                detections.get("focused", 0),
                detections.get("distracted", 0),
                detections.get("away", 0),
                summary.focused_seconds,
                summary.distracted_seconds,
                summary.away_seconds,
                summary.transition_events,
                json.dumps(list(summary.hourly_focus)),
                summary.recovery_rate,
                summary.distraction_resistance,
            ),
        )
        conn.commit()

        return self.get_session(cur.lastrowid)

    def get_session(self, session_id: int) -> Optional[StudySession]:
        cur = self.db.get_connection().cursor()
        cur.execute("SELECT * FROM study_sessions WHERE id = ?", (session_id,))
        row = cur.fetchone()
        if row is None:
            return None
        return _row_to_session(row)

    def list_sessions(self, user_id: str, limit: Optional[int] = None) -> List[StudySession]:
        """Sessions for a user, newest first."""
        query = "SELECT * FROM study_sessions WHERE user_id = ? ORDER BY date DESC, id DESC"
        params: tuple = (user_id,)
        if limit is not None:
            query += " LIMIT ?"
            params = (user_id, int(limit))

        cur = self.db.get_connection().cursor()
        cur.execute(query, params)
        return [_row_to_session(row) for row in cur.fetchall()]

    def overview(self, user_id: str, today: Optional[datetime.date] = None) -> Dict[str, Any]:
        """
        Aggregate statistics over every session of a user:
        counts, average/best/worst score, category distribution,
        total minutes, object hits, per-subject breakdown and the
        number of consecutive days (ending today) with a session.
        """
        sessions = self.list_sessions(user_id)
        distribution = {category.value: 0 for category in FocusCategory}

        if not sessions:
            return {
                "total_sessions": 0,
                "total_minutes": 0,
                "average_score": 0.0,
                "best_score": 0,
                "worst_score": 0,
                "distribution": distribution,
                "phone_detections": 0,
                "average_recovery_rate": 0,
                "average_distraction_resistance": 0,
                "subjects": [],
                "streak_days": 0,
            }

        scores = [s.focus_score for s in sessions]
        for score in scores:
            distribution[categorize(score).value] += 1

        subjects: Dict[str, Dict[str, Any]] = {}
        for s in sessions:
            entry = subjects.setdefault(
                s.subject,
                {"subject": s.subject, "sessions": 0, "total_minutes": 0, "scores": []},
            )
            entry["sessions"] += 1
            entry["total_minutes"] += s.duration_minutes
            entry["scores"].append(s.focus_score)

        subject_rows = []
        for entry in subjects.values():
            entry_scores = entry.pop("scores")
            entry["average_score"] = round(sum(entry_scores) / len(entry_scores))
            entry["best_score"] = max(entry_scores)
            entry["worst_score"] = min(entry_scores)
            subject_rows.append(entry)

        recovery = sum(s.analytics["recovery_rate"] for s in sessions) / len(sessions)
        resistance = sum(s.analytics["distraction_resistance"] for s in sessions) / len(sessions)

        return {
            "total_sessions": len(sessions),
            "total_minutes": sum(s.duration_minutes for s in sessions),
            "average_score": round(sum(scores) / len(scores), 1),
            "best_score": max(scores),
            "worst_score": min(scores),
            "distribution": distribution,
            "phone_detections": sum(s.detections["phone"] for s in sessions),
            "average_recovery_rate": round(recovery * 100),
            "average_distraction_resistance": round(resistance),
            "subjects": sorted(subject_rows, key=lambda r: r["subject"]),
            "streak_days": _streak_days(sessions, today or datetime.date.today()),
        }


def _streak_days(sessions: List[StudySession], today: datetime.date) -> int:
    days = {datetime.datetime.fromisoformat(s.date).date() for s in sessions}
    streak = 0
    current = today
    while current in days and streak < MAX_STREAK_DAYS:
        streak += 1
        current -= datetime.timedelta(days=1)
    return streak


def _row_to_session(row) -> StudySession:
    return StudySession(
        id=row["id"],
        user_id=row["user_id"],
        subject=row["subject"],
        date=row["date"],
        duration_minutes=row["duration_minutes"],
        focus_score=row["focus_score"],
        category=row["category"],
        detections={
            "phone": row["phone_detections"],
            "focused": row["focused_ticks"],
            "distracted": row["distracted_ticks"],
            "away": row["away_ticks"],
        },
        analytics={
            "hourly_focus": json.loads(row["hourly_focus"]),
            "recovery_rate": row["recovery_rate"],
            "distraction_resistance": row["distraction_resistance"],
        },
    )
