# study/models/study_session.py

class StudySession:
    def __init__(
        self,
        id,
        user_id,
        subject,
        date,
        duration_minutes,
        focus_score,
        category,
        detections,
        analytics,
    ):
        self.id = id
        self.user_id = user_id
        self.subject = subject
        self.date = date  # ISO timestamp of the session start
        self.duration_minutes = duration_minutes
        self.focus_score = focus_score
        self.category = category
        self.detections = detections  # {"phone", "focused", "distracted", "away"}
        self.analytics = analytics    # {"hourly_focus", "recovery_rate", "distraction_resistance"}

    def __repr__(self):
        return (
            f"<StudySession id={self.id} user_id={self.user_id} "
            f"subject={self.subject!r} score={self.focus_score}>"
        )
