# dashboard/widgets/focus_widget.py

from __future__ import annotations

from typing import Iterable

from PyQt5.QtWidgets import QLabel, QListWidget, QVBoxLayout, QWidget

from tracking.attention_state_machine import Alert
from tracking.base_focus_score_engine import FocusCategory
from tracking.focus_score_engine import Achievement
from tracking.i_attention_classifier import AttentionState

STATE_COLORS = {
    AttentionState.FOCUSED: "#10B981",
    AttentionState.DISTRACTED: "#F59E0B",
    AttentionState.AWAY: "#F43F5E",
}


class FocusWidget(QWidget):
    """
    Small widget that shows:
      - Focus score and category (Excellent / Good / ...)
      - Current attention state and its alerts
      - Focused / Distracted / Away minutes
      - Phone detections
      - Achievements unlocked this session

    The dashboard calls `update_metrics(...)` on every refresh,
    `update_state(...)` on state changes and `show_achievement(...)`
    for each new achievement. All calls must come from the Qt thread.
    """

    def __init__(self, parent=None):
        super().__init__(parent)

        self.label_title = QLabel("Focus")
        self.label_score = QLabel("Score: 0 (Poor)")
        self.label_state = QLabel("State: focused")
        self.label_alerts = QLabel("")
        self.label_focused = QLabel("Focused minutes: 0")
        self.label_distracted = QLabel("Distracted minutes: 0")
        self.label_away = QLabel("Away minutes: 0")
        self.label_phone = QLabel("Phone detections: 0")
        self.list_achievements = QListWidget()

        layout = QVBoxLayout()
        layout.addWidget(self.label_title)
        layout.addWidget(self.label_score)
        layout.addWidget(self.label_state)
        layout.addWidget(self.label_alerts)
        layout.addWidget(self.label_focused)
        layout.addWidget(self.label_distracted)
        layout.addWidget(self.label_away)
        layout.addWidget(self.label_phone)
        layout.addWidget(QLabel("Achievements"))
        layout.addWidget(self.list_achievements)

        self.setLayout(layout)

    def update_metrics(
        self,
        score: int,
        category: FocusCategory,
        focused_seconds: float,
        distracted_seconds: float,
        away_seconds: float,
        object_hits: int,
    ) -> None:
        focused_min = int(focused_seconds // 60)
        distracted_min = int(distracted_seconds // 60)
        away_min = int(away_seconds // 60)

        self.label_score.setText(f"Score: {score} ({FocusCategory(category).value})")
        self.label_focused.setText(f"Focused minutes: {focused_min}")
        self.label_distracted.setText(f"Distracted minutes: {distracted_min}")
        self.label_away.setText(f"Away minutes: {away_min}")
        self.label_phone.setText(f"Phone detections: {object_hits}")

    def update_from_stats(self, stats: dict) -> None:
        """Convenience wrapper around update_metrics for FocusScoreEngine.stats()."""
        self.update_metrics(
            stats["score"],
            FocusCategory(stats["category"]),
            stats["focused_seconds"],
            stats["distracted_seconds"],
            stats["away_seconds"],
            stats["object_hits"],
        )

    def update_state(self, state: AttentionState, alerts: Iterable[Alert] = ()) -> None:
        state = AttentionState(state)
        self.label_state.setText(f"State: {state.value}")
        self.label_state.setStyleSheet(f"color: {STATE_COLORS[state]};")
        self.label_alerts.setText("\n".join(alert.message for alert in alerts))

    def show_achievement(self, achievement: Achievement) -> None:
        self.list_achievements.addItem(f"{achievement.title}: {achievement.description}")

    def clear_achievements(self) -> None:
        self.list_achievements.clear()
