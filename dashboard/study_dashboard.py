# dashboard/study_dashboard.py

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Optional

import cv2

from PyQt5.QtCore import QTimer, Qt
from PyQt5.QtGui import QImage, QPixmap
from PyQt5.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from dashboard.widgets.focus_widget import FocusWidget
from study.session_tracker import SessionTracker
from tracking.camera_monitor import CameraInitError
from tracking.focus_score_engine import Achievement
from tracking.i_attention_classifier import AttentionState
from tracking.session_pipeline import SessionStateError, TickResult

logger = logging.getLogger(__name__)

REFRESH_MS = 100


class StudyDashboard(QWidget):
    """
    Study session window: subject input, start / pause / stop, live
    camera preview and the FocusWidget.

    Tracker callbacks arrive on the camera thread and only store the
    latest values; a QTimer pulls them into the widgets on the Qt thread.
    """

    def __init__(self, tracker: SessionTracker, user_id: str, parent=None):
        super().__init__(parent)

        self.tracker = tracker
        self.user_id = user_id
        self.setWindowTitle("Study Focus")

        # -------- UI --------
        self.label_title = QLabel(f"Student: {self.user_id}")
        self.label_title.setStyleSheet("font-size: 18px; font-weight: bold;")

        self.subject_input = QLineEdit()
        self.subject_input.setPlaceholderText("Subject (e.g., Math)")

        self.start_button = QPushButton("Start")
        self.start_button.clicked.connect(self.start_session)
        self.pause_button = QPushButton("Pause")
        self.pause_button.setEnabled(False)
        self.pause_button.clicked.connect(self.toggle_pause)
        self.stop_button = QPushButton("Stop")
        self.stop_button.setEnabled(False)
        self.stop_button.clicked.connect(self.stop_session)

        controls = QHBoxLayout()
        controls.addWidget(self.subject_input)
        controls.addWidget(self.start_button)
        controls.addWidget(self.pause_button)
        controls.addWidget(self.stop_button)

        self.label_status = QLabel("No session running")

        # Live camera preview
        self.label_camera_view = QLabel("Camera preview")
        self.label_camera_view.setFixedSize(320, 240)
        self.label_camera_view.setAlignment(Qt.AlignCenter)
        self.label_camera_view.setStyleSheet(
            "background-color: #202020; color: #cccccc; border: 1px solid #555;"
        )

        self.focus_widget = FocusWidget()

        layout = QVBoxLayout()
        layout.addWidget(self.label_title)
        layout.addLayout(controls)
        layout.addWidget(self.label_status)
        layout.addWidget(self.label_camera_view)
        layout.addWidget(self.focus_widget)
        self.setLayout(layout)

        # -------- values written by the camera thread --------
        self._last_result: Optional[TickResult] = None
        self._latest_camera_image: Optional[QImage] = None
        self._pending_achievements: Deque[Achievement] = deque()
        self._paused = False

        self.tracker.register_ui_callbacks(
            on_tick=self._on_tick,
            on_camera_frame=self._on_camera_frame,
            on_achievement=self._on_achievement,
        )

        self._timer = QTimer(self)
        self._timer.timeout.connect(self._refresh_ui)
        self._timer.start(REFRESH_MS)

    # ===================== Session controls =========================

    def start_session(self) -> None:
        subject = self.subject_input.text().strip()
        if not subject:
            QMessageBox.warning(self, "Missing subject", "Please enter a subject.")
            return

        try:
            self.tracker.start_session(self.user_id, subject)
        except (CameraInitError, SessionStateError) as e:
            QMessageBox.critical(self, "Error", f"Cannot start session:\n{e}")
            return

        self._last_result = None
        self._paused = False
        self.focus_widget.clear_achievements()
        self.start_button.setEnabled(False)
        self.pause_button.setEnabled(True)
        self.pause_button.setText("Pause")
        self.stop_button.setEnabled(True)
        self.label_status.setText(f"Studying: {subject}")

    def toggle_pause(self) -> None:
        try:
            if self._paused:
                self.tracker.resume_session()
            else:
                self.tracker.pause_session()
        except SessionStateError as e:
            QMessageBox.warning(self, "Error", str(e))
            return

        self._paused = not self._paused
        self.pause_button.setText("Resume" if self._paused else "Pause")
        self.label_status.setText("Paused" if self._paused else "Studying")

    def stop_session(self) -> None:
        saved = self.tracker.stop_session()
        # the stopped session's last values are flushed before the widgets go idle
        self._refresh_ui()

        self.start_button.setEnabled(True)
        self.pause_button.setEnabled(False)
        self.stop_button.setEnabled(False)
        if saved is None:
            self.label_status.setText("No session running")
        else:
            self.label_status.setText(
                f"Saved {saved.subject}: score {saved.focus_score} ({saved.category})"
            )

    # ===================== Callbacks (camera thread) =========================

    def _on_tick(self, result: TickResult) -> None:
        self._last_result = result

    def _on_achievement(self, achievement: Achievement) -> None:
        self._pending_achievements.append(achievement)

    def _on_camera_frame(self, frame: Any, result: TickResult) -> None:
        """Convert the BGR frame; the pixmap is built in _refresh_ui()."""
        try:
            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            h, w, ch = rgb.shape
            bytes_per_line = ch * w
            # copy() detaches the image from the numpy buffer
            self._latest_camera_image = QImage(
                rgb.data, w, h, bytes_per_line, QImage.Format_RGB888
            ).copy()
        except (cv2.error, AttributeError, TypeError, ValueError):
            logger.debug("frame preview skipped", exc_info=True)

    # ===================== UI Refresh =========================

    def _refresh_ui(self) -> None:
        stats = self.tracker.get_stats()
        if stats is not None:
            self.focus_widget.update_from_stats(stats)

        result = self._last_result
        alerts = result.reading.alerts if result is not None else ()
        state: AttentionState = self.tracker.get_state()
        self.focus_widget.update_state(state, alerts)

        while self._pending_achievements:
            self.focus_widget.show_achievement(self._pending_achievements.popleft())

        image = self._latest_camera_image
        if image is not None:
            self._latest_camera_image = None
            pixmap = QPixmap.fromImage(image).scaled(
                self.label_camera_view.width(),
                self.label_camera_view.height(),
                Qt.KeepAspectRatio,
                Qt.SmoothTransformation,
            )
            self.label_camera_view.setPixmap(pixmap)

    def closeEvent(self, event):
        self._timer.stop()
        self.tracker.shutdown()
        super().closeEvent(event)
