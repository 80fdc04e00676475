"""Application entry point and setup for the TypeRight typing tutor."""

import logging
import sys
from typing import Optional

from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QApplication

from typeright.core.config import AppConfig, load_config
from typeright.core.lessons import LessonRepository, load_assessment_texts
from typeright.core.progress import ProgressStore
from typeright.core.speech import ElevenLabsConfig, ElevenLabsTextToSpeech, TextToSpeech
from typeright.ui.main_window import MainWindow


def configure_logging(level: str = "INFO") -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_tts(config: AppConfig) -> Optional[TextToSpeech]:
    """ElevenLabs narration when an API key is configured, otherwise none."""
    if not config.elevenlabs_api_key:
        return None
    return ElevenLabsTextToSpeech(ElevenLabsConfig(api_key=config.elevenlabs_api_key, voice_id=config.voice_id))


def run() -> None:
    """Load settings and lessons, then show the main window."""
    config = load_config()
    configure_logging(config.log_level)
    app = QApplication(sys.argv)
    app.setApplicationName("TypeRight")
    app.setApplicationDisplayName("TypeRight")

    lessons = LessonRepository(config.lessons_dir)
    progress_store = ProgressStore(config.progress_file)
    assessment_texts = load_assessment_texts()
    logging.info("Loaded %d lessons for %s", len(lessons.all()), config.user_id)

    window = MainWindow(
        lessons=lessons,
        progress_store=progress_store,
        user_id=config.user_id,
        assessment_texts=assessment_texts,
        tts=build_tts(config),
    )
    screen = QGuiApplication.primaryScreen()
    if screen is not None:
        geometry = screen.availableGeometry()
        window.resize(int(geometry.width() * 0.7), int(geometry.height() * 0.8))
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
