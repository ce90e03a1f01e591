"""File management for raw audio captures."""

import logging
import random
import string
from datetime import datetime
from pathlib import Path
from typing import List


logger = logging.getLogger(__name__)


class FileManager:
    """Writes every uploaded capture to disk so it can be replayed while debugging."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.audio_dir = self.data_dir / "audio"

        self.audio_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def save_capture(self, audio_data: bytes, extension: str = "ogg") -> str:
        """Save a raw capture and return its path.

        Args:
            audio_data: Payload exactly as it is uploaded
            extension: File extension without the dot

        Returns:
            Full path to saved audio file
        """
        # Random suffix keeps two captures in the same second apart
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
        audio_file_path = self.audio_dir / f"transcription_{timestamp}_{random_suffix}.{extension}"

        try:
            with open(audio_file_path, 'wb') as f:
                f.write(audio_data)
        except OSError as e:
            logger.error(f"Error saving capture: {e}")
            raise

        logger.info(f"Capture saved: {audio_file_path} ({len(audio_data)} bytes)")
        return str(audio_file_path)

    def list_captures(self) -> List[Path]:
        """List saved captures, oldest first."""
        return sorted(p for p in self.audio_dir.iterdir()
                      if p.is_file() and p.name.startswith("transcription_"))

    def cleanup_old_captures(self, max_age_days: int = 30) -> int:
        """Delete captures older than ``max_age_days``.

        Returns:
            Number of captures removed
        """
        cutoff_time = datetime.now().timestamp() - (max_age_days * 24 * 60 * 60)
        cleaned_count = 0

        for capture_path in self.list_captures():
            if capture_path.stat().st_mtime < cutoff_time:
                capture_path.unlink()
                cleaned_count += 1
                logger.debug(f"Cleaned up old capture: {capture_path}")

        logger.info(f"Cleaned up {cleaned_count} old captures")
        return cleaned_count
