"""File management for impact recordings and their sync metadata."""

import json
import logging
import random
import string
from pathlib import Path
from datetime import datetime
from typing import Optional, List

from ..models.session import ImpactSyncRecording


logger = logging.getLogger(__name__)

RECORDING_INFO_FILE = "impact_sync.json"


class FileManager:
    """Manages file storage and organization for impact recordings."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize file manager with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.sessions_dir = self.data_dir / "sessions"
        self.logs_dir = self.data_dir / "logs"

        self._ensure_directories()

        logger.info(f"FileManager initialized with data_dir: {self.data_dir}")

    def _ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in [self.data_dir, self.sessions_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured directory exists: {directory}")

    def create_session_directory(self) -> str:
        """Create new session directory with timestamp and random suffix.

        Returns:
            Session ID (timestamp-based with random suffix)
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
        session_id = f"{timestamp}_{random_suffix}"
        session_path = self.sessions_dir / session_id
        session_path.mkdir(exist_ok=True)

        logger.info(f"Created session directory: {session_path}")
        return session_id

    def save_audio_file(self, audio_data: bytes, session_id: str, filename: Optional[str] = None) -> str:
        """Save an encoded WAV blob and return its path.

        Args:
            audio_data: WAV file bytes
            session_id: Session identifier
            filename: Optional custom filename

        Returns:
            Full path to saved audio file
        """
        if filename is None:
            timestamp = datetime.now().strftime("%H%M%S")
            filename = f"audio_{timestamp}.wav"

        if not filename.endswith('.wav'):
            filename += '.wav'

        session_path = self.get_session_path(session_id)
        session_path.mkdir(exist_ok=True)

        audio_file_path = session_path / filename

        try:
            with open(audio_file_path, 'wb') as f:
                f.write(audio_data)
        except OSError as e:
            logger.error(f"Error saving audio file: {e}")
            raise

        logger.info(f"Audio file saved: {audio_file_path} ({len(audio_data)} bytes)")
        return str(audio_file_path)

    def save_recording(self, recording: ImpactSyncRecording) -> str:
        """Save impact sync metadata to JSON.

        Returns:
            Path to saved metadata file
        """
        session_path = self.get_session_path(recording.session_id)
        session_path.mkdir(exist_ok=True)

        info_file = session_path / RECORDING_INFO_FILE

        try:
            with open(info_file, 'w', encoding='utf-8') as f:
                json.dump(recording.to_dict(), f, indent=2)
        except OSError as e:
            logger.error(f"Error saving recording info: {e}")
            raise

        logger.info(f"Recording info saved: {info_file}")
        return str(info_file)

    def load_recording(self, session_id: str) -> Optional[ImpactSyncRecording]:
        """Load impact sync metadata, None if the session has none."""
        info_file = self.get_session_path(session_id) / RECORDING_INFO_FILE

        if not info_file.exists():
            logger.warning(f"Recording info file not found: {info_file}")
            return None

        with open(info_file, 'r', encoding='utf-8') as f:
            data = json.load(f)

        return ImpactSyncRecording.from_dict(data)

    def list_sessions(self) -> List[str]:
        """List session IDs that have saved recordings, oldest first."""
        sessions = [
            path.name for path in self.sessions_dir.iterdir()
            if path.is_dir() and (path / RECORDING_INFO_FILE).exists()
        ]
        sessions.sort()
        logger.debug(f"Found {len(sessions)} sessions")
        return sessions

    def get_session_path(self, session_id: str) -> Path:
        """Get full path to session directory."""
        return self.sessions_dir / session_id
