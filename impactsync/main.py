"""Main application entry point for impactsync."""

import sys
import json
import argparse
import logging
from pathlib import Path
from typing import Optional

from impactsync.detection.errors import AudioDecodeError
from impactsync.detection.offline import OfflineImpactAnalyzer
from impactsync.storage.file_manager import FileManager

from .config import ImpactSyncConfig

logger = logging.getLogger(__name__)


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        self.config = ImpactSyncConfig(config_path)
        # Command line level wins over config
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.recording_service = None

    def init(self):
        # Imported here so `analyze` works on machines without PortAudio
        from impactsync.services.recording_service import ImpactRecordingService

        logger.info("Initializing services...")
        sample_rate = self.config.get('audio.sample_rate', 48000)
        chunk_size = self.config.get('audio.chunk_size', 1024)
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk")

        file_manager = FileManager(self.config.get_data_directory())
        self.recording_service = ImpactRecordingService(self.config, file_manager)

    def listen(self, timeout: Optional[float]) -> dict:
        try:
            self.recording_service.start_recording()
            print("🎤 Listening for impact...")
            result = self.recording_service.wait_for_impact(timeout)
            if result.detected:
                print(f"💥 Impact detected! Confidence: {result.confidence * 100:.0f}%")
            else:
                print("No impact heard, using stop time")
            recording = self.recording_service.stop_recording(result)
            return recording.to_dict()
        finally:
            self.cleanup()

    def analyze(self, audio_path: str, threshold: Optional[float]) -> dict:
        if threshold is None:
            threshold = self.config.get('detection.impact_threshold', 0.75)
        result = OfflineImpactAnalyzer.analyze_recorded_audio(audio_path, threshold)
        return result.to_dict()

    def cleanup(self):
        if self.recording_service:
            self.recording_service.cleanup()


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/impactsync.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("impactsync starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="impactsync - bat/ball impact detection for swing videos",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: looks for impactsync.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="impactsync v0.1.0"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    analyze = commands.add_parser("analyze", help="Find the impact in a recorded WAV file")
    analyze.add_argument("audio_file", help="Path to the WAV recording")
    analyze.add_argument(
        "--threshold",
        type=float,
        help="Impact threshold in (0, 1) (default: from config)"
    )

    listen = commands.add_parser("listen", help="Record from the microphone until an impact is heard")
    listen.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for an impact (default: recording.max_wait_seconds)"
    )

    return parser


def main(argv=None) -> None:
    """Main entry point for impactsync."""
    args = build_parser().parse_args(argv)

    server = Server(args.config, args.log_level)
    try:
        if args.command == "analyze":
            output = server.analyze(args.audio_file, args.threshold)
        else:
            server.init()
            output = server.listen(args.timeout)
        print(json.dumps(output, indent=2))
    except KeyboardInterrupt:
        server.cleanup()
        print("\n👋 Goodbye!")
    except AudioDecodeError as e:
        print(f"❌ Could not decode audio: {e}")
        logger.error(f"Decode error: {e}")
        sys.exit(2)
    except Exception as e:
        print(f"❌ Error: {e}")
        logger.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
