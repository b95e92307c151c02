"""
Logging setup for Power Panel.

Sets up Python logging with rotating file handlers and removes log files
that are older than the configured retention period.
"""

import logging
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def _daily_log_file(log_path: Path) -> Path:
    return log_path / f"power_panel_{datetime.now().strftime('%Y-%m-%d')}.log"


def setup_logging(config, log_dir: str = "data/logs") -> logging.Logger:
    """
    Install the file and console handlers on the PowerPanel logger.

    Everything under the ``PowerPanel.*`` hierarchy goes to a dated,
    size-rotated file at the configured level; the console only shows
    warnings. Calling this again replaces the previous handlers.

    Args:
        config: ConfigManager instance
        log_dir: Directory for log files

    Returns:
        The PowerPanel root logger
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    level_name = config.get("log_level", "INFO")
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger("PowerPanel")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    log_file = _daily_log_file(log_path)
    file_handler = RotatingFileHandler(
        log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding='utf-8'
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    logger.addHandler(console_handler)

    logger.info(f"Logging to {log_file} at {level_name}")
    return logger


def cleanup_old_logs(log_dir: str = "data/logs", retention_days: int = 30) -> int:
    """
    Delete log files older than retention period.

    Args:
        log_dir: Directory containing log files
        retention_days: Age threshold in days

    Returns:
        Number of files deleted
    """
    logger = logging.getLogger("PowerPanel.Logs")
    log_path = Path(log_dir)

    if not log_path.exists():
        return 0

    deleted_count = 0
    cutoff_time = time.time() - (retention_days * 24 * 3600)

    for log_file in log_path.glob("*.log*"):
        try:
            if log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
                deleted_count += 1
                logger.info(f"Deleted old log file: {log_file.name}")
        except OSError as e:
            logger.warning(f"Error deleting log file {log_file}: {e}")

    return deleted_count


class LogManager:
    """Runs log cleanup at most once per day."""

    def __init__(self, config, log_dir: str = "data/logs"):
        """
        Initialize log manager.

        Args:
            config: ConfigManager instance
            log_dir: Directory for log files
        """
        self.config = config
        self.log_dir = log_dir
        self.last_cleanup: Optional[float] = None

    def should_cleanup(self) -> bool:
        """Check if cleanup is due."""
        if self.last_cleanup is None:
            return True

        return time.time() - self.last_cleanup >= (24 * 3600)

    def perform_cleanup(self) -> Optional[int]:
        """
        Perform log cleanup if needed.

        Returns:
            Number of deleted files, or None if cleanup was not due
        """
        if not self.should_cleanup():
            return None

        retention_days = self.config.get("log_retention_days", 30)
        deleted = cleanup_old_logs(self.log_dir, retention_days)
        self.last_cleanup = time.time()
        return deleted

    def get_log_stats(self) -> dict:
        """
        Get statistics about log files.

        Returns:
            Dictionary with log file statistics
        """
        log_path = Path(self.log_dir)

        if not log_path.exists():
            return {
                'log_count': 0,
                'total_size_mb': 0
            }

        log_files = [f for f in log_path.glob("*.log*") if f.is_file()]
        total_size = sum(f.stat().st_size for f in log_files)

        return {
            'log_count': len(log_files),
            'total_size_mb': round(total_size / (1024 * 1024), 2),
            'oldest_log': min((f.stat().st_mtime for f in log_files), default=None),
            'newest_log': max((f.stat().st_mtime for f in log_files), default=None)
        }
