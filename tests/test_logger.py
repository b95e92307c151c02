import logging
import os
import time

import pytest

from power_panel.logger import LogManager, cleanup_old_logs, setup_logging


@pytest.fixture
def reset_logging():
    yield
    logger = logging.getLogger("PowerPanel")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()


def test_setup_logging_writes_to_rotating_file(config, tmp_path, reset_logging):
    log_dir = tmp_path / "logs"
    logger = setup_logging(config, str(log_dir))

    logging.getLogger("PowerPanel.Monitor").info("hello from the monitor")
    for handler in logger.handlers:
        handler.flush()

    (log_file,) = log_dir.glob("power_panel_*.log")
    assert "hello from the monitor" in log_file.read_text()
    assert logger.level == logging.INFO


def test_setup_logging_uses_configured_level(make_config, tmp_path, reset_logging):
    logger = setup_logging(make_config(log_level="DEBUG"), str(tmp_path / "logs"))
    assert logger.level == logging.DEBUG


def test_setup_logging_replaces_previous_handlers(config, tmp_path, reset_logging):
    setup_logging(config, str(tmp_path / "first"))
    logger = setup_logging(config, str(tmp_path / "second"))

    assert len(logger.handlers) == 2
    logging.getLogger("PowerPanel.Collector").warning("only in the second file")
    for handler in logger.handlers:
        handler.flush()

    (first,) = (tmp_path / "first").glob("power_panel_*.log")
    (second,) = (tmp_path / "second").glob("power_panel_*.log")
    assert "only in the second file" not in first.read_text()
    assert "PowerPanel.Collector - WARNING - only in the second file" in second.read_text()


def _age(path, days):
    old = time.time() - days * 24 * 3600
    os.utime(path, (old, old))


def test_cleanup_old_logs(tmp_path):
    old = tmp_path / "power_panel_2020-01-01.log"
    recent = tmp_path / "power_panel_today.log"
    old.write_text("old")
    recent.write_text("new")
    _age(old, 40)

    assert cleanup_old_logs(str(tmp_path), retention_days=30) == 1
    assert not old.exists()
    assert recent.exists()


def test_cleanup_missing_directory(tmp_path):
    assert cleanup_old_logs(str(tmp_path / "none")) == 0


def test_log_manager_runs_once_per_day(make_config, tmp_path):
    manager = LogManager(make_config(log_retention_days=1), str(tmp_path))
    stale = tmp_path / "power_panel_old.log"
    stale.write_text("x")
    _age(stale, 3)

    assert manager.perform_cleanup() == 1
    assert manager.perform_cleanup() is None


def test_log_stats(config, tmp_path):
    (tmp_path / "a.log").write_text("12345")
    (tmp_path / "b.log.1").write_text("123")

    stats = LogManager(config, str(tmp_path)).get_log_stats()

    assert stats["log_count"] == 2
    assert stats["oldest_log"] is not None
