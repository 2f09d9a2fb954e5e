"""Tests for detik_poller.main — scheduler wiring and single-shot entry point."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from detik_poller.config import Config
from detik_poller.main import _build_scheduler, poll_once


def _make_config(tmp_path) -> Config:
    return Config(
        detik_url="https://detik.example.com/api",
        database_path=str(tmp_path / "test.db"),
        poll_interval_minutes=7,
        log_format="text",
    )


def test_scheduler_registers_single_instance_poll_job(tmp_path):
    scheduler = _build_scheduler(_make_config(tmp_path))

    job = scheduler.get_job("poll")

    assert job is not None
    assert job.max_instances == 1
    assert job.coalesce is True
    assert job.trigger.interval.total_seconds() == 7 * 60


@pytest.mark.parametrize("ok, exit_code", [(True, 0), (False, 1)])
def test_poll_once_exit_code(tmp_path, ok, exit_code):
    config = _make_config(tmp_path)

    with patch("detik_poller.main.load_config", return_value=config), \
            patch("detik_poller.main._setup_logging"), \
            patch("detik_poller.main.run_poll", return_value=MagicMock(ok=ok)) as mock_run:
        with pytest.raises(SystemExit) as exc_info:
            poll_once()

    mock_run.assert_called_once_with(config)
    assert exc_info.value.code == exit_code
