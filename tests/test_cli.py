"""Tests for cli module."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from habit_tracker.calendar_view import CalendarState, ViewType
from habit_tracker.cli import main, run_log, run_report, run_show
from habit_tracker.client import HabitApiError
from habit_tracker.config import Config
from habit_tracker.models import Habit, HabitLog
from habit_tracker.storage import StorageManager


@pytest.fixture
def disk_storage(tmp_path: Path, water: Habit, reading: Habit,
                 march_logs: list[HabitLog]) -> StorageManager:
    """Seeded storage in a temporary directory that Config points at."""
    Config.set_test_overrides(storage_dir=str(tmp_path / "data"))
    storage = StorageManager()
    storage.add_habit(water)
    storage.add_habit(reading)
    storage.save_log_records([log.to_dict() for log in march_logs])
    return storage


class TestArgumentParsing:
    """Tests for main() dispatch."""

    def test_no_command_runs_server(self) -> None:
        with patch("habit_tracker.cli.run_serve") as mock_serve:
            assert main([]) == 0
        mock_serve.assert_called_once_with()

    def test_serve_options(self) -> None:
        """Verifies serve passes host, port and reload through.

        Arrangement:
        Patch run_serve.

        Action:
        main() with explicit serve options.

        Assertion Strategy:
        Validates the keyword arguments.
        """
        with patch("habit_tracker.cli.run_serve") as mock_serve:
            main(["serve", "--host", "0.0.0.0", "--port", "9000", "--reload"])
        mock_serve.assert_called_once_with(host="0.0.0.0", port=9000, reload=True)

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "habit-tracker" in capsys.readouterr().out

    def test_invalid_date(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["report", "--date", "2024/01/01"])
        assert exc_info.value.code == 2
        assert "expected yyyy-MM-dd" in capsys.readouterr().err

    def test_show_passes_state(self) -> None:
        with patch("habit_tracker.cli.run_show") as mock_show:
            main(["show", "--view", "month", "--date", "2024-03-15", "--user-id", "u1"])
        mock_show.assert_called_once_with(
            "u1", CalendarState(ViewType.MONTH, date(2024, 3, 15)), source=None
        )

    def test_default_user_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HABIT_TRACKER_USER_ID", "alice")
        with patch("habit_tracker.cli.run_report") as mock_report:
            main(["report", "--date", "2024-01-01"])
        assert mock_report.call_args[0][:2] == ("alice", date(2024, 1, 1))


class TestLocalCommands:
    """Tests for report/show/log against local files."""

    def test_run_report(self, disk_storage: StorageManager,
                        capsys: pytest.CaptureFixture[str]) -> None:
        run_report("u1", date(2024, 3, 1), source=disk_storage)
        out = capsys.readouterr().out
        assert "HABIT TRACKER - 2024 COMPLETION REPORT" in out
        assert "Water" in out

    def test_report_via_main(self, disk_storage: StorageManager,
                             capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["report", "--user-id", "u1", "--date", "2024-03-01"]) == 0
        assert "Read" in capsys.readouterr().out

    def test_run_show_week(self, disk_storage: StorageManager,
                           capsys: pytest.CaptureFixture[str]) -> None:
        run_show("u1", CalendarState(ViewType.WEEK, date(2024, 3, 4)), source=disk_storage)
        out = capsys.readouterr().out
        assert out.startswith("Week of 04 Mar 2024")
        assert "3/3" in out

    def test_show_empty_user(self, disk_storage: StorageManager,
                             capsys: pytest.CaptureFixture[str]) -> None:
        main(["show", "--user-id", "nobody", "--view", "year"])
        assert "No habits yet." in capsys.readouterr().out

    def test_log_local(self, disk_storage: StorageManager,
                       capsys: pytest.CaptureFixture[str]) -> None:
        """Verifies `log` toggles the habit in local storage.

        Arrangement:
        Reading habit without a log on 2024-03-07.

        Action:
        main(["log", "h-read", ...]).

        Assertion Strategy:
        Validates exit code, printed summary and stored log.
        """
        code = main(["log", "h-read", "--user-id", "u1", "--date", "2024-03-07"])

        assert code == 0
        assert capsys.readouterr().out.strip() == (
            "Logged h-read on 2024-03-07: count 1, completed"
        )
        log = disk_storage.get_log("h-read", "2024-03-07")
        assert log is not None
        assert log.count == 1

    def test_log_unknown_habit(self, disk_storage: StorageManager,
                               capsys: pytest.CaptureFixture[str]) -> None:
        assert run_log("nope", date(2024, 3, 7), "u1") == 1
        assert capsys.readouterr().err.strip() == "Error: No habit with ID: nope"


class TestRemoteCommands:
    """Tests for --api-url paths."""

    def test_remote_load_failure(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("habit_tracker.cli._remote_source",
                   side_effect=HabitApiError("Could not load habits: Request timed out")):
            code = main(["report", "--api-url", "http://testserver", "--user-id", "u1"])

        assert code == 1
        assert "Request timed out" in capsys.readouterr().err

    def test_remote_source_used(self) -> None:
        source = MagicMock()
        with patch("habit_tracker.cli._remote_source", return_value=source) as mock_remote, \
                patch("habit_tracker.cli.run_report") as mock_report:
            main(["report", "--api-url", "http://testserver", "--user-id", "u1"])

        mock_remote.assert_called_once_with("u1", "http://testserver")
        assert mock_report.call_args[1]["source"] is source

    def test_log_remote(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Verifies `log --api-url` goes through the HTTP client.

        Arrangement:
        Patch HabitApiClient so toggle_log returns a multiple-habit log.

        Action:
        run_log() with an API URL.

        Assertion Strategy:
        Validates the client call and the printed summary.
        """
        with patch("habit_tracker.client.HabitApiClient") as mock_cls:
            api = mock_cls.return_value.__enter__.return_value
            api.toggle_log.return_value = HabitLog(
                id="l1", habit_id=1, date="2024-03-05", completed=False, count=2
            )
            code = run_log("1", date(2024, 3, 5), "u1", api_url="http://testserver")

        assert code == 0
        mock_cls.assert_called_once_with("http://testserver")
        api.toggle_log.assert_called_once_with("1", date(2024, 3, 5), "u1")
        assert "count 2, not completed" in capsys.readouterr().out

    def test_log_remote_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("habit_tracker.client.HabitApiClient") as mock_cls:
            api = mock_cls.return_value.__enter__.return_value
            api.toggle_log.side_effect = HabitApiError("No habit with ID: 1", 404)
            code = run_log("1", date(2024, 3, 5), "u1", api_url="http://testserver")

        assert code == 1
        assert capsys.readouterr().err.strip() == "Error: No habit with ID: 1"
