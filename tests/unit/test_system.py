"""Unit tests for HostSystem, settings and privilege helpers."""

import subprocess
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import MagicMock, patch

import pytest

from glcli import privileges
from glcli.errors import CommandFailed, PrivilegeUnavailable, SecretGenerationUnavailable
from glcli.settings import Settings
from glcli.system import HostSystem


class TestHostSystem:
    """Tests for the real host wrapper with subprocess patched out."""

    def test_run_returns_status(self) -> None:
        with patch("glcli.system.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=3)
            assert HostSystem().run(["false"], check=False) == 3
            mock_run.assert_called_once_with(["false"])

    def test_run_check_raises(self) -> None:
        with patch("glcli.system.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1)
            with pytest.raises(CommandFailed) as exc_info:
                HostSystem().run(["systemctl", "start", "x"])
        assert exc_info.value.returncode == 1
        assert "systemctl start x" in exc_info.value.format_message()

    def test_run_missing_executable(self) -> None:
        with patch("glcli.system.subprocess.run", side_effect=FileNotFoundError):
            assert HostSystem().run(["nope"], check=False) == 127

    def test_debug_echoes_command(self, capsys: Any) -> None:
        with patch("glcli.system.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            HostSystem(debug=True).run(["systemctl", "daemon-reload"])
        assert "$ systemctl daemon-reload" in capsys.readouterr().err

    def test_spawn_detached(self, tmp_path: Path) -> None:
        log = tmp_path / "out.log"
        log.write_text("earlier\n")
        captured: Dict[str, Any] = {}

        def fake_popen(args: List[str], **kwargs: Any) -> MagicMock:
            captured["args"] = args
            captured.update(kwargs)
            kwargs["stdout"].write(b"child output\n")
            return MagicMock(pid=1234)

        with patch("glcli.system.subprocess.Popen", side_effect=fake_popen):
            pid = HostSystem().spawn_detached(
                ["/usr/local/bin/gpt-load"], log, cwd=tmp_path, env={"PORT": "3001"}
            )

        assert pid == 1234
        assert captured["args"] == ["/usr/local/bin/gpt-load"]
        assert captured["start_new_session"] is True
        assert captured["stdin"] is subprocess.DEVNULL
        assert captured["stdout"] is captured["stderr"]
        assert captured["cwd"] == str(tmp_path)
        assert captured["env"]["PORT"] == "3001"
        assert log.read_text() == "earlier\nchild output\n"

    def test_terminate_without_pkill(self, monkeypatch: Any) -> None:
        system = HostSystem()
        monkeypatch.setattr(system, "which", lambda name: None)
        assert system.terminate_matching("/usr/local/bin/gpt-load") is False

    def test_terminate_reports_match(self, monkeypatch: Any) -> None:
        system = HostSystem()
        calls: List[List[str]] = []
        monkeypatch.setattr(system, "which", lambda name: "/usr/bin/pkill")

        def fake_run(args: List[str], check: bool = True) -> int:
            calls.append(list(args))
            return 0

        monkeypatch.setattr(system, "run", fake_run)
        assert system.terminate_matching("/usr/local/bin/gpt-load") is True
        assert calls == [["pkill", "-f", "/usr/local/bin/gpt-load"]]

    def test_is_running_uses_pgrep(self, monkeypatch: Any) -> None:
        system = HostSystem()
        monkeypatch.setattr(system, "which", lambda name: "/usr/bin/pgrep")
        with patch("glcli.system.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1)
            assert system.is_running("/usr/local/bin/gpt-load") is False
            mock_run.assert_called_once_with(
                ["pgrep", "-f", "/usr/local/bin/gpt-load"], stdout=subprocess.DEVNULL
            )

    def test_is_running_without_pgrep(self, monkeypatch: Any) -> None:
        system = HostSystem()
        monkeypatch.setattr(system, "which", lambda name: None)
        assert system.is_running("/usr/local/bin/gpt-load") is False

    def test_wait_for_exit_polls_until_gone(self, monkeypatch: Any) -> None:
        system = HostSystem()
        answers = iter([True, True, False])
        sleeps: List[float] = []
        monkeypatch.setattr(system, "is_running", lambda pattern: next(answers))
        monkeypatch.setattr("glcli.system.time.sleep", sleeps.append)

        assert system.wait_for_exit("gpt-load", timeout=10) is True
        assert sleeps == [0.2, 0.2]

    def test_wait_for_exit_times_out(self, monkeypatch: Any) -> None:
        system = HostSystem()
        sleeps: List[float] = []
        monkeypatch.setattr(system, "is_running", lambda pattern: True)
        monkeypatch.setattr("glcli.system.time.sleep", sleeps.append)

        assert system.wait_for_exit("gpt-load", timeout=1, interval=0.5) is False
        assert len(sleeps) == 2

    def test_random_bytes(self) -> None:
        assert len(HostSystem().random_bytes(16)) == 16

    def test_random_bytes_unavailable(self) -> None:
        with patch("glcli.system.secrets.token_bytes", side_effect=NotImplementedError("none")):
            with pytest.raises(SecretGenerationUnavailable):
                HostSystem().random_bytes(16)


class TestSettings:
    """Tests for Settings.from_environ."""

    def test_defaults(self, tmp_path: Path) -> None:
        s = Settings.from_environ({}, work_dir=tmp_path)
        assert s.service_name == "gpt-load"
        assert s.bin_path == Path("/usr/local/bin/gpt-load")
        assert s.env_file == Path("/etc/gpt-load/env")
        assert s.log_file == Path("/etc/gpt-load/logs/gpt-load.out")
        assert s.unit_path == Path("/etc/systemd/system/gpt-load.service")
        assert s.staged_artifact == tmp_path / "dist" / "gpt-load"
        assert s.editor == "vi"
        assert s.auth_key_override is None
        assert s.debug is False

    def test_overrides(self, tmp_path: Path) -> None:
        s = Settings.from_environ(
            {"SERVICE_NAME": "gl2", "AUTH_KEY": "k", "EDITOR": "nano", "GLCLI_DEBUG": "1"},
            work_dir=tmp_path,
        )
        assert s.unit_name == "gl2.service"
        assert s.bin_path == Path("/usr/local/bin/gpt-load")
        assert s.auth_key_override == "k"
        assert s.editor == "nano"
        assert s.debug is True

    def test_empty_override_ignored(self, tmp_path: Path) -> None:
        s = Settings.from_environ({"SERVICE_NAME": "", "AUTH_KEY": ""}, work_dir=tmp_path)
        assert s.service_name == "gpt-load"
        assert s.auth_key_override is None


class TestPrivileges:
    """Tests for privilege decisions."""

    def test_root_never_needs_elevation(
        self, settings: Settings, system: Any, monkeypatch: Any
    ) -> None:
        monkeypatch.setattr("glcli.privileges._is_writable", lambda path: False)
        assert privileges.needs_elevation(settings, system) is False

    def test_writable_targets(self, settings: Settings, make_system: Any) -> None:
        assert privileges.needs_elevation(settings, make_system(privileged=False)) is False

    def test_unit_dir_only_checked_with_systemd(
        self, settings: Settings, make_system: Any
    ) -> None:
        assert settings.unit_dir not in privileges.target_paths(settings, make_system(tools=[]))
        assert settings.unit_dir in privileges.target_paths(settings, make_system())

    def test_writable_uses_nearest_parent(self, tmp_path: Path) -> None:
        assert privileges._is_writable(tmp_path / "a" / "b" / "c") is True

    def test_command_prefix(self, make_system: Any) -> None:
        assert privileges.command_prefix(make_system()) == []
        assert privileges.command_prefix(make_system(privileged=False)) == ["sudo"]
        with pytest.raises(PrivilegeUnavailable):
            privileges.command_prefix(make_system(privileged=False, tools=[]))

    def test_acquire_in_process(self, settings: Settings, system: Any) -> None:
        assert privileges.acquire(settings, system, ["install"]) is None
        assert system.commands == []
