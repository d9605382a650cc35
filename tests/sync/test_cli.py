"""CLI 入口测试 -- python -m tasksync.sync"""

from unittest.mock import AsyncMock

import pytest
from tasksync.sync import __main__ as cli
from tasksync.sync.probe import ConnectivityProbe


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TASKSYNC_DB_PATH", str(tmp_path / "sqlite" / "cli.db"))
    monkeypatch.setenv("TASKSYNC_API_BASE_URL", "http://remote.test/api")


class TestCli:
    def test_no_command_prints_usage(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["tasksync.sync"])
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 1
        assert "用法" in capsys.readouterr().out

    def test_unknown_command(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["tasksync.sync", "push"])
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 1
        assert "未知命令" in capsys.readouterr().out

    async def test_run_offline_exit_code(self, monkeypatch, capsys):
        monkeypatch.setattr(ConnectivityProbe, "check", AsyncMock(return_value=False))

        exit_code = await cli.run_sync()

        assert exit_code == 2
        out = capsys.readouterr().out
        assert "http://remote.test/api" in out
        assert "success=False" in out

    async def test_status_output(self, monkeypatch, capsys):
        monkeypatch.setattr(ConnectivityProbe, "check", AsyncMock(return_value=True))

        await cli.show_status()

        out = capsys.readouterr().out
        assert "待同步: 0" in out
        assert "远端可达: True" in out
