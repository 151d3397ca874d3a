"""Tests for credbridge.cli — command line interface."""

from unittest.mock import patch

import httpx
import pytest

from credbridge.cli import load_mapping, main
from credbridge.contract import InitializeRequest
from credbridge.errors import ConfigError
from credbridge.orchestrator import RemoteMySQL


def _plugin_for(service, opened=None):
    def factory(config_path):
        db = RemoteMySQL(transport=httpx.MockTransport(service.handler))
        db.initialize(InitializeRequest(config={"connection_url": "http://prov/api"}))
        if opened is not None:
            opened.append(db.client)
        return db

    return factory


class TestCli:
    def test_version(self, capsys):
        rc = main(["version"])
        assert rc == 0
        out = capsys.readouterr().out
        assert "credbridge" in out
        assert "0.1.0" in out

    def test_type(self, capsys):
        assert main(["type"]) == 0
        assert capsys.readouterr().out.strip() == "mgtv_mysql"

    def test_no_args(self, capsys):
        assert main([]) == 0

    def test_config_from_yaml(self, tmp_path, capsys):
        path = tmp_path / "plugin.yaml"
        path.write_text("connection_url: http://prov/api\ntimeout: 9\nmax_idle_conns: '3'\n")
        assert main(["config", "--config", str(path)]) == 0
        out = capsys.readouterr().out
        assert "connection_url: http://prov/api" in out
        assert "timeout: 9.0" in out
        assert "max_idle_conns: 3" in out

    def test_config_never_prints_token(self, token, capsys):
        assert main(["config"]) == 0
        assert token not in capsys.readouterr().out

    def test_bad_config_file(self, tmp_path, capsys):
        path = tmp_path / "plugin.yaml"
        path.write_text("- just\n- a list\n")
        assert main(["config", "--config", str(path)]) == 1
        assert "must be a mapping" in capsys.readouterr().err

    def test_issue_without_token(self, capsys):
        rc = main(["issue", "--statement", "{}", "--password", "pw"])
        assert rc == 1
        assert "not exist mysql token" in capsys.readouterr().err

    def test_issue(self, service, token, capsys):
        with patch("credbridge.cli._open_plugin", _plugin_for(service)):
            rc = main(["issue", "--statement", '{"priv": "1"}', "--password", "pw"])
        assert rc == 0
        username = capsys.readouterr().out.strip()
        assert username.endswith("_rw")
        assert service.bodies[0]["username"] == username

    def test_revoke(self, service, token, capsys):
        with patch("credbridge.cli._open_plugin", _plugin_for(service)):
            rc = main(["revoke", "V-ABC_r", "--statement", "{}"])
        assert rc == 0
        assert "deleted V-ABC_r" in capsys.readouterr().out
        assert service.bodies[0]["action"] == "VaultDelUser"

    def test_revoke_rejected(self, service, token, capsys):
        service.reply = {"status": 2, "error": "no such user"}
        with patch("credbridge.cli._open_plugin", _plugin_for(service)):
            rc = main(["revoke", "V-ABC_r", "--statement", "{}"])
        assert rc == 1
        assert "no such user" in capsys.readouterr().err

    @pytest.mark.parametrize(
        "argv, reply",
        [
            (["issue", "--statement", "{}", "--password", "pw"], {"status": 0}),
            (["revoke", "V-ABC_r", "--statement", "{}"], {"status": 0}),
            (["revoke", "V-ABC_r", "--statement", "{}"], {"status": 2, "error": "no such user"}),
        ],
    )
    def test_pool_closed_after_command(self, service, token, argv, reply):
        service.reply = reply
        opened = []
        with patch("credbridge.cli._open_plugin", _plugin_for(service, opened)):
            main(argv)
        assert len(opened) == 1
        assert opened[0].closed


class TestLoadMapping:
    def test_none(self):
        assert load_mapping(None) == {}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_mapping(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="cannot read config"):
            load_mapping(tmp_path / "nope.yaml")
