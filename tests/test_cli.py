"""
Tests for the command-line interface.

The orchestrator is replaced with one wired to static collaborators.
"""

import json
from pathlib import Path

import pytest

from mail_sts import cli
from mail_sts.config import SystemConfig, config_to_dict
from mail_sts.orchestrator import LookupOrchestrator
from mail_sts.testing import StaticAgent, StaticResolver

POLICY = "version: STSv1\nmode: testing\nmx: mx.example.com\nmax_age: 3600\n"


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "mail-sts.json"
    path.write_text(json.dumps(config_to_dict(SystemConfig())), encoding="utf-8")
    return path


@pytest.fixture
def static_orchestrator(monkeypatch) -> dict:
    """Patch the CLI to build orchestrators on static collaborators."""
    dns = StaticResolver()
    dns.add_mx("example.com", [(10, "mx.example.com")])
    dns.add_txt("_mta-sts.example.com", "v=STSv1; id=abc;")
    agent = StaticAgent()
    agent.set_policy("example.com", POLICY)
    seen: dict = {}

    def factory(config=None, logger=None):
        seen["config"] = config
        return LookupOrchestrator(config=config, resolver=dns, agent=agent, logger=logger)

    monkeypatch.setattr(cli, "LookupOrchestrator", factory)
    return seen


class TestLookupCommand:
    def test_text_output(self, static_orchestrator, config_file, capsys) -> None:
        exit_code = cli.main(["lookup", "example.com", "--config", str(config_file)])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "record type:   mx" in out
        assert "primary:       mx.example.com (insecure)" in out
        assert "policy mode:   testing" in out

    def test_json_output(self, static_orchestrator, config_file, capsys) -> None:
        exit_code = cli.main(["lookup", "example.com", "--json", "-c", str(config_file)])

        reports = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert reports[0]["domain"] == "example.com"
        assert reports[0]["policy"]["mode"] == "testing"

    def test_invalid_domain_sets_exit_code(self, static_orchestrator, config_file, capsys) -> None:
        exit_code = cli.main(["lookup", "bad domain", "example.com", "-c", str(config_file)])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert "bad domain" in captured.err
        assert "example.com" in captured.out

    def test_flags_override_config(self, static_orchestrator, config_file) -> None:
        cli.main([
            "lookup", "example.com",
            "-c", str(config_file),
            "-n", "192.0.2.53",
            "-n", "192.0.2.54",
            "--max-policy-size", "0",
        ])

        config = static_orchestrator["config"]
        assert config.resolver.nameservers == ["192.0.2.53", "192.0.2.54"]
        assert config.policy.max_policy_size is None

    def test_missing_config_file(self, static_orchestrator, tmp_path: Path, capsys) -> None:
        exit_code = cli.main(["lookup", "example.com", "-c", str(tmp_path / "absent.json")])

        assert exit_code == 1
        assert "Could not load config" in capsys.readouterr().err


class TestPolicyCommand:
    def test_prints_policy_document(self, static_orchestrator, config_file, capsys) -> None:
        exit_code = cli.main(["policy", "example.com", "-c", str(config_file)])

        assert exit_code == 0
        assert capsys.readouterr().out == (
            "version: STSv1\nmode: testing\nmax_age: 3600\nmx: mx.example.com\n"
        )

    def test_missing_record_fails(self, static_orchestrator, config_file, capsys) -> None:
        exit_code = cli.main(["policy", "other.example", "-c", str(config_file)])

        assert exit_code == 1
        assert "_mta-sts" in capsys.readouterr().err


def test_no_command_prints_help(capsys) -> None:
    assert cli.main([]) == 0
    assert "usage: mail-sts" in capsys.readouterr().out
