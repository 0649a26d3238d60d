"""Tests for the command line interface."""

from __future__ import annotations

import json

import pytest

from conftest import make_plan, make_step
from resume_orchestrator import cli


@pytest.fixture
def patch_orchestrator(monkeypatch, make_orchestrator):
    """Make ``cli.main`` use a scripted orchestrator; returns the orchestrator."""

    def _patch(**script):
        orchestrator, _ = make_orchestrator(**script)
        monkeypatch.setattr(cli, "create_orchestrator", lambda **kwargs: orchestrator)
        return orchestrator

    return _patch


class TestParser:
    def test_goal_command(self):
        args = cli.build_parser().parse_args(["-v", "goal", "Tailor my resume", "--stats"])

        assert args.command == "goal"
        assert args.goal == "Tailor my resume"
        assert args.stats is True
        assert args.verbose is True
        assert args.config == "config/config.local.yaml"

    def test_serve_defaults(self):
        args = cli.build_parser().parse_args(["serve"])

        assert (args.host, args.port) == ("127.0.0.1", 8000)

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestLoadContext:
    def test_reads_json_object(self, tmp_path):
        path = tmp_path / "context.json"
        path.write_text(json.dumps({"job": "SRE"}))

        assert cli.load_context(str(path)) == {"job": "SRE"}
        assert cli.load_context(None) == {}

    def test_rejects_non_object(self, tmp_path):
        path = tmp_path / "context.json"
        path.write_text("[1, 2]")

        with pytest.raises(ValueError, match="JSON object"):
            cli.load_context(str(path))


class TestMain:
    def test_goal_success(self, patch_orchestrator, capsys):
        patch_orchestrator(plan=make_plan(make_step("s1")))

        assert cli.main(["goal", "Research Acme", "--stats"]) == 0

        out = capsys.readouterr().out
        assert "1/1 tasks completed" in out
        assert "Session stats" in out

    def test_goal_with_context_file(self, patch_orchestrator, tmp_path):
        path = tmp_path / "context.json"
        path.write_text(json.dumps({"company": "Acme"}))
        orchestrator = patch_orchestrator(plan=make_plan(make_step("s1")))

        assert cli.main(["goal", "Research Acme", "--context-file", str(path)]) == 0
        assert orchestrator.get_state().results[0].task_id == "s1"

    def test_goal_failure_exit_code(self, patch_orchestrator, capsys):
        patch_orchestrator(plan="not json")

        assert cli.main(["goal", "Research Acme"]) == 1
        assert "PlanningError" in capsys.readouterr().out

    def test_chat(self, patch_orchestrator, capsys):
        patch_orchestrator(routing={"requiresAgents": False, "directResponse": "Keep it to one page."})

        assert cli.main(["chat", "How long should my resume be?"]) == 0
        assert "Keep it to one page." in capsys.readouterr().out

    def test_missing_configuration(self, monkeypatch):
        def _fail(**kwargs):
            raise ValueError("GEMINI_API_KEY not set")

        monkeypatch.setattr(cli, "create_orchestrator", _fail)

        assert cli.main(["goal", "anything"]) == 2

    def test_serve_builds_the_api(self, patch_orchestrator, monkeypatch):
        from resume_orchestrator.web import app as web_app

        orchestrator = patch_orchestrator()
        served = {}
        monkeypatch.setattr(web_app, "main", lambda **kwargs: served.update(kwargs))

        assert cli.main(["serve", "--port", "9001"]) == 0
        assert served == {"host": "127.0.0.1", "port": 9001, "orchestrator": orchestrator}
