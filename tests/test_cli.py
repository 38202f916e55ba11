"""Tests for CLI entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from sop_agents.cli import main


def _run(*argv: str) -> None:
    with patch("sys.argv", ["sop-agents", *argv]):
        main()


class TestList:
    def test_lists_agents_and_coordinator(
        self, research_dir: Path, capsys: pytest.CaptureFixture[str]
    ):
        _run("list", str(research_dir))
        out = capsys.readouterr().out
        assert "Coordinator: coordinator (<built-in>)" in out
        assert "Agents: 2" in out
        assert "agent_research" in out
        assert "agent_writer" in out
        assert "depth (enum, optional): How deep to dig" in out

    def test_missing_directory(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]):
        with pytest.raises(SystemExit) as exc_info:
            _run("list", str(tmp_path / "missing"))
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestValidate:
    def test_all_valid(self, research_dir: Path, capsys: pytest.CaptureFixture[str]):
        _run("validate", str(research_dir))
        out = capsys.readouterr().out
        assert "OK    research.md  agent  research" in out
        assert "OK    writer.md  agent  writer" in out

    def test_reports_broken_file(
        self, research_dir: Path, write_sop, capsys: pytest.CaptureFixture[str]
    ):
        write_sop("broken.md", "---\nname: broken\n---\nBody", research_dir)
        with pytest.raises(SystemExit) as exc_info:
            _run("validate", str(research_dir))
        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert "FAIL  broken.md" in captured.out
        assert "OK    research.md" in captured.out
        assert "1 problem(s) found" in captured.err

    def test_reports_multiple_coordinators(
        self, sop_dir: Path, write_sop, capsys: pytest.CaptureFixture[str]
    ):
        write_sop("a.md", "---\nname: a\ndescription: A\ntype: coordinator\n---\nA", sop_dir)
        write_sop("b.md", "---\nname: b\ndescription: B\ntype: coordinator\n---\nB", sop_dir)
        with pytest.raises(SystemExit):
            _run("validate", str(sop_dir))
        assert "Multiple coordinator SOPs" in capsys.readouterr().out

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(SystemExit) as exc_info:
            _run("validate", str(tmp_path / "missing"))
        assert exc_info.value.code == 1


class TestRun:
    def test_streams_response(
        self, research_dir: Path, scripted_engine, capsys: pytest.CaptureFixture[str]
    ):
        with patch("sop_agents.cli._create_engine", return_value=scripted_engine()):
            _run("run", "hello", "-d", str(research_dir))
        assert capsys.readouterr().out == "Handled: hello\n"

    def test_fail_fast_exits_nonzero(
        self, alpha_beta_dir: Path, scripted_engine, capsys: pytest.CaptureFixture[str]
    ):
        engine = scripted_engine([("agent_alpha", {"task": "x"})], failing=["Alpha agent"])
        with patch("sop_agents.cli._create_engine", return_value=engine):
            with pytest.raises(SystemExit) as exc_info:
                _run("run", "go", "-d", str(alpha_beta_dir))
        assert exc_info.value.code == 1
        assert "Agent 'alpha' failed" in capsys.readouterr().err

    def test_continue_mode(
        self, alpha_beta_dir: Path, scripted_engine, capsys: pytest.CaptureFixture[str]
    ):
        engine = scripted_engine(
            [("agent_alpha", {"task": "x"}), ("agent_beta", {"task": "y"})],
            failing=["Alpha agent"],
        )
        with patch("sop_agents.cli._create_engine", return_value=engine):
            _run("run", "go", "-d", str(alpha_beta_dir), "--error-mode", "continue")
        out = capsys.readouterr().out
        assert '"agent_name":"alpha"' in out
        assert "Agent response for: ## Task\ny" in out

    def test_model_option_reaches_engine(self, research_dir: Path, scripted_engine):
        engine = scripted_engine()
        with patch("sop_agents.cli._create_engine", return_value=engine):
            _run("run", "hello", "-d", str(research_dir), "--model", "openai/gpt-4o")
        assert engine.sessions[0]["model"] == "openai/gpt-4o"

    def test_directory_from_env(
        self,
        research_dir: Path,
        scripted_engine,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ):
        monkeypatch.setenv("SOP_AGENTS_DIRECTORY", str(research_dir))
        engine = scripted_engine()
        with patch("sop_agents.cli._create_engine", return_value=engine):
            _run("run", "hello")
        assert "agent_research" in engine.sessions[0]["tools"]


class TestChat:
    def test_chat_until_quit(
        self,
        research_dir: Path,
        scripted_engine,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ):
        answers = iter(["hello", "", "/quit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
        with patch("sop_agents.cli._create_engine", return_value=scripted_engine()):
            _run("chat", str(research_dir))
        out = capsys.readouterr().out
        assert "Handled: hello" in out
        assert "Goodbye!" in out

    def test_chat_ends_on_eof(
        self,
        research_dir: Path,
        scripted_engine,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ):
        def eof(prompt: str = "") -> str:
            raise EOFError

        monkeypatch.setattr("builtins.input", eof)
        with patch("sop_agents.cli._create_engine", return_value=scripted_engine()):
            _run("chat", str(research_dir))
        assert "CHAT MODE" in capsys.readouterr().out


class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]):
        with pytest.raises(SystemExit) as exc_info:
            _run()
        assert exc_info.value.code == 1
        assert "usage:" in capsys.readouterr().out

    def test_version(self, capsys: pytest.CaptureFixture[str]):
        with pytest.raises(SystemExit) as exc_info:
            _run("--version")
        assert exc_info.value.code == 0
        assert "sop-agents" in capsys.readouterr().out
