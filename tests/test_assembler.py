"""Tests for ReportAssembler — block order, absence rules, and degradation."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from dotnet_bugreport.config import Settings
from dotnet_bugreport.exceptions import CollaboratorError, ConfigurationError
from dotnet_bugreport.models import CommandResult
from dotnet_bugreport.report.assembler import (
    GIT_UNAVAILABLE,
    NO_ENV_VARS,
    NO_PROJECT_FILES,
    SCAN_CANCELLED,
    ReportAssembler,
)
from dotnet_bugreport.report.collectors import ContainerDetector
from dotnet_bugreport.runner import SubprocessRunner
from dotnet_bugreport.scanning.estimator import ScanEstimator

SDK_CSPROJ = (
    '<Project Sdk="Microsoft.NET.Sdk">\n'
    "  <PropertyGroup>\n"
    "    <TargetFrameworks>net6.0;net8.0</TargetFrameworks>\n"
    "  </PropertyGroup>\n"
    "  <ItemGroup>\n"
    '    <PackageReference Include="Serilog" Version="3.1.1" />\n'
    "  </ItemGroup>\n"
    "</Project>\n"
)


def _ok(stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(stdout=stdout, stderr=stderr, exit_code=0)


def _failed(stderr: str = "", exit_code: int = 1) -> CommandResult:
    return CommandResult(stdout="", stderr=stderr, exit_code=exit_code)


GIT_RESPONSES = {
    ("git", "rev-parse", "--abbrev-ref", "HEAD"): _ok("main\n"),
    ("git", "rev-parse", "HEAD"): _ok("0123456789abcdef0123456789abcdef01234567\n"),
    ("git", "remote", "get-url", "origin"): _ok("https://github.com/example/app.git\n"),
}


@pytest.fixture
def runner(make_runner):
    """FakeRunner answering dotnet --info and the three git queries."""
    return make_runner({("dotnet", "--info"): _ok(".NET SDK:\n Version: 8.0.100\n"), **GIT_RESPONSES})


@pytest.fixture
def build_assembler(tmp_path: Path, fixed_clock, runner, make_prompt, system_info):
    def build(*, prompt=None, environ=None, **kw):
        kw.setdefault("container", ContainerDetector(str(tmp_path / "no-such-marker")))
        return ReportAssembler(
            runner,
            prompt or make_prompt(True),
            environ if environ is not None else {},
            system_info=system_info,
            clock=fixed_clock,
            **kw,
        )

    return build


def _project(root: Path, rel: str = "src/App/App.csproj", body: str = SDK_CSPROJ) -> Path:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(body)
    return p


class TestBlockOrder:
    def test_end_to_end_order(self, tmp_path: Path, build_assembler):
        _project(tmp_path)
        (tmp_path / ".git").mkdir()

        doc = build_assembler().build(tmp_path)

        assert doc.keys == [
            "header",
            "system",
            "runtime",
            "projects",
            "environment",
            "git",
            "container",
        ]
        projects = doc.block("projects").lines
        assert sum(1 for line in projects if line.startswith("### ")) == 1
        assert "### src/App/App.csproj" in projects
        assert "- net6.0" in projects and "- net8.0" in projects
        assert "Serilog: 3.1.1" in projects
        git = doc.block("git").lines
        assert "**Commit:** 0123456789abcdef0123456789abcdef01234567" in git
        assert doc.block("container").lines[1] == "Not inside a container."

    def test_all_optional_blocks_present(self, tmp_path: Path, build_assembler):
        (tmp_path / "global.json").write_text('{"sdk": {"version": "8.0.100"}}')
        (tmp_path / "App.sln").write_text("")
        (tmp_path / ".git").mkdir()
        doc = build_assembler().build(tmp_path)
        assert doc.keys == [
            "header",
            "system",
            "runtime",
            "global_json",
            "projects",
            "solutions",
            "environment",
            "git",
            "container",
        ]

    def test_header_timestamp(self, tmp_path: Path, build_assembler):
        doc = build_assembler().build(tmp_path)
        assert doc.lines()[:2] == ["# .NET Bug Report", "Generated: 2024-05-17 09:30:15Z"]

    def test_render_joins_lines(self, tmp_path: Path, build_assembler):
        text = build_assembler().build(tmp_path).render()
        assert text.startswith("# .NET Bug Report\nGenerated: ")
        assert "## System Information\nOS: TestOS 1.0" in text


class TestRootValidation:
    def test_filesystem_root_raises_before_any_block(self, build_assembler, runner):
        with pytest.raises(ConfigurationError, match="filesystem root"):
            build_assembler().build(os.path.abspath(os.sep))
        assert runner.calls == []

    def test_estimator_configuration_error_propagates(self, tmp_path: Path, build_assembler):
        estimator = ScanEstimator()
        with patch.object(estimator, "estimate", side_effect=ConfigurationError("bad root")):
            with pytest.raises(ConfigurationError, match="bad root"):
                build_assembler(estimator=estimator).build(tmp_path)


class TestConditionalBlocks:
    def test_global_json_verbatim(self, tmp_path: Path, build_assembler):
        content = '{\n  "sdk": { "version": "8.0.100", "rollForward": "latestFeature" }\n}'
        (tmp_path / "global.json").write_text(content)
        lines = build_assembler().build(tmp_path).block("global_json").lines
        assert lines == ("## global.json", "```json", content, "```", "")

    def test_solution_names_only(self, tmp_path: Path, build_assembler):
        (tmp_path / "Zed.sln").write_text("")
        (tmp_path / "App.sln").write_text("")
        lines = build_assembler().build(tmp_path).block("solutions").lines
        assert lines[1:3] == ("- `App.sln`", "- `Zed.sln`")

    def test_no_git_dir_no_git_block(self, tmp_path: Path, build_assembler, runner):
        doc = build_assembler().build(tmp_path)
        assert doc.block("git") is None
        assert all(c["command"] != "git" for c in runner.calls)

    def test_no_projects_message(self, tmp_path: Path, build_assembler):
        lines = build_assembler().build(tmp_path).block("projects").lines
        assert NO_PROJECT_FILES in lines


class TestProjectsBlock:
    def test_parse_error_does_not_abort(self, tmp_path: Path, build_assembler):
        _project(tmp_path, "A/Broken.csproj", "<Project><oops></Project>")
        _project(tmp_path, "B/Good.csproj")
        lines = build_assembler().build(tmp_path).block("projects").lines
        assert "Found 2 project file(s):" in lines
        broken = lines.index("### A/Broken.csproj")
        assert lines[broken + 1].startswith("Error parsing project file: ")
        assert "### B/Good.csproj" in lines
        assert "Serilog: 3.1.1" in lines

    def test_no_references(self, tmp_path: Path, build_assembler):
        _project(tmp_path, body="<Project><PropertyGroup><TargetFramework>net8.0</TargetFramework></PropertyGroup></Project>")
        lines = build_assembler().build(tmp_path).block("projects").lines
        assert "**Package References:** None" in lines
        assert "- net8.0" in lines

    def test_small_tree_does_not_prompt(self, tmp_path: Path, build_assembler, make_prompt):
        _project(tmp_path)
        prompt = make_prompt(False)
        lines = build_assembler(prompt=prompt).build(tmp_path).block("projects").lines
        assert prompt.questions == []
        assert SCAN_CANCELLED not in lines

    def test_declined_gate_cancels_only_projects(self, tmp_path: Path, build_assembler, make_prompt):
        _project(tmp_path)
        (tmp_path / "global.json").write_text("{}")
        prompt = make_prompt(False)
        estimator = ScanEstimator(max_immediate_files=0)
        doc = build_assembler(prompt=prompt, estimator=estimator).build(tmp_path)

        assert len(prompt.questions) == 1
        assert str(tmp_path) in prompt.questions[0]
        assert doc.block("projects").lines == ("## Project Files", SCAN_CANCELLED, "")
        assert doc.keys == [
            "header",
            "system",
            "runtime",
            "global_json",
            "projects",
            "environment",
            "container",
        ]

    def test_accepted_gate_scans(self, tmp_path: Path, build_assembler, make_prompt):
        _project(tmp_path)
        (tmp_path / "readme.txt").write_text("")
        prompt = make_prompt(True)
        estimator = ScanEstimator(max_immediate_files=0)
        lines = build_assembler(prompt=prompt, estimator=estimator).build(tmp_path).block("projects").lines
        assert len(prompt.questions) == 1
        assert "### src/App/App.csproj" in lines


class TestRuntimeBlock:
    def test_embeds_stdout_and_stderr(self, tmp_path: Path, build_assembler, runner):
        runner.responses[("dotnet", "--info")] = _ok("SDK 8\n", "warning: workload\n")
        lines = build_assembler().build(tmp_path).block("runtime").lines
        assert lines[0] == "### dotnet --info"
        assert lines[2] == "SDK 8\n\n[stderr]\nwarning: workload\n"

    def test_missing_dotnet_is_textual_error(self, tmp_path: Path, build_assembler, runner):
        runner.responses[("dotnet", "--info")] = CollaboratorError("dotnet", "command not found")
        doc = build_assembler().build(tmp_path)
        assert doc.block("runtime").lines[2] == "Error running command: command not found"
        assert doc.block("container") is not None

    def test_configured_dotnet_command(self, tmp_path: Path, build_assembler, runner):
        runner.responses[("/opt/dotnet/dotnet", "--info")] = _ok("custom")
        doc = build_assembler(settings=Settings(dotnet_command="/opt/dotnet/dotnet")).build(tmp_path)
        assert doc.block("runtime").lines[2] == "custom"


class TestEnvironmentBlock:
    def test_filters_and_sorts(self, tmp_path: Path, build_assembler):
        environ = {
            "PATH": "/usr/bin",
            "MSBUILD_EXE_PATH": "/sdk/MSBuild.dll",
            "dotnet_cli_telemetry_optout": "1",
            "ASPNETCORE_ENVIRONMENT": "Development",
            "DOTNET_ROOT": "/usr/share/dotnet",
        }
        lines = build_assembler(environ=environ).build(tmp_path).block("environment").lines
        assert lines == (
            "## Environment Variables",
            "```text",
            "ASPNETCORE_ENVIRONMENT = Development",
            "DOTNET_ROOT = /usr/share/dotnet",
            "MSBUILD_EXE_PATH = /sdk/MSBuild.dll",
            "dotnet_cli_telemetry_optout = 1",
            "```",
            "",
        )

    def test_none_relevant(self, tmp_path: Path, build_assembler):
        lines = build_assembler(environ={"HOME": "/root"}).build(tmp_path).block("environment").lines
        assert lines[1] == NO_ENV_VARS


class TestGitBlock:
    def test_missing_remote_omitted(self, tmp_path: Path, build_assembler, runner):
        (tmp_path / ".git").mkdir()
        runner.responses[("git", "remote", "get-url", "origin")] = _failed("error: No such remote 'origin'", 2)
        lines = build_assembler().build(tmp_path).block("git").lines
        assert "**Branch:** main" in lines
        assert any(line.startswith("**Commit:** ") for line in lines)
        assert not any(line.startswith("**Remote:**") for line in lines)

    def test_git_unavailable_degrades_whole_block(self, tmp_path: Path, build_assembler, runner):
        (tmp_path / ".git").mkdir()
        runner.responses[("git", "remote", "get-url", "origin")] = CollaboratorError("git", "boom")
        lines = build_assembler().build(tmp_path).block("git").lines
        assert lines == ("## Git Information", GIT_UNAVAILABLE, "")

    def test_runs_in_root(self, tmp_path: Path, build_assembler, runner):
        (tmp_path / ".git").mkdir()
        build_assembler().build(tmp_path)
        git_calls = [c for c in runner.calls if c["command"] == "git"]
        assert len(git_calls) == 3
        assert all(c["workdir"] == str(tmp_path) for c in git_calls)

    @pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
    def test_real_repository(self, tmp_path: Path, fixed_clock, make_prompt, system_info):
        def git(*args):
            subprocess.run(
                ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com", *args],
                cwd=tmp_path,
                check=True,
                capture_output=True,
            )

        git("init", "-q")
        _project(tmp_path)
        git("add", ".")
        git("commit", "-q", "-m", "initial")

        doc = ReportAssembler(
            SubprocessRunner(),
            make_prompt(True),
            {},
            system_info=system_info,
            clock=fixed_clock,
        ).build(tmp_path)
        commit = [line for line in doc.block("git").lines if line.startswith("**Commit:** ")]
        assert len(commit) == 1
        assert len(commit[0].split()[-1]) >= 40


class TestContainerBlock:
    def test_marker_file(self, tmp_path: Path, build_assembler):
        marker = tmp_path / ".dockerenv"
        marker.write_text("")
        doc = build_assembler(container=ContainerDetector(str(marker))).build(tmp_path)
        assert doc.block("container").lines[1] == "Running inside a container."

    @pytest.mark.parametrize(
        "environ",
        [{"DOTNET_RUNNING_IN_CONTAINER": "true"}, {"DOTNET_RUNNING_IN_CONTAINER": "TRUE"}, {"container": "podman"}],
    )
    def test_environment_indicators(self, tmp_path: Path, build_assembler, environ):
        doc = build_assembler(environ=environ).build(tmp_path)
        assert doc.block("container").lines[1] == "Running inside a container."

    def test_false_indicator(self, tmp_path: Path, build_assembler):
        environ = {"DOTNET_RUNNING_IN_CONTAINER": "false"}
        doc = build_assembler(environ=environ).build(tmp_path)
        assert doc.block("container").lines[1] == "Not inside a container."


class TestDegradation:
    def test_unexpected_error_contained_in_block(self, tmp_path: Path, build_assembler, system_info):
        assembler = build_assembler()
        with patch.object(system_info, "collect", side_effect=RuntimeError("no platform")):
            doc = assembler.build(tmp_path)
        assert doc.block("system").lines == (
            "## System Information",
            "Error collecting System Information: no platform",
            "",
        )
        assert doc.keys[-1] == "container"
