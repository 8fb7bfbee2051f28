"""
Functional tests for the codecity CLI.

Covers:
- extract: scanning a source tree into a snapshot
- render: PNG output, selection and tracing
- stats: statistics text
- the one-shot prompt when the data file cannot be loaded
"""

import json
import os

import pytest
from click.testing import CliRunner
from PIL import Image

from codecity import __version__
from codecity.cli import main


@pytest.fixture
def runner():
    """Create a CLI runner for testing."""
    return CliRunner()


@pytest.fixture
def data_file(tmp_path, snapshot_json):
    path = tmp_path / "data.json"
    path.write_text(json.dumps(snapshot_json), encoding="utf-8")
    return str(path)


class TestMain:
    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("extract", "render", "stats", "view"):
            assert command in result.output


class TestStatsCommand:
    """Tests for the stats command."""

    def test_stats(self, runner, data_file):
        result = runner.invoke(main, ["stats", data_file])
        assert result.exit_code == 0
        assert "Total Packages" in result.output
        assert "Engine (400)" in result.output
        assert "Hue:" in result.output

    def test_stats_without_git_has_no_legend(self, runner, tmp_path):
        path = tmp_path / "plain.json"
        path.write_text(
            json.dumps({"packages": [{"name": "a", "classes": [{"name": "A"}]}]}),
            encoding="utf-8",
        )
        result = runner.invoke(main, ["stats", str(path)])
        assert result.exit_code == 0
        assert "Hue:" not in result.output


class TestRenderCommand:
    """Tests for the render command."""

    def test_render(self, runner, data_file, tmp_path):
        output = tmp_path / "city.png"
        result = runner.invoke(
            main,
            ["render", data_file, "-o", str(output), "--width", "640", "--height", "480"],
        )
        assert result.exit_code == 0, result.output
        assert "Rendered 3 buildings" in result.output
        with Image.open(output) as img:
            assert img.size == (640, 480)

    def test_render_grid_color_blind(self, runner, data_file, tmp_path):
        output = tmp_path / "grid.png"
        result = runner.invoke(
            main,
            [
                "render",
                data_file,
                "-o",
                str(output),
                "--layout",
                "grid",
                "--color-blind",
                "--no-glow",
                "--no-age",
            ],
        )
        assert result.exit_code == 0, result.output
        assert os.path.getsize(output) > 0

    def test_render_select(self, runner, data_file, tmp_path):
        result = runner.invoke(
            main,
            ["render", data_file, "-o", str(tmp_path / "c.png"), "--select", "Engine"],
        )
        assert result.exit_code == 0, result.output
        assert "Package: com.example.core" in result.output
        assert "Commits: 45" in result.output

    def test_render_select_unknown(self, runner, data_file, tmp_path):
        result = runner.invoke(
            main,
            ["render", data_file, "-o", str(tmp_path / "c.png"), "--select", "Nope"],
        )
        assert result.exit_code == 1
        assert "No class named 'Nope'" in result.output

    def test_render_trace(self, runner, data_file, tmp_path):
        trace = tmp_path / "trace.txt"
        result = runner.invoke(
            main,
            [
                "render",
                data_file,
                "-o",
                str(tmp_path / "c.png"),
                "--trace",
                str(trace),
            ],
        )
        assert result.exit_code == 0, result.output
        assert "RENDER TRACE SUMMARY" in trace.read_text(encoding="utf-8")

    def test_invalid_layout(self, runner, data_file):
        result = runner.invoke(main, ["render", data_file, "--layout", "spiral"])
        assert result.exit_code == 2

    def test_missing_data_prompt_declined(self, runner, tmp_path):
        missing = tmp_path / "missing.json"
        result = runner.invoke(main, ["render", str(missing)], input="\n")
        assert result.exit_code == 1
        assert "Please select a data.json file" in result.output
        assert "Failed to read" in result.output

    def test_missing_data_prompt_accepted(self, runner, data_file, tmp_path):
        missing = tmp_path / "missing.json"
        output = tmp_path / "city.png"
        result = runner.invoke(
            main,
            ["render", str(missing), "-o", str(output)],
            input=f"{data_file}\n",
        )
        assert result.exit_code == 0, result.output
        assert output.exists()


class TestExtractCommand:
    """Tests for the extract command."""

    def test_extract(self, runner, tmp_path):
        source = tmp_path / "src" / "shapes"
        source.mkdir(parents=True)
        (source / "Circle.java").write_text(
            "package shapes;\n\npublic class Circle {\n  double r;\n}\n",
            encoding="utf-8",
        )
        output = tmp_path / "data.json"

        result = runner.invoke(
            main, ["extract", str(tmp_path / "src"), str(output), "--no-git"]
        )
        assert result.exit_code == 0, result.output
        assert "Analyzed 1 files in 1 packages" in result.output

        document = json.loads(output.read_text(encoding="utf-8"))
        assert document == {
            "packages": [
                {"name": "shapes", "classes": [{"name": "Circle", "linesOfCode": 4}]}
            ]
        }

    def test_extract_missing_source(self, runner, tmp_path):
        result = runner.invoke(
            main, ["extract", str(tmp_path / "nope"), str(tmp_path / "out.json")]
        )
        assert result.exit_code == 1
        assert "does not exist" in result.output
