"""Unit tests for the source tree extractor."""

import json
import shutil
import subprocess
from pathlib import Path

import pytest

from codecity.extract import (
    ExtractionError,
    count_lines_of_code,
    default_package_name,
    extract,
    extract_class_name,
    extract_package_name,
    find_source_files,
    write_snapshot,
)
from codecity.parser import load_city_data

JAVA_SOURCE = """\
package com.example.core;

import java.util.List;

// The engine
public final class Engine {
    private int speed;

    public void run() {
        speed++;
    }
}
"""

PY_SOURCE = """\
# package: tools.scripts
import os


class Runner:
    # run things
    def go(self):
        return os.getcwd()
"""


def write(root: Path, rel: str, text: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def source_tree(tmp_path):
    root = tmp_path / "project"
    write(root, "src/com/example/core/Engine.java", JAVA_SOURCE)
    write(root, "src/com/example/core/EngineTest.java", JAVA_SOURCE)
    write(root, "scripts/runner.py", PY_SOURCE)
    write(root, "web/app/widget.js", "function widget() {\n  return 1;\n}\n")
    write(root, "node_modules/lib/index.js", "module.exports = 1;\n")
    write(root, "docs/README.md", "# Docs\n")
    return root


class TestDeclarations:
    """Tests for package and class name extraction."""

    def test_java_package(self):
        lines = JAVA_SOURCE.splitlines()
        assert extract_package_name(Path("Engine.java"), lines) == "com.example.core"

    def test_java_class(self):
        lines = JAVA_SOURCE.splitlines()
        assert extract_class_name(Path("Engine.java"), lines) == "Engine"

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("public class Foo {", "Foo"),
            ("abstract class Base", "Base"),
            ("public interface Service {", "Service"),
            ("enum Color { RED }", "Color"),
            ("public record Point(int x, int y) {}", "Point"),
            ("    static class Inner {", "Inner"),
        ],
    )
    def test_java_class_variants(self, line, expected):
        assert extract_class_name(Path("X.java"), [line]) == expected

    def test_csharp(self):
        lines = ["namespace Acme.Tools", "{", "    public sealed class Hammer", "}"]
        path = Path("Hammer.cs")
        assert extract_package_name(path, lines) == "Acme.Tools"
        assert extract_class_name(path, lines) == "Hammer"

    def test_go(self):
        lines = ["package server", "", "type Handler struct {}"]
        path = Path("handler.go")
        assert extract_package_name(path, lines) == "server"
        assert extract_class_name(path, lines) == "Handler"

    def test_typescript(self):
        lines = ["export namespace Shapes {", "export class Circle {}", "}"]
        path = Path("circle.ts")
        assert extract_package_name(path, lines) == "Shapes"
        assert extract_class_name(path, lines) == "Circle"

    def test_python_comment_package(self):
        lines = PY_SOURCE.splitlines()
        path = Path("runner.py")
        assert extract_package_name(path, lines) == "tools.scripts"
        assert extract_class_name(path, lines) == "Runner"

    def test_fallbacks(self):
        path = Path("web/app/widget.js")
        assert extract_package_name(path, ["function widget() {}"]) == "web.app"
        assert extract_class_name(path, ["function widget() {}"]) == "widget"

    def test_default_package_name(self):
        assert default_package_name(Path("./src/a/b/File.java")) == "src.a.b"
        assert default_package_name(Path("/abs/x/File.java"), Path("/abs")) == "x"

    def test_default_package_name_at_root(self, tmp_path):
        root = tmp_path / "proj"
        assert default_package_name(root / "Main.java", root) == "proj"


class TestCountLines:
    def test_skips_blank_and_comments(self):
        assert count_lines_of_code(JAVA_SOURCE.splitlines()) == 8

    def test_hash_comments(self):
        assert count_lines_of_code(PY_SOURCE.splitlines()) == 4

    def test_empty(self):
        assert count_lines_of_code([]) == 0


class TestFindSourceFiles:
    def test_filters(self, source_tree):
        found = [p.relative_to(source_tree).as_posix() for p in find_source_files(source_tree)]
        assert found == [
            "scripts/runner.py",
            "src/com/example/core/Engine.java",
            "web/app/widget.js",
        ]


class TestExtract:
    """Tests for whole-tree extraction."""

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ExtractionError, match="does not exist"):
            extract(tmp_path / "nope")

    def test_without_git(self, source_tree):
        result = extract(source_tree, collect_git=False)
        assert result.file_count == 3
        assert list(result.packages) == ["tools.scripts", "com.example.core", "web.app"]

        engine = result.packages["com.example.core"][0]
        assert engine.class_name == "Engine"
        assert engine.lines_of_code == 8
        assert engine.git_metadata is None

    def test_top_level_file_uses_directory_name(self, tmp_path):
        root = tmp_path / "proj"
        write(root, "Main.java", "public class Main {\n}\n")
        result = extract(root, collect_git=False)
        assert list(result.packages) == ["proj"]
        assert result.packages["proj"][0].class_name == "Main"

    def test_not_a_repository(self, source_tree):
        """Git collection is switched off outside a repository."""
        result = extract(source_tree, collect_git=True)
        assert all(
            m.git_metadata is None for files in result.packages.values() for m in files
        )

    def test_snapshot_round_trip(self, source_tree, tmp_path):
        output = write_snapshot(extract(source_tree, collect_git=False), tmp_path / "data.json")
        document = json.loads(output.read_text(encoding="utf-8"))
        assert document["packages"][1] == {
            "name": "com.example.core",
            "classes": [{"name": "Engine", "linesOfCode": 8}],
        }

        data = load_city_data(output)
        assert [p.name for p in data.packages] == [
            "tools.scripts",
            "com.example.core",
            "web.app",
        ]


@pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")
class TestGitMetadata:
    """Extraction against a real git repository."""

    @pytest.fixture
    def repo(self, source_tree):
        def git(*args):
            subprocess.run(
                [
                    "git",
                    "-c",
                    "user.name=Alice",
                    "-c",
                    "user.email=alice@example.com",
                    "-c",
                    "commit.gpgsign=false",
                    *args,
                ],
                cwd=source_tree,
                check=True,
                capture_output=True,
            )

        git("init", "-q")
        git("add", "src", "scripts")
        git("commit", "-q", "-m", "initial")
        engine = source_tree / "src/com/example/core/Engine.java"
        engine.write_text(JAVA_SOURCE + "// more\n", encoding="utf-8")
        subprocess.run(
            [
                "git",
                "-c",
                "user.name=Bob",
                "-c",
                "user.email=bob@example.com",
                "-c",
                "commit.gpgsign=false",
                "commit",
                "-q",
                "-am",
                "tweak",
            ],
            cwd=source_tree,
            check=True,
            capture_output=True,
        )
        return source_tree

    def test_git_metadata_collected(self, repo):
        result = extract(repo, collect_git=True)
        engine = result.packages["com.example.core"][0]
        assert engine.git_metadata["commits"] == 2
        assert engine.git_metadata["authors"] == 2
        assert "lastModified" in engine.git_metadata

        runner = result.packages["tools.scripts"][0]
        assert runner.git_metadata["commits"] == 1
        assert runner.git_metadata["authors"] == 1

    def test_untracked_file_has_no_metadata(self, repo):
        result = extract(repo, collect_git=True)
        widget = result.packages["web.app"][0]
        assert widget.git_metadata is None

    def test_last_modified_parses(self, repo, tmp_path):
        output = write_snapshot(extract(repo), tmp_path / "data.json")
        data = load_city_data(output)
        engine = data.packages[1].classes[0]
        assert engine.git_metadata.last_modified is not None
        assert engine.git_metadata.last_modified.tzinfo is not None
