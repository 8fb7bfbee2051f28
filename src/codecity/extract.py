"""
Extractor: scan a source tree and write a city snapshot.

This is deliberately shallow text scanning, not parsing. For each source
file it finds:

- the package, from the first package/namespace declaration matching the
  file's language, or else the directory path with "/" turned into ".";
- the class, from the first class/type declaration, or else the file stem;
- lines of code, counting lines that are neither blank nor start with
  "//" or "#";
- optionally, git metadata (commit count, distinct authors, last commit
  date) for tracked files.

Files are grouped by package (first-seen order) and written as the JSON
document the parser reads.
"""

import json
import logging
import re
import subprocess
import sys
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)

FILE_EXTENSIONS = ("java", "cs", "php", "py", "go", "ts", "js")

DEFAULT_EXCLUDES = (
    "**/.git/**",
    "**/.hg/**",
    "**/.svn/**",
    "**/.idea/**",
    "**/.vscode/**",
    "**/__pycache__/**",
    "**/.venv/**",
    "**/venv/**",
    "**/node_modules/**",
)

# Test sources are not part of the city
TEST_FILE_PATTERN = re.compile(r"Test\.[^/]*$")


@dataclass(frozen=True)
class DeclarationPattern:
    """A line pattern and how to turn a matching line into a name."""

    pattern: "re.Pattern[str]"
    clean: Callable[["re.Match[str]"], str]


def _strip_chars(prefix: str, chars: str = ";{") -> Callable[["re.Match[str]"], str]:
    def clean(match: "re.Match[str]") -> str:
        text = match.group(0)[len(prefix):]
        for ch in chars:
            text = text.replace(ch, "")
        return re.sub(r"\s+", "", text)

    return clean


def _group(index: int) -> Callable[["re.Match[str]"], str]:
    return lambda match: match.group(index)


PACKAGE_PATTERNS: Dict[str, DeclarationPattern] = {
    "java": DeclarationPattern(re.compile(r"^package .*"), _strip_chars("package ")),
    "cs": DeclarationPattern(re.compile(r"^namespace .*"), _strip_chars("namespace ")),
    "php": DeclarationPattern(
        re.compile(r"^namespace .*"), _strip_chars("namespace ")
    ),
    "py": DeclarationPattern(re.compile(r"^# package: .*"), _strip_chars("# package: ")),
    "go": DeclarationPattern(re.compile(r"^package .*"), _strip_chars("package ")),
    "ts": DeclarationPattern(
        re.compile(r"^export namespace .*"), _strip_chars("export namespace ")
    ),
}

CLASS_PATTERNS: Dict[str, DeclarationPattern] = {
    "java": DeclarationPattern(
        re.compile(
            r"^\s*(?:(?:public|private|protected)\s+)?(?:static\s+)?(?:final\s+)?"
            r"(?:abstract\s+)?(?:class|enum|interface|@interface|record)\s+(\w+)"
        ),
        _group(1),
    ),
    "cs": DeclarationPattern(
        re.compile(
            r"^\s*(?:(?:public|private|protected|internal)\s+)?(?:static\s+)?"
            r"(?:sealed\s+)?(?:partial\s+)?class\s+(\w+)"
        ),
        _group(1),
    ),
    "php": DeclarationPattern(
        re.compile(r"^\s*(?:final\s+)?class\s+(\w+)"), _group(1)
    ),
    "py": DeclarationPattern(re.compile(r"^class\s+(\w+)"), _group(1)),
    "go": DeclarationPattern(re.compile(r"^type\s+(\w+)"), _group(1)),
    "ts": DeclarationPattern(
        re.compile(r"^\s*(?:export\s+)?class\s+(\w+)"), _group(1)
    ),
}


class ExtractionError(RuntimeError):
    pass


@dataclass(frozen=True)
class FileMetrics:
    """Metrics for one source file."""

    package: str
    class_name: str
    lines_of_code: int
    git_metadata: Optional[dict] = None

    def to_json(self) -> dict:
        record = {"name": self.class_name, "linesOfCode": self.lines_of_code}
        if self.git_metadata is not None:
            record["gitMetadata"] = self.git_metadata
        return record


@dataclass
class ExtractionResult:
    """Files grouped by package in first-seen order."""

    packages: Dict[str, List[FileMetrics]] = field(default_factory=dict)
    file_count: int = 0

    def add(self, metrics: FileMetrics) -> None:
        self.packages.setdefault(metrics.package, []).append(metrics)
        self.file_count += 1

    def to_json(self) -> dict:
        return {
            "packages": [
                {"name": name, "classes": [m.to_json() for m in files]}
                for name, files in self.packages.items()
            ]
        }


def _first_match(lines: Sequence[str], decl: DeclarationPattern) -> Optional[str]:
    for line in lines:
        match = decl.pattern.match(line)
        if match:
            return decl.clean(match)
    return None


def default_package_name(path: Path, root: Optional[Path] = None) -> str:
    """
    Directory path as a dotted package name ("./src/a/b" -> "src.a.b").

    With ``root`` the path is taken relative to it first, and files
    directly under root take root's name.
    """
    if root is not None:
        path = path.relative_to(root)
    name = path.parent.as_posix().replace("/", ".").lstrip(".")
    if not name and root is not None:
        return root.resolve().name
    return name


def extract_package_name(
    path: Path, lines: Sequence[str], root: Optional[Path] = None
) -> str:
    decl = PACKAGE_PATTERNS.get(path.suffix.lstrip("."))
    if decl is not None:
        name = _first_match(lines, decl)
        if name:
            return name
    return default_package_name(path, root)


def extract_class_name(path: Path, lines: Sequence[str]) -> str:
    decl = CLASS_PATTERNS.get(path.suffix.lstrip("."))
    if decl is not None:
        name = _first_match(lines, decl)
        if name:
            return name
    return path.stem


def count_lines_of_code(lines: Sequence[str]) -> int:
    """Count lines that are not blank and are not "//" or "#" comments."""
    count = 0
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("//") or stripped.startswith("#"):
            continue
        count += 1
    return count


def _is_excluded(rel_posix: str, excludes: Sequence[str]) -> bool:
    return any(fnmatch(rel_posix, pat) or fnmatch("/" + rel_posix, pat) for pat in excludes)


def find_source_files(
    source_dir: Path,
    extensions: Sequence[str] = FILE_EXTENSIONS,
    excludes: Sequence[str] = DEFAULT_EXCLUDES,
) -> Iterator[Path]:
    """
    Yield source files under ``source_dir`` in sorted path order.

    Test files (names containing "Test.") and excluded directories are
    skipped.
    """
    suffixes = {f".{ext}" for ext in extensions}
    for path in sorted(source_dir.rglob("*")):
        if not path.is_file() or path.suffix not in suffixes:
            continue
        rel = path.relative_to(source_dir).as_posix()
        if _is_excluded(rel, excludes) or TEST_FILE_PATTERN.search(path.name):
            continue
        yield path


def _run_git(cwd: Path, args: Sequence[str]) -> subprocess.CompletedProcess:
    kwargs = {
        "text": True,
        "capture_output": True,
        "check": False,
    }
    if sys.platform == "win32":
        kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
    return subprocess.run(["git", "-C", str(cwd), *args], **kwargs)


def is_git_repo(path: Path) -> bool:
    try:
        cp = _run_git(path, ["rev-parse", "--git-dir"])
    except OSError:
        # git is not installed
        return False
    return cp.returncode == 0


def git_metadata(path: Path) -> Optional[dict]:
    """
    Commit count, author count and last commit date for a tracked file.

    Returns None for untracked files or files without commits.
    """
    cwd = path.parent
    name = path.name

    if _run_git(cwd, ["ls-files", "--error-unmatch", name]).returncode != 0:
        return None

    log = _run_git(cwd, ["log", "--follow", "--format=%H%x09%an", "--", name])
    if log.returncode != 0:
        return None
    entries = [line.split("\t", 1) for line in log.stdout.splitlines() if line.strip()]
    if not entries:
        return None

    authors = {entry[1] for entry in entries if len(entry) > 1}
    last = _run_git(cwd, ["log", "-1", "--format=%aI", "--", name])
    last_modified = last.stdout.strip() if last.returncode == 0 else ""

    metadata = {"commits": len(entries), "authors": len(authors)}
    if last_modified:
        metadata["lastModified"] = last_modified
    return metadata


def analyze_file(
    path: Path, collect_git: bool = True, root: Optional[Path] = None
) -> FileMetrics:
    """Extract package, class, LOC and git metadata for one file."""
    text = path.read_text(encoding="utf-8", errors="replace")
    lines = text.splitlines()
    return FileMetrics(
        package=extract_package_name(path, lines, root),
        class_name=extract_class_name(path, lines),
        lines_of_code=count_lines_of_code(lines),
        git_metadata=git_metadata(path) if collect_git else None,
    )


def extract(source_dir, collect_git: bool = True) -> ExtractionResult:
    """
    Analyze every source file under a directory.

    Args:
        source_dir: Directory to scan.
        collect_git: Collect git metadata when the directory is a repository.

    Returns:
        ExtractionResult grouping file metrics by package.

    Raises:
        ExtractionError: If the directory does not exist.
    """
    source_dir = Path(source_dir)
    if not source_dir.is_dir():
        raise ExtractionError(f"Source directory does not exist: {source_dir}")

    if collect_git and not is_git_repo(source_dir):
        logger.info("Git data collection disabled: %s is not a git repository", source_dir)
        collect_git = False

    result = ExtractionResult()
    for path in find_source_files(source_dir):
        logger.debug("Analyzing %s", path)
        try:
            result.add(analyze_file(path, collect_git, source_dir))
        except OSError as e:
            logger.warning("Skipping unreadable file %s: %s", path, e)

    logger.info("Analyzed %d files", result.file_count)
    return result


def write_snapshot(result: ExtractionResult, output_file) -> Path:
    """Write an extraction result as the snapshot JSON document."""
    output_path = Path(output_file)
    output_path.write_text(
        json.dumps(result.to_json(), indent=2) + "\n", encoding="utf-8"
    )
    return output_path
