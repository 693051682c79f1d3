"""Markdown record I/O, JSON state files, and git helpers for persistent data."""

import dataclasses
import json
import logging
import os
import re
import subprocess
import tempfile
from dataclasses import asdict
from pathlib import Path
from typing import Any, TypeVar

import yaml

from teleworker.config import TZ as TZ

DATA_DIR = Path.home() / ".teleworker"
STATE_DIR = DATA_DIR / "state"

T = TypeVar("T")
log = logging.getLogger(__name__)

_STR_TYPES = (str, "str", str | None, "str | None")


def _find_repo(filepath: Path) -> Path | None:
    """Walk up from filepath to find the nearest git repo root."""
    for parent in filepath.parents:
        if (parent / ".git").is_dir():
            return parent
    return None


def git_commit(filepath: Path, message: str) -> None:
    """No-op when no git repo is found above filepath."""
    repo = _find_repo(filepath)
    if repo is None:
        return
    rel = filepath.relative_to(repo)
    subprocess.run(["git", "add", str(rel)], cwd=repo, capture_output=True)
    subprocess.run(
        ["git", "commit", "-m", message, "--", str(rel)],
        cwd=repo,
        capture_output=True,
    )


def git_rm_commit(filepath: Path, message: str) -> None:
    """Remove a file from git and commit. No-op when no git repo is found."""
    repo = _find_repo(filepath)
    if repo is None:
        return
    rel = filepath.relative_to(repo)
    subprocess.run(["git", "rm", "-f", str(rel)], cwd=repo, capture_output=True)
    subprocess.run(
        ["git", "commit", "-m", message, "--", str(rel)],
        cwd=repo,
        capture_output=True,
    )


def _atomic_write(target: Path, content: str) -> None:
    fd, tmp = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
    try:
        os.write(fd, content.encode())
    finally:
        os.close(fd)
    os.replace(tmp, target)


# --- Markdown I/O ---


def _slugify(text: str, max_len: int = 50) -> str:
    """Convert text to a filesystem-safe slug."""
    slug = text.lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = slug.strip("-")
    if len(slug) > max_len:
        slug = slug[:max_len].rstrip("-")
    return slug or "item"


def _serialize_md(item: Any) -> str:
    """Build YAML frontmatter + markdown body from a dataclass with a `message` field."""
    data = asdict(item)
    message = data.pop("message")
    defaults = {
        f.name: f.default
        for f in dataclasses.fields(item)
        if f.default is not dataclasses.MISSING and f.name != "message"
    }

    lines = ["---"]
    for key, value in data.items():
        if key in defaults and value == defaults[key]:
            continue
        if isinstance(value, str):
            lines.append(f"{key}: {json.dumps(value)}")
        elif isinstance(value, bool):
            lines.append(f"{key}: {str(value).lower()}")
        else:
            lines.append(f"{key}: {value}")
    lines.append("---")
    lines.append(message)
    return "\n".join(lines) + "\n"


def _split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    parts = text.split("---", 2)
    if len(parts) < 3:
        raise ValueError("Missing YAML frontmatter delimiters")
    data = yaml.safe_load(parts[1])
    if not isinstance(data, dict):
        raise ValueError("YAML frontmatter is not a mapping")
    return data, parts[2].strip()


def _parse_md(text: str, cls: type[T]) -> T:
    """Parse a single markdown file with YAML frontmatter into a dataclass."""
    data, body = _split_frontmatter(text)
    fields = {f.name: f for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
    filtered: dict[str, object] = {}
    for key, value in data.items():
        if key not in fields:
            continue
        if fields[key].type in _STR_TYPES:
            filtered[key] = str(value) if value is not None else None
        else:
            filtered[key] = value
    filtered["message"] = body
    return cls(**filtered)


def read_md_dir(dir_path: Path, cls: type[T]) -> list[T]:
    """Read all .md files in a directory into dataclass instances."""
    if not dir_path.is_dir():
        return []
    result: list[T] = []
    for filepath in sorted(dir_path.glob("*.md")):
        try:
            result.append(_parse_md(filepath.read_text(), cls))
        except (ValueError, yaml.YAMLError, TypeError, KeyError):
            log.warning("Skipping corrupt file: %s", filepath)
    return result


def _find_md(dir_path: Path, item_id: str) -> Path | None:
    if not dir_path.is_dir():
        return None
    for filepath in dir_path.glob("*.md"):
        try:
            data, _ = _split_frontmatter(filepath.read_text())
        except (ValueError, yaml.YAMLError):
            continue
        if str(data.get("id")) == item_id:
            return filepath
    return None


def write_md(dir_path: Path, item: Any, slug_source: str, commit_msg: str | None) -> None:
    """Write one item as a .md file. Overwrites the file already holding its id.

    Atomic write; committed to git only when commit_msg is given.
    """
    dir_path.mkdir(parents=True, exist_ok=True)
    target = _find_md(dir_path, str(item.id))
    if target is None:
        slug = _slugify(slug_source)
        target = dir_path / f"{slug}.md"
        counter = 2
        while target.exists():
            target = dir_path / f"{slug}-{counter}.md"
            counter += 1

    _atomic_write(target, _serialize_md(item))
    if commit_msg is not None:
        git_commit(target, commit_msg)


def remove_md(dir_path: Path, item_id: str, commit_msg: str) -> bool:
    """Find and delete the .md file whose YAML id matches item_id."""
    filepath = _find_md(dir_path, item_id)
    if filepath is None:
        return False
    filepath.unlink()
    git_rm_commit(filepath, commit_msg)
    return True


# --- JSON state ---


def read_json_state(filepath: Path) -> dict[str, Any] | None:
    """None when the file is missing or unreadable."""
    if not filepath.exists():
        return None
    try:
        data = json.loads(filepath.read_text())
    except json.JSONDecodeError:
        log.warning("Ignoring corrupt state file: %s", filepath)
        return None
    return data if isinstance(data, dict) else None


def write_json_state(filepath: Path, data: dict[str, Any]) -> None:
    """Atomic write. No git commit -- ephemeral state."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write(filepath, json.dumps(data))
