"""Shared fixtures: fake cgroup and procfs trees under tmp_path."""

from pathlib import Path

import pytest


def write_file(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    root = tmp_path / "proc"
    root.mkdir()
    return root


@pytest.fixture
def cgroup_root(tmp_path: Path) -> Path:
    root = tmp_path / "cgroup"
    root.mkdir()
    return root


@pytest.fixture
def v2_tree(cgroup_root: Path, proc_root: Path) -> Path:
    """Unified hierarchy with this process at /app; returns the process cgroup dir."""
    write_file(cgroup_root / "cgroup.controllers", "cpu memory io\n")
    write_file(proc_root / "self" / "cgroup", "0::/app\n")
    app = cgroup_root / "app"
    app.mkdir()
    return app


@pytest.fixture
def v1_tree(cgroup_root: Path, proc_root: Path) -> Path:
    """Per-controller hierarchies with this process at /docker/abc."""
    write_file(
        proc_root / "self" / "cgroup",
        "12:memory:/docker/abc\n"
        "4:cpu,cpuacct:/docker/abc\n"
        "1:name=systemd:/docker/abc\n",
    )
    (cgroup_root / "memory" / "docker" / "abc").mkdir(parents=True)
    (cgroup_root / "cpu,cpuacct" / "docker" / "abc").mkdir(parents=True)
    return cgroup_root


@pytest.fixture
def make_file():
    """Factory writing a file (and its parents) with the given content."""
    return write_file
