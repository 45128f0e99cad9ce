from __future__ import annotations

import os
import re
import shutil
import stat
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set, Tuple

import structlog

from .config import ConfigPaths, ScanSettings
from .errors import LaunchError
from .reporting import write_index
from .scanner import LicenseScanner


log = structlog.get_logger(__name__)

_DOWNLOAD_DIR = re.compile(r".*@v.*")


def clone_target(repo: str, source_root: Path) -> Tuple[Path, Path]:
    """Return ``(parent_dir, clone_dir)`` for an https or scp-style git URL.

    ``https://github.com/owner/name.git`` clones into
    ``<source_root>/github.com/owner/name``.
    """

    if repo.startswith("https://") or repo.startswith("http://"):
        location = repo.split("://", 1)[1]
    elif repo.startswith("git@"):
        location = repo[len("git@"):].replace(":", "/", 1)
    else:
        raise LaunchError(f"unsupported repository URL: {repo}")

    parts = [part for part in location.split("/") if part]
    if len(parts) < 2:
        raise LaunchError(f"repository URL has no path: {repo}")
    name = parts[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    parent = source_root.joinpath(*parts[:-1])
    return parent, parent / name


def _run(command: List[str], cwd: Path) -> None:
    log.info("launch.run", command=" ".join(command), cwd=str(cwd))
    try:
        subprocess.run(command, cwd=cwd, check=True, capture_output=True, text=True)
    except FileNotFoundError as exc:
        raise LaunchError(f"{command[0]} is not installed") from exc
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip()
        raise LaunchError(f"{' '.join(command)} failed: {detail or exc}") from exc


def clone_repo(repo: str, source_root: Path, version: Optional[str] = None) -> Path:
    parent, clone_dir = clone_target(repo, source_root)
    if clone_dir.exists():
        log.info("launch.clone_exists", path=str(clone_dir))
        return clone_dir

    parent.mkdir(parents=True, exist_ok=True)
    _run(["git", "clone", repo], cwd=parent)
    if version:
        _run(["git", "checkout", version], cwd=clone_dir)
    return clone_dir


def find_sum_files(root: Path) -> List[Path]:
    return sorted(path for path in root.rglob("go.sum") if path.is_file())


def go_mod_download(module_dir: Path) -> None:
    _run(["go", "mod", "download"], cwd=module_dir)


def snapshot_downloads(module_root: Path) -> Set[Path]:
    """Module-cache directories present before the run; these are never cleaned."""

    if not module_root.exists():
        return set()
    return {path for path in module_root.rglob("*@v*") if path.is_dir() and _DOWNLOAD_DIR.match(path.name)}


def remove_tree(path: Path) -> None:
    # the Go module cache stores files and directories read-only
    for entry in [path, *path.rglob("*")]:
        if entry.is_symlink():
            continue
        mode = entry.stat().st_mode
        os.chmod(entry, mode | stat.S_IWUSR | (stat.S_IXUSR if entry.is_dir() else 0))
    shutil.rmtree(path)


def clean_module_cache(module_root: Path, keep: Set[Path]) -> List[Path]:
    """Remove downloads created since ``keep`` was snapshotted."""

    removed: List[Path] = []
    for path in sorted(snapshot_downloads(module_root)):
        # parents sort first, so nested downloads are already gone
        if path in keep or not path.exists():
            continue
        remove_tree(path)
        removed.append(path)
        log.info("launch.removed_download", path=str(path))
    return removed


@dataclass
class LaunchOptions:
    repo: str
    destination: Path
    version: Optional[str] = None
    clean_mod: bool = False
    clean_clone: bool = False
    to_html: bool = False


def run_launch(options: LaunchOptions, paths: ConfigPaths, settings: ScanSettings) -> Path:
    """Clone, scan the project and every go.sum in it, then write the report."""

    keep = snapshot_downloads(settings.module_root) if options.clean_mod else set()

    clone = clone_repo(options.repo, settings.source_root, options.version)
    settings.destination = options.destination
    settings.to_html = options.to_html
    settings.lic_folder = f"{clone.name}_Licenses"
    scanner = LicenseScanner.from_config(settings, paths)

    log.info("launch.scan_project", path=str(clone))
    scanner.scan_project(clone)

    for sum_file in find_sum_files(clone):
        go_mod_download(sum_file.parent)
        scanner.scan_sum_file(sum_file)

    output = scanner.finish()

    if options.clean_mod:
        clean_module_cache(settings.module_root, keep)
    if options.clean_clone:
        log.info("launch.remove_clone", path=str(clone))
        remove_tree(clone)
    if settings.to_html:
        write_index(settings.output_dir, scanner.result)
    return output
