from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set

import structlog

from .classifier import classify
from .config import ConfigPaths, ScanSettings, load_catalog, load_rule_set
from .dependency_resolver import resolve_dependency
from .remote_cache import RateLimitGovernor, RemoteLicenseCache, relative_to_roots, repository_link
from .reporting import LICENSES_DIR, artifact_name, display_path, write_lic_types_file, write_license_copy
from .types import LicenseCatalog, LicenseInfo, Override, RuleSet, ScanResult, override_bucket


log = structlog.get_logger(__name__)


@dataclass
class DependencyWalk:
    """Per-dependency walk state."""

    root: Path
    remote_license: str = ""
    license_found: bool = False


class LicenseScanner:
    """Run-scoped engine: owns the rules, the catalog, the remote cache and the result.

    One instance per run. Dependencies are scanned strictly in the order they
    are handed in; each tree is walked depth-first with children visited in
    name order so reports are reproducible.
    """

    def __init__(
        self,
        settings: ScanSettings,
        rules: RuleSet,
        catalog: LicenseCatalog,
        cache: RemoteLicenseCache,
        result: Optional[ScanResult] = None,
    ) -> None:
        self.settings = settings
        self.rules = rules
        self.catalog = catalog
        self.cache = cache
        self.result = result or ScanResult()
        self.scanned_roots: Set[Path] = set()

    @classmethod
    def from_config(cls, settings: ScanSettings, paths: ConfigPaths) -> "LicenseScanner":
        governor = RateLimitGovernor(
            floor=settings.rate_floor,
            fast_delay=settings.fast_delay,
            slow_delay=settings.slow_delay,
        )
        cache = RemoteLicenseCache.load(
            paths.cache,
            credentials=settings.credentials,
            roots=settings.roots,
            governor=governor,
            timeout=settings.http_timeout,
        )
        return cls(settings, load_rule_set(paths), load_catalog(paths.licenses), cache)

    # -- lock file ------------------------------------------------------

    def scan_sum_text(self, text: str) -> List[Path]:
        return self.scan_lines(text.splitlines())

    def scan_sum_file(self, path: Path) -> List[Path]:
        log.info("scan.sum_file", path=str(path))
        return self.scan_sum_text(path.read_text())

    def scan_lines(self, lines: Iterable[str]) -> List[Path]:
        scanned: List[Path] = []
        for line in lines:
            root = resolve_dependency(line, self.settings.module_root)
            if root is None or root in self.scanned_roots:
                continue
            self.scanned_roots.add(root)
            self.scan_dependency(root)
            scanned.append(root)
        return scanned

    # -- trees ----------------------------------------------------------

    def scan_dependency(self, root: Path) -> DependencyWalk:
        """Walk one dependency; record a single No License entry if nothing was found."""

        walk = self._walk_tree(root)
        if not walk.license_found:
            self.result.record_no_license(
                LicenseInfo(
                    source_path=display_path(root, self.settings.roots),
                    output_path=str(root.parent),
                    remote_link=repository_link(root, self.settings.roots),
                    remote_license=walk.remote_license,
                )
            )
            log.info("scan.no_license", dependency=str(root))
        return walk

    def scan_project(self, root: Path) -> DependencyWalk:
        """Walk the project's own tree; a project without a license file is not reported."""

        return self._walk_tree(root)

    def _walk_tree(self, root: Path) -> DependencyWalk:
        remote = self.cache.lookup(root)
        walk = DependencyWalk(root=root, remote_license=remote or "")
        log.debug("scan.dependency", dependency=str(root), remote_license=walk.remote_license)
        self._walk(walk, root)
        return walk

    def _walk(self, walk: DependencyWalk, path: Path) -> None:
        if not self._visit(walk, path):
            return
        if path.is_dir() and not path.is_symlink():
            for child in sorted(path.iterdir(), key=lambda p: p.name):
                self._walk(walk, child)

    def _visit(self, walk: DependencyWalk, path: Path) -> bool:
        """Handle one entry; return whether a directory should be descended into."""

        relative = relative_to_roots(path, self.settings.roots)
        override = self.rules.override_for(relative) if relative else None
        if override is not None:
            walk.license_found = True
            self._scan_override(walk, override)
            return True

        name = path.name
        if "license" not in name.lower() and not self.rules.is_included(name):
            return True

        walk.license_found = True
        if self.rules.is_excluded_path(path) or self.rules.is_excluded_ext(name):
            log.debug("scan.excluded", path=str(path))
            return False
        if path.is_dir():
            return True

        data = path.read_bytes()
        self._record(walk, classify(data, self.catalog), path, data)
        return False

    def _scan_override(self, walk: DependencyWalk, override: Override) -> None:
        source = walk.root / override.filename
        if self.rules.is_classified(source):
            return
        data = source.read_bytes()
        self._record(walk, override_bucket(override.license), source, data)

    def _record(self, walk: DependencyWalk, bucket: str, path: Path, data: bytes) -> None:
        roots = self.settings.roots
        name = artifact_name(path, roots, to_html=self.settings.to_html)
        self.result.add(
            bucket,
            LicenseInfo(
                source_path=display_path(path, roots),
                output_path=f"{LICENSES_DIR}/{name}",
                remote_link=repository_link(path, roots),
                remote_license=walk.remote_license,
            ),
        )
        write_license_copy(self.settings.output_dir, name, data, to_html=self.settings.to_html)
        self.rules.mark_classified(path)
        log.debug("scan.classified", path=str(path), bucket=bucket)

    # -- output ---------------------------------------------------------

    def finish(self) -> Path:
        """Flush the remote cache and persist the license map."""

        if self.cache.insertions:
            self.cache.flush()
        destination = write_lic_types_file(self.settings.output_dir, self.result)
        log.info("scan.completed", output=str(destination), artifacts=self.result.total)
        return destination
