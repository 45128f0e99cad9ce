from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from .classifier import missing_fragments
from .config import ConfigPaths, ScanSettings, define_license, load_catalog
from .dependency_resolver import read_sum_entries, resolve_entry
from .errors import LicenseInspectorError
from .launcher import LaunchOptions, run_launch
from .logging_setup import setup_logging
from .reporting import write_index
from .scanner import LicenseScanner
from .types import Credentials


def _fail(message: str) -> None:
    click.echo(message, err=True)
    raise SystemExit(1)


def _config_paths(ctx: click.Context) -> ConfigPaths:
    return ConfigPaths.from_env(ctx.obj.get("config_dir"))


def _prompt_credentials() -> Credentials:
    user = click.prompt("GitHub username", err=True).strip()
    token = click.prompt("GitHub personal access token", hide_input=True, err=True).strip()
    return Credentials(user, token)


@click.group()
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=str),
    help="Directory holding the JSON rule files (defaults to LICENSE_INSPECTOR_CONFIG or ./Config).",
)
@click.option("--log-level", type=str, help="Log level (defaults to LICENSE_INSPECTOR_LOG_LEVEL or INFO).")
@click.pass_context
def main(ctx: click.Context, config_dir: Optional[str], log_level: Optional[str]) -> None:
    """Collect and classify the licenses of a Go project's dependencies."""

    setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["config_dir"] = config_dir


@main.command()
@click.option("--repo", required=True, help="Repository to scan: https://host/owner/name.git or git@host:owner/name.git.")
@click.option(
    "--dst",
    required=True,
    type=click.Path(file_okay=False, path_type=str),
    help="Directory that receives the <repo>_Licenses folder.",
)
@click.option("--version", "ref", type=str, help="Commit or tag to check out; the default branch otherwise.")
@click.option("--clean-mod", is_flag=True, help="Remove module downloads made by this run.")
@click.option("--clean-clone", is_flag=True, help="Remove the clone after scanning.")
@click.option("--tohtml", is_flag=True, help="Copy licenses as HTML pages and write an index.html.")
@click.option(
    "--git-check",
    is_flag=True,
    help="Prompt for a GitHub username and token and attach the license GitHub reports.",
)
@click.pass_context
def scan(
    ctx: click.Context,
    repo: str,
    dst: str,
    ref: Optional[str],
    clean_mod: bool,
    clean_clone: bool,
    tohtml: bool,
    git_check: bool,
) -> None:
    """Clone a repository and scan it and every dependency listed in its go.sum files."""

    credentials = _prompt_credentials() if git_check else None
    settings = ScanSettings.from_env(credentials=credentials)
    options = LaunchOptions(
        repo=repo,
        destination=Path(dst),
        version=ref,
        clean_mod=clean_mod,
        clean_clone=clean_clone,
        to_html=tohtml,
    )
    try:
        output = run_launch(options, _config_paths(ctx), settings)
    except (LicenseInspectorError, OSError) as exc:
        _fail(f"Scan failed: {exc}")
        return
    click.echo(f"License map written to {output}")


@main.command("scan-sum")
@click.argument("sum_file", type=click.Path(exists=True, dir_okay=False, path_type=str))
@click.option(
    "--dst",
    required=True,
    type=click.Path(file_okay=False, path_type=str),
    help="Directory that receives the license folder.",
)
@click.option(
    "--module-cache",
    type=click.Path(exists=True, file_okay=False, path_type=str),
    help="Module cache root (defaults to GOMODCACHE or $GOPATH/pkg/mod).",
)
@click.option("--folder", default="Licenses", show_default=True, help="Name of the output folder inside --dst.")
@click.option("--tohtml", is_flag=True, help="Copy licenses as HTML pages and write an index.html.")
@click.pass_context
def scan_sum(
    ctx: click.Context,
    sum_file: str,
    dst: str,
    module_cache: Optional[str],
    folder: str,
    tohtml: bool,
) -> None:
    """Scan the dependencies of a local go.sum against the module cache."""

    settings = ScanSettings.from_env(
        module_root=Path(module_cache) if module_cache else None,
        destination=Path(dst),
        lic_folder=folder,
        to_html=tohtml,
    )
    try:
        scanner = LicenseScanner.from_config(settings, _config_paths(ctx))
        scanned = scanner.scan_sum_file(Path(sum_file))
        output = scanner.finish()
        if tohtml:
            write_index(settings.output_dir, scanner.result)
    except (LicenseInspectorError, OSError) as exc:
        _fail(f"Scan failed: {exc}")
        return

    if not scanned:
        click.echo("No downloaded dependencies found; nothing to scan.", err=True)
    for bucket, entries in scanner.result.buckets.items():
        click.echo(f"{bucket}: {len(entries)}")
    click.echo(f"License map written to {output}")


@main.command()
@click.argument("sum_file", type=click.Path(exists=True, dir_okay=False, path_type=str))
@click.option(
    "--module-cache",
    type=click.Path(file_okay=False, path_type=str),
    help="Module cache root (defaults to GOMODCACHE or $GOPATH/pkg/mod).",
)
def deps(sum_file: str, module_cache: Optional[str]) -> None:
    """List the dependencies of a go.sum and whether they are downloaded."""

    settings = ScanSettings.from_env(module_root=Path(module_cache) if module_cache else None)
    for entry in read_sum_entries(Path(sum_file)):
        location = resolve_entry(entry, settings.module_root)
        status = str(location) if location else "not downloaded"
        click.echo(f"{entry.module} {entry.version} -> {status}")


@main.command()
@click.argument("filename", type=click.Path(exists=True, dir_okay=False, path_type=str))
@click.argument("license_name")
@click.pass_context
def check(ctx: click.Context, filename: str, license_name: str) -> None:
    """Test FILENAME against the catalog definition named LICENSE_NAME."""

    try:
        catalog = load_catalog(_config_paths(ctx).licenses)
    except LicenseInspectorError as exc:
        _fail(str(exc))
        return

    definition = catalog.find(license_name)
    if definition is None:
        _fail(f"No license definition named '{license_name}'.")
        return

    missing = missing_fragments(Path(filename).read_bytes(), definition)
    if not missing:
        click.echo(f"{filename} matches {definition.name}")
        return
    click.echo(f"{filename} does not match {definition.name}; missing {len(missing)} of {len(definition.fragments)} lines:")
    for fragment in missing:
        click.echo(f"  {fragment}")
    raise SystemExit(1)


@main.command()
@click.argument("license_name")
@click.argument("definition_file", type=click.Path(exists=True, dir_okay=False, path_type=str))
@click.pass_context
def define(ctx: click.Context, license_name: str, definition_file: str) -> None:
    """Register DEFINITION_FILE's lines as the fingerprint of LICENSE_NAME."""

    catalog_path = _config_paths(ctx).licenses
    try:
        added = define_license(catalog_path, license_name, Path(definition_file).read_text())
    except LicenseInspectorError as exc:
        _fail(str(exc))
        return
    if added:
        click.echo(f"License registered: {license_name}")
    else:
        click.echo(f"{license_name} is already defined in {catalog_path}")


if __name__ == "__main__":
    main()
