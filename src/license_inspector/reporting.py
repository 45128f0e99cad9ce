from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

import structlog
from jinja2 import Environment, select_autoescape

from .remote_cache import relative_to_roots
from .types import ScanResult


log = structlog.get_logger(__name__)

LIC_TYPES_FILE = "licensetypes.json"
LICENSES_DIR = "Licenses"
INDEX_FILE = "index.html"

env = Environment(autoescape=select_autoescape(["html", "xml"]))

LICENSE_TEMPLATE = env.from_string(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{{ title }}</title>
  <style>
    body { font-family: monospace; margin: 2rem; }
  </style>
</head>
<body>
  <center>
  {% for line in lines %}
    <br/> {{ line }}
  {% endfor %}
  </center>
</body>
</html>
"""
)

INDEX_TEMPLATE = env.from_string(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Scan Results</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 2rem; }
    h1 { color: #1f2937; font-size: 1.3rem; }
    .count { color: #6b7280; font-weight: normal; }
  </style>
</head>
<body>
  {% for bucket, entries in buckets.items() %}
  <h1>{{ bucket }} <span class="count">({{ entries|length }})</span></h1>
  <ol>
    {% for entry in entries %}
    <li>
      <a href="{{ entry.Filepath }}">{{ entry.Filename }}</a>
      {% if entry.GitLink %}<a href="{{ entry.GitLink }}">Current Repo</a>{% endif %}
      {% if entry.GitLicense %}<strong>(github api: {{ entry.GitLicense }})</strong>{% endif %}
    </li>
    {% endfor %}
  </ol>
  {% endfor %}
</body>
</html>
"""
)


def display_path(path: Path, roots: Iterable[Path]) -> str:
    """Path under the module cache or source root; the full path otherwise."""

    relative = relative_to_roots(path, roots)
    return relative if relative is not None else str(path)


def artifact_name(path: Path, roots: Iterable[Path], to_html: bool = False) -> str:
    """Flat, collision-free name for a copied artifact.

    ``<cache>/github.com/foo/bar@v1/LICENSE`` becomes
    ``LICENSE_github.com_foo_bar@v1``.
    """

    relative_dir = relative_to_roots(path.parent, roots)
    suffix = ""
    if relative_dir and relative_dir != ".":
        suffix = "_" + relative_dir.replace("/", "_")
    name = path.name + suffix
    return name + ".html" if to_html else name


def render_license_html(text: str, title: str = "License") -> str:
    return LICENSE_TEMPLATE.render(title=title, lines=text.split("\n"))


def render_json(result: ScanResult) -> str:
    return json.dumps(result.as_dict(), indent=3)


def render_index_html(result: ScanResult) -> str:
    return INDEX_TEMPLATE.render(buckets=result.as_dict())


def write_license_copy(output_dir: Path, name: str, data: bytes, to_html: bool = False) -> Path:
    lic_dir = output_dir / LICENSES_DIR
    lic_dir.mkdir(parents=True, exist_ok=True)
    destination = lic_dir / name
    if to_html:
        text = data.decode("utf-8", errors="replace")
        destination.write_text(render_license_html(text, title=name))
    else:
        destination.write_bytes(data)
    log.debug("report.license_copied", destination=str(destination))
    return destination


def write_lic_types_file(output_dir: Path, result: ScanResult) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    destination = output_dir / LIC_TYPES_FILE
    destination.write_text(render_json(result))
    return destination


def write_index(output_dir: Path, result: ScanResult) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    destination = output_dir / INDEX_FILE
    destination.write_text(render_index_html(result))
    return destination
