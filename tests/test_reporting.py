import json
from pathlib import Path

from license_inspector.reporting import (
    artifact_name,
    render_index_html,
    render_json,
    render_license_html,
    write_index,
)
from license_inspector.types import NO_LICENSE, LicenseInfo, ScanResult


def _result() -> ScanResult:
    result = ScanResult()
    result.add(
        "MIT",
        LicenseInfo(
            source_path="github.com/foo/bar@v1.0.0/LICENSE",
            output_path="Licenses/LICENSE_github.com_foo_bar@v1.0.0.html",
            remote_link="https://github.com/foo/bar",
            remote_license="MIT License",
        ),
    )
    result.record_no_license(LicenseInfo(source_path="example.com/none@v1.0.0", output_path="/cache/example.com"))
    return result


def test_artifact_name_flattens_relative_directory():
    roots = [Path("/cache"), Path("/src")]
    assert artifact_name(Path("/cache/github.com/foo/bar@v1.0.0/LICENSE"), roots) == "LICENSE_github.com_foo_bar@v1.0.0"
    assert artifact_name(Path("/src/github.com/me/app/LICENSE"), roots, to_html=True) == "LICENSE_github.com_me_app.html"
    assert artifact_name(Path("/elsewhere/LICENSE"), roots) == "LICENSE"


def test_render_json_keeps_bucket_and_discovery_order():
    payload = json.loads(render_json(_result()))
    assert list(payload) == ["MIT", NO_LICENSE]
    assert payload["MIT"][0]["GitLicense"] == "MIT License"
    assert payload[NO_LICENSE][0]["GitLink"] == ""


def test_index_links_files_and_repositories(tmp_path: Path):
    html = render_index_html(_result())
    assert "<h1>MIT" in html
    assert 'href="Licenses/LICENSE_github.com_foo_bar@v1.0.0.html"' in html
    assert "Current Repo" in html
    assert "(github api: MIT License)" in html

    index = write_index(tmp_path / "out", _result())
    assert index.name == "index.html"
    assert index.read_text() == html


def test_license_page_escapes_content():
    page = render_license_html("line one\n<b>line two</b>")
    assert "<br/> line one" in page
    assert "&lt;b&gt;line two&lt;/b&gt;" in page
