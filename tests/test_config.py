import json
from pathlib import Path

import pytest

from license_inspector.config import (
    ConfigPaths,
    ScanSettings,
    define_license,
    load_catalog,
    load_json_config,
    load_rule_set,
)
from license_inspector.errors import ConfigError
from license_inspector.types import Override, RuleSet


def test_missing_and_empty_files_mean_no_rules(tmp_path: Path):
    paths = ConfigPaths.from_env(tmp_path)
    paths.exclusions.write_text("")

    rules = load_rule_set(paths)
    assert rules == RuleSet()
    assert len(load_catalog(paths.licenses)) == 0


def test_malformed_json_names_the_file(tmp_path: Path):
    broken = tmp_path / "excludedfiles.json"
    broken.write_text("{not json")

    with pytest.raises(ConfigError) as excinfo:
        load_json_config(broken)
    assert "excludedfiles.json" in str(excinfo.value)


def test_rule_files_accept_lists_and_objects(tmp_path: Path):
    paths = ConfigPaths.from_env(tmp_path)
    paths.exclusions.write_text(json.dumps({"LICENSE.docs": {}, "/abs/LICENSE": {}}))
    paths.excluded_extensions.write_text(json.dumps([".GO", ".js"]))
    paths.inclusions.write_text(json.dumps(["COPYING"]))
    paths.overrides.write_text(json.dumps({"pkg/foo": {"License": "Apache-2.0", "Filename": "NOTICE"}}))

    rules = load_rule_set(paths)
    assert rules.excluded == {"LICENSE.docs", "/abs/LICENSE"}
    assert rules.excluded_extensions == {".go", ".js"}
    assert rules.is_included("COPYING")
    assert rules.override_for("pkg/foo") == Override(license="Apache-2.0", filename="NOTICE")
    assert rules.override_for("pkg/bar") is None


def test_override_without_filename_is_rejected(tmp_path: Path):
    paths = ConfigPaths.from_env(tmp_path)
    paths.overrides.write_text(json.dumps({"pkg/foo": {"License": "MIT"}}))

    with pytest.raises(ConfigError):
        load_rule_set(paths)


def test_rule_set_predicates_and_memo():
    rules = RuleSet(excluded={"LICENSE.tmpl", "/cache/a/LICENSE"}, excluded_extensions={".go"})

    assert rules.is_excluded_path("/cache/a/LICENSE")
    assert rules.is_excluded_path("/cache/b/LICENSE.tmpl")
    assert not rules.is_excluded_path("/cache/b/LICENSE")
    assert rules.is_excluded_ext("license.GO")
    assert not rules.is_excluded_ext("LICENSE")

    rules.mark_classified("/cache/b/LICENSE")
    assert rules.is_excluded_path("/cache/b/LICENSE")
    assert "/cache/b/LICENSE" not in rules.excluded


def test_catalog_is_normalized_and_ordered(tmp_path: Path):
    catalog_path = tmp_path / "definedlicenses.json"
    catalog_path.write_text(
        json.dumps(
            [
                {"Name": "MIT", "Lines": ["Permission hereby granted,", "the above copyright notice"]},
                {"Name": "ISC", "Lines": ["Permission to use, copy, modify"]},
            ]
        )
    )

    catalog = load_catalog(catalog_path)
    assert [d.name for d in catalog] == ["MIT", "ISC"]
    assert catalog.find("mit").fragments == ("PERMISSIONHEREBYGRANTED", "THEABOVECOPYRIGHTNOTICE")


def test_define_license_adds_once(tmp_path: Path):
    catalog_path = tmp_path / "Config" / "definedlicenses.json"

    assert define_license(catalog_path, "MIT", "Permission hereby granted\nThe above copyright notice")
    assert not define_license(catalog_path, "MIT", "something else")

    stored = json.loads(catalog_path.read_text())
    assert stored == [{"Name": "MIT", "Lines": ["PERMISSIONHEREBYGRANTED", "THEABOVECOPYRIGHTNOTICE"]}]


def test_env_overrides_single_config_file(monkeypatch, tmp_path: Path):
    custom = tmp_path / "elsewhere.json"
    monkeypatch.setenv("DES_EXCL", str(custom))

    paths = ConfigPaths.from_env(tmp_path / "Config")
    assert paths.exclusions == custom
    assert paths.inclusions == tmp_path / "Config" / "includedfiles.json"


def test_scan_settings_from_env(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("GOMODCACHE", str(tmp_path / "modcache"))
    monkeypatch.setenv("GITHUB_USER", "octo")
    monkeypatch.setenv("GITHUB_TOKEN", "secret")
    monkeypatch.setenv("LICENSE_INSPECTOR_RATE_FLOOR", "100")

    settings = ScanSettings.from_env(destination=tmp_path / "out", lic_folder="demo_Licenses")
    assert settings.module_root == tmp_path / "modcache"
    assert settings.credentials and settings.credentials.user == "octo"
    assert settings.rate_floor == 100
    assert settings.output_dir == tmp_path / "out" / "demo_Licenses"
