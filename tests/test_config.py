"""Tests for configuration loading."""

import json
from pathlib import Path

import pytest

from fileprune.config import (
    build_analysis_config,
    default_config,
    get_policy,
    load_config,
    load_used_files,
    read_tsconfig,
    save_config,
    strip_json_comments,
)
from fileprune.errors import ConfigurationError
from fileprune.models.config import DEFAULT_EXTENSIONS, DEFAULT_INCLUDE, InclusionPolicy


class TestStripJsonComments:
    """Tests for JSONC handling."""

    def test_line_and_block_comments(self):
        text = '{\n  // line\n  "a": 1, /* block */ "b": 2\n}'

        assert json.loads(strip_json_comments(text)) == {"a": 1, "b": 2}

    def test_trailing_commas(self):
        text = '{"a": [1, 2,], "b": {"c": 3,},}'

        assert json.loads(strip_json_comments(text)) == {"a": [1, 2], "b": {"c": 3}}

    def test_comment_markers_inside_strings_kept(self):
        text = '{"url": "http://example.com/*x*/", "glob": "src/**/*"}'

        assert json.loads(strip_json_comments(text)) == {
            "url": "http://example.com/*x*/",
            "glob": "src/**/*",
        }

    def test_escaped_quotes(self):
        text = '{"a": "say \\"hi\\" // not a comment"}'

        assert json.loads(strip_json_comments(text)) == {"a": 'say "hi" // not a comment'}


class TestReadTsconfig:
    """Tests for tsconfig.json reading."""

    def test_paths_and_base_url(self, make_project):
        root = make_project(
            {
                "tsconfig.json": (
                    "{\n"
                    "  // compiler options\n"
                    '  "compilerOptions": {\n'
                    '    "baseUrl": "./src",\n'
                    '    "paths": {"@/*": ["*"],},\n'
                    "  },\n"
                    "}\n"
                )
            }
        )

        options = read_tsconfig(root / "tsconfig.json")

        assert options["paths"] == {"@/*": ["*"]}
        assert options["base_url"] == (root / "src").resolve()
        assert options["paths_base"] == (root / "src").resolve()

    def test_paths_without_base_url_are_relative_to_tsconfig(self, make_project):
        root = make_project({"tsconfig.json": '{"compilerOptions": {"paths": {"~/*": ["app/*"]}}}'})

        options = read_tsconfig(root / "tsconfig.json")

        assert options["base_url"] is None
        assert options["paths_base"] == root.resolve()

    def test_extends_relative_config(self, make_project):
        root = make_project(
            {
                "configs/base.json": (
                    '{"compilerOptions": {"baseUrl": "..", "paths": {"@/*": ["src/*"]}}}'
                ),
                "tsconfig.json": '{"extends": "./configs/base.json", "compilerOptions": {}}',
            }
        )

        options = read_tsconfig(root / "tsconfig.json")

        assert options["paths"] == {"@/*": ["src/*"]}
        assert options["paths_base"] == root.resolve()

    def test_package_extends_ignored(self, make_project):
        root = make_project({"tsconfig.json": '{"extends": "@tsconfig/node18/tsconfig.json"}'})

        assert read_tsconfig(root / "tsconfig.json")["paths"] == {}


class TestBuildAnalysisConfig:
    """Tests for merging configuration sources."""

    def test_defaults_with_advisory_when_nothing_configured(self, tmp_path: Path):
        config = build_analysis_config(tmp_path)

        assert config.include == DEFAULT_INCLUDE
        assert config.resolve_extensions == DEFAULT_EXTENSIONS
        assert config.aliases == []
        assert config.policy == InclusionPolicy()
        assert len(config.advisories) == 1

    def test_tsconfig_aliases(self, make_project):
        root = make_project(
            {"tsconfig.json": '{"compilerOptions": {"baseUrl": ".", "paths": {"@/*": ["src/*"]}}}'}
        )

        config = build_analysis_config(root)

        assert [rule.pattern for rule in config.aliases] == ["@/*"]
        assert config.base_url == root.resolve()
        assert config.advisories == []

    def test_jsconfig_used_when_no_tsconfig(self, make_project):
        root = make_project({"jsconfig.json": '{"compilerOptions": {"paths": {"#/*": ["src/*"]}}}'})

        config = build_analysis_config(root)

        assert [rule.pattern for rule in config.aliases] == ["#/*"]

    def test_unreadable_tsconfig_is_advisory(self, make_project):
        root = make_project({"tsconfig.json": "{ not json"})

        config = build_analysis_config(root)

        assert config.aliases == []
        assert any("tsconfig.json" in note for note in config.advisories)

    def test_toml_config(self, make_project):
        root = make_project(
            {
                "fileprune.toml": (
                    'include = ["app/**/*"]\n'
                    'entries = ["app/main.ts"]\n'
                    "workers = 4\n"
                    "[aliases]\n"
                    '"~/*" = ["app/*"]\n'
                    "[policy]\n"
                    "strict = true\n"
                )
            }
        )

        config = build_analysis_config(root)

        assert config.include == ["app/**/*"]
        assert config.entries == [(root / "app/main.ts").resolve()]
        assert config.workers == 4
        assert config.aliases[0].pattern == "~/*"
        assert config.policy == InclusionPolicy.strict()
        assert str(root.resolve() / "fileprune.toml") in config.sources

    def test_json_config_in_fileprune_dir(self, make_project):
        root = make_project(
            {".fileprune/config.json": json.dumps({"exclude": ["legacy/"], "infer_entries": False})}
        )

        config = build_analysis_config(root)

        assert config.exclude == ["legacy/"]
        assert config.infer_entries is False

    def test_configured_aliases_take_precedence(self, make_project):
        root = make_project(
            {
                "tsconfig.json": '{"compilerOptions": {"paths": {"@/*": ["src/*"]}}}',
                "fileprune.toml": '[aliases]\n"@/*" = ["lib/*"]\n',
            }
        )

        config = build_analysis_config(root)

        assert [rule.targets for rule in config.aliases] == [("lib/*",), ("src/*",)]

    def test_alias_bases_follow_their_source(self, make_project):
        root = make_project(
            {
                "tsconfig.json": '{"compilerOptions": {"baseUrl": "./src", "paths": {"~/*": ["*"]}}}',
                "fileprune.toml": '[aliases]\n"@/*" = ["src/*"]\n',
            }
        )

        config = build_analysis_config(root)

        assert [(rule.pattern, rule.base) for rule in config.aliases] == [
            ("@/*", root.resolve()),
            ("~/*", (root / "src").resolve()),
        ]
        assert config.base_url == (root / "src").resolve()

    def test_configured_base_url_applies_to_configured_aliases(self, make_project):
        root = make_project({"fileprune.toml": 'base_url = "app"\n[aliases]\n"@/*" = ["*"]\n'})

        config = build_analysis_config(root)

        assert config.aliases[0].base == (root / "app").resolve()

    def test_overrides_win(self, make_project):
        root = make_project({"fileprune.toml": "workers = 2\n"})

        config = build_analysis_config(root, overrides={"workers": 8, "entries": None})

        assert config.workers == 8

    def test_explicit_invalid_config_raises(self, make_project):
        root = make_project({"custom.json": "{ broken"})

        with pytest.raises(ConfigurationError):
            build_analysis_config(root, config_path=root / "custom.json")

    def test_explicit_missing_config_raises(self, tmp_path: Path):
        with pytest.raises(ConfigurationError):
            build_analysis_config(tmp_path, config_path=tmp_path / "missing.toml")

    def test_implicit_invalid_config_is_advisory(self, make_project):
        root = make_project({"fileprune.toml": "this is = = not toml"})

        config = build_analysis_config(root)

        assert any("fileprune.toml" in note for note in config.advisories)


class TestPolicyConfig:
    def test_individual_flags(self):
        policy = get_policy({"policy": {"follow_type_only_edges": False}})

        assert policy == InclusionPolicy(follow_type_only_edges=False)

    def test_missing_policy_is_default(self):
        assert get_policy({}) == InclusionPolicy()


class TestUsedFiles:
    """Tests for loading an external used-files list."""

    def test_plain_list(self, make_project):
        root = make_project({"used.json": json.dumps(["src/a.ts", "/abs/b.ts"])})

        used = load_used_files(root / "used.json", root)

        assert used == {(root / "src/a.ts").resolve(), Path("/abs/b.ts").resolve()}

    def test_used_files_object(self, make_project):
        root = make_project({"used.json": json.dumps({"usedFiles": ["src/a.ts"]})})

        assert load_used_files(root / "used.json", root) == {(root / "src/a.ts").resolve()}

    def test_webpack_stats(self, make_project):
        stats = {
            "modules": [
                {"name": "./src/a.ts", "resource": "/build/src/a.ts"},
                {"name": "./src/b.ts"},
            ]
        }
        root = make_project({"stats.json": json.dumps(stats)})

        used = load_used_files(root / "stats.json", root)

        assert used == {Path("/build/src/a.ts").resolve(), (root / "src/b.ts").resolve()}


class TestConfigFiles:
    def test_save_and_load_roundtrip(self, tmp_path: Path):
        path = tmp_path / "config.json"

        save_config(default_config(), path)

        assert load_config(path) == default_config()

    def test_default_config_is_loadable(self, tmp_path: Path):
        path = tmp_path / ".fileprune" / "config.json"
        path.parent.mkdir()
        save_config(default_config(), path)

        config = build_analysis_config(tmp_path)

        assert config.include == DEFAULT_INCLUDE
        assert config.policy == InclusionPolicy()
