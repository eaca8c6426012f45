"""Configuration loading and merging for FilePrune.

Sources, later ones overriding earlier ones: built-in defaults,
``tsconfig.json`` (path aliases and ``baseUrl``), ``fileprune.toml`` or
``.fileprune/config.json``, then command line overrides. A missing or
unreadable source is not fatal: defaults are used and an advisory is
recorded.
"""

import json
import logging
from pathlib import Path

import tomli

from fileprune.errors import ConfigurationError
from fileprune.models.config import (
    DEFAULT_EXTENSIONS,
    DEFAULT_INCLUDE,
    DEFAULT_SOURCE_EXTENSIONS,
    AliasRule,
    AnalysisConfig,
    InclusionPolicy,
)
from fileprune.paths import (
    JSCONFIG_FILE,
    TOML_CONFIG_FILE,
    TSCONFIG_FILE,
    get_config_path,
)

logger = logging.getLogger(__name__)

# tsconfig "extends" chains longer than this are ignored
MAX_EXTENDS_DEPTH = 5


def load_config(config_path: Path) -> dict:
    """Load a .fileprune/config.json or fileprune.toml file."""
    if config_path.suffix == ".toml":
        with open(config_path, "rb") as f:
            return tomli.load(f)
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_config(config: dict, config_path: Path) -> None:
    """Save configuration to .fileprune/config.json."""
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)


def default_config() -> dict:
    """Configuration written by ``fileprune init``."""
    return {
        "include": list(DEFAULT_INCLUDE),
        "exclude": [],
        "extensions": list(DEFAULT_SOURCE_EXTENSIONS),
        "resolve_extensions": list(DEFAULT_EXTENSIONS),
        "entries": [],
        "infer_entries": True,
        "tsconfig": TSCONFIG_FILE,
        "aliases": {},
        "policy": InclusionPolicy().to_dict(),
        "workers": 1,
    }


def get_include(config: dict) -> list[str]:
    """Get include patterns from config."""
    return _as_list(config.get("include", DEFAULT_INCLUDE))


def get_exclude(config: dict) -> list[str]:
    """Get exclude patterns from config."""
    return _as_list(config.get("exclude", []))


def get_source_extensions(config: dict) -> list[str]:
    return _as_list(config.get("extensions", DEFAULT_SOURCE_EXTENSIONS))


def get_resolve_extensions(config: dict) -> list[str]:
    return _as_list(config.get("resolve_extensions", DEFAULT_EXTENSIONS))


def get_aliases(config: dict, base: Path | None = None) -> list[AliasRule]:
    """Get alias rules, keeping declaration order."""
    return parse_alias_table(config.get("aliases", {}), base)


def get_policy(config: dict) -> InclusionPolicy:
    policy = config.get("policy", {})
    if policy.get("strict"):
        return InclusionPolicy.strict()
    return InclusionPolicy(
        follow_type_only_edges=policy.get("follow_type_only_edges", True),
        treat_type_only_as_reference=policy.get("treat_type_only_as_reference", True),
    )


def parse_alias_table(paths: dict, base: Path | None = None) -> list[AliasRule]:
    """Turn a ``compilerOptions.paths``-shaped mapping into alias rules.

    Every rule resolves its targets against ``base``.
    """
    rules: list[AliasRule] = []
    for pattern, targets in paths.items():
        try:
            rules.append(AliasRule(pattern=pattern, targets=tuple(_as_list(targets)), base=base))
        except ValueError as e:
            logger.warning("Ignoring alias %r: %s", pattern, e)
    return rules


def strip_json_comments(text: str) -> str:
    """Remove // and /* */ comments and trailing commas from JSONC text."""
    out: list[str] = []
    i = 0
    in_string = False
    length = len(text)
    while i < length:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < length:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = length if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = length if end == -1 else end + 2
        elif ch == ",":
            # Drop the comma if only whitespace separates it from a closer
            j = i + 1
            while j < length and text[j] in " \t\r\n":
                j += 1
            if j < length and text[j] in "}]":
                i += 1
                continue
            out.append(ch)
            i += 1
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def read_tsconfig(tsconfig_path: Path, depth: int = 0) -> dict:
    """Read compilerOptions from a tsconfig, following relative ``extends``.

    Returns ``{"paths": {...}, "base_url": Path | None}``. ``paths`` entries
    are made relative to the directory they were declared in.
    """
    text = tsconfig_path.read_text(encoding="utf-8")
    data = json.loads(strip_json_comments(text))

    merged: dict = {"paths": {}, "base_url": None, "paths_base": None}
    parent = data.get("extends")
    if isinstance(parent, str) and parent.startswith(".") and depth < MAX_EXTENDS_DEPTH:
        parent_path = (tsconfig_path.parent / parent).resolve()
        if parent_path.suffix != ".json":
            parent_path = parent_path.with_name(parent_path.name + ".json")
        if parent_path.exists():
            merged = read_tsconfig(parent_path, depth + 1)

    options = data.get("compilerOptions", {})
    if "baseUrl" in options:
        merged["base_url"] = (tsconfig_path.parent / options["baseUrl"]).resolve()
    if "paths" in options:
        merged["paths"] = dict(options["paths"])
        merged["paths_base"] = merged["base_url"] or tsconfig_path.parent.resolve()
    return merged


def load_used_files(used_path: Path, root: Path) -> set[Path]:
    """Load an externally computed set of used files.

    Accepts a JSON list of paths, an object with a ``usedFiles`` list, or
    webpack-style stats with ``modules[].resource`` (or ``name``).
    """
    with open(used_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        if "usedFiles" in data:
            raw = data["usedFiles"]
        else:
            raw = [
                m.get("resource") or m.get("name")
                for m in data.get("modules", [])
                if isinstance(m, dict)
            ]
    else:
        raw = data

    used: set[Path] = set()
    for item in raw:
        if not isinstance(item, str) or not item:
            continue
        path = Path(item)
        if not path.is_absolute():
            path = root / path
        used.add(path.resolve())
    return used


def build_analysis_config(
    root: Path,
    config_path: Path | None = None,
    overrides: dict | None = None,
) -> AnalysisConfig:
    """Merge every configuration source into one AnalysisConfig.

    Raises ConfigurationError only for an explicitly requested config file
    that cannot be read.
    """
    root = root.resolve()
    advisories: list[str] = []
    sources: list[str] = []

    config: dict = {}
    if config_path is not None:
        try:
            config = load_config(config_path)
        except (OSError, ValueError, tomli.TOMLDecodeError) as e:
            raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
        sources.append(str(config_path))
    else:
        for candidate in (root / TOML_CONFIG_FILE, get_config_path(root)):
            if not candidate.exists():
                continue
            try:
                config = load_config(candidate)
                sources.append(str(candidate))
            except (OSError, ValueError, tomli.TOMLDecodeError) as e:
                advisories.append(f"Ignoring unreadable config {candidate}: {e}")
            break

    if overrides:
        config = {**config, **{k: v for k, v in overrides.items() if v is not None}}

    aliases: list[AliasRule] = []
    base_url: Path | None = None
    if "base_url" in config:
        base_url = (root / config["base_url"]).resolve()
    # Configured aliases are relative to their own base_url or the root,
    # tsconfig aliases to the tsconfig's paths base
    config_alias_base = base_url or root

    tsconfig = _find_tsconfig(root, config.get("tsconfig"))
    if tsconfig is None:
        if not config:
            advisories.append(
                "No tsconfig.json or fileprune config found; using default extensions "
                "and no path aliases"
            )
    else:
        try:
            ts_options = read_tsconfig(tsconfig)
            sources.append(str(tsconfig))
            aliases.extend(parse_alias_table(ts_options["paths"], ts_options["paths_base"]))
            if base_url is None:
                base_url = ts_options["paths_base"] or ts_options["base_url"]
        except (OSError, ValueError) as e:
            advisories.append(f"Ignoring unreadable {tsconfig.name}: {e}")

    # Explicit aliases take precedence over tsconfig ones
    aliases = get_aliases(config, config_alias_base) + aliases

    for note in advisories:
        logger.warning(note)

    return AnalysisConfig(
        root=root,
        include=get_include(config),
        exclude=get_exclude(config),
        source_extensions=get_source_extensions(config),
        resolve_extensions=get_resolve_extensions(config),
        aliases=aliases,
        base_url=base_url,
        entries=[(root / e).resolve() for e in _as_list(config.get("entries", []))],
        infer_entries=config.get("infer_entries", True),
        include_ignored=config.get("include_ignored", False),
        policy=get_policy(config),
        workers=int(config.get("workers", 1)),
        advisories=advisories,
        sources=sources,
    )


def _find_tsconfig(root: Path, configured: str | None) -> Path | None:
    if configured:
        path = root / configured
        return path if path.exists() else None
    for name in (TSCONFIG_FILE, JSCONFIG_FILE):
        path = root / name
        if path.exists():
            return path
    return None


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]
