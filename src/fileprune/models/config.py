"""Data models for analysis configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

# Probing order used when resolving extensionless specifiers
DEFAULT_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx", ".d.ts"]

# Extensions of files considered during discovery
DEFAULT_SOURCE_EXTENSIONS = [".js", ".jsx", ".ts", ".tsx"]

DEFAULT_INCLUDE = ["src/**/*"]


@dataclass(frozen=True)
class AliasRule:
    """A path alias such as ``"@/*": ["src/*"]``."""

    pattern: str
    targets: tuple[str, ...]
    # Directory the targets are relative to; None uses the resolver default
    base: Path | None = None

    def __post_init__(self) -> None:
        if self.pattern.count("*") > 1:
            raise ValueError(f"Alias pattern may contain at most one wildcard: {self.pattern}")

    @property
    def regex(self) -> re.Pattern[str]:
        """Anchored matcher with the wildcard as the only capturing group."""
        head, star, tail = self.pattern.partition("*")
        if not star:
            return re.compile(f"^{re.escape(head)}$")
        return re.compile(f"^{re.escape(head)}(.*){re.escape(tail)}$")

    def expand(self, specifier: str) -> list[str]:
        """Return the substituted targets for a matching specifier, in order."""
        match = self.regex.match(specifier)
        if match is None:
            return []
        fragment = match.group(1) if match.groups() else ""
        return [target.replace("*", fragment, 1) for target in self.targets]


@dataclass(frozen=True)
class InclusionPolicy:
    """Which edge kinds count when deciding that a file is used."""

    follow_type_only_edges: bool = True
    treat_type_only_as_reference: bool = True
    use_external_used_set: bool = False

    @classmethod
    def strict(cls) -> InclusionPolicy:
        """Only runtime references keep a file alive."""
        return cls(follow_type_only_edges=False, treat_type_only_as_reference=False)

    def to_dict(self) -> dict:
        return {
            "follow_type_only_edges": self.follow_type_only_edges,
            "treat_type_only_as_reference": self.treat_type_only_as_reference,
            "use_external_used_set": self.use_external_used_set,
        }


@dataclass
class ResolverConfig:
    """Inputs the module resolver depends on."""

    root: Path
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    aliases: list[AliasRule] = field(default_factory=list)
    base_url: Path | None = None

    @property
    def alias_base(self) -> Path:
        return self.base_url or self.root


@dataclass
class AnalysisConfig:
    """Fully merged configuration for one analysis run."""

    root: Path
    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: list[str] = field(default_factory=list)
    source_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_EXTENSIONS))
    resolve_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    aliases: list[AliasRule] = field(default_factory=list)
    base_url: Path | None = None
    entries: list[Path] = field(default_factory=list)
    infer_entries: bool = True
    include_ignored: bool = False
    policy: InclusionPolicy = field(default_factory=InclusionPolicy)
    workers: int = 1
    advisories: list[str] = field(default_factory=list)  # ConfigurationMissing notes
    sources: list[str] = field(default_factory=list)

    @property
    def resolver_config(self) -> ResolverConfig:
        return ResolverConfig(
            root=self.root,
            extensions=list(self.resolve_extensions),
            aliases=list(self.aliases),
            base_url=self.base_url,
        )
