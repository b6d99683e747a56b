"""
Text Domain Configuration

The rule takes two values: the text domain to look for and the one to put
in its place. They come from command line flags, environment variables, or
a mapping handed over by an embedding tool. There is no config file.
"""

import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional


# Environment variables consulted by TextDomainConfig.from_env()
ENV_ORIGINAL = "WPTEXTDOMAIN_ORIGINAL"
ENV_TARGET = "WPTEXTDOMAIN_TARGET"

# Accepted option names, including the camelCase ones used in ruleset properties
OPTION_ALIASES: Dict[str, str] = {
    "original_text_domain": "original_text_domain",
    "originalTextDomain": "original_text_domain",
    "target_text_domain": "target_text_domain",
    "targetTextDomain": "target_text_domain",
}


class ConfigError(ValueError):
    """Invalid text domain configuration."""


@dataclass(frozen=True)
class TextDomainConfig:
    """Source and target text domains for one lint run."""

    original_text_domain: str = ""
    target_text_domain: str = ""

    def __post_init__(self) -> None:
        for name in ("original_text_domain", "target_text_domain"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ConfigError(f"{name} must be a string, got {type(value).__name__}")
        # The target is written out between single quotes as is
        target = self.target_text_domain
        if "'" in target or target.endswith("\\"):
            raise ConfigError(
                f"target_text_domain cannot contain a single quote or end in a backslash: {target!r}"
            )

    @property
    def enabled(self) -> bool:
        """The rule does nothing until a target domain is set."""
        return bool(self.target_text_domain)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "TextDomainConfig":
        """Build from a mapping of option names (snake_case or camelCase)."""
        kwargs: Dict[str, Any] = {}
        for key, value in values.items():
            if key not in OPTION_ALIASES:
                raise ConfigError(f"Unknown option: {key}")
            kwargs[OPTION_ALIASES[key]] = value
        return cls(**kwargs)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TextDomainConfig":
        """Build from WPTEXTDOMAIN_ORIGINAL / WPTEXTDOMAIN_TARGET."""
        env = os.environ if environ is None else environ
        return cls(
            original_text_domain=env.get(ENV_ORIGINAL, ""),
            target_text_domain=env.get(ENV_TARGET, ""),
        )

    def with_overrides(self, original: Optional[str] = None,
                       target: Optional[str] = None) -> "TextDomainConfig":
        """Return a copy with any non-None value replaced."""
        changes = {}
        if original is not None:
            changes["original_text_domain"] = original
        if target is not None:
            changes["target_text_domain"] = target
        return replace(self, **changes)
