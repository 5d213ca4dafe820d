"""
Configuration for ccode-reader.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

PLUGIN_NAME = "datasette-ccode-reader"


@dataclass
class ProvidersConfig:
    """Enable/disable individual metadata providers."""

    google_books: bool = True
    openbd: bool = True
    ndl: bool = True
    openlibrary: bool = False  # Sparse coverage for Japanese titles

    def enabled_names(self) -> list[str]:
        """Names of enabled providers, in display order."""
        names = []
        if self.google_books:
            names.append("google_books")
        if self.openbd:
            names.append("openbd")
        if self.ndl:
            names.append("ndl")
        if self.openlibrary:
            names.append("openlibrary")
        return names


@dataclass
class HttpConfig:
    """Outbound HTTP settings shared by all providers."""

    timeout_seconds: float = 10.0
    user_agent: str = "ccode-reader/0.1.0"


@dataclass
class ReaderConfig:
    """Complete ccode-reader configuration."""

    lenient_ccode: bool = False  # Fall back to last four digits anywhere
    fetch_metadata: bool = True

    providers: ProvidersConfig = field(default_factory=ProvidersConfig)
    http: HttpConfig = field(default_factory=HttpConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReaderConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if "lenient_ccode" in data:
            config.lenient_ccode = data["lenient_ccode"]
        if "fetch_metadata" in data:
            config.fetch_metadata = data["fetch_metadata"]

        if "providers" in data:
            providers = data["providers"]
            config.providers = ProvidersConfig(
                google_books=providers.get("google_books", True),
                openbd=providers.get("openbd", True),
                ndl=providers.get("ndl", True),
                openlibrary=providers.get("openlibrary", False),
            )

        if "http" in data:
            http = data["http"]
            config.http = HttpConfig(
                timeout_seconds=http.get("timeout_seconds", 10.0),
                user_agent=http.get("user_agent", config.http.user_agent),
            )

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "ReaderConfig":
        """Load config from a YAML file (datasette.yaml format)."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # Look for config under plugins.datasette-ccode-reader
        plugin_config = data.get("plugins", {}).get(PLUGIN_NAME, {})
        return cls.from_dict(plugin_config)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "lenient_ccode": self.lenient_ccode,
            "fetch_metadata": self.fetch_metadata,
            "providers": {
                "google_books": self.providers.google_books,
                "openbd": self.providers.openbd,
                "ndl": self.providers.ndl,
                "openlibrary": self.providers.openlibrary,
            },
            "http": {
                "timeout_seconds": self.http.timeout_seconds,
                "user_agent": self.http.user_agent,
            },
        }
