"""
Configuration management for Prepr → Content Engine sync.

Loads settings from environment variables and provides
structured configuration for all sync components.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_ENDPOINT = "https://graphql.prepr.io/"


@dataclass
class Config:
    """
    Central configuration for the sync system.

    Loads from environment variables and provides defaults.
    The API token is loaded from env vars - never hardcoded.
    """

    # Prepr settings
    api_token: str
    endpoint: str = DEFAULT_ENDPOINT

    # Local store location
    sync_dir: Path = field(default_factory=lambda: Path.cwd() / ".prepr-sync")

    # Behavior
    debug: bool = False

    @property
    def nodes_file(self) -> Path:
        """Path to the local node store."""
        return self.sync_dir / "nodes.json"

    @property
    def cache_file(self) -> Path:
        """Path to the local cache (holds the sync cursor)."""
        return self.sync_dir / "cache.json"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Config":
        """
        Load configuration from environment variables.

        Args:
            env_file: Optional path to .env file. If not provided,
                     looks for .env in current directory.

        Returns:
            Configured Config instance.

        Raises:
            ValueError: If required environment variables are missing.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        api_token = os.getenv("PREPR_TOKEN", "").strip()
        if not api_token:
            raise ValueError(
                "PREPR_TOKEN environment variable is required.\n"
                "Create one under Settings > Access tokens in your Prepr environment."
            )

        endpoint = os.getenv("PREPR_ENDPOINT") or DEFAULT_ENDPOINT

        sync_dir_str = os.getenv("PREPR_SYNC_DIR")
        sync_dir = Path(sync_dir_str) if sync_dir_str else Path.cwd() / ".prepr-sync"

        debug = os.getenv("DEBUG", "false").lower() == "true"

        return cls(
            api_token=api_token,
            endpoint=endpoint,
            sync_dir=sync_dir,
            debug=debug,
        )

    def __post_init__(self):
        """Normalize field types after initialization."""
        if isinstance(self.sync_dir, str):
            self.sync_dir = Path(self.sync_dir)
