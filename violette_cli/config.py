"""
CLI Configuration

Locates a configuration file for the CLI and layers environment overrides
on top of it. The settings themselves live in core.config.RuntimeConfig.
"""

from __future__ import annotations

from pathlib import Path

from core.config import RuntimeConfig


# Searched in order when --config is not given
DEFAULT_CONFIG_PATHS = (
    Path("violette.yaml"),
    Path("violette.json"),
    Path(".violette.json"),
    Path.home() / ".config" / "violette" / "config.yaml",
)


def find_config_file(config_path: Path | None = None) -> Path | None:
    if config_path is not None:
        return config_path
    for candidate in DEFAULT_CONFIG_PATHS:
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Path | None = None) -> RuntimeConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings.

    Raises:
        FileNotFoundError: If an explicit config path does not exist.
    """
    path = find_config_file(config_path)
    config = RuntimeConfig.from_file(path) if path is not None else RuntimeConfig()
    return config.with_env_overrides()


def get_default_config_template() -> str:
    """Get a template configuration file (YAML)."""
    return """# Violette ledger core configuration
ledger:
  url: https://s.altnet.rippletest.net:51234
  testnet: true
  faucet_url: https://faucet.altnet.rippletest.net/accounts
  explorer_url: https://testnet.xrpl.org
  timeout: 20.0
  max_retries: 3
  retry_delay: 1.0

codec:
  document_limit: 256
  reference_base_url: https://api.violette.app/did

http:
  timeout: 20.0
  proxy: null

storage:
  records_dir: ./violette-records

log_level: INFO
"""
