"""Configuration loader with layered precedence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import dotenv_values

from ..errors import ConfigurationError
from .defaults import DefaultConfig, RuntimeConfig, TransportParams, get_default_config
from .validation import ConfigValidator

CREDENTIAL_ENV_KEY = "PRIVATE_KEY"


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 4-tier precedence."""

    config_path: Optional[Path]
    env_file: Optional[Path]
    defaults: DefaultConfig

    @classmethod
    def create(
        cls,
        config_path: Optional[Path] = None,
        env_file: Optional[Path] = None
    ) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        return cls(
            config_path=Path(config_path) if config_path else None,
            env_file=Path(env_file) if env_file else None,
            defaults=get_default_config(),
        )

    def load_file(self) -> dict[str, Any]:
        """Load the YAML configuration file, if one is configured and present."""
        if self.config_path is None or not self.config_path.exists():
            return {}

        try:
            with open(self.config_path) as f:
                document = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(f"Cannot read {self.config_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"{self.config_path} is not valid YAML: {e}") from e

        if not isinstance(document, dict):
            raise ConfigurationError(f"{self.config_path} must contain a mapping")
        return document

    def load_env(self, network_name: str) -> dict[str, Any]:
        """
        Read network endpoint and signing credential from the .env file.

        ``<NETWORK>_RPC_URL`` supplies the endpoint (``SEPOLIA_RPC_URL`` for
        the ``sepolia`` network) and ``PRIVATE_KEY`` the credential. Values
        are read from the file only; ``os.environ`` is left untouched.
        """
        if self.env_file is None or not self.env_file.exists():
            return {}

        values = dotenv_values(self.env_file)
        overrides: dict[str, Any] = {}

        endpoint = values.get(f"{network_name.upper().replace('-', '_')}_RPC_URL")
        if endpoint:
            overrides["network"] = {"endpoint": endpoint}

        credential = values.get(CREDENTIAL_ENV_KEY)
        if credential:
            overrides["signing_credential"] = credential

        return overrides

    def merge_config(
        self,
        network_name: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 4-tier precedence.

        Priority order:
        1. Explicit overrides, e.g. from the command line (highest priority)
        2. .env file values
        3. YAML file: global sections, then ``networks.<name>``
        4. Built-in defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        document = self.load_file()
        networks = document.get("networks", {}) or {}
        file_globals = {k: v for k, v in document.items() if k not in ("networks", "default_network")}
        config = self._deep_merge(config, file_globals)

        name = network_name or document.get("default_network") or config["network"]["name"]
        config["network"]["name"] = name
        config["network"] = self._deep_merge(config["network"], networks.get(name, {}) or {})

        config = self._deep_merge(config, self.load_env(name))

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def build_runtime_config(
        self,
        network_name: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> RuntimeConfig:
        """Merge, validate and freeze configuration for one run."""
        config = self.merge_config(network_name, overrides)

        errors = ConfigValidator.validate_config(config)
        if errors:
            details = "; ".join(f"{err.field}: {err.message}" for err in errors)
            raise ConfigurationError(f"Invalid configuration: {details}", errors=errors)

        return RuntimeConfig(
            compiler_version=config["compiler"]["version"],
            network_name=config["network"]["name"],
            network_endpoint=config["network"].get("endpoint"),
            signing_credential=normalize_credential(config.get("signing_credential")),
            chain_id=config["network"].get("chain_id"),
            artifacts_dir=config["compiler"]["artifacts_dir"],
            deployments_dir=config["deployment"]["deployments_dir"],
            journal_enabled=config["deployment"]["journal_enabled"],
            transport=TransportParams(**config["transport"]),
        )

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def normalize_credential(credential: Optional[str]) -> Optional[str]:
    """Return a private key with a single ``0x`` prefix, or None."""
    if not credential:
        return None
    credential = credential.strip()
    if credential.lower().startswith("0x"):
        credential = credential[2:]
    return f"0x{credential}"
