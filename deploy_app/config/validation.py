"""Configuration validation utilities."""

import re
from dataclasses import dataclass, fields
from typing import Any
from urllib.parse import urlparse

from .defaults import TransportParams

_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")
_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
_ENDPOINT_SCHEMES = ("http", "https", "ws", "wss")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_compiler(params: dict[str, Any]) -> list[ValidationError]:
        errors = []

        if "version" in params:
            value = params["version"]
            if not isinstance(value, str) or not _VERSION_RE.match(value):
                errors.append(ValidationError(
                    field="compiler.version",
                    message="Must be a version string like 0.8.24",
                    value=value
                ))

        if "artifacts_dir" in params:
            value = params["artifacts_dir"]
            if not isinstance(value, str) or not value:
                errors.append(ValidationError(
                    field="compiler.artifacts_dir",
                    message="Must be a non-empty path",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_network(params: dict[str, Any]) -> list[ValidationError]:
        errors = []

        value = params.get("name")
        if not isinstance(value, str) or not value:
            errors.append(ValidationError(
                field="network.name",
                message="Must be a non-empty string",
                value=value
            ))

        value = params.get("endpoint")
        if value is not None:
            parsed = urlparse(value) if isinstance(value, str) else None
            if parsed is None or parsed.scheme not in _ENDPOINT_SCHEMES or not parsed.netloc:
                errors.append(ValidationError(
                    field="network.endpoint",
                    message="Must be an http(s) or ws(s) URL",
                    value=value
                ))

        value = params.get("chain_id")
        if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value <= 0):
            errors.append(ValidationError(
                field="network.chain_id",
                message="Must be a positive integer",
                value=value
            ))

        return errors

    @staticmethod
    def validate_transport(params: dict[str, Any]) -> list[ValidationError]:
        errors = []

        known = {f.name for f in fields(TransportParams)}
        for key in params:
            if key not in known:
                errors.append(ValidationError(
                    field=f"transport.{key}",
                    message="Unknown transport option",
                    value=params[key]
                ))

        if "retry_attempts" in params:
            value = params["retry_attempts"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(ValidationError(
                    field="transport.retry_attempts",
                    message="Must be a non-negative integer",
                    value=value
                ))

        if "retry_delay_seconds" in params:
            value = params["retry_delay_seconds"]
            if not isinstance(value, (int, float)) or value < 0:
                errors.append(ValidationError(
                    field="transport.retry_delay_seconds",
                    message="Must be a non-negative number",
                    value=value
                ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not isinstance(value, int) or value <= 0:
                errors.append(ValidationError(
                    field="transport.timeout_seconds",
                    message="Must be a positive integer",
                    value=value
                ))

        value = params.get("gas_limit")
        if value is not None and (not isinstance(value, int) or value <= 0):
            errors.append(ValidationError(
                field="transport.gas_limit",
                message="Must be a positive integer",
                value=value
            ))

        value = params.get("gas_price_gwei")
        if value is not None and (not isinstance(value, (int, float)) or value <= 0):
            errors.append(ValidationError(
                field="transport.gas_price_gwei",
                message="Must be a positive number",
                value=value
            ))

        return errors

    @staticmethod
    def validate_credential(value: Any) -> list[ValidationError]:
        if value is None:
            return []
        if not isinstance(value, str) or not _KEY_RE.match(value.strip()):
            # Never echo key material back
            return [ValidationError(
                field="signing_credential",
                message="Must be a 32-byte hex private key",
                value="<redacted>"
            )]
        return []

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate a merged configuration dictionary."""
        errors = []
        errors.extend(ConfigValidator.validate_compiler(config.get("compiler", {})))
        errors.extend(ConfigValidator.validate_network(config.get("network", {})))
        errors.extend(ConfigValidator.validate_transport(config.get("transport", {})))
        errors.extend(ConfigValidator.validate_credential(config.get("signing_credential")))

        deployment = config.get("deployment", {})
        if not isinstance(deployment.get("deployments_dir"), str) or not deployment.get("deployments_dir"):
            errors.append(ValidationError(
                field="deployment.deployments_dir",
                message="Must be a non-empty path",
                value=deployment.get("deployments_dir")
            ))
        if not isinstance(deployment.get("journal_enabled"), bool):
            errors.append(ValidationError(
                field="deployment.journal_enabled",
                message="Must be a boolean",
                value=deployment.get("journal_enabled")
            ))

        return errors
