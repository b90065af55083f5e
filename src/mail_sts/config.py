"""
Configuration dataclasses for the MTA-STS lookup library.

This module defines the configuration structures for DNS resolution, policy
retrieval over HTTPS, the policy cache and logging, plus loaders that build
a SystemConfig from a JSON file or from environment variables.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .exceptions import ValidationError

DEFAULT_MAX_POLICY_SIZE = 65536

ENV_PREFIX = "MAIL_STS_"


@dataclass
class ResolverConfig:
    """DNS resolver settings."""

    nameservers: list[str] = field(default_factory=list)  # empty: system resolver
    timeout: float = 5.0
    lifetime: float = 10.0
    dnssec: bool = True


@dataclass
class HTTPConfig:
    """HTTPS client settings for policy retrieval."""

    timeout: float = 10.0
    verify_tls: bool = True
    user_agent: Optional[str] = None


@dataclass
class PolicyConfig:
    """Policy cache settings."""

    max_policy_size: Optional[int] = DEFAULT_MAX_POLICY_SIZE  # None disables the check
    missing_max_age: Optional[int] = None


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class SystemConfig:
    """Main configuration combining all sub-configurations."""

    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    http: HTTPConfig = field(default_factory=HTTPConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _parse_nameservers(value: str) -> list[str]:
    return [p for chunk in value.replace(";", ",").split(",") for p in chunk.split() if p]


def _parse_optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip().lower() in ("", "none", "off"):
        return None
    return int(value)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def config_from_dict(data: dict) -> SystemConfig:
    """
    Build a SystemConfig from a plain dictionary.

    Missing sections and keys fall back to their defaults.

    Raises:
        ValidationError: If a value has the wrong type
    """
    try:
        resolver_data = data.get("resolver", {})
        resolver = ResolverConfig(
            nameservers=list(resolver_data.get("nameservers", [])),
            timeout=float(resolver_data.get("timeout", 5.0)),
            lifetime=float(resolver_data.get("lifetime", 10.0)),
            dnssec=bool(resolver_data.get("dnssec", True)),
        )

        http_data = data.get("http", {})
        http = HTTPConfig(
            timeout=float(http_data.get("timeout", 10.0)),
            verify_tls=bool(http_data.get("verify_tls", True)),
            user_agent=http_data.get("user_agent"),
        )

        policy_data = data.get("policy", {})
        max_policy_size = policy_data.get("max_policy_size", DEFAULT_MAX_POLICY_SIZE)
        missing_max_age = policy_data.get("missing_max_age")
        policy = PolicyConfig(
            max_policy_size=int(max_policy_size) if max_policy_size is not None else None,
            missing_max_age=int(missing_max_age) if missing_max_age is not None else None,
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "info"),
            output_format=logging_data.get("output_format", "text"),
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise ValidationError(
            code="invalid_config",
            message=f"Invalid configuration: {e}",
            details={"error": str(e)},
        )

    return SystemConfig(
        resolver=resolver,
        http=http,
        policy=policy,
        logging=logging_config,
    )


def config_to_dict(config: SystemConfig) -> dict:
    """Convert a SystemConfig into the dictionary form read by config_from_dict."""
    return {
        "resolver": {
            "nameservers": list(config.resolver.nameservers),
            "timeout": config.resolver.timeout,
            "lifetime": config.resolver.lifetime,
            "dnssec": config.resolver.dnssec,
        },
        "http": {
            "timeout": config.http.timeout,
            "verify_tls": config.http.verify_tls,
            "user_agent": config.http.user_agent,
        },
        "policy": {
            "max_policy_size": config.policy.max_policy_size,
            "missing_max_age": config.policy.missing_max_age,
        },
        "logging": {
            "level": config.logging.level,
            "output_format": config.logging.output_format,
        },
    }


def load_config_from_file(config_path: Path) -> Optional[SystemConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig, or None if the file does not exist

    Raises:
        ValidationError: If the file is not valid JSON or has invalid values
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError as e:
        raise ValidationError(
            code="invalid_config",
            message=f"Could not parse config file: {e}",
            details={"config_path": str(config_path)},
        )

    if not isinstance(data, dict):
        raise ValidationError(
            code="invalid_config",
            message="Config file must contain a JSON object",
            details={"config_path": str(config_path)},
        )
    return config_from_dict(data)


def load_config_from_env(
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Path] = None,
) -> SystemConfig:
    """
    Load configuration from MAIL_STS_* environment variables.

    When ``env`` is not given, a ``.env`` file is loaded first and the
    process environment is read.

    Args:
        env: Optional mapping to read instead of os.environ
        dotenv_path: Optional explicit path of the .env file

    Returns:
        SystemConfig with defaults for every unset variable

    Raises:
        ValidationError: If a numeric variable cannot be parsed
    """
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ

    def get(name: str) -> Optional[str]:
        return env.get(ENV_PREFIX + name)

    config = SystemConfig()
    try:
        if get("NAMESERVERS"):
            config.resolver.nameservers = _parse_nameservers(get("NAMESERVERS"))
        if get("DNS_TIMEOUT"):
            config.resolver.timeout = float(get("DNS_TIMEOUT"))
        if get("DNS_LIFETIME"):
            config.resolver.lifetime = float(get("DNS_LIFETIME"))
        if get("DNSSEC") is not None:
            config.resolver.dnssec = _parse_bool(get("DNSSEC"))
        if get("HTTP_TIMEOUT"):
            config.http.timeout = float(get("HTTP_TIMEOUT"))
        if get("USER_AGENT"):
            config.http.user_agent = get("USER_AGENT")
        if get("MAX_POLICY_SIZE") is not None:
            config.policy.max_policy_size = _parse_optional_int(get("MAX_POLICY_SIZE"))
        if get("MISSING_MAX_AGE") is not None:
            config.policy.missing_max_age = _parse_optional_int(get("MISSING_MAX_AGE"))
    except ValueError as e:
        raise ValidationError(
            code="invalid_config",
            message=f"Invalid environment configuration: {e}",
            details={"error": str(e)},
        )

    if get("LOG_LEVEL"):
        config.logging.level = get("LOG_LEVEL").lower()
    if get("LOG_FORMAT"):
        config.logging.output_format = get("LOG_FORMAT").lower()

    return config
