"""Unified YAML configuration for readmegen.

Configuration Priority: Environment Variables > YAML > Defaults

Example YAML configuration (readmegen.yaml):

    readmegen:
      providers:
        gemini:
          model: gemini-1.5-flash
          timeout_seconds: 60
        openrouter:
          model: anthropic/claude-3.5-sonnet
          api_key: ${OPENROUTER_API_KEY}
      generation:
        provider_order: [gemini, openrouter]
        default_provider: gemini
      monitor:
        max_events: 100
        rate_limit_cooldown_seconds: 300
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

load_dotenv()

KNOWN_PROVIDERS = ("gemini", "openrouter")


# =============================================================================
# Sub-configuration Models
# =============================================================================


class GeminiProviderConfig(BaseModel):
    """Configuration for the direct Gemini provider."""

    enabled: bool = True
    api_key: Optional[str] = None
    model: str = "gemini-1.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = Field(default=60.0, ge=1.0, le=600.0)


class OpenRouterProviderConfig(BaseModel):
    """Configuration for the OpenRouter provider."""

    enabled: bool = True
    api_key: Optional[str] = None
    model: str = "anthropic/claude-3.5-sonnet"
    base_url: str = "https://openrouter.ai/api/v1/chat/completions"
    timeout_seconds: float = Field(default=60.0, ge=1.0, le=600.0)
    max_tokens: int = Field(default=4000, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    referer: str = "http://localhost:8000"
    app_title: str = "readmegen"


class ProvidersConfig(BaseModel):
    """Per-provider settings."""

    gemini: GeminiProviderConfig = Field(default_factory=GeminiProviderConfig)
    openrouter: OpenRouterProviderConfig = Field(default_factory=OpenRouterProviderConfig)


class GenerationConfig(BaseModel):
    """Provider ordering for README generation."""

    provider_order: List[str] = Field(default_factory=lambda: list(KNOWN_PROVIDERS))
    default_provider: Optional[str] = None

    @field_validator("provider_order")
    @classmethod
    def validate_provider_order(cls, v: List[str]) -> List[str]:
        normalized = [name.strip().lower() for name in v if name.strip()]
        unknown = [name for name in normalized if name not in KNOWN_PROVIDERS]
        if unknown:
            raise ValueError(f"unknown providers {unknown}, must be in {KNOWN_PROVIDERS}")
        if len(set(normalized)) != len(normalized):
            raise ValueError("provider_order must not contain duplicates")
        return normalized

    @model_validator(mode="after")
    def validate_default_provider(self) -> "GenerationConfig":
        if self.default_provider is not None:
            self.default_provider = self.default_provider.strip().lower()
            if self.default_provider not in self.provider_order:
                raise ValueError(
                    f"default_provider '{self.default_provider}' is not in provider_order"
                )
        return self


class MonitorConfig(BaseModel):
    """Provider health policy."""

    max_events: int = Field(default=100, ge=1)
    min_requests: int = Field(default=5, ge=1)
    min_success_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    rate_limit_cooldown_seconds: int = Field(default=300, ge=0)


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)


class CredentialsConfig(BaseModel):
    """Configuration for API credentials."""

    gemini: Optional[str] = None
    openrouter: Optional[str] = None


# =============================================================================
# Main Unified Configuration
# =============================================================================


class UnifiedConfig(BaseModel):
    """Unified configuration for readmegen."""

    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)

    def get_api_key(self, provider: str) -> Optional[str]:
        """Return the credential for a provider.

        Resolution: credentials section (filled from env), then the
        provider section's api_key. Blank values count as missing.
        """
        for candidate in (
            getattr(self.credentials, provider, None),
            getattr(getattr(self.providers, provider, None), "api_key", None),
        ):
            if candidate and candidate.strip():
                return candidate.strip()
        return None

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        config_dict = {"readmegen": self.to_dict()}
        return yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return self.model_dump(exclude_none=True)


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute environment variables in configuration values.

    Supports ${VAR_NAME} syntax.
    """
    if isinstance(value, str):
        pattern = r"\$\{([^}]+)\}"
        for var_name in re.findall(pattern, value):
            value = value.replace(f"${{{var_name}}}", os.getenv(var_name, ""))
        return value
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def load_config(
    config_path: Optional[Path] = None,
    strict: bool = False,
) -> UnifiedConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file. If None, uses defaults.
        strict: If True, raise ValueError on validation errors. If False,
                fall back to defaults on errors.

    Returns:
        UnifiedConfig object

    Raises:
        ValueError: If strict=True and configuration is invalid
    """
    if config_path is None or not config_path.exists():
        return UnifiedConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            return UnifiedConfig()

        raw_config = _substitute_env_vars(raw_config)
        return UnifiedConfig(**(raw_config.get("readmegen") or {}))

    except yaml.YAMLError as e:
        if strict:
            raise ValueError(f"Invalid YAML: {e}")
        logger.warning(f"Ignoring invalid YAML in {config_path}: {e}")
        return UnifiedConfig()
    except Exception as e:
        if strict:
            raise ValueError(f"Configuration error: {e}")
        logger.warning(f"Ignoring invalid configuration in {config_path}: {e}")
        return UnifiedConfig()


def _find_config_file() -> Optional[Path]:
    """Find configuration file in standard locations.

    Search order:
    1. READMEGEN_CONFIG environment variable
    2. ./readmegen.yaml (current directory)
    3. ~/.config/readmegen/readmegen.yaml
    """
    env_path = os.getenv("READMEGEN_CONFIG")
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    cwd_path = Path.cwd() / "readmegen.yaml"
    if cwd_path.exists():
        return cwd_path

    home_path = Path.home() / ".config" / "readmegen" / "readmegen.yaml"
    if home_path.exists():
        return home_path

    return None


def _apply_env_overrides(config: UnifiedConfig) -> UnifiedConfig:
    """Apply environment variable overrides to configuration.

    Environment variables take precedence over YAML configuration.
    """
    config_dict = config.to_dict()

    # Credential overrides (always from env for security)
    for provider in KNOWN_PROVIDERS:
        key = os.getenv(f"{provider.upper()}_API_KEY")
        if key:
            config_dict.setdefault("credentials", {})[provider] = key

    order_env = os.getenv("READMEGEN_PROVIDER_ORDER")
    if order_env:
        order = [p.strip() for p in order_env.split(",") if p.strip()]
        config_dict.setdefault("generation", {})["provider_order"] = order
        # Drop a YAML default that the new order no longer contains
        default = config_dict["generation"].get("default_provider")
        if default and default not in [p.lower() for p in order]:
            config_dict["generation"].pop("default_provider")

    default_env = os.getenv("READMEGEN_DEFAULT_PROVIDER")
    if default_env:
        config_dict.setdefault("generation", {})["default_provider"] = default_env

    timeout_env = os.getenv("READMEGEN_PROVIDER_TIMEOUT")
    if timeout_env:
        for provider in KNOWN_PROVIDERS:
            config_dict.setdefault("providers", {}).setdefault(provider, {})[
                "timeout_seconds"
            ] = float(timeout_env)

    host_env = os.getenv("READMEGEN_HOST")
    if host_env:
        config_dict.setdefault("server", {})["host"] = host_env
    port_env = os.getenv("READMEGEN_PORT")
    if port_env:
        config_dict.setdefault("server", {})["port"] = int(port_env)

    return UnifiedConfig(**config_dict)


def get_effective_config(config_path: Optional[Path] = None) -> UnifiedConfig:
    """Get the effective configuration with all overrides applied.

    Priority: Environment Variables > YAML > Defaults

    Args:
        config_path: Optional explicit path to configuration file.
                    If None, searches standard locations.

    Returns:
        UnifiedConfig with all overrides applied
    """
    if config_path is None:
        config_path = _find_config_file()

    config = load_config(config_path)
    return _apply_env_overrides(config)
