"""README generator with metrics-informed provider failover.

The ReadmeGenerator owns an ordered list of providers. For each request it
starts from the best-performing provider the PerformanceMonitor knows
about, skips providers the monitor says to avoid, and moves on to the next
provider on any failure. It tries at most one slot per configured
provider, so a request always terminates.
"""

import logging
from datetime import timedelta
from typing import List, Optional

from ..gateway import (
    BaseProvider,
    GeminiProvider,
    OpenRouterProvider,
    ProviderError,
    RateLimitError,
)
from ..performance import PerformanceMonitor
from ..unified_config import UnifiedConfig, get_effective_config
from .errors import ConfigurationError, ExhaustionError, NoAvailableProviderError
from .postprocess import post_process_markdown
from .prompt import build_prompt
from .types import GenerationOptions, GenerationResult, RepositoryMetadata

logger = logging.getLogger(__name__)


class ReadmeGenerator:
    """Generates READMEs across interchangeable providers.

    Example:
        monitor = PerformanceMonitor()
        generator = ReadmeGenerator(
            providers=[GeminiProvider(api_key=...), OpenRouterProvider(api_key=...)],
            monitor=monitor,
        )
        result = await generator.generate_readme(metadata)
    """

    def __init__(
        self,
        providers: List[BaseProvider],
        monitor: Optional[PerformanceMonitor] = None,
        default_provider: Optional[str] = None,
    ):
        """Initialize the generator.

        Args:
            providers: Providers in failover order. May be empty; generation
                then fails with ConfigurationError.
            monitor: Shared performance monitor. A fresh one is created if
                not given.
            default_provider: Name of the provider to start from when the
                monitor has no preference. Defaults to the first provider.
        """
        self.monitor = monitor or PerformanceMonitor()
        self.providers = list(providers)
        for provider in self.providers:
            provider.attach_monitor(self.monitor)

        self._default_index = 0
        if default_provider is not None:
            index = self._index_of(default_provider)
            if index is None:
                raise ConfigurationError(
                    f"Default provider '{default_provider}' is not configured"
                )
            self._default_index = index
        self._current_index = self._default_index

    def _index_of(self, name: str) -> Optional[int]:
        for index, provider in enumerate(self.providers):
            if provider.name == name:
                return index
        return None

    def _next_index(self, index: int) -> int:
        return (index + 1) % len(self.providers)

    def _starting_index(self) -> int:
        best = self.monitor.get_best_provider()
        if best is not None:
            index = self._index_of(best)
            if index is not None:
                return index
        return self._default_index

    async def generate_readme(
        self,
        metadata: RepositoryMetadata,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """Generate a README, failing over between providers.

        Args:
            metadata: Repository metadata for the prompt.
            options: Section toggles and tone.

        Returns:
            GenerationResult from the first provider that succeeds.

        Raises:
            ConfigurationError: No providers are configured.
            ExhaustionError: Every provider failed or was skipped.
        """
        if not self.providers:
            raise ConfigurationError(
                "No AI providers configured. Set GEMINI_API_KEY or OPENROUTER_API_KEY."
            )

        prompt = build_prompt(metadata, options)
        index = self._starting_index()
        attempts = len(self.providers)
        last_error: Optional[str] = None

        for attempt in range(attempts):
            provider = self.providers[index]
            self._current_index = index

            if self.monitor.should_avoid_provider(provider.name):
                logger.info(f"Skipping {provider.name} due to recent failures")
                index = self._next_index(index)
                continue

            try:
                logger.info(f"Attempting README generation with {provider.name}...")
                markdown = await provider.generate(prompt)
            except ProviderError as e:
                last_error = str(e)
                if isinstance(e, RateLimitError):
                    logger.warning(
                        f"{provider.name} rate limit exceeded, switching to next provider..."
                    )
                else:
                    logger.error(f"{provider.name} failed: {e}")
                index = self._next_index(index)
                self._current_index = index

                if attempt == attempts - 1:
                    raise ExhaustionError(
                        f"All AI providers failed. Last error: {last_error}",
                        last_error=last_error,
                    ) from e
                continue

            return GenerationResult(
                markdown=post_process_markdown(markdown),
                provider=provider.name,
                generated_at=self.monitor.now(),
            )

        # Final slot was a skip
        if last_error is not None:
            raise ExhaustionError(
                f"All AI providers failed. Last error: {last_error}",
                last_error=last_error,
            )
        raise NoAvailableProviderError()

    def get_current_provider(self) -> str:
        """Return the name of the provider at the cursor, or "None"."""
        if not self.providers:
            return "None"
        return self.providers[self._current_index].name

    def get_available_providers(self) -> List[str]:
        """Return configured provider names in failover order."""
        return [p.name for p in self.providers]

    def has_available_providers(self) -> bool:
        return len(self.providers) > 0


def create_monitor(config: UnifiedConfig) -> PerformanceMonitor:
    """Create a PerformanceMonitor with the configured health policy."""
    settings = config.monitor
    return PerformanceMonitor(
        max_events=settings.max_events,
        min_requests=settings.min_requests,
        min_success_rate=settings.min_success_rate,
        rate_limit_cooldown=timedelta(seconds=settings.rate_limit_cooldown_seconds),
    )


def build_providers(config: UnifiedConfig) -> List[BaseProvider]:
    """Instantiate the configured providers that have credentials, in order."""
    providers: List[BaseProvider] = []

    for name in config.generation.provider_order:
        if name == "gemini":
            settings = config.providers.gemini
            provider: BaseProvider = GeminiProvider(
                api_key=config.get_api_key("gemini"),
                model=settings.model,
                base_url=settings.base_url,
                timeout=settings.timeout_seconds,
            )
        elif name == "openrouter":
            settings = config.providers.openrouter
            provider = OpenRouterProvider(
                api_key=config.get_api_key("openrouter"),
                model=settings.model,
                base_url=settings.base_url,
                timeout=settings.timeout_seconds,
                max_tokens=settings.max_tokens,
                temperature=settings.temperature,
                referer=settings.referer,
                app_title=settings.app_title,
            )
        else:
            continue

        if not settings.enabled:
            logger.debug(f"Provider {name} disabled in configuration")
            continue
        if not provider.is_available():
            logger.debug(f"Provider {name} has no API key, skipping")
            continue
        providers.append(provider)

    return providers


def create_readme_generator(
    config: Optional[UnifiedConfig] = None,
    monitor: Optional[PerformanceMonitor] = None,
) -> ReadmeGenerator:
    """Create a ReadmeGenerator from configuration.

    Credentials are resolved once here and not re-read per request.

    Raises:
        ConfigurationError: No provider has a credential.
    """
    config = config or get_effective_config()
    providers = build_providers(config)

    if not providers:
        raise ConfigurationError(
            "No AI providers configured. Please set GEMINI_API_KEY or "
            "OPENROUTER_API_KEY environment variables."
        )

    default_provider = None
    if config.generation.default_provider is not None:
        wanted = config.generation.default_provider
        default_provider = next(
            (p.name for p in providers if p.name.lower() == wanted), None
        )

    monitor = monitor or create_monitor(config)
    logger.info(f"README generator configured with providers: {[p.name for p in providers]}")
    return ReadmeGenerator(providers=providers, monitor=monitor, default_provider=default_provider)
