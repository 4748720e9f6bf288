"""HTTP server for readmegen.

Exposes README generation and provider performance diagnostics.

Design principles:
- One PerformanceMonitor per app, shared by every request
- The generator is built on first use and reused; credentials are read once
- No persistence: caching generated READMEs is the caller's job

Usage:
    pip install "readmegen[http]"
    readmegen-serve

Or programmatically:
    from readmegen.http_server import app
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
"""

import logging
import os
import threading
from typing import Any, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from readmegen.generator import (
    ConfigurationError,
    ExhaustionError,
    GenerationOptions,
    ReadmeGenerator,
    RepositoryMetadata,
    create_monitor,
    create_readme_generator,
)
from readmegen.performance import PerformanceMonitor, is_rate_limit_message
from readmegen.unified_config import UnifiedConfig, get_effective_config

logger = logging.getLogger(__name__)

RATE_LIMIT_RETRY_AFTER = 60

# Security scheme for Bearer token authentication
security = HTTPBearer(auto_error=False)


def get_api_token() -> Optional[str]:
    """Get the configured API token from environment.

    Returns None if no token is configured, meaning auth is optional.
    """
    token = os.environ.get("READMEGEN_API_TOKEN")
    # Treat empty string as not configured
    return token if token else None


async def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> None:
    """Verify the Bearer token if READMEGEN_API_TOKEN is configured.

    Raises:
        HTTPException: 401 if token is required but missing/invalid
    """
    api_token = get_api_token()

    if api_token is None:
        return

    if credentials is None or credentials.credentials != api_token:
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing API token. Provide Authorization: Bearer <token>",
        )


auth_dependency = Depends(verify_token)


# =============================================================================
# Request / Response Models
# =============================================================================


class LicenseModel(BaseModel):
    name: str
    key: str = ""


class PackageManagerModel(BaseModel):
    type: str
    install_command: str
    config_file: str = ""
    run_command: Optional[str] = None


class RepositoryMetadataModel(BaseModel):
    """Repository metadata, already extracted by the caller."""

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    language: Optional[str] = None
    topics: List[str] = Field(default_factory=list)
    license: Optional[LicenseModel] = None
    package_manager: Optional[PackageManagerModel] = None
    dependencies: List[str] = Field(default_factory=list)
    dev_dependencies: List[str] = Field(default_factory=list)
    scripts: Dict[str, str] = Field(default_factory=dict)
    stars: int = Field(default=0, ge=0)
    forks: int = Field(default=0, ge=0)
    open_issues: int = Field(default=0, ge=0)
    languages: Dict[str, int] = Field(default_factory=dict)
    contributor_count: int = Field(default=0, ge=0)
    badges: List[str] = Field(default_factory=list)
    has_readme: Optional[bool] = None
    existing_readme: Optional[str] = None


class GenerationOptionsModel(BaseModel):
    include_installation: bool = True
    include_usage: bool = True
    include_contributing: bool = True
    include_license: bool = True
    include_badges: bool = True
    tone: Literal["professional", "casual", "technical"] = "professional"


class GenerateRequest(BaseModel):
    """Request body for README generation."""

    metadata: RepositoryMetadataModel
    options: GenerationOptionsModel = Field(default_factory=GenerationOptionsModel)


class GenerateResponse(BaseModel):
    """Generated README."""

    markdown: str
    provider: str
    generated_at: str
    cached: bool = False


class ProvidersResponse(BaseModel):
    providers: List[str]
    current_provider: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str


# =============================================================================
# App Composition
# =============================================================================


class GeneratorHolder:
    """Builds the ReadmeGenerator once, on first use."""

    def __init__(
        self,
        config: UnifiedConfig,
        monitor: PerformanceMonitor,
        generator: Optional[ReadmeGenerator] = None,
    ):
        self._config = config
        self._monitor = monitor
        self._generator = generator
        self._lock = threading.Lock()

    def get(self) -> ReadmeGenerator:
        with self._lock:
            if self._generator is None:
                self._generator = create_readme_generator(self._config, self._monitor)
            return self._generator


def get_monitor(request: Request) -> PerformanceMonitor:
    return request.app.state.monitor


def get_generator(request: Request) -> ReadmeGenerator:
    """Return the app's generator.

    Raises:
        HTTPException: 503 if no provider is configured.
    """
    try:
        return request.app.state.generator_holder.get()
    except ConfigurationError as e:
        logger.error(f"README generator unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))


def create_app(
    config: Optional[UnifiedConfig] = None,
    monitor: Optional[PerformanceMonitor] = None,
    generator: Optional[ReadmeGenerator] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        config: Configuration; resolved from YAML/env when omitted.
        monitor: Process-scoped monitor; created from config when omitted.
        generator: Prebuilt generator (its monitor is used); mainly for tests.
    """
    config = config or get_effective_config()
    if generator is not None:
        monitor = generator.monitor
    monitor = monitor or create_monitor(config)

    app = FastAPI(
        title="readmegen",
        description="README generation with AI provider failover",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.config = config
    app.state.monitor = monitor
    app.state.generator_holder = GeneratorHolder(config, monitor, generator)

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", service="readmegen")

    @app.post(
        "/v1/readme/generate",
        response_model=GenerateResponse,
        tags=["Generation"],
        dependencies=[auth_dependency],
    )
    async def generate_readme(
        body: GenerateRequest,
        generator: ReadmeGenerator = Depends(get_generator),
    ) -> GenerateResponse:
        """Generate a README for already-extracted repository metadata."""
        metadata = RepositoryMetadata.from_dict(body.metadata.model_dump())
        options = GenerationOptions(**body.options.model_dump())

        try:
            result = await generator.generate_readme(metadata, options)
        except ConfigurationError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except ExhaustionError as e:
            logger.error(f"README generation failed for {metadata.name}: {e}")
            if is_rate_limit_message(str(e)):
                raise HTTPException(
                    status_code=429,
                    detail={
                        "error": "AI service rate limit exceeded. Please try again later.",
                        "retry_after": RATE_LIMIT_RETRY_AFTER,
                    },
                    headers={"Retry-After": str(RATE_LIMIT_RETRY_AFTER)},
                )
            raise HTTPException(status_code=502, detail=str(e))

        return GenerateResponse(
            markdown=result.markdown,
            provider=result.provider,
            generated_at=result.generated_at.isoformat(),
            cached=False,
        )

    @app.get(
        "/v1/providers",
        response_model=ProvidersResponse,
        tags=["Generation"],
        dependencies=[auth_dependency],
    )
    async def list_providers(
        generator: ReadmeGenerator = Depends(get_generator),
    ) -> ProvidersResponse:
        return ProvidersResponse(
            providers=generator.get_available_providers(),
            current_provider=generator.get_current_provider(),
        )

    @app.get("/v1/performance", tags=["Performance"], dependencies=[auth_dependency])
    async def get_performance(
        provider: Optional[str] = Query(default=None),
        monitor: PerformanceMonitor = Depends(get_monitor),
    ) -> Dict[str, Any]:
        """Provider performance diagnostics.

        With `provider`, returns that provider's metrics; otherwise a summary
        of every tracked provider plus the 20 most recent events.
        """
        if provider:
            metrics = monitor.get_provider_metrics(provider)
            if metrics is None:
                raise HTTPException(status_code=404, detail="Provider not found")
            return {
                "provider": metrics.to_dict(),
                "should_avoid": monitor.should_avoid_provider(provider),
                "success_rate": monitor.get_success_rate(provider),
            }

        providers = []
        for metrics in monitor.get_all_metrics():
            entry = metrics.to_dict()
            entry["success_rate"] = monitor.get_success_rate(metrics.provider)
            entry["should_avoid"] = monitor.should_avoid_provider(metrics.provider)
            providers.append(entry)

        return {
            "summary": monitor.get_summary().to_dict(),
            "providers": providers,
            "best_provider": monitor.get_best_provider(),
            "recent_events": [e.to_dict() for e in monitor.get_recent_events(20)],
        }

    @app.delete("/v1/performance", tags=["Performance"], dependencies=[auth_dependency])
    async def reset_performance(
        provider: Optional[str] = Query(default=None),
        monitor: PerformanceMonitor = Depends(get_monitor),
    ) -> Dict[str, str]:
        if provider:
            monitor.reset_provider_metrics(provider)
            return {"message": f"Metrics reset for provider: {provider}"}

        monitor.clear_all_metrics()
        return {"message": "All performance metrics cleared"}


_app: Optional[FastAPI] = None
_app_lock = threading.Lock()


def get_app() -> FastAPI:
    """Return the process-wide app, building it on first use."""
    global _app
    with _app_lock:
        if _app is None:
            _app = create_app()
        return _app


def __getattr__(name: str) -> Any:
    # `readmegen.http_server:app` for ASGI servers, resolved lazily
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=os.environ.get("READMEGEN_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = get_app()
    config = app.state.config
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
