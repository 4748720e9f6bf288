"""README generation with provider failover.

Usage:
    from readmegen.generator import RepositoryMetadata, create_readme_generator

    generator = create_readme_generator()
    result = await generator.generate_readme(RepositoryMetadata(name="my-repo"))
    print(result.provider, result.markdown)
"""

from .errors import (
    ConfigurationError,
    ExhaustionError,
    GeneratorError,
    NoAvailableProviderError,
)
from .orchestrator import (
    ReadmeGenerator,
    build_providers,
    create_monitor,
    create_readme_generator,
)
from .postprocess import post_process_markdown
from .prompt import build_prompt
from .types import (
    GenerationOptions,
    GenerationResult,
    LicenseInfo,
    PackageManager,
    RepositoryMetadata,
)

__all__ = [
    # Types (types.py)
    "RepositoryMetadata",
    "LicenseInfo",
    "PackageManager",
    "GenerationOptions",
    "GenerationResult",
    # Errors (errors.py)
    "GeneratorError",
    "ConfigurationError",
    "ExhaustionError",
    "NoAvailableProviderError",
    # Pure transforms
    "build_prompt",
    "post_process_markdown",
    # Orchestration (orchestrator.py)
    "ReadmeGenerator",
    "build_providers",
    "create_monitor",
    "create_readme_generator",
]
