"""README generation request/response types.

RepositoryMetadata arrives already extracted from the code-hosting API;
nothing here inspects repositories.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

VALID_TONES = ("professional", "casual", "technical")


@dataclass
class LicenseInfo:
    """License detected for a repository."""

    name: str
    key: str = ""


@dataclass
class PackageManager:
    """Package manager detected for a repository.

    Attributes:
        type: Manager name (npm, pip, poetry, cargo, ...)
        config_file: File the manager was detected from
        install_command: Command to install dependencies
        run_command: Optional command to run the project
    """

    type: str
    install_command: str
    config_file: str = ""
    run_command: Optional[str] = None


@dataclass
class RepositoryMetadata:
    """Everything the prompt builder knows about a repository."""

    name: str
    description: Optional[str] = None
    language: Optional[str] = None
    topics: List[str] = field(default_factory=list)
    license: Optional[LicenseInfo] = None
    package_manager: Optional[PackageManager] = None
    dependencies: List[str] = field(default_factory=list)
    dev_dependencies: List[str] = field(default_factory=list)
    scripts: Dict[str, str] = field(default_factory=dict)
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    languages: Dict[str, int] = field(default_factory=dict)
    contributor_count: int = 0
    badges: List[str] = field(default_factory=list)
    has_readme: bool = False
    existing_readme: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryMetadata":
        """Build metadata from a plain dict (e.g., a decoded JSON body).

        Args:
            data: Dict with RepositoryMetadata field names. `license` and
                `package_manager` may be nested dicts or None.

        Returns:
            RepositoryMetadata instance
        """
        license_data = data.get("license")
        pm_data = data.get("package_manager")
        has_readme = data.get("has_readme")
        if has_readme is None:
            has_readme = bool(data.get("existing_readme"))

        return cls(
            name=data["name"],
            description=data.get("description"),
            language=data.get("language"),
            topics=list(data.get("topics") or []),
            license=LicenseInfo(**license_data) if license_data else None,
            package_manager=PackageManager(**pm_data) if pm_data else None,
            dependencies=list(data.get("dependencies") or []),
            dev_dependencies=list(data.get("dev_dependencies") or []),
            scripts=dict(data.get("scripts") or {}),
            stars=data.get("stars", 0),
            forks=data.get("forks", 0),
            open_issues=data.get("open_issues", 0),
            languages=dict(data.get("languages") or {}),
            contributor_count=data.get("contributor_count", 0),
            badges=list(data.get("badges") or []),
            has_readme=has_readme,
            existing_readme=data.get("existing_readme"),
        )


@dataclass
class GenerationOptions:
    """Which README sections to request, and in what tone."""

    include_installation: bool = True
    include_usage: bool = True
    include_contributing: bool = True
    include_license: bool = True
    include_badges: bool = True
    tone: str = "professional"

    def __post_init__(self) -> None:
        if self.tone not in VALID_TONES:
            raise ValueError(f"invalid tone '{self.tone}', must be one of {VALID_TONES}")


@dataclass
class GenerationResult:
    """A generated README and where it came from."""

    markdown: str
    provider: str
    generated_at: datetime
    tokens_used: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "markdown": self.markdown,
            "provider": self.provider,
            "generated_at": self.generated_at.isoformat(),
            "tokens_used": self.tokens_used,
        }
