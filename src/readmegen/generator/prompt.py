"""Prompt construction for README generation.

build_prompt() is a pure function of (metadata, options): the same inputs
always produce the same prompt string.
"""

from typing import List, Optional

from .types import GenerationOptions, RepositoryMetadata

MAX_DEPENDENCIES = 10
MAX_LANGUAGES = 5
MAX_README_EXCERPT = 1000


def _repository_section(metadata: RepositoryMetadata) -> List[str]:
    return [
        "## Repository Information:",
        f"- **Name**: {metadata.name}",
        f"- **Description**: {metadata.description or 'No description provided'}",
        f"- **Primary Language**: {metadata.language or 'Not specified'}",
        f"- **Topics/Tags**: {', '.join(metadata.topics) if metadata.topics else 'None'}",
    ]


def _technical_section(metadata: RepositoryMetadata) -> List[str]:
    lines = ["## Technical Details:"]

    pm = metadata.package_manager
    if pm is not None:
        lines.append(f"- **Package Manager**: {pm.type}")
        lines.append(f"- **Install Command**: {pm.install_command}")
        if pm.run_command:
            lines.append(f"- **Run Command**: {pm.run_command}")

    if metadata.dependencies:
        deps = ", ".join(metadata.dependencies[:MAX_DEPENDENCIES])
        lines.append(f"- **Key Dependencies**: {deps}")

    if metadata.scripts:
        lines.append(f"- **Available Scripts**: {', '.join(metadata.scripts)}")

    if metadata.license is not None:
        lines.append(f"- **License**: {metadata.license.name}")

    lines.append(f"- **Stars**: {metadata.stars}")
    lines.append(f"- **Forks**: {metadata.forks}")
    lines.append(f"- **Open Issues**: {metadata.open_issues}")

    if metadata.languages:
        # Byte share descending; name breaks ties so ordering is stable
        ranked = sorted(metadata.languages.items(), key=lambda item: (-item[1], item[0]))
        top = ", ".join(lang for lang, _ in ranked[:MAX_LANGUAGES])
        lines.append(f"- **Languages Used**: {top}")

    if metadata.contributor_count > 0:
        lines.append(f"- **Contributors**: {metadata.contributor_count} contributors")

    return lines


def _existing_readme_section(metadata: RepositoryMetadata) -> Optional[List[str]]:
    if not (metadata.has_readme and metadata.existing_readme):
        return None

    excerpt = metadata.existing_readme[:MAX_README_EXCERPT]
    if len(metadata.existing_readme) > MAX_README_EXCERPT:
        excerpt += "..."

    return [
        "## Existing README (for reference):",
        "```",
        excerpt,
        "```",
    ]


def _required_sections(metadata: RepositoryMetadata, options: GenerationOptions) -> List[str]:
    sections = [
        "**Title and Description**: Clear project title and compelling description",
        "**Table of Contents**: For easy navigation (if README is long)",
    ]

    if options.include_badges and metadata.badges:
        sections.append(
            "**Badges**: Include these badges: " + ", ".join(metadata.badges)
        )

    if options.include_installation:
        sections.append(
            "**Installation**: Step-by-step installation instructions using the "
            "detected package manager"
        )

    if options.include_usage:
        sections.append("**Usage**: Basic usage examples and code snippets")

    sections.append("**Features**: Key features and capabilities")
    sections.append("**API/Documentation**: If applicable, brief API overview")

    if options.include_contributing:
        sections.append("**Contributing**: Guidelines for contributors")

    # No license requirement when none was detected; never ask for a placeholder
    if options.include_license and metadata.license is not None:
        sections.append(f"**License**: {metadata.license.name} license information")

    sections.append("**Acknowledgments**: Credits and acknowledgments if appropriate")

    lines = [
        "## Requirements:",
        "Generate a complete README.md with the following sections:",
        "",
    ]
    lines.extend(f"{i}. {section}" for i, section in enumerate(sections, 1))
    return lines


def _style_section(tone: str) -> List[str]:
    emoji_guidance = "more emojis okay" if tone == "casual" else "minimal emojis"
    return [
        "## Style Guidelines:",
        "- Use clear, concise language",
        "- Include code examples where relevant",
        "- Use proper markdown formatting",
        "- Make it scannable with good use of headers and lists",
        f"- Include emojis sparingly for visual appeal ({emoji_guidance})",
        "- Ensure all links are properly formatted",
        "- Use code blocks with appropriate language syntax highlighting",
    ]


IMPORTANT_NOTES = [
    "## Important Notes:",
    '- Do NOT include placeholder text like "Add description here" or "TODO"',
    "- Make all content specific to this repository",
    "- Ensure installation commands match the detected package manager",
    "- If certain information is not available, gracefully omit those sections "
    "rather than using placeholders",
    "- Focus on making the README immediately useful to developers who discover "
    "this project",
]


def build_prompt(
    metadata: RepositoryMetadata,
    options: Optional[GenerationOptions] = None,
) -> str:
    """Build the README generation prompt.

    Args:
        metadata: Repository metadata
        options: Section toggles and tone (defaults: everything on, professional)

    Returns:
        Prompt string for a text-generation provider
    """
    options = options or GenerationOptions()

    blocks: List[List[str]] = [
        [
            "Generate a comprehensive, well-structured README.md file for the following "
            f"GitHub repository. Use a {options.tone} tone and follow modern README best "
            "practices."
        ],
        _repository_section(metadata),
        _technical_section(metadata),
    ]

    readme_block = _existing_readme_section(metadata)
    if readme_block is not None:
        blocks.append(readme_block)

    blocks.append(_required_sections(metadata, options))
    blocks.append(_style_section(options.tone))
    blocks.append(IMPORTANT_NOTES)
    blocks.append(["Generate the complete README.md content now:"])

    return "\n\n".join("\n".join(block) for block in blocks)
