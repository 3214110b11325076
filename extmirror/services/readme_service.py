"""
README generator service for extmirror.

Writes a descriptive README into the package working directory before each
import commit, so every mirrored version explains where it came from.
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional

from ..domain.package import Package, Version

logger = logging.getLogger(__name__)

README_TEMPLATE = """# {title}

{description}

| | |
|---|---|
| Extension key | `{key}` |
| Version | {number} |
| State | {state} |
| Author | {author} |
| Uploaded | {uploaded} |
{homepage_row}
{comment_section}
This repository is an automated mirror of the extension repository. Each
published version is imported as one commit and tagged with its version
number. Do not open pull requests here.
"""


class ReadmeService:
    """Renders and writes the mirror README for one version."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, filename: str = "README.md"):
        config = config or {}
        self.filename = config.get('worker', {}).get('readme_filename', filename)
        self.homepage_template = config.get('github', {}).get('homepage_template')

    def render(self, package: Package, version: Version) -> str:
        author = version.author.name or 'unknown'
        if version.author.email:
            author += f" <{version.author.email}>"

        homepage_row = ''
        if self.homepage_template:
            homepage_row = f"| Homepage | {self.homepage_template.format(key=package.key)} |\n"

        comment_section = ''
        if version.upload_comment:
            comment_section = f"## Upload comment\n\n{version.upload_comment}\n\n"

        return README_TEMPLATE.format(
            title=version.title or package.key,
            description=version.description or '',
            key=package.key,
            number=version.number,
            state=version.state or 'n/a',
            author=author,
            uploaded=version.upload_date.strftime('%Y-%m-%d %H:%M:%S %Z'),
            homepage_row=homepage_row,
            comment_section=comment_section,
        )

    def write(self, package: Package, version: Version, target_dir: Path) -> Path:
        """Write (or overwrite) the README in ``target_dir``."""
        path = Path(target_dir) / self.filename
        path.write_text(self.render(package, version), encoding='utf-8')
        logger.info(f"Generated {self.filename} for {package.key} {version.number}")
        return path
