"""
Knowledge document writer.

Persists a knowledge entry as a markdown note with YAML frontmatter under
<project_root>/docs/solutions/, named YYYY-MM-DD-<slug>.md:

    ---
    title: JWT Expiration Trap
    date: '2025-01-15'
    tags:
    - security
    category: pitfalls
    severity: P2
    status: resolved
    ---

    <content>
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date as date_type
from pathlib import Path
from typing import List, Optional, Union

import yaml

from arbor.core.config import DEFAULT_SOLUTIONS_DIR
from arbor.core.exceptions import DocumentWriteError

logger = logging.getLogger(__name__)

# knowledge type -> frontmatter category
CATEGORIES = {
    "solution": "solutions",
    "pattern": "patterns",
    "pitfall": "pitfalls",
}


def slugify(text: str) -> str:
    """Convert a title to a kebab-case slug ("N+1 Query Fix" -> "n1-query-fix")."""
    slug = text.lower()
    # Keep word characters (unicode letters included), whitespace and hyphens
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s-]+", "-", slug)
    return slug.strip("-")


@dataclass
class SolutionRecord:
    """A knowledge entry to be written as a document."""
    title: str
    type: str
    content: str
    tags: List[str] = field(default_factory=list)
    severity: Optional[str] = None
    date: Optional[str] = None

    @property
    def category(self) -> str:
        return CATEGORIES[self.type]


def render_solution(record: SolutionRecord, date: str) -> str:
    """Render frontmatter plus body."""
    frontmatter = {
        "title": record.title,
        "date": date,
        "tags": list(record.tags),
        "category": record.category,
        "severity": record.severity,
        "status": "resolved",
    }
    fm_str = yaml.dump(frontmatter, default_flow_style=False, allow_unicode=True, sort_keys=False).strip()
    return f"---\n{fm_str}\n---\n\n{record.content}\n"


def write_solution_file(
    project_root: Union[Path, str],
    record: SolutionRecord,
    solutions_dir: str = DEFAULT_SOLUTIONS_DIR,
) -> Path:
    """
    Write a knowledge document.

    Args:
        project_root: Project directory the document belongs to
        record: The knowledge entry
        solutions_dir: Target directory relative to project_root

    Returns:
        Absolute path of the written file

    Raises:
        DocumentWriteError: If the directory or file cannot be written
    """
    date = record.date or date_type.today().isoformat()
    target_dir = Path(project_root).resolve() / solutions_dir
    file_path = target_dir / f"{date}-{slugify(record.title)}.md"

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        file_path.write_text(render_solution(record, date), encoding="utf-8")
    except OSError as e:
        raise DocumentWriteError(
            f"Failed to write knowledge document: {e}",
            path=str(file_path),
            context={"title": record.title},
        ) from e

    logger.info(f"[KnowledgeWriter] Wrote {file_path}")
    return file_path
