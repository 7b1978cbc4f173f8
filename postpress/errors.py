from __future__ import annotations

from pathlib import Path
from typing import Optional


class BuildError(Exception):
    """Any condition that aborts the whole build."""


class TemplateError(BuildError):
    pass


class ContentError(BuildError):
    pass


class StaticCopyError(BuildError):
    pass


class FrontMatterError(ContentError):
    def __init__(self, message: str, source: Optional[Path] = None) -> None:
        self.source = source
        if source is not None:
            message = f"{source}: {message}"
        super().__init__(message)


class CVValidationError(BuildError):
    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        lines = "\n".join(f"  - {problem}" for problem in self.problems)
        super().__init__(f"Invalid CV document ({len(self.problems)} problem(s)):\n{lines}")


class FeedValidationError(BuildError):
    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        lines = "\n".join(f"  - {problem}" for problem in self.problems)
        super().__init__(f"Feed failed validation ({len(self.problems)} problem(s)):\n{lines}")
