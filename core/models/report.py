"""Outcome of one price update run."""

from dataclasses import dataclass, field


@dataclass
class UpdateReport:
    published: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.published) + len(self.skipped)
