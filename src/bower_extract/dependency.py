# In src/bower_extract/dependency.py
from dataclasses import dataclass


@dataclass(frozen=True)
class Dependency:
    """A dependency declared in the project manifest."""

    name: str
    declared_order: int


@dataclass(frozen=True)
class ResolvedFile:
    """The single file resolved for a dependency, with its content."""

    dependency_name: str
    absolute_path: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
