# In src/blueprint_codec/dependency.py
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Category(Enum):
    """Source kind of a blueprint dependency."""

    PYTHON = "PYTHON"  # Language runtime
    LOCAL = "LOCAL"  # Local filesystem path
    PYPI = "PyPI"  # Python package index
    APT = "Apt"  # System package
    DOCKERHUB = "DockerHub"  # Container image

    @classmethod
    def from_token(cls, token: str, case_sensitive: bool = False) -> Optional["Category"]:
        """Look up a category by its written tag, or return None."""
        if case_sensitive:
            for category in cls:
                if category.value == token:
                    return category
            return None
        return _CATEGORIES_BY_FOLDED_TAG.get(token.casefold())


_CATEGORIES_BY_FOLDED_TAG: Dict[str, Category] = {
    category.value.casefold(): category for category in Category
}


class RowShape(Enum):
    """Structural shape of a dependency line, decided by its prefix."""

    BASIC = "-"
    EXTENDED = "|"

    @property
    def prefix(self) -> str:
        return self.value


@dataclass(frozen=True)
class DependencyEntry:
    """One decoded dependency line."""

    category: Category
    name: str
    version_or_path: str
    extra1: Optional[str] = None
    extra2: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.category, Category):
            raise ValueError(f"category must be a Category, got {self.category!r}")
        if not self.name or any(c.isspace() or c in "[]{}" for c in self.name):
            raise ValueError(f"Invalid dependency name: {self.name!r}")
        if "]" in self.version_or_path:
            raise ValueError("version_or_path must not contain ']'")
        if (self.extra1 is None) != (self.extra2 is None):
            raise ValueError("extra1 and extra2 must both be set or both be None")
        for extra in (self.extra1, self.extra2):
            if extra is not None and "}" in extra:
                raise ValueError("Condition fields must not contain '}'")

    @property
    def shape(self) -> RowShape:
        if self.extra1 is None:
            return RowShape.BASIC
        return RowShape.EXTENDED

    @classmethod
    def basic(cls, category: Category, name: str, version_or_path: str) -> "DependencyEntry":
        return cls(category, name, version_or_path)

    @classmethod
    def extended(
        cls,
        category: Category,
        name: str,
        version_or_path: str,
        extra1: str = "",
        extra2: str = "",
    ) -> "DependencyEntry":
        return cls(category, name, version_or_path, extra1, extra2)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "category": self.category.value,
            "name": self.name,
            "version_or_path": self.version_or_path,
            "extra1": self.extra1,
            "extra2": self.extra2,
            "shape": self.shape.name,
        }


@dataclass(frozen=True)
class EnvVarEntry:
    """One decoded KEY=VALUE line."""

    key: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "value": self.value}
