"""In-memory class hierarchy produced by the hierarchy compiler."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ParamDecl:
    type: str
    name: str
    default: str | None = None


@dataclass(frozen=True, slots=True)
class MethodDecl:
    name: str
    return_type: str
    params: tuple[ParamDecl, ...] = ()
    variadic: bool = False


@dataclass(frozen=True, slots=True)
class ClassDecl:
    name: str
    parcel: str
    source: Path
    parent: str | None = None
    methods: tuple[MethodDecl, ...] = ()


@dataclass(frozen=True, slots=True)
class HierarchyModel:
    classes: tuple[ClassDecl, ...] = ()
    source_dirs: tuple[Path, ...] = ()
    include_dirs: tuple[Path, ...] = ()
    sources: tuple[Path, ...] = ()

    def find(self, name: str) -> ClassDecl | None:
        for decl in self.classes:
            if decl.name == name:
                return decl
        return None

    def ordered(self) -> tuple[ClassDecl, ...]:
        """Classes with every parent ahead of its children, else by name."""
        by_name = {decl.name: decl for decl in self.classes}
        ordered: list[ClassDecl] = []
        seen: set[str] = set()

        def visit(decl: ClassDecl) -> None:
            if decl.name in seen:
                return
            seen.add(decl.name)
            if decl.parent is not None and decl.parent in by_name:
                visit(by_name[decl.parent])
            ordered.append(decl)

        for decl in sorted(self.classes, key=lambda item: item.name):
            visit(decl)
        return tuple(ordered)
