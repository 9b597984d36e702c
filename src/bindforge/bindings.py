"""Explicit registration of host binding generators."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from bindforge.errors import ValidationError
from bindforge.hierarchy import HierarchyModel


@dataclass(frozen=True, slots=True)
class ClassBinding:
    parcel: str
    class_name: str
    host_name: str | None = None
    exclude_methods: tuple[str, ...] = ()


@dataclass(slots=True)
class BindingRegistry:
    _bindings: dict[str, ClassBinding] = field(default_factory=dict)

    def register(self, binding: ClassBinding) -> None:
        if binding.class_name in self._bindings:
            raise ValidationError(
                "Class binding registered twice.",
                hint="Register each class from exactly one generator.",
                context={"class": binding.class_name, "parcel": binding.parcel},
            )
        self._bindings[binding.class_name] = binding

    def get(self, class_name: str) -> ClassBinding | None:
        return self._bindings.get(class_name)

    def all(self) -> tuple[ClassBinding, ...]:
        return tuple(self._bindings[name] for name in sorted(self._bindings))

    def __len__(self) -> int:
        return len(self._bindings)


@runtime_checkable
class BindingGenerator(Protocol):
    """A glue generator supplied through configuration.

    ``sources`` lists the files that define the generator; editing any of
    them regenerates the host bindings even when no IDL file changed.
    """

    name: str
    sources: tuple[Path, ...]

    def bind_all(self, model: HierarchyModel, registry: BindingRegistry) -> None:
        """Register class bindings for ``model`` into ``registry``."""


def collect_bindings(
    model: HierarchyModel,
    generators: tuple[BindingGenerator, ...],
) -> BindingRegistry:
    registry = BindingRegistry()
    for generator in generators:
        generator.bind_all(model, registry)
    return registry


def generator_sources(generators: tuple[BindingGenerator, ...]) -> tuple[Path, ...]:
    paths: list[Path] = []
    for generator in generators:
        for path in generator.sources:
            if path not in paths:
                paths.append(path)
    return tuple(paths)
