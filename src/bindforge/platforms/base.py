"""Portable link descriptions and the adapter protocol."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Protocol

from bindforge.models import Invocation

FlagValue = str | bool | tuple[str, ...]

# "cc -shared -O2" -> ("cc", "-shared", "-O2"); only splits before dashes so
# linker paths containing spaces survive.
_LINKER_SPLIT = re.compile(r" (?=-)")


@dataclass(frozen=True, slots=True)
class PlatformInfo:
    id: str
    dlext: str
    object_suffix: str = ".o"
    import_library: bool = False
    # Side files the toolchain may drop beside the glue source.
    side_suffixes: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class LinkSpec:
    """Portable description of one shared-library link.

    ``platform_flags`` is an opaque bag interpreted only by adapters. Keys
    understood by the bundled adapters: ``linker``, ``lddlflags``,
    ``startup``, ``other_ldflags``, ``runtime_import``, ``runtime_libs``,
    ``def_file``, ``map_file`` and ``use_scripts``.
    """

    output: Path
    objects: tuple[Path, ...]
    search_paths: tuple[Path, ...] = ()
    libraries: tuple[str, ...] = ()
    platform_flags: Mapping[str, FlagValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "objects", tuple(self.objects))
        object.__setattr__(self, "search_paths", tuple(self.search_paths))
        object.__setattr__(self, "libraries", tuple(self.libraries))
        object.__setattr__(
            self,
            "platform_flags",
            MappingProxyType(dict(self.platform_flags)),
        )

    def flag_list(self, key: str) -> tuple[str, ...]:
        value = self.platform_flags.get(key)
        if value is None or value is False or value is True:
            return ()
        if isinstance(value, str):
            return (value,) if value else ()
        return tuple(value)

    def flag_value(self, key: str) -> str | None:
        value = self.platform_flags.get(key)
        if isinstance(value, str) and value:
            return value
        return None

    def flag_enabled(self, key: str) -> bool:
        return bool(self.platform_flags.get(key))

    def linker_argv(self) -> tuple[str, ...]:
        linker = self.flag_value("linker") or "cc -shared"
        return tuple(part for part in _LINKER_SPLIT.split(linker) if part)


class LinkAdapter(Protocol):
    name: str
    platform: PlatformInfo

    def build_link_commands(self, spec: LinkSpec) -> tuple[Invocation, ...]:
        """Return the ordered invocations that produce ``spec.output``."""
