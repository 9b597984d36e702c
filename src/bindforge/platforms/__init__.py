"""Platform link adapters, selected by platform id."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from pathlib import Path

from bindforge.errors import MissingInputError, ValidationError

from .base import LinkAdapter, LinkSpec, PlatformInfo
from .mingw import MingwLinkAdapter, image_base, linker_script_path, linker_token
from .posix import PosixLinkAdapter

PLATFORMS: dict[str, PlatformInfo] = {
    "linux": PlatformInfo(id="linux", dlext="so"),
    "freebsd": PlatformInfo(id="freebsd", dlext="so"),
    "netbsd": PlatformInfo(id="netbsd", dlext="so"),
    "openbsd": PlatformInfo(id="openbsd", dlext="so"),
    "darwin": PlatformInfo(id="darwin", dlext="bundle"),
    "mingw": PlatformInfo(
        id="mingw",
        dlext="dll",
        import_library=True,
        side_suffixes=(".ccs", ".def", ".exp", ".lib", ".lds", ".base"),
    ),
}


def detect_platform() -> str:
    if sys.platform == "win32":
        return "mingw"
    for platform_id in PLATFORMS:
        if sys.platform.startswith(platform_id):
            return platform_id
    return "linux"


def platform_info(platform_id: str) -> PlatformInfo:
    info = PLATFORMS.get(platform_id)
    if info is None:
        raise ValidationError(
            "Unsupported platform id.",
            hint=f"Use one of: {', '.join(sorted(PLATFORMS))}.",
            context={"platform": platform_id},
        )
    return info


def get_link_adapter(platform_id: str) -> LinkAdapter:
    info = platform_info(platform_id)
    if info.import_library:
        return MingwLinkAdapter(platform=info)
    return PosixLinkAdapter(platform=info)


def linker_flags_for_modules(
    module_names: Iterable[str],
    *,
    search_paths: Iterable[Path],
    platform_id: str,
) -> tuple[str, ...]:
    """Return the import libraries of other extension modules to link against.

    Only import-library platforms need these; elsewhere the result is empty.
    """
    info = platform_info(platform_id)
    if not info.import_library:
        return ()
    roots = tuple(Path(path) for path in search_paths)
    flags: list[str] = []
    for module_name in module_names:
        parts = module_name.split(".")
        candidates = [
            root / "auto" / Path(*parts) / f"{parts[-1]}.{info.dlext}" for root in roots
        ]
        found = next((candidate for candidate in candidates if candidate.is_file()), None)
        if found is None:
            raise MissingInputError(
                "No library file found for extension module.",
                hint="Build and install the module, or add its location to the search path.",
                context={"module": module_name},
            )
        flags.append(str(found))
    return tuple(flags)


__all__ = [
    "LinkAdapter",
    "LinkSpec",
    "MingwLinkAdapter",
    "PLATFORMS",
    "PlatformInfo",
    "PosixLinkAdapter",
    "detect_platform",
    "get_link_adapter",
    "image_base",
    "linker_flags_for_modules",
    "linker_script_path",
    "linker_token",
    "platform_info",
]
