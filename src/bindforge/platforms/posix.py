"""Link adapter for platforms that link shared objects in a single step."""

from __future__ import annotations

from dataclasses import dataclass

from bindforge.models import Invocation
from bindforge.platforms.base import LinkSpec, PlatformInfo


@dataclass(frozen=True, slots=True)
class PosixLinkAdapter:
    platform: PlatformInfo
    name: str = "posix"

    def build_link_commands(self, spec: LinkSpec) -> tuple[Invocation, ...]:
        argv = [
            *spec.linker_argv(),
            "-o",
            str(spec.output),
            *spec.flag_list("lddlflags"),
            *(f"-L{path}" for path in spec.search_paths),
            *spec.flag_list("startup"),
            *(str(obj) for obj in spec.objects),
            *spec.flag_list("other_ldflags"),
            *(f"-l{library}" for library in spec.libraries),
            *spec.flag_list("runtime_import"),
            *spec.flag_list("runtime_libs"),
        ]
        return (Invocation(argv=tuple(arg for arg in argv if arg)),)
