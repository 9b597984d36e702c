"""Per-invocation enumeration of source, generated and built artifacts.

Layout relative to the project root, for module ``Acme.Widget``::

    autogen/                      generation stamp
        include/  source/         core emitter output
    lib/Acme/Widget.glue          host glue
    lib/Acme/Widget.c             transpiled glue
    lib/Acme/Widget.o             glue object
    blib/arch/auto/Acme/Widget/Widget.so
    blib/arch/auto/Acme/Widget/Widget.bs
    blib/arch/bindforge/_include/ installed IDL headers
    typemap

IDL sources and generator sources are enumerated once, when the catalog is
created. C sources depend on what the generation stages wrote, so they are
scanned when compile-sources asks for them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from bindforge.bindings import generator_sources as declared_generator_sources
from bindforge.config import (
    INSTALLED_INCLUDE_SUBDIR,
    BuildConfig,
    default_source_dirs,
    idl_include_dirs,
)
from bindforge.models import ArtifactRef, CompileUnit
from bindforge.platforms.base import PlatformInfo

IDL_SUFFIX = ".idl"
PARCEL_SUFFIX = ".idlp"
AUTOGEN_DIR = "autogen"
LIB_DIR = "lib"
BLIB_DIR = "blib"


@dataclass(slots=True)
class ArtifactCatalog:
    root: Path
    config: BuildConfig
    platform: PlatformInfo
    environ: Mapping[str, str] | None = None
    source_dirs: tuple[Path, ...] = field(init=False)
    idl_include_dirs: tuple[Path, ...] = field(init=False)
    compiler_include_dirs: tuple[Path, ...] = field(init=False)
    idl_sources: tuple[Path, ...] = field(init=False)
    generator_sources: tuple[Path, ...] = field(init=False)

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        configured = tuple(self.root / path for path in self.config.source_dirs)
        self.source_dirs = (
            *(configured or default_source_dirs(self.root)),
            self.autogen_source_dir,
        )
        self.idl_include_dirs = tuple(
            self.root / path for path in idl_include_dirs(self.config, environ=self.environ)
        )
        self.compiler_include_dirs = (
            self.root,
            self.autogen_include_dir,
            *self.idl_include_dirs,
        )
        self.idl_sources = self._scan(self.source_dirs, f"*{IDL_SUFFIX}")
        self.generator_sources = tuple(
            self.root / path for path in declared_generator_sources(self.config.generators)
        )

    # ── Paths ────────────────────────────────────────────────────────

    @property
    def class_name(self) -> str:
        return self.config.module_parts[-1]

    @property
    def autogen_dir(self) -> Path:
        return self.root / AUTOGEN_DIR

    @property
    def autogen_source_dir(self) -> Path:
        return self.autogen_dir / "source"

    @property
    def autogen_include_dir(self) -> Path:
        return self.autogen_dir / "include"

    @property
    def module_dir(self) -> Path:
        return self.root.joinpath(LIB_DIR, *self.config.module_parts[:-1])

    @property
    def glue_path(self) -> Path:
        return self.module_dir / f"{self.class_name}.glue"

    @property
    def glue_source(self) -> Path:
        return self.module_dir / f"{self.class_name}.c"

    @property
    def glue_object(self) -> Path:
        return self.module_dir / f"{self.class_name}{self.platform.object_suffix}"

    @property
    def import_library(self) -> Path:
        return self.module_dir / f"{self.class_name}.lib"

    @property
    def arch_dir(self) -> Path:
        return self.root.joinpath(BLIB_DIR, "arch", "auto", *self.config.module_parts)

    @property
    def library(self) -> Path:
        return self.arch_dir / f"{self.class_name}.{self.platform.dlext}"

    @property
    def bootstrap(self) -> Path:
        return self.arch_dir / f"{self.class_name}.bs"

    @property
    def include_install_dir(self) -> Path:
        return self.root / BLIB_DIR / "arch" / INSTALLED_INCLUDE_SUBDIR

    @property
    def typemap(self) -> Path:
        return self.root / "typemap"

    # ── Artifact references ──────────────────────────────────────────

    def generation_stamp(self) -> ArtifactRef:
        # objects compiled beside generated sources are not generation output
        return ArtifactRef.stamp(
            self.autogen_dir,
            exclude=(f"*{self.platform.object_suffix}",),
        )

    def idl_refs(self) -> tuple[ArtifactRef, ...]:
        return tuple(ArtifactRef(path=path, kind="source") for path in self.idl_sources)

    def generator_refs(self) -> tuple[ArtifactRef, ...]:
        return tuple(ArtifactRef(path=path, kind="source") for path in self.generator_sources)

    def glue_ref(self) -> ArtifactRef:
        return ArtifactRef(path=self.glue_path, kind="generated")

    def glue_source_ref(self) -> ArtifactRef:
        return ArtifactRef(path=self.glue_source, kind="generated")

    def glue_object_ref(self) -> ArtifactRef:
        return ArtifactRef(path=self.glue_object, kind="object")

    def library_ref(self) -> ArtifactRef:
        return ArtifactRef(path=self.library, kind="library")

    def bootstrap_ref(self) -> ArtifactRef:
        return ArtifactRef(path=self.bootstrap, kind="library")

    # ── Enumeration ──────────────────────────────────────────────────

    def c_sources(self) -> tuple[Path, ...]:
        return self._scan(self.source_dirs, "*.c")

    def compile_units(self) -> tuple[CompileUnit, ...]:
        """The glue unit first, then every C file under the source dirs."""
        version = f'"{self.config.version}"'
        units = [
            CompileUnit(
                source=self.glue_source,
                object_path=self.glue_object,
                flags=self.config.host_compiler_flags,
                defines=(("VERSION", version), ("MODULE_VERSION", version)),
            ),
        ]
        for source in self.c_sources():
            units.append(
                CompileUnit(
                    source=source,
                    object_path=source.with_suffix(self.platform.object_suffix),
                    flags=self.config.extra_compiler_flags,
                ),
            )
        return tuple(units)

    def object_refs(self) -> tuple[ArtifactRef, ...]:
        return tuple(
            ArtifactRef(path=unit.object_path, kind="object") for unit in self.compile_units()
        )

    def installable_headers(self) -> tuple[tuple[Path, Path], ...]:
        """(source dir, file) pairs for every IDL and parcel file."""
        pairs: list[tuple[Path, Path]] = []
        for source_dir in self.source_dirs:
            for pattern in (f"*{IDL_SUFFIX}", f"*{PARCEL_SUFFIX}"):
                for path in self._scan((source_dir,), pattern):
                    pairs.append((source_dir, path))
        return tuple(sorted(pairs, key=lambda pair: pair[1]))

    def cleanup_candidates(self) -> tuple[Path, ...]:
        paths = [
            self.autogen_dir,
            self.typemap,
            self.glue_path,
            self.glue_source,
            self.glue_object,
            self.library,
            self.bootstrap,
            self.include_install_dir,
        ]
        paths.extend(unit.object_path for unit in self.compile_units())
        paths.extend(
            self.module_dir / f"{self.class_name}{suffix}"
            for suffix in self.platform.side_suffixes
        )
        return tuple(dict.fromkeys(paths))

    def _scan(self, dirs: tuple[Path, ...], pattern: str) -> tuple[Path, ...]:
        found: list[Path] = []
        for directory in dirs:
            if not directory.is_dir():
                continue
            found.extend(sorted(directory.rglob(pattern)))
        return tuple(dict.fromkeys(found))
