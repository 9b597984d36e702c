from pathlib import Path

import pytest

from bindforge.catalog import ArtifactCatalog
from bindforge.config import BuildConfig
from bindforge.platforms import platform_info


def test_paths_follow_module_name(project: Path) -> None:
    catalog = _catalog(project)

    assert catalog.class_name == "Widget"
    assert catalog.glue_path == project / "lib" / "Acme" / "Widget.glue"
    assert catalog.glue_source == project / "lib" / "Acme" / "Widget.c"
    assert catalog.glue_object == project / "lib" / "Acme" / "Widget.o"
    arch = project / "blib" / "arch"
    assert catalog.library == arch / "auto" / "Acme" / "Widget" / "Widget.so"
    assert catalog.bootstrap.name == "Widget.bs"
    assert catalog.include_install_dir == arch / "bindforge" / "_include"


def test_library_extension_comes_from_platform(project: Path) -> None:
    assert _catalog(project, "darwin").library.name == "Widget.bundle"
    assert _catalog(project, "mingw").library.name == "Widget.dll"


def test_source_dirs_default_to_core_plus_autogen(project: Path) -> None:
    catalog = _catalog(project)
    assert catalog.source_dirs == (project / "core", project / "autogen" / "source")


def test_source_dirs_fall_back_to_parent_core(tmp_path: Path) -> None:
    binding = tmp_path / "perl"
    binding.mkdir()
    catalog = _catalog(binding)
    assert catalog.source_dirs[0] == binding / ".." / "core"


def test_idl_sources_are_enumerated_once(project: Path) -> None:
    catalog = _catalog(project)
    (project / "core" / "Late.idl").write_text("", encoding="utf-8")

    assert [path.name for path in catalog.idl_sources] == ["Gadget.idl", "Widget.idl"]


def test_c_sources_are_scanned_on_demand(project: Path) -> None:
    catalog = _catalog(project)
    generated = project / "autogen" / "source" / "boot.c"
    generated.parent.mkdir(parents=True)
    generated.write_text("", encoding="utf-8")

    assert generated in catalog.c_sources()


def test_compile_units_put_glue_first_with_version_defines(project: Path) -> None:
    catalog = _catalog(project, version="1.2.3", host_compiler_flags=("-DHOST",))

    glue, *rest = catalog.compile_units()

    assert glue.source == catalog.glue_source
    assert glue.object_path == catalog.glue_object
    assert glue.flags == ("-DHOST",)
    assert dict(glue.defines) == {"VERSION": '"1.2.3"', "MODULE_VERSION": '"1.2.3"'}
    assert [unit.source.name for unit in rest] == ["gadget_impl.c", "widget_impl.c"]
    assert rest[0].object_path == project / "core" / "gadget_impl.o"


def test_generation_stamp_excludes_objects(project: Path) -> None:
    stamp = _catalog(project).generation_stamp()
    assert stamp.kind == "stamp-directory"
    assert stamp.exclude == ("*.o",)


def test_installable_headers_include_parcel_files(project: Path) -> None:
    (project / "core" / "Acme.idlp").write_text("", encoding="utf-8")

    pairs = _catalog(project).installable_headers()
    names = sorted(path.relative_to(src).as_posix() for src, path in pairs)

    assert names == ["Acme.idlp", "Acme/Gadget.idl", "Acme/Widget.idl"]


def test_cleanup_candidates_cover_platform_side_files(project: Path) -> None:
    candidates = _catalog(project, "mingw").cleanup_candidates()
    module_dir = project / "lib" / "Acme"

    assert project / "autogen" in candidates
    assert project / "typemap" in candidates
    assert module_dir / "Widget.def" in candidates
    assert len(candidates) == len(set(candidates))


def test_include_dirs_come_from_config_env_and_search_path(tmp_path: Path) -> None:
    site = tmp_path / "site"
    installed = site / "bindforge" / "_include"
    installed.mkdir(parents=True)
    config = BuildConfig(
        module_name="Acme.Widget",
        include_dirs=(tmp_path / "explicit",),
        search_path=(tmp_path / "nowhere", site),
    )
    catalog = ArtifactCatalog(
        root=tmp_path,
        config=config,
        platform=platform_info("linux"),
        environ={"BINDFORGE_INCLUDE": f"{tmp_path / 'env1'}:{tmp_path / 'env2'}"},
    )

    assert catalog.idl_include_dirs == (
        tmp_path / "explicit",
        tmp_path / "env1",
        tmp_path / "env2",
        installed,
    )
    assert catalog.compiler_include_dirs[:2] == (tmp_path, tmp_path / "autogen" / "include")


@pytest.mark.parametrize("platform_id", ["linux", "mingw"])
def test_object_suffix_is_used_for_objects(project: Path, platform_id: str) -> None:
    catalog = _catalog(project, platform_id)
    assert all(ref.path.suffix == ".o" for ref in catalog.object_refs())


def _catalog(root: Path, platform_id: str = "linux", **config: object) -> ArtifactCatalog:
    return ArtifactCatalog(
        root=root,
        config=BuildConfig(module_name="Acme.Widget", **config),  # type: ignore[arg-type]
        platform=platform_info(platform_id),
        environ={},
    )
