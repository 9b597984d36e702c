import os
from collections.abc import Callable
from pathlib import Path

import pytest

from bindforge import STAGE_ORDER, ModuleBuild
from bindforge.errors import (
    CompileError,
    DuplicateParameterError,
    MissingInputError,
    ParseError,
)
from bindforge.inprocess import InProcessToolchain, ModuleBindings

AgeTree = Callable[..., None]
MakeModule = Callable[..., ModuleBuild]


def test_fresh_tree_runs_every_stage(
    make_module: MakeModule,
    toolchain: InProcessToolchain,
    project: Path,
) -> None:
    module = make_module()

    report = module.build()

    catalog = module.catalog()
    assert report.executed == STAGE_ORDER
    assert catalog.library.is_file()
    assert catalog.bootstrap.is_file()
    assert catalog.typemap.is_file()
    units = catalog.compile_units()
    assert sorted(report.compiled) == sorted(unit.object_path for unit in units)
    assert all(unit.object_path.is_file() for unit in units)
    assert {path.name for path in catalog.c_sources()} >= {
        "Acme_Widget.c",
        "Acme_Gadget.c",
        "boot.c",
        "callbacks.c",
        "gadget_impl.c",
        "widget_impl.c",
    }
    assert len(toolchain.invocations) == 1


def test_rerun_without_edits_does_nothing(
    make_module: MakeModule,
    toolchain: InProcessToolchain,
) -> None:
    module = make_module()
    module.build()
    compiled = len(toolchain.compiled)
    library_mtime = module.catalog().library.stat().st_mtime_ns

    report = module.build()

    assert report.executed == ()
    assert report.skipped == STAGE_ORDER
    assert report.compiled == []
    assert len(toolchain.compiled) == compiled
    assert module.catalog().library.stat().st_mtime_ns == library_mtime


def test_touching_idl_reruns_generation_and_relinks(
    make_module: MakeModule,
    toolchain: InProcessToolchain,
    project: Path,
    age_tree: AgeTree,
) -> None:
    module = make_module()
    module.build()
    catalog = module.catalog()
    glue_before = catalog.glue_path.read_text(encoding="utf-8")
    age_tree(project)
    os.utime(project / "core" / "Acme" / "Widget.idl")
    toolchain.compiled.clear()

    report = module.build()

    assert report.executed == STAGE_ORDER
    # Only the glue object depends on regenerated output.
    assert report.compiled == [catalog.glue_object]
    assert toolchain.compiled == [catalog.glue_object]
    assert catalog.glue_path.read_text(encoding="utf-8") == glue_before
    assert catalog.glue_path in report.touched
    assert catalog.autogen_dir in report.touched
    assert module.logger.records_for_operation("touch")


def test_editing_idl_content_recompiles_generated_sources(
    make_module: MakeModule,
    toolchain: InProcessToolchain,
    project: Path,
    age_tree: AgeTree,
) -> None:
    module = make_module()
    module.build()
    age_tree(project)
    idl = project / "core" / "Acme" / "Widget.idl"
    idl.write_text(
        idl.read_text(encoding="utf-8").replace(
            "int32_t get_size(Widget* self);",
            "int32_t get_size(Widget* self);\n    void reset(Widget* self);",
        ),
        encoding="utf-8",
    )
    toolchain.compiled.clear()

    report = module.build()

    names = {path.name for path in report.compiled}
    assert "Widget.o" in names
    assert "Acme_Widget.o" in names
    assert "callbacks.o" in names
    assert "Acme_Gadget.o" not in names
    assert "widget_impl.o" not in names
    assert "Widget_reset" in module.catalog().glue_path.read_text(encoding="utf-8")


def test_editing_generator_regenerates_host_bindings_only(
    make_module: MakeModule,
    project: Path,
    age_tree: AgeTree,
) -> None:
    generator_source = project / "buildlib" / "bindings.py"
    generator_source.parent.mkdir()
    generator_source.write_text("# bindings\n", encoding="utf-8")
    module = make_module(generators=(ModuleBindings(sources=(generator_source,)),))
    module.build()
    age_tree(project)
    os.utime(generator_source)

    report = module.build()

    assert "generate-core" in report.skipped
    assert "generate-host-bindings" in report.executed
    assert module.catalog().glue_path in report.touched
    assert module.catalog().autogen_dir in report.touched
    assert module.build().executed == ()


def test_recompiled_object_forces_relink(
    make_module: MakeModule,
    toolchain: InProcessToolchain,
    project: Path,
) -> None:
    module = make_module()
    module.build()
    catalog = module.catalog()
    # the library compares newer than anything a rebuild writes
    ahead = catalog.library.stat().st_mtime_ns + 3600 * 1_000_000_000
    os.utime(catalog.library, ns=(ahead, ahead))
    (project / "core" / "widget_impl.o").unlink()
    toolchain.invocations.clear()

    report = module.build()

    assert report.executed == ("compile-sources", "link")
    assert report.compiled == [project / "core" / "widget_impl.o"]
    assert len(toolchain.invocations) == 1



def test_partial_compile_failure_resumes(
    make_module: MakeModule,
    project: Path,
) -> None:
    failing = InProcessToolchain(fail_on=frozenset({"gadget_impl.c"}))
    module = make_module(max_workers=1, toolchain_override=failing)

    with pytest.raises(CompileError) as excinfo:
        module.build()

    catalog = module.catalog()
    assert excinfo.value.context["source"] == str(project / "core" / "gadget_impl.c")
    assert catalog.glue_object.is_file()
    assert not (project / "core" / "gadget_impl.o").exists()
    assert not catalog.library.exists()

    healthy = InProcessToolchain()
    report = make_module(max_workers=1, toolchain_override=healthy).build()

    assert catalog.glue_object not in report.compiled
    assert project / "core" / "gadget_impl.o" in report.compiled
    assert report.executed == ("compile-sources", "link", "bootstrap-stub")
    assert catalog.library.is_file()


def test_deleted_glue_is_regenerated(make_module: MakeModule) -> None:
    module = make_module()
    module.build()
    module.catalog().glue_path.unlink()

    report = module.build()

    assert "generate-host-bindings" in report.executed
    assert module.catalog().glue_path.is_file()


def test_missing_generator_source_aborts(make_module: MakeModule, project: Path) -> None:
    module = make_module(generators=(ModuleBindings(sources=(project / "missing.py",)),))

    with pytest.raises(MissingInputError) as excinfo:
        module.build()

    assert excinfo.value.context["path"] == str(project / "missing.py")
    assert not module.catalog().autogen_dir.exists()
    (record,) = module.logger.records_for_operation("stage_failed")
    assert record["extra"]["code"] == "E_MISSING_INPUT"


def test_malformed_idl_aborts_in_parse_stage(make_module: MakeModule, project: Path) -> None:
    (project / "core" / "Broken.idl").write_text("class Broken {\n", encoding="utf-8")
    module = make_module()

    with pytest.raises(ParseError):
        module.build()

    (record,) = module.logger.records_for_operation("stage_failed")
    assert record["stage"] == "parse-model"


def test_duplicate_parameter_aborts_generation(make_module: MakeModule, project: Path) -> None:
    (project / "core" / "Dup.idl").write_text(
        "class Acme::Dup {\n    void f(Dup* self, int32_t self);\n}\n",
        encoding="utf-8",
    )
    module = make_module()

    with pytest.raises(DuplicateParameterError) as excinfo:
        module.build()

    assert excinfo.value.code == "E_DUPLICATE_PARAMETER"


def test_build_report_lists_cleanup_paths(make_module: MakeModule) -> None:
    module = make_module()
    report = module.build()
    catalog = module.catalog()

    for path in (catalog.autogen_dir, catalog.typemap, catalog.glue_path, catalog.library):
        assert path in report.cleanup


def test_openbsd_threaded_build_links_pthread(
    make_module: MakeModule,
    toolchain: InProcessToolchain,
) -> None:
    make_module(platform="openbsd", threaded=True).build()

    (invocation,) = toolchain.invocations
    assert "-lpthread" in invocation.argv


def test_mingw_build_installs_import_library(
    make_module: MakeModule,
    toolchain: InProcessToolchain,
) -> None:
    module = make_module(platform="mingw")
    catalog = module.catalog()
    catalog.module_dir.mkdir(parents=True)
    catalog.import_library.write_bytes(b"implib")

    module.build()

    (invocation,) = toolchain.invocations
    assert any(arg.startswith("-Wl,--image-base,") for arg in invocation.argv)
    assert catalog.library.name == "Widget.dll"
    assert (catalog.arch_dir / "Widget.lib").read_bytes() == b"implib"
