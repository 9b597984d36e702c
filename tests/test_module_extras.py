from collections.abc import Callable
from pathlib import Path

import pytest

from bindforge import ModuleBuild
from bindforge.errors import MissingInputError

MakeModule = Callable[..., ModuleBuild]


def test_docs_builds_then_writes_one_page_per_bound_class(
    make_module: MakeModule,
    project: Path,
) -> None:
    module = make_module()

    written = module.docs()

    assert sorted(path.name for path in written) == ["Gadget.md", "Widget.md"]
    widget = (project / "lib" / "Acme" / "Widget.md").read_text(encoding="utf-8")
    assert widget.startswith("# Acme::Widget\n")
    assert "Inherits from `Acme::Obj`." in widget
    assert "- `get_size(self)`" in widget
    assert module.catalog().library.is_file()
    assert all(path in module.cleanup.entries() for path in written)


def test_copy_includes_installs_idl_and_parcel_files(
    make_module: MakeModule,
    project: Path,
) -> None:
    (project / "core" / "Acme.idlp").write_text("parcel Acme;\n", encoding="utf-8")
    module = make_module()

    copied = module.copy_includes()

    install_dir = module.catalog().include_install_dir
    assert sorted(path.relative_to(install_dir).as_posix() for path in copied) == [
        "Acme.idlp",
        "Acme/Gadget.idl",
        "Acme/Widget.idl",
    ]
    assert module.copy_includes() == []


def test_copy_include_file_searches_include_dirs(
    make_module: MakeModule,
    project: Path,
    tmp_path: Path,
) -> None:
    extra = tmp_path / "extra"
    (extra / "acme").mkdir(parents=True)
    (extra / "acme" / "util.h").write_text("#define ACME 1\n", encoding="utf-8")
    module = make_module(include_dirs=(extra,))

    dest = module.copy_include_file("acme", "util.h")

    assert dest == module.catalog().include_install_dir / "acme" / "util.h"
    assert dest.read_text(encoding="utf-8") == "#define ACME 1\n"


def test_copy_include_file_reports_missing_file(make_module: MakeModule) -> None:
    with pytest.raises(MissingInputError) as excinfo:
        make_module().copy_include_file("nope.h")
    assert excinfo.value.context["path"] == "nope.h"


def test_linker_flags_for_dependencies(make_module: MakeModule, tmp_path: Path) -> None:
    site = tmp_path / "site"
    dll = site / "auto" / "Acme" / "Core" / "Core.dll"
    dll.parent.mkdir(parents=True)
    dll.write_bytes(b"")

    assert make_module(search_path=(site,)).linker_flags_for(["Acme.Core"]) == ()
    assert make_module(platform="mingw", search_path=(site,)).linker_flags_for(
        ["Acme.Core"],
    ) == (str(dll),)


def test_clean_removes_outputs_and_keeps_sources(make_module: MakeModule, project: Path) -> None:
    module = make_module()
    module.build()
    module.docs()
    catalog = module.catalog()

    removed = module.clean()

    assert catalog.autogen_dir in removed
    assert not catalog.library.exists()
    assert not catalog.glue_path.exists()
    assert not (project / "core" / "widget_impl.o").exists()
    assert not (project / "lib" / "Acme" / "Widget.md").exists()
    assert (project / "core" / "widget_impl.c").is_file()
    assert module.clean() == []
