"""Shared test fixtures."""

from __future__ import annotations

import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from bindforge import BuildConfig, ModuleBuild
from bindforge.inprocess import InProcessToolchain, ModuleBindings
from bindforge.toolchain import Toolchain

WIDGET_IDL = """\
parcel Acme;

class Acme::Widget : Acme::Obj {
    int32_t get_size(Widget* self);
    void set_label(Widget* self, String* label = NULL, ...);
}
"""

GADGET_IDL = """\
parcel Acme;

// Gadgets are widgets with a size.
class Acme::Gadget : Acme::Widget {
    Gadget* create(int32_t size = 0);
}
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A binding directory with two IDL classes and two hand-written C files."""
    root = tmp_path / "binding"
    core = root / "core"
    (core / "Acme").mkdir(parents=True)
    (core / "Acme" / "Widget.idl").write_text(WIDGET_IDL, encoding="utf-8")
    (core / "Acme" / "Gadget.idl").write_text(GADGET_IDL, encoding="utf-8")
    (core / "widget_impl.c").write_text('#include "Acme_Widget.h"\n', encoding="utf-8")
    (core / "gadget_impl.c").write_text('#include "Acme_Gadget.h"\n', encoding="utf-8")
    return root


@pytest.fixture
def toolchain() -> InProcessToolchain:
    return InProcessToolchain()


@pytest.fixture
def make_module(
    project: Path,
    toolchain: InProcessToolchain,
) -> Callable[..., ModuleBuild]:
    """Return a factory building ``Acme.Widget`` from ``project`` in-process."""

    def factory(
        *,
        root: Path | None = None,
        toolchain_override: Toolchain | None = None,
        **config: Any,
    ) -> ModuleBuild:
        config.setdefault("platform", "linux")
        config.setdefault("max_workers", 2)
        config.setdefault("generators", (ModuleBindings(),))
        return ModuleBuild(
            root=root or project,
            config=BuildConfig(module_name="Acme.Widget", **config),
            toolchain=toolchain_override or toolchain,
            environ={},
        )

    return factory


@pytest.fixture
def age_tree() -> Callable[..., None]:
    """Push every mtime under a directory into the past."""

    def age(root: Path, seconds: int = 100) -> None:
        stamp = time.time_ns() - seconds * 1_000_000_000
        for current, dirs, files in os.walk(root):
            for name in (*dirs, *files):
                os.utime(Path(current) / name, ns=(stamp, stamp))
        os.utime(root, ns=(stamp, stamp))

    return age
