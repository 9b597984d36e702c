"""Deterministic core and host-binding writers.

Every writer compares against what is on disk and leaves identical files
untouched, so unchanged output keeps its old timestamp.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bindforge.bindings import BindingRegistry, ClassBinding
from bindforge.errors import GenerationError
from bindforge.hierarchy import ClassDecl, HierarchyModel, MethodDecl
from bindforge.signature import ParamList, Variable


def write_if_modified(path: Path, content: str) -> bool:
    """Write ``content`` unless the file already holds exactly that text."""
    try:
        if path.read_text(encoding="utf-8") == content:
            return False
    except FileNotFoundError:
        pass
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return True


def c_name(class_name: str) -> str:
    return class_name.replace("::", "_")


def short_name(class_name: str) -> str:
    return class_name.rsplit("::", 1)[-1]


def signature(method: MethodDecl) -> ParamList:
    params = ParamList(variadic=method.variadic)
    for param in method.params:
        params.add(
            Variable(type=param.type, name=param.name, required=param.default is None),
            default=param.default,
        )
    return params.seal()


def prototype(decl: ClassDecl, method: MethodDecl) -> str:
    params = signature(method)
    return f"{method.return_type} {short_name(decl.name)}_{method.name}({params.to_declaration()})"


@dataclass(slots=True)
class InProcessCoreEmitter:
    """Writes one header and one C file per class under the autogen dir."""

    autogen_dir: Path

    def write_all_modified(self, model: HierarchyModel, header: str, footer: str) -> bool:
        changed = False
        for decl in model.ordered():
            changed |= write_if_modified(
                self.autogen_dir / "include" / f"{c_name(decl.name)}.h",
                header + self._class_header(decl) + footer,
            )
            changed |= write_if_modified(
                self.autogen_dir / "source" / f"{c_name(decl.name)}.c",
                header + self._class_source(decl) + footer,
            )
        return changed

    def _class_header(self, decl: ClassDecl) -> str:
        guard = f"H_{c_name(decl.name).upper()}"
        struct = short_name(decl.name)
        lines = [
            f"#ifndef {guard}",
            f"#define {guard} 1",
            "",
            "#include <stddef.h>",
            "#include <stdint.h>",
            "",
            f"typedef struct {struct} {struct};",
            "",
        ]
        lines.extend(f"{prototype(decl, method)};" for method in decl.methods)
        lines.extend(["", f"#endif /* {guard} */", ""])
        return "\n".join(lines)

    def _class_source(self, decl: ClassDecl) -> str:
        name = c_name(decl.name)
        parent = f'"{decl.parent}"' if decl.parent else "NULL"
        return (
            f'#include "{name}.h"\n'
            "\n"
            f'const char *{name}_CLASS_NAME = "{decl.name}";\n'
            f"const char *{name}_PARENT_NAME = {parent};\n"
            f"const size_t {name}_NUM_METHODS = {len(decl.methods)};\n"
        )


@dataclass(slots=True)
class InProcessHostBinding:
    model: HierarchyModel
    registry: BindingRegistry
    module_name: str
    autogen_dir: Path
    glue_path: Path
    typemap_path: Path
    header: str
    footer: str

    @property
    def boot_function(self) -> str:
        return f"{self.module_name.replace('.', '_').lower()}_bootstrap"

    def bound_classes(self) -> tuple[tuple[ClassDecl, ClassBinding], ...]:
        pairs: list[tuple[ClassDecl, ClassBinding]] = []
        for binding in self.registry.all():
            decl = self.model.find(binding.class_name)
            if decl is None:
                raise GenerationError(
                    "Binding refers to a class missing from the hierarchy.",
                    hint="Check the class name registered by the binding generator.",
                    context={"class": binding.class_name, "parcel": binding.parcel},
                )
            pairs.append((decl, binding))
        return tuple(pairs)

    def write_callbacks(self) -> None:
        lines = ['#include "boot.h"', ""]
        for decl in self.model.ordered():
            for method in decl.methods:
                lines.append(f"/* {prototype(decl, method)} */")
        count = sum(len(decl.methods) for decl in self.model.classes)
        lines.append(f"const int {self.module_name.replace('.', '_')}_CALLBACKS = {count};")
        write_if_modified(
            self.autogen_dir / "source" / "callbacks.c",
            self.header + "\n".join(lines) + "\n" + self.footer,
        )

    def write_boot(self) -> None:
        write_if_modified(
            self.autogen_dir / "include" / "boot.h",
            self.header
            + "#ifndef H_BOOT\n#define H_BOOT 1\n\n"
            + f"void {self.boot_function}(void);\n\n#endif /* H_BOOT */\n"
            + self.footer,
        )
        write_if_modified(
            self.autogen_dir / "source" / "boot.c",
            self.header
            + '#include "boot.h"\n\n'
            + f"void\n{self.boot_function}(void) {{\n}}\n"
            + self.footer,
        )

    def write_hostdefs(self) -> None:
        write_if_modified(
            self.autogen_dir / "include" / "hostdefs.h",
            self.header
            + "#ifndef H_HOSTDEFS\n#define H_HOSTDEFS 1\n\n"
            + f'#define BINDFORGE_HOST_MODULE "{self.module_name}"\n\n'
            + "#endif /* H_HOSTDEFS */\n"
            + self.footer,
        )

    def write_bindings(self) -> None:
        lines = [
            f"MODULE = {self.module_name.replace('.', '::')}",
            f"BOOT = {self.boot_function}",
        ]
        for decl, binding in self.bound_classes():
            lines.append(f"CLASS {decl.name} AS {binding.host_name or decl.name}")
            for method in decl.methods:
                if method.name in binding.exclude_methods:
                    continue
                params = signature(method)
                lines.append(
                    f"  METHOD {short_name(decl.name)}_{method.name}"
                    f"({params.to_declaration()}) -> {method.return_type}"
                    f" | {params.to_name_list()}",
                )
        write_if_modified(self.glue_path, "\n".join(lines) + "\n")

    def write_typemap(self) -> None:
        lines = ["TYPEMAP"]
        for decl in self.model.ordered():
            lines.append(f"{short_name(decl.name)}*\tBINDFORGE_OBJ")
        write_if_modified(self.typemap_path, "\n".join(lines) + "\n")

    def write_docs(self) -> list[Path]:
        lib_root = self.glue_path.parent
        for _ in self.module_name.split(".")[:-1]:
            lib_root = lib_root.parent
        written: list[Path] = []
        for decl, binding in self.bound_classes():
            host_name = binding.host_name or decl.name
            path = lib_root.joinpath(*host_name.split("::")).with_suffix(".md")
            lines = [f"# {host_name}", ""]
            if decl.parent:
                lines.extend([f"Inherits from `{decl.parent}`.", ""])
            for method in decl.methods:
                if method.name in binding.exclude_methods:
                    continue
                lines.append(f"- `{method.name}({signature(method).to_name_list()})`")
            write_if_modified(path, "\n".join(lines) + "\n")
            written.append(path)
        return written


@dataclass(frozen=True, slots=True)
class InProcessHostBindingFactory:
    def create(
        self,
        model: HierarchyModel,
        registry: BindingRegistry,
        *,
        module_name: str,
        autogen_dir: Path,
        glue_path: Path,
        typemap_path: Path,
        header: str,
        footer: str,
    ) -> InProcessHostBinding:
        return InProcessHostBinding(
            model=model,
            registry=registry,
            module_name=module_name,
            autogen_dir=autogen_dir,
            glue_path=glue_path,
            typemap_path=typemap_path,
            header=header,
            footer=footer,
        )


@dataclass(frozen=True, slots=True)
class ModuleBindings:
    """Binds every class of the module under its IDL name."""

    name: str = "module"
    sources: tuple[Path, ...] = ()
    exclude_classes: tuple[str, ...] = ()
    exclude_methods: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def bind_all(self, model: HierarchyModel, registry: BindingRegistry) -> None:
        for decl in model.ordered():
            if decl.name in self.exclude_classes:
                continue
            registry.register(
                ClassBinding(
                    parcel=decl.parcel,
                    class_name=decl.name,
                    exclude_methods=self.exclude_methods.get(decl.name, ()),
                ),
            )
