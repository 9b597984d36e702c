"""A small line-oriented IDL parser.

Accepted grammar::

    parcel Acme;
    class Acme::Widget : Acme::Obj {
        int32_t get_size(Widget* self);
        void set_label(Widget* self, String* label = NULL, ...);
    }

Blank lines and lines starting with ``//`` or ``#`` are ignored. Without a
``parcel`` directive a class belongs to the parcel named by the first
component of its name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from bindforge.errors import ParseError
from bindforge.hierarchy import ClassDecl, HierarchyModel, MethodDecl, ParamDecl

_NAME = r"[A-Za-z_]\w*(?:::[A-Za-z_]\w*)*"
_PARCEL = re.compile(r"^parcel\s+(?P<name>" + _NAME + r")\s*;$")
_CLASS = re.compile(
    r"^class\s+(?P<name>" + _NAME + r")(?:\s*:\s*(?P<parent>" + _NAME + r"))?\s*\{$"
)
_METHOD = re.compile(r"^(?P<ret>.+?)\s*\b(?P<name>[A-Za-z_]\w*)\s*\((?P<params>.*)\)\s*;$")
_PARAM = re.compile(r"^(?P<type>.+?[\s*])(?P<name>[A-Za-z_]\w*)(?:\s*=\s*(?P<default>.+))?$")


def parse_file(path: Path) -> tuple[ClassDecl, ...]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ParseError(
            f"Cannot read IDL file: {exc}",
            context={"path": str(path)},
        ) from exc

    parcel: str | None = None
    classes: list[ClassDecl] = []
    current: dict[str, object] | None = None
    methods: list[MethodDecl] = []

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(("//", "#")):
            continue

        if current is None:
            if (match := _PARCEL.match(line)) is not None:
                parcel = match.group("name")
                continue
            if (match := _CLASS.match(line)) is not None:
                current = {"name": match.group("name"), "parent": match.group("parent")}
                methods = []
                continue
            if line == "}":
                raise _syntax_error(path, lineno, line, "Unbalanced braces: no open class.")
            raise _syntax_error(path, lineno, line, "Expected a parcel or class declaration.")

        if line == "}":
            name = str(current["name"])
            classes.append(
                ClassDecl(
                    name=name,
                    parcel=parcel or name.split("::")[0],
                    source=path,
                    parent=current["parent"],  # type: ignore[arg-type]
                    methods=tuple(methods),
                ),
            )
            current = None
            continue
        if _CLASS.match(line) is not None or "{" in line or "}" in line:
            raise _syntax_error(path, lineno, line, "Unbalanced braces in class body.")
        methods.append(_parse_method(path, lineno, line))

    if current is not None:
        raise ParseError(
            "Class body is not closed.",
            hint="Add the missing '}'.",
            context={"path": str(path), "class": str(current["name"])},
        )
    return tuple(classes)


def _parse_method(path: Path, lineno: int, line: str) -> MethodDecl:
    match = _METHOD.match(line)
    if match is None:
        raise _syntax_error(path, lineno, line, "Expected a method declaration.")
    params: list[ParamDecl] = []
    variadic = False
    raw_params = [part.strip() for part in match.group("params").split(",")]
    if raw_params == [""]:
        raw_params = []
    for index, raw in enumerate(raw_params):
        if raw == "...":
            if index != len(raw_params) - 1:
                raise _syntax_error(path, lineno, line, "'...' must be the last parameter.")
            variadic = True
            continue
        param = _PARAM.match(raw)
        if param is None:
            raise _syntax_error(path, lineno, line, f"Malformed parameter '{raw}'.")
        params.append(
            ParamDecl(
                type=param.group("type").strip(),
                name=param.group("name"),
                default=param.group("default"),
            ),
        )
    return MethodDecl(
        name=match.group("name"),
        return_type=match.group("ret").strip(),
        params=tuple(params),
        variadic=variadic,
    )


def _syntax_error(path: Path, lineno: int, line: str, message: str) -> ParseError:
    return ParseError(
        message,
        hint="Fix the IDL syntax at the reported line.",
        context={"path": str(path), "line": str(lineno), "text": line},
    )


@dataclass(slots=True)
class InProcessHierarchyCompiler:
    """Parses IDL source dirs into a :class:`HierarchyModel`.

    Include dirs are recorded on the model but not parsed; classes there
    belong to other modules.
    """

    dest: Path
    source_dirs: list[Path] = field(default_factory=list)
    include_dirs: list[Path] = field(default_factory=list)

    def add_source_dir(self, path: Path) -> None:
        self.source_dirs.append(path)

    def add_include_dir(self, path: Path) -> None:
        self.include_dirs.append(path)

    def build(self) -> HierarchyModel:
        sources: list[Path] = []
        for source_dir in self.source_dirs:
            sources.extend(sorted(source_dir.rglob("*.idl")))

        classes: list[ClassDecl] = []
        seen: dict[str, Path] = {}
        for source in sources:
            for decl in parse_file(source):
                if decl.name in seen:
                    raise ParseError(
                        f"Class '{decl.name}' is declared twice.",
                        context={"path": str(source), "first": str(seen[decl.name])},
                    )
                seen[decl.name] = source
                classes.append(decl)

        return HierarchyModel(
            classes=tuple(classes),
            source_dirs=tuple(self.source_dirs),
            include_dirs=tuple(self.include_dirs),
            sources=tuple(sources),
        )
