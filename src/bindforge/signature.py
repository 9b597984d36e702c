"""Parameter lists for generated function and method signatures."""

from __future__ import annotations

from dataclasses import dataclass, field

from bindforge.errors import DuplicateParameterError, ValidationError


@dataclass(frozen=True, slots=True)
class Variable:
    type: str
    name: str
    required: bool = True

    def to_declaration(self) -> str:
        return f"{self.type} {self.name}"


@dataclass(frozen=True, slots=True)
class ParamEntry:
    variable: Variable
    default: str | None = None


@dataclass(slots=True)
class ParamList:
    """Ordered parameters of one function, plus a variadic flag.

    Rendering follows insertion order::

        params = ParamList()
        params.add(Variable("Obj*", "self"))
        params.add(Variable("Foo*", "foo"))
        params.to_declaration()  # "Obj* self, Foo* foo"
        params.to_name_list()    # "self, foo"
    """

    variadic: bool = False
    _entries: list[ParamEntry] = field(default_factory=list, repr=False)
    _sealed: bool = field(default=False, repr=False)

    def add(self, variable: Variable, default: str | None = None) -> ParamList:
        if self._sealed:
            raise ValidationError(
                "Cannot add parameters to a sealed parameter list.",
                context={"parameter": variable.name},
            )
        if any(entry.variable.name == variable.name for entry in self._entries):
            raise DuplicateParameterError(
                f"Duplicate parameter name '{variable.name}'.",
                hint="Each parameter of a signature must have a unique name.",
                context={"parameter": variable.name, "declaration": self.to_declaration()},
            )
        self._entries.append(ParamEntry(variable=variable, default=default))
        return self

    def seal(self) -> ParamList:
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def entries(self) -> tuple[ParamEntry, ...]:
        return tuple(self._entries)

    @property
    def variables(self) -> tuple[Variable, ...]:
        return tuple(entry.variable for entry in self._entries)

    @property
    def initial_values(self) -> tuple[str | None, ...]:
        return tuple(entry.default for entry in self._entries)

    def count(self) -> int:
        # A receiver such as "self" counts like any other entry.
        return len(self._entries)

    def to_declaration(self) -> str:
        parts = [entry.variable.to_declaration() for entry in self._entries]
        if self.variadic:
            parts.append("...")
        return ", ".join(parts)

    def to_name_list(self) -> str:
        return ", ".join(entry.variable.name for entry in self._entries)
