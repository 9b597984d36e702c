"""The fixed IDL-to-extension pipeline.

parse-model → generate-core → generate-host-bindings → transpile-glue →
compile-sources → link → bootstrap-stub
"""

from __future__ import annotations

from bindforge.config import linker_flags
from bindforge.freshness import Gate, copy_if_modified, is_stale
from bindforge.models import ArtifactRef
from bindforge.pipeline.compile import compile_units
from bindforge.pipeline.context import BuildContext
from bindforge.pipeline.runner import Stage, StageRunner
from bindforge.platforms.base import LinkSpec

# ── parse-model ─────────────────────────────────────────────────────


def _parse_model_gates(context: BuildContext) -> tuple[Gate, ...]:
    catalog = context.catalog
    return (
        Gate(
            inputs=(*catalog.idl_refs(), *catalog.generator_refs()),
            outputs=(catalog.glue_ref(), catalog.generation_stamp()),
        ),
    )


def parse_model(context: BuildContext) -> None:
    context.invalidate_model()
    model = context.model()
    context.logger.log(
        operation="parse",
        stage="parse-model",
        artifact=None,
        message="Parsed IDL sources.",
        extra={"classes": len(model.classes), "sources": len(model.sources)},
    )


# ── generate-core ───────────────────────────────────────────────────


def _generate_core_gates(context: BuildContext) -> tuple[Gate, ...]:
    catalog = context.catalog
    return (
        Gate(
            inputs=catalog.idl_refs(),
            outputs=(
                catalog.generation_stamp(),
                ArtifactRef(path=catalog.typemap, kind="generated"),
            ),
        ),
    )


def generate_core(context: BuildContext) -> None:
    catalog = context.catalog
    context.cleanup.add(catalog.autogen_dir)
    changed = context.core_emitter.write_all_modified(
        context.model(),
        context.config.autogen_header,
        context.config.autogen_footer,
    )
    context.core_changed = changed
    if changed:
        # the glue must follow the new core; dropping it keeps it stale
        # even if host binding generation is interrupted
        catalog.glue_path.unlink(missing_ok=True)
        catalog.typemap.unlink(missing_ok=True)
    if changed or not catalog.typemap.exists():
        context.host_binding().write_typemap()
        context.cleanup.add(catalog.typemap)
    context.logger.log(
        operation="generate_core",
        stage="generate-core",
        artifact=catalog.autogen_dir,
        message="Core files rewritten." if changed else "Core files unchanged.",
        extra={"changed": changed},
    )


# ── generate-host-bindings ──────────────────────────────────────────


def _host_binding_gates(context: BuildContext) -> tuple[Gate, ...]:
    catalog = context.catalog
    return (
        Gate(
            inputs=(*catalog.idl_refs(), *catalog.generator_refs()),
            outputs=(catalog.glue_ref(),),
        ),
    )


def _host_binding_touch(context: BuildContext) -> tuple[Gate, ...]:
    # a generator-only edit leaves autogen/ untouched, yet parse-model
    # compares generator sources against the stamp as well
    catalog = context.catalog
    return (
        *_host_binding_gates(context),
        Gate(
            inputs=(*catalog.idl_refs(), *catalog.generator_refs()),
            outputs=(catalog.generation_stamp(),),
        ),
    )


def generate_host_bindings(context: BuildContext) -> None:
    catalog = context.catalog
    rewrite = (
        context.core_changed
        or not catalog.glue_path.exists()
        or is_stale(catalog.generator_refs(), (catalog.glue_ref(),))
    )
    if not rewrite:
        context.logger.log(
            operation="generate_host",
            stage="generate-host-bindings",
            artifact=catalog.glue_path,
            message="Host bindings unaffected by source changes.",
        )
        return

    binding = context.host_binding()
    binding.write_callbacks()
    binding.write_boot()
    binding.write_hostdefs()
    binding.write_bindings()
    context.cleanup.add(catalog.glue_path)
    for path in binding.write_docs():
        context.cleanup.add(path)
    context.logger.log(
        operation="generate_host",
        stage="generate-host-bindings",
        artifact=catalog.glue_path,
        message="Wrote host bindings.",
    )


# ── transpile-glue ──────────────────────────────────────────────────


def _transpile_gates(context: BuildContext) -> tuple[Gate, ...]:
    catalog = context.catalog
    return (Gate(inputs=(catalog.glue_ref(),), outputs=(catalog.glue_source_ref(),)),)


def transpile_glue(context: BuildContext) -> None:
    catalog = context.catalog
    catalog.glue_source.unlink(missing_ok=True)
    context.cleanup.add(catalog.glue_source)
    context.transpiler.transpile(catalog.glue_path, catalog.glue_source)
    context.logger.log(
        operation="transpile",
        stage="transpile-glue",
        artifact=catalog.glue_source,
        message="Transpiled glue source.",
    )


# ── compile-sources ─────────────────────────────────────────────────


def _compile_gates(context: BuildContext) -> tuple[Gate, ...]:
    return tuple(
        Gate(
            inputs=(ArtifactRef(path=unit.source, kind="source"),),
            outputs=(ArtifactRef(path=unit.object_path, kind="object"),),
        )
        for unit in context.catalog.compile_units()
    )


def compile_sources(context: BuildContext) -> None:
    units = context.catalog.compile_units()
    stale = tuple(unit for unit, gate in zip(units, _compile_gates(context)) if gate.is_stale())
    compile_units(context, stale)


# ── link ────────────────────────────────────────────────────────────


def _link_gates(context: BuildContext) -> tuple[Gate, ...]:
    catalog = context.catalog
    return (
        Gate(
            inputs=(*catalog.object_refs(), catalog.generation_stamp()),
            outputs=(catalog.library_ref(),),
        ),
    )


def _objects_rebuilt(context: BuildContext) -> bool:
    # an object written in the same clock tick as the library compares equal
    return bool(context.compiled())


def link_spec(context: BuildContext) -> LinkSpec:
    catalog = context.catalog
    config = context.config
    flags = dict(config.link_flags)
    other = flags.get("other_ldflags") or ()
    if isinstance(other, str):
        other = (other,)
    elif not isinstance(other, tuple):
        other = ()
    flags["other_ldflags"] = (*other, *linker_flags(config, catalog.platform.id))
    return LinkSpec(
        output=catalog.library,
        objects=tuple(ref.path for ref in catalog.object_refs()),
        search_paths=config.library_dirs,
        libraries=config.libraries,
        platform_flags=flags,
    )


def link(context: BuildContext) -> None:
    catalog = context.catalog
    catalog.library.unlink(missing_ok=True)
    context.cleanup.add(catalog.library)
    spec = link_spec(context)
    context.logger.log(
        operation="link",
        stage="link",
        artifact=catalog.library,
        message="Linking shared library.",
        extra={
            "adapter": context.link_adapter.name,
            "objects": len(spec.objects),
        },
    )
    context.toolchain.link(spec, context.link_adapter)
    for suffix in catalog.platform.side_suffixes:
        context.cleanup.add(catalog.module_dir / f"{catalog.class_name}{suffix}")

    # import libraries ship next to the DLL
    if catalog.import_library.exists():
        installed = catalog.arch_dir / catalog.import_library.name
        if copy_if_modified(catalog.import_library, installed):
            context.cleanup.add(installed)


# ── bootstrap-stub ──────────────────────────────────────────────────


def _bootstrap_gates(context: BuildContext) -> tuple[Gate, ...]:
    catalog = context.catalog
    return (Gate(inputs=(catalog.glue_object_ref(),), outputs=(catalog.bootstrap_ref(),)),)


def bootstrap_stub(context: BuildContext) -> None:
    catalog = context.catalog
    catalog.arch_dir.mkdir(parents=True, exist_ok=True)
    context.cleanup.add(catalog.bootstrap)
    catalog.bootstrap.write_bytes(b"")
    context.logger.log(
        operation="bootstrap",
        stage="bootstrap-stub",
        artifact=catalog.bootstrap,
        message="Wrote bootstrap stub.",
    )


PIPELINE: tuple[Stage, ...] = (
    Stage(name="parse-model", gates=_parse_model_gates, action=parse_model),
    Stage(
        name="generate-core",
        gates=_generate_core_gates,
        action=generate_core,
        touch=_generate_core_gates,
    ),
    Stage(
        name="generate-host-bindings",
        gates=_host_binding_gates,
        action=generate_host_bindings,
        touch=_host_binding_touch,
    ),
    Stage(name="transpile-glue", gates=_transpile_gates, action=transpile_glue),
    Stage(name="compile-sources", gates=_compile_gates, action=compile_sources),
    Stage(name="link", gates=_link_gates, action=link, force=_objects_rebuilt),
    Stage(
        name="bootstrap-stub",
        gates=_bootstrap_gates,
        action=bootstrap_stub,
        touch=_bootstrap_gates,
    ),
)


def default_runner() -> StageRunner:
    return StageRunner(stages=PIPELINE)
