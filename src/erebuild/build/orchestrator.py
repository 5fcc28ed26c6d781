"""
Dependency build orchestration for the client application.

The orchestrator runs a fixed pipeline of stages. Each stage moves the
pipeline to its next state or fails it; the first failure ends the run and
is returned verbatim in the PipelineResult.

    INIT
      -> DEPS_DIRS_ENSURED    create build/protobuf and build/sdl
      -> TOOLCHAIN_READY_A    build protobuf unless protoc + libprotobuf exist
      -> SCHEMA_READY         run protoc unless the bindings directory exists
      -> LINKED_A             emit link directives for libprotobuf
      -> TOOLCHAIN_READY_B    build SDL2 unless its static archive exists
      -> LINKED_B             emit link directives for SDL2
      -> RUNTIME_COPIED       copy SDL2's shared library into OUT_DIR
      -> UNIT_ASSEMBLED       assemble the client compile unit
    any stage -> FAILED

Every run re-probes the filesystem; nothing is remembered between runs.
"""

import logging
import shutil
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from ..errors import FileSystemError, OrchestrationError
from ..output import TimedLogger, log_build_complete, log_detail
from ..paths import canonicalize, current_directory
from .artifact_probe import ArtifactProbe
from .build_context import PROTOBUF, SDL, BuildParams, ExternalDependencySpec
from .build_profiles import print_profile_banner
from .compile_unit import CompileUnitAssembler, CompileUnitSpec
from .link_directives import LinkDirective, LinkDirectiveEmitter
from .schema_compiler import SchemaCompileJob, SchemaCompiler
from .toolchain_builder import ToolchainBuilder

# Module-level logger
logger = logging.getLogger(__name__)


class PipelineState(Enum):
    """States of the dependency pipeline, in execution order."""

    INIT = "init"
    DEPS_DIRS_ENSURED = "deps_dirs_ensured"
    TOOLCHAIN_READY_A = "toolchain_ready_a"
    SCHEMA_READY = "schema_ready"
    LINKED_A = "linked_a"
    TOOLCHAIN_READY_B = "toolchain_ready_b"
    LINKED_B = "linked_b"
    RUNTIME_COPIED = "runtime_copied"
    UNIT_ASSEMBLED = "unit_assembled"
    FAILED = "failed"


class StageStatus(Enum):
    RAN = "ran"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StageRecord:
    """What one stage did during a run."""

    name: str
    target: PipelineState
    status: StageStatus
    detail: str
    elapsed: float


@dataclass
class PipelineResult:
    """Tagged result of an orchestration run.

    Attributes:
        state: Final state (UNIT_ASSEMBLED on success, FAILED otherwise)
        error: The first stage error, exactly as raised, or None
        transitions: Every state visited, starting with INIT
        stages: One record per stage that started
        directives: Link directives emitted before the run ended
        compile_unit: Assembled compile unit on success
        build_time: Wall-clock duration of the run in seconds
    """

    state: PipelineState = PipelineState.INIT
    error: Optional[OrchestrationError] = None
    transitions: List[PipelineState] = field(default_factory=lambda: [PipelineState.INIT])
    stages: List[StageRecord] = field(default_factory=list)
    directives: List[LinkDirective] = field(default_factory=list)
    compile_unit: Optional[CompileUnitSpec] = None
    build_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.state is PipelineState.UNIT_ASSEMBLED

    @property
    def ran_stages(self) -> List[str]:
        """Names of the stages that did real work (not skipped)."""
        return [s.name for s in self.stages if s.status is StageStatus.RAN]

    def advance(self, state: PipelineState) -> None:
        self.state = state
        self.transitions.append(state)

    def fail(self, error: OrchestrationError) -> None:
        self.error = error
        self.advance(PipelineState.FAILED)

    def raise_for_error(self) -> None:
        """Re-raise the stage error of a failed run."""
        if self.error is not None:
            raise self.error


@dataclass(frozen=True)
class _Outcome:
    ran: bool
    detail: str


def _ran(detail: str) -> _Outcome:
    return _Outcome(True, detail)


def _skipped(detail: str) -> _Outcome:
    return _Outcome(False, detail)


@dataclass
class _RunContext:
    """Per-run values created by earlier stages and read by later ones."""

    result: PipelineResult
    dependencies: Dict[str, ExternalDependencySpec] = field(default_factory=dict)

    def dependency(self, name: str) -> ExternalDependencySpec:
        try:
            return self.dependencies[name]
        except KeyError:
            raise OrchestrationError(f"{name} is used before its output directory is prepared") from None


class Orchestrator:
    """
    Runs the dependency pipeline for one client build.

    Collaborators are injectable so the pipeline can be exercised without
    CMake or protoc; by default they are built from the BuildParams.
    """

    def __init__(
        self,
        params: BuildParams,
        probe: Optional[ArtifactProbe] = None,
        builder: Optional[ToolchainBuilder] = None,
        schema_compiler: Optional[SchemaCompiler] = None,
        emitter: Optional[LinkDirectiveEmitter] = None,
    ):
        """
        Args:
            params: Paths and settings for the run
            probe: Artifact probe (default: ArtifactProbe())
            builder: Dependency builder (default: CMake via params.cmake)
            schema_compiler: Binding generator (default: SchemaCompiler())
            emitter: Host directive channel (default: stdout)
        """
        self.params = params
        self.probe = probe if probe is not None else ArtifactProbe()
        self.builder = builder if builder is not None else ToolchainBuilder(params.cmake, params.generator)
        self.schema_compiler = schema_compiler if schema_compiler is not None else SchemaCompiler()
        self.emitter = emitter if emitter is not None else LinkDirectiveEmitter()

        self._stages: Tuple[Tuple[PipelineState, str, Callable[[_RunContext], _Outcome]], ...] = (
            (PipelineState.DEPS_DIRS_ENSURED, "Preparing dependency directories", self._ensure_dirs),
            (PipelineState.TOOLCHAIN_READY_A, "Building protobuf", self._ensure_protobuf),
            (PipelineState.SCHEMA_READY, "Generating schema bindings", self._ensure_bindings),
            (PipelineState.LINKED_A, "Linking protobuf", self._link_protobuf),
            (PipelineState.TOOLCHAIN_READY_B, "Building sdl", self._ensure_sdl),
            (PipelineState.LINKED_B, "Linking sdl", self._link_sdl),
            (PipelineState.RUNTIME_COPIED, "Copying sdl runtime", self._copy_runtime),
            (PipelineState.UNIT_ASSEMBLED, "Assembling compile unit", self._assemble_unit),
        )

    @property
    def stage_names(self) -> List[str]:
        return [name for _, name, _ in self._stages]

    def run(self) -> PipelineResult:
        """Execute the pipeline.

        Returns:
            PipelineResult; on failure ``result.error`` is the stage's exception
        """
        start_time = time.time()
        ctx = _RunContext(result=PipelineResult())
        total = len(self._stages)

        print_profile_banner(self.params.profile, generator=self.params.generator)

        for phase, (target, name, stage) in enumerate(self._stages, start=1):
            stage_start = time.time()
            try:
                with TimedLogger(name, phase=(phase, total)) as timer:
                    outcome = stage(ctx)
                    if outcome.ran:
                        timer.detail(outcome.detail)
                    else:
                        timer.skip(outcome.detail)
            except OrchestrationError as e:
                log_detail(f"Failed: {str(e).splitlines()[0]}")
                logger.debug("stage %r failed in state %s", name, ctx.result.state, exc_info=True)
                ctx.result.stages.append(
                    StageRecord(name, target, StageStatus.FAILED, str(e), time.time() - stage_start)
                )
                ctx.result.fail(e)
                break

            status = StageStatus.RAN if outcome.ran else StageStatus.SKIPPED
            ctx.result.stages.append(StageRecord(name, target, status, outcome.detail, timer.elapsed))
            ctx.result.advance(target)

        ctx.result.build_time = time.time() - start_time
        if ctx.result.success:
            log_build_complete(ctx.result.build_time)
        return ctx.result

    def run_or_raise(self) -> PipelineResult:
        """Execute the pipeline and raise the first stage error, if any."""
        result = self.run()
        result.raise_for_error()
        return result

    # Stages

    def _ensure_dirs(self, ctx: _RunContext) -> _Outcome:
        layout = self.params.layout
        created = []
        for directory in layout.output_dirs:
            if directory.is_dir():
                continue
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FileSystemError(f"Cannot create {directory}: {e}", directory) from e
            created.append(directory)

        names = self.params.names
        ctx.dependencies[PROTOBUF] = layout.protobuf_spec(canonicalize(layout.protobuf_output), names)
        ctx.dependencies[SDL] = layout.sdl_spec(canonicalize(layout.sdl_output), names)

        if not created:
            return _skipped("output directories already exist")
        return _ran("Created " + ", ".join(str(d) for d in created))

    def _ensure_protobuf(self, ctx: _RunContext) -> _Outcome:
        return self._ensure_dependency(ctx.dependency(PROTOBUF))

    def _ensure_bindings(self, ctx: _RunContext) -> _Outcome:
        layout = self.params.layout
        if self.probe.exists_dir(layout.bindings_dir):
            return _skipped(f"{layout.bindings_dir} already present")

        job = SchemaCompileJob(
            compiler=ctx.dependency(PROTOBUF).bin_dir / self.params.names.protoc,
            schema_files=layout.schema_files,
            output_dir=layout.bindings_output,
            working_directory=layout.repo_root,
            original_working_directory=current_directory(),
        )
        self.emitter.warning("compiling proto files")
        output = self.schema_compiler.compile(job)
        if output.strip():
            self.emitter.warning(output)
        return _ran(f"Generated bindings in {layout.bindings_dir}")

    def _link_protobuf(self, ctx: _RunContext) -> _Outcome:
        return self._link(ctx, ctx.dependency(PROTOBUF))

    def _ensure_sdl(self, ctx: _RunContext) -> _Outcome:
        return self._ensure_dependency(ctx.dependency(SDL))

    def _link_sdl(self, ctx: _RunContext) -> _Outcome:
        return self._link(ctx, ctx.dependency(SDL))

    def _copy_runtime(self, ctx: _RunContext) -> _Outcome:
        sdl = ctx.dependency(SDL)
        runtime = sdl.runtime_artifact
        if runtime is None:
            return _skipped(f"{sdl.name} has no runtime library")

        destination = self.params.out_dir / runtime.name
        try:
            shutil.copy2(runtime, destination)
        except OSError as e:
            raise FileSystemError(f"Cannot copy {runtime} to {destination}: {e}", runtime) from e
        return _ran(f"Copied {runtime.name} to {self.params.out_dir}")

    def _assemble_unit(self, ctx: _RunContext) -> _Outcome:
        unit = self.params.unit
        assembler = (
            CompileUnitAssembler(base_dir=self.params.layout.client_dir)
            .cpp(unit.cpp)
            .static_crt(unit.static_crt)
            .shared_flag(unit.shared_flag)
            .files(unit.sources)
            .includes(unit.includes)
            .flags(unit.flags)
        )
        for name, value in unit.defines:
            assembler.define(name, value)
        ctx.result.compile_unit = assembler.assemble(unit.output_name)
        spec = ctx.result.compile_unit
        return _ran(f"{spec.output_name}: {len(spec.sources)} sources, {len(spec.includes)} include dirs")

    # Shared stage logic

    def _ensure_dependency(self, dep: ExternalDependencySpec) -> _Outcome:
        missing = self.probe.missing(dep.artifacts)
        if not missing:
            return _skipped(f"{dep.name} artifacts present in {dep.output_dir}")

        for path in missing:
            log_detail(f"Missing: {path}", verbose_only=True)
        self.emitter.warning(f"compiling {dep.name}")
        self.builder.build(dep, self.params.profile)

        still_missing = self.probe.missing(dep.artifacts)
        if still_missing:
            raise FileSystemError(
                f"{dep.name} build finished but did not produce: " + ", ".join(str(p) for p in still_missing),
                still_missing[0],
            )
        return _ran(f"Built {dep.name} into {dep.output_dir}")

    def _link(self, ctx: _RunContext, dep: ExternalDependencySpec) -> _Outcome:
        directive = self.emitter.emit(canonicalize(dep.lib_dir), dep.link_name, dep.link_kind)
        ctx.result.directives.append(directive)
        return _ran(f"{directive.kind.value}={directive.library_name}")
