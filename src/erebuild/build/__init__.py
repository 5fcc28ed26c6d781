"""
Dependency build pipeline for erebuild.

This package provides:
- Artifact probing and CMake dependency builds
- Schema binding generation with protoc
- Link directives for the host build system
- Compile unit assembly
- The Orchestrator that sequences them
"""

from .artifact_probe import ArtifactProbe
from .build_context import BuildLayout, BuildParams, ClientUnitConfig, ExternalDependencySpec
from .build_profiles import BuildProfile
from .compile_unit import CompileUnitAssembler, CompileUnitSpec, assemble_compile_unit
from .link_directives import LinkDirective, LinkDirectiveEmitter, LinkKind
from .orchestrator import Orchestrator, PipelineResult, PipelineState
from .schema_compiler import SchemaCompileJob, SchemaCompiler
from .toolchain_builder import ToolchainBuilder

__all__ = [
    "ArtifactProbe",
    "BuildLayout",
    "BuildParams",
    "BuildProfile",
    "ClientUnitConfig",
    "CompileUnitAssembler",
    "CompileUnitSpec",
    "ExternalDependencySpec",
    "LinkDirective",
    "LinkDirectiveEmitter",
    "LinkKind",
    "Orchestrator",
    "PipelineResult",
    "PipelineState",
    "SchemaCompileJob",
    "SchemaCompiler",
    "ToolchainBuilder",
    "assemble_compile_unit",
]
