"""Schema binding generation with protoc.

protoc resolves schema imports and output paths relative to its working
directory. The working directory is handed to the child process only; this
process's own working directory is never changed, so it is the same after
compile() returns or raises as it was before.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from ..errors import FileSystemError
from ..paths import canonicalize
from ..subprocess_utils import run_tool

logger = logging.getLogger(__name__)

SCHEMA_JOB_NAME = "schema"


@dataclass(frozen=True)
class SchemaCompileJob:
    """One protoc invocation.

    Attributes:
        compiler: Path to the protoc executable built with the protobuf dependency
        schema_files: Schema definitions, relative to working_directory
        output_dir: Bindings output directory, relative to working_directory
        working_directory: Directory protoc runs in
        original_working_directory: Directory the caller runs in, which must
            still be current when the job finishes
    """

    compiler: Path
    schema_files: Tuple[Path, ...]
    output_dir: Path
    working_directory: Path
    original_working_directory: Path


class SchemaCompiler:
    """Runs protoc to generate C++ bindings."""

    def command(self, job: SchemaCompileJob, compiler: Path) -> List[str]:
        cmd = [str(compiler), f"--cpp_out={job.output_dir.as_posix()}"]
        cmd += [schema.as_posix() for schema in job.schema_files]
        return cmd

    def compile(self, job: SchemaCompileJob) -> str:
        """Generate bindings for every schema file of the job.

        Args:
            job: The compile job

        Returns:
            protoc's combined output

        Raises:
            PathResolutionError: If a working directory, the compiler, or a
                schema file does not exist
            FileSystemError: If the output directory cannot be created
            SubprocessError: If protoc fails to start or exits nonzero
        """
        if not job.schema_files:
            raise ValueError("SchemaCompileJob needs at least one schema file")

        working_directory = canonicalize(job.working_directory)
        canonicalize(job.original_working_directory)
        compiler = canonicalize(job.compiler)
        for schema in job.schema_files:
            canonicalize(working_directory / schema)

        output_dir = working_directory / job.output_dir
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Cannot create bindings directory {output_dir}: {e}", output_dir) from e

        output = run_tool(self.command(job, compiler), SCHEMA_JOB_NAME, cwd=working_directory)
        logger.debug("generated bindings under %s", output_dir)
        return output
