"""pipehammer: clause synthesis for Ok/Error pipelines."""

from pipehammer.build import BuildResult, compile_file, compile_source, load
from pipehammer.clauses import ClauseKind, FunctionSignature, SynthesizedClause
from pipehammer.errors import (
    CompileError,
    DispatchError,
    EvaluationError,
    PipehammerError,
    UnboundNameError,
    UndefinedFunctionError,
)
from pipehammer.results import Error, Ok
from pipehammer.runtime import Program
from pipehammer.scope import DeclarationScope, finalize_clauses, finalize_scope
from pipehammer.values import Atom, Record

__version__ = "0.1.0"

__all__ = [
    "Atom",
    "BuildResult",
    "ClauseKind",
    "CompileError",
    "DeclarationScope",
    "DispatchError",
    "Error",
    "EvaluationError",
    "FunctionSignature",
    "Ok",
    "PipehammerError",
    "Program",
    "Record",
    "SynthesizedClause",
    "UnboundNameError",
    "UndefinedFunctionError",
    "compile_file",
    "compile_source",
    "finalize_clauses",
    "finalize_scope",
    "load",
]
