from .api import CompileOptions, CompileResult, compile_file, compile_string, run_raw, run_string
from .codec import desugar, filter_primitives, resugar
from .codegen import compile_program
from .errors import CompilerInvariantError, LoopImbalance, ParseError, TapecError, UnbalancedLoop
from .interpreter import TAPE_SIZE, TapeInterpreter
from .parser import parse_program
from .state import CompilerState

__all__ = [
    'CompileOptions',
    'CompileResult',
    'compile_string',
    'compile_file',
    'run_string',
    'run_raw',
    'desugar',
    'resugar',
    'filter_primitives',
    'compile_program',
    'CompilerState',
    'TapeInterpreter',
    'TAPE_SIZE',
    'parse_program',
    'TapecError',
    'UnbalancedLoop',
    'LoopImbalance',
    'ParseError',
    'CompilerInvariantError',
]
