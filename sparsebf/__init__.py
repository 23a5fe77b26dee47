from .bf_interpreter import (
    BrainfuckInterpreter,
    BufferReader,
    BufferWriter,
    ExecutionState,
    InputFailure,
    OutputFailure,
    StepLimitExceeded,
    StreamError,
    StreamReader,
    StreamWriter,
    Tape,
)
from .optimizer import OptimizationStats, optimize
from .parser import (
    AddValue,
    BrainfuckError,
    Input,
    Instruction,
    LoopEnd,
    LoopStart,
    MovePointer,
    Op,
    Output,
    ParseError,
    Program,
    UnmatchedLoopEnd,
    UnmatchedLoopStart,
    parse,
)

__all__ = [
    "AddValue",
    "BrainfuckError",
    "BrainfuckInterpreter",
    "BufferReader",
    "BufferWriter",
    "ExecutionState",
    "Input",
    "InputFailure",
    "Instruction",
    "LoopEnd",
    "LoopStart",
    "MovePointer",
    "Op",
    "OptimizationStats",
    "Output",
    "OutputFailure",
    "ParseError",
    "Program",
    "StepLimitExceeded",
    "StreamError",
    "StreamReader",
    "StreamWriter",
    "Tape",
    "UnmatchedLoopEnd",
    "UnmatchedLoopStart",
    "optimize",
    "parse",
]
