from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

logger = logging.getLogger(__name__)


class BrainfuckError(Exception):
    """Base class for every error raised while parsing or running a program."""


class ParseError(BrainfuckError):
    def __init__(self, message: str, offset: int) -> None:
        super().__init__(message)
        self.offset = offset


class UnmatchedLoopEnd(ParseError):
    def __init__(self, offset: int) -> None:
        super().__init__(f"Unmatched ']' at offset {offset}", offset)


class UnmatchedLoopStart(ParseError):
    def __init__(self, offsets: Sequence[int]) -> None:
        self.offsets: Tuple[int, ...] = tuple(offsets)
        if len(self.offsets) == 1:
            message = f"Unmatched '[' at offset {self.offsets[0]}"
        else:
            joined = ", ".join(str(offset) for offset in self.offsets)
            message = f"Unmatched '[' at offsets {joined}"
        super().__init__(message, self.offsets[0])


class Op(str, Enum):
    ADD = "add"
    MOVE = "move"
    OUTPUT = "output"
    INPUT = "input"
    LOOP_START = "loop_start"
    LOOP_END = "loop_end"


@dataclass(frozen=True)
class Instruction:
    op: Op
    arg: int = 0

    def __str__(self) -> str:
        if self.op in (Op.ADD, Op.MOVE):
            return f"{self.op.value} {self.arg:+d}"
        return self.op.value


def AddValue(delta: int) -> Instruction:
    return Instruction(Op.ADD, delta)


def MovePointer(delta: int) -> Instruction:
    return Instruction(Op.MOVE, delta)


def Output() -> Instruction:
    return Instruction(Op.OUTPUT)


def Input() -> Instruction:
    return Instruction(Op.INPUT)


def LoopStart() -> Instruction:
    return Instruction(Op.LOOP_START)


def LoopEnd() -> Instruction:
    return Instruction(Op.LOOP_END)


_COMMANDS: Dict[str, Instruction] = {
    "+": AddValue(1),
    "-": AddValue(-1),
    ">": MovePointer(1),
    "<": MovePointer(-1),
    ".": Output(),
    ",": Input(),
    "[": LoopStart(),
    "]": LoopEnd(),
}


@dataclass(frozen=True)
class Program:
    """A flat instruction stream plus its bidirectional loop matching table.

    ``jump_table`` maps the index of every loop start to the index of its loop
    end and the other way around, so both jump directions resolve in O(1).
    The table is stored as a read-only mapping.
    """

    instructions: Tuple[Instruction, ...]
    jump_table: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "instructions", tuple(self.instructions))
        object.__setattr__(self, "jump_table", MappingProxyType(dict(self.jump_table)))

    def __len__(self) -> int:
        return len(self.instructions)

    def listing(self) -> str:
        lines: List[str] = []
        width = max(4, len(str(len(self.instructions))))
        for index, instruction in enumerate(self.instructions):
            text = f"{index:0{width}d}  {instruction}"
            if index in self.jump_table:
                text += f" -> {self.jump_table[index]:0{width}d}"
            lines.append(text)
        return "\n".join(lines)


def build_jump_table(instructions: Sequence[Instruction]) -> Dict[int, int]:
    jump_table: Dict[int, int] = {}
    stack: List[int] = []
    for index, instruction in enumerate(instructions):
        if instruction.op is Op.LOOP_START:
            stack.append(index)
        elif instruction.op is Op.LOOP_END:
            if not stack:
                raise ValueError("Unmatched loop end at instruction {}".format(index))
            start = stack.pop()
            jump_table[start] = index
            jump_table[index] = start
    if stack:
        raise ValueError("Unmatched loop start at instruction {}".format(stack[-1]))
    return jump_table


def parse(source: str) -> Program:
    """Turn Brainfuck source text into a raw, unoptimized :class:`Program`.

    Characters other than the eight commands are commentary and are skipped.
    Raises :class:`UnmatchedLoopEnd` or :class:`UnmatchedLoopStart` with the
    source offset(s) of the offending bracket(s).
    """
    instructions: List[Instruction] = []
    jump_table: Dict[int, int] = {}
    # (instruction index, source offset) of every still-open '['
    open_loops: List[Tuple[int, int]] = []

    for offset, char in enumerate(source):
        instruction = _COMMANDS.get(char)
        if instruction is None:
            continue
        index = len(instructions)
        if instruction.op is Op.LOOP_START:
            open_loops.append((index, offset))
        elif instruction.op is Op.LOOP_END:
            if not open_loops:
                raise UnmatchedLoopEnd(offset)
            start, _ = open_loops.pop()
            jump_table[start] = index
            jump_table[index] = start
        instructions.append(instruction)

    if open_loops:
        raise UnmatchedLoopStart([offset for _, offset in open_loops])

    logger.debug(
        "Parsed %d instructions (%d loops) from %d source characters",
        len(instructions),
        len(jump_table) // 2,
        len(source),
    )
    return Program(tuple(instructions), jump_table)


__all__ = [
    "AddValue",
    "BrainfuckError",
    "Input",
    "Instruction",
    "LoopEnd",
    "LoopStart",
    "MovePointer",
    "Op",
    "Output",
    "ParseError",
    "Program",
    "UnmatchedLoopEnd",
    "UnmatchedLoopStart",
    "build_jump_table",
    "parse",
]
