"""Execution engine for parsed Brainfuck programs.

The tape is sparse and unbounded in both directions: only non-zero cells are
stored, the pointer may go negative, and cell values wrap modulo 256.

End of input leaves the current cell unchanged. A ``,`` issued after the
input is exhausted is therefore a no-op, and "read until zero" programs need
an explicit zero byte in their input to stop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Iterable, Iterator, Optional, Protocol, Union

from .optimizer import CELL_MODULUS, optimize as optimize_program
from .parser import BrainfuckError, Op, Program, parse

logger = logging.getLogger(__name__)


class StepLimitExceeded(RuntimeError):
    """Raised when Brainfuck execution exceeds the configured step budget."""


class StreamError(BrainfuckError):
    """Fatal failure of the byte stream behind an output or input instruction."""


class OutputFailure(StreamError):
    pass


class InputFailure(StreamError):
    pass


class Tape:
    """Byte cells addressed by any integer; absent positions read as zero."""

    def __init__(self, cells: Optional[Dict[int, int]] = None) -> None:
        self._cells: Dict[int, int] = {}
        for position, value in (cells or {}).items():
            self[position] = value

    def __getitem__(self, position: int) -> int:
        return self._cells.get(position, 0)

    def __setitem__(self, position: int, value: int) -> None:
        value %= CELL_MODULUS
        if value:
            self._cells[position] = value
        else:
            self._cells.pop(position, None)

    def add(self, position: int, delta: int) -> int:
        value = (self._cells.get(position, 0) + delta) % CELL_MODULUS
        if value:
            self._cells[position] = value
        else:
            self._cells.pop(position, None)
        return value

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[int]:
        return iter(self._cells)

    def snapshot(self) -> Dict[int, int]:
        return dict(self._cells)


class ByteReader(Protocol):
    def read_byte(self) -> Optional[int]:
        ...


class ByteWriter(Protocol):
    def write_byte(self, value: int) -> None:
        ...

    def flush(self) -> None:
        ...


class BufferReader:
    def __init__(self, data: Union[bytes, Iterable[int]] = b"") -> None:
        self._data = bytes(data)
        self._position = 0

    def read_byte(self) -> Optional[int]:
        if self._position >= len(self._data):
            return None
        value = self._data[self._position]
        self._position += 1
        return value


class BufferWriter:
    def __init__(self) -> None:
        self._buffer = bytearray()

    def write_byte(self, value: int) -> None:
        self._buffer.append(value)

    def flush(self) -> None:
        pass

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


class StreamReader:
    """Reads single bytes from a binary file object such as ``sys.stdin.buffer``."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def read_byte(self) -> Optional[int]:
        try:
            data = self._stream.read(1)
        except OSError as exc:
            raise InputFailure(f"Reading from input failed: {exc}") from exc
        if not data:
            return None
        return data[0]


class StreamWriter:
    """Writes single bytes to a binary file object such as ``sys.stdout.buffer``."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def write_byte(self, value: int) -> None:
        try:
            self._stream.write(bytes((value,)))
        except OSError as exc:
            raise OutputFailure(f"Writing to output failed: {exc}") from exc

    def flush(self) -> None:
        try:
            self._stream.flush()
        except OSError as exc:
            raise OutputFailure(f"Flushing output failed: {exc}") from exc


@dataclass
class ExecutionState:
    steps: int
    ip: int
    pointer: int
    tape: Dict[int, int]


@dataclass
class BrainfuckInterpreter:
    optimize: bool = True

    tape: Tape = field(init=False, repr=False)
    pointer: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.tape = Tape()
        self.pointer = 0

    def compile(self, code: str, optimize: Optional[bool] = None) -> Program:
        program = parse(code)
        if self.optimize if optimize is None else optimize:
            program = optimize_program(program)
        return program

    def run(
        self,
        code: str,
        input_data: Union[bytes, Iterable[int], None] = None,
        optimize: Optional[bool] = None,
        max_steps: Optional[int] = None,
    ) -> bytes:
        """Parse, optionally optimize and execute ``code`` against in-memory buffers.

        ``optimize`` overrides the instance setting for this run only.
        """
        writer = BufferWriter()
        self.execute(
            self.compile(code, optimize),
            BufferReader(input_data or b""),
            writer,
            max_steps=max_steps,
        )
        return writer.getvalue()

    def execute(
        self,
        program: Program,
        reader: ByteReader,
        writer: ByteWriter,
        max_steps: Optional[int] = None,
    ) -> ExecutionState:
        """Run ``program`` to completion on a fresh tape.

        There is no step budget unless ``max_steps`` is given, in which case
        :class:`StepLimitExceeded` is raised once it is used up. Stream
        failures surface as :class:`OutputFailure` / :class:`InputFailure`.
        """
        self.reset()
        instructions = program.instructions
        jump_table = program.jump_table
        tape = self.tape
        code_length = len(instructions)
        pointer = 0
        ip = 0
        steps = 0

        logger.debug("Executing program of %d instructions", code_length)
        try:
            while ip < code_length:
                if max_steps is not None and steps >= max_steps:
                    raise StepLimitExceeded("Brainfuck program exceeded allowed step count")
                instruction = instructions[ip]
                op = instruction.op
                steps += 1
                if op is Op.ADD:
                    tape.add(pointer, instruction.arg)
                elif op is Op.MOVE:
                    pointer += instruction.arg
                elif op is Op.LOOP_START:
                    if tape[pointer] == 0:
                        ip = jump_table[ip]
                elif op is Op.LOOP_END:
                    if tape[pointer] != 0:
                        ip = jump_table[ip]
                elif op is Op.OUTPUT:
                    writer.write_byte(tape[pointer])
                elif op is Op.INPUT:
                    writer.flush()
                    value = reader.read_byte()
                    if value is not None:
                        tape[pointer] = value
                ip += 1
        except StepLimitExceeded:
            try:
                writer.flush()
            except StreamError as exc:
                logger.warning("Output flush failed after step limit: %s", exc)
            raise
        finally:
            self.pointer = pointer

        writer.flush()
        logger.debug(
            "Execution finished after %d steps with %d non-zero cells",
            steps,
            len(tape),
        )
        return ExecutionState(steps=steps, ip=ip, pointer=pointer, tape=tape.snapshot())


__all__ = [
    "BrainfuckInterpreter",
    "BufferReader",
    "BufferWriter",
    "ByteReader",
    "ByteWriter",
    "ExecutionState",
    "InputFailure",
    "OutputFailure",
    "StepLimitExceeded",
    "StreamError",
    "StreamReader",
    "StreamWriter",
    "Tape",
]
