from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .parser import Instruction, Op, Program, build_jump_table

logger = logging.getLogger(__name__)

CELL_MODULUS = 256

_FOLDABLE = (Op.ADD, Op.MOVE)


@dataclass
class OptimizationStats:
    raw_length: int = 0
    optimized_length: int = 0
    folded: int = 0
    eliminated: int = 0


def _normalize(op: Op, delta: int) -> int:
    if op is Op.ADD:
        # signed byte range, so "-" stays -1 rather than 255
        return (delta + 128) % CELL_MODULUS - 128
    return delta


def optimize(program: Program, stats: Optional[OptimizationStats] = None) -> Program:
    """Fold runs of value and pointer changes and drop the ones with no effect.

    One left-to-right pass: an ADD after an ADD (or a MOVE after a MOVE) is
    merged into the previous instruction, and a merged instruction whose net
    effect is zero is removed. Output, input and loop markers are emitted
    untouched, so no run ever crosses them.
    """
    optimized: List[Instruction] = []
    folded = 0
    eliminated = 0

    for instruction in program.instructions:
        op = instruction.op
        if op in _FOLDABLE and optimized and optimized[-1].op is op:
            merged = _normalize(op, optimized[-1].arg + instruction.arg)
            folded += 1
            if merged == 0:
                optimized.pop()
                eliminated += 1
            else:
                optimized[-1] = Instruction(op, merged)
            continue
        if op in _FOLDABLE:
            delta = _normalize(op, instruction.arg)
            if delta == 0:
                eliminated += 1
                continue
            instruction = Instruction(op, delta)
        optimized.append(instruction)

    result = Program(tuple(optimized), build_jump_table(optimized))

    if stats is not None:
        stats.raw_length = len(program)
        stats.optimized_length = len(result)
        stats.folded = folded
        stats.eliminated = eliminated
    logger.debug(
        "Optimized %d instructions down to %d (%d folded, %d eliminated)",
        len(program),
        len(result),
        folded,
        eliminated,
    )
    return result


__all__ = ["CELL_MODULUS", "OptimizationStats", "optimize"]
