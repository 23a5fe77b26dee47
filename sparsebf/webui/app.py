from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from sparsebf.bf_interpreter import (
    BrainfuckInterpreter,
    BufferReader,
    BufferWriter,
    StepLimitExceeded,
)
from sparsebf.optimizer import OptimizationStats, optimize
from sparsebf.parser import ParseError, Program, parse

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 1_000_000


class RunRequest(BaseModel):
    code: str = ""
    input: str = ""
    optimize: bool = True
    max_steps: Optional[int] = Field(default=None, ge=1)


class Cell(BaseModel):
    position: int
    value: int


class RunResponse(BaseModel):
    output: str
    output_bytes: List[int]
    steps: int
    pointer: int
    cells: List[Cell]


class OptimizeRequest(BaseModel):
    code: str = ""


class InstructionPayload(BaseModel):
    op: str
    arg: int
    target: Optional[int] = None


class OptimizeResponse(BaseModel):
    instructions: List[InstructionPayload]
    raw_length: int
    optimized_length: int
    listing: str


def _parse_or_422(code: str) -> Program:
    try:
        return parse(code)
    except ParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


def _instruction_payloads(program: Program) -> List[InstructionPayload]:
    return [
        InstructionPayload(
            op=instruction.op.value,
            arg=instruction.arg,
            target=program.jump_table.get(index),
        )
        for index, instruction in enumerate(program.instructions)
    ]


def create_app(*, default_max_steps: int = DEFAULT_MAX_STEPS) -> FastAPI:
    """Build the API; runs without an explicit ``max_steps`` use ``default_max_steps``."""
    app = FastAPI(title="sparsebf API", version="0.1.0")

    @app.get("/api/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.post("/api/run", response_model=RunResponse)
    def run_program(payload: RunRequest) -> RunResponse:
        program = _parse_or_422(payload.code)
        if payload.optimize:
            program = optimize(program)

        max_steps = payload.max_steps or default_max_steps
        writer = BufferWriter()
        interpreter = BrainfuckInterpreter()
        try:
            state = interpreter.execute(
                program,
                BufferReader(payload.input.encode("utf-8")),
                writer,
                max_steps=max_steps,
            )
        except StepLimitExceeded as exc:
            logger.info("Run aborted after %d steps", max_steps)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(exc),
            ) from exc

        output = writer.getvalue()
        return RunResponse(
            output=output.decode("latin-1"),
            output_bytes=list(output),
            steps=state.steps,
            pointer=state.pointer,
            cells=[
                Cell(position=position, value=value)
                for position, value in sorted(state.tape.items())
            ],
        )

    @app.post("/api/optimize", response_model=OptimizeResponse)
    def optimize_code(payload: OptimizeRequest) -> OptimizeResponse:
        stats = OptimizationStats()
        program = optimize(_parse_or_422(payload.code), stats)
        return OptimizeResponse(
            instructions=_instruction_payloads(program),
            raw_length=stats.raw_length,
            optimized_length=stats.optimized_length,
            listing=program.listing(),
        )

    return app


__all__ = ["create_app"]
