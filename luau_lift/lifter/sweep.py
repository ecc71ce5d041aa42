"""Linear sweep over a function's instruction stream."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple

from ..container.model import Function, Module
from ..decoder.instruction import Instruction
from ..exceptions import DecodeError
from ..utils.byteops import Buffer
from .lift import LiftedInstruction, lift_decoded

LOGGER = logging.getLogger(__name__)

WORD = 4

__all__ = ["DecodeFailure", "LiftedFunction", "iter_instructions", "lift_function"]


@dataclass(frozen=True)
class DecodeFailure:
    address: int
    reason: str

    def as_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "reason": self.reason}


@dataclass(frozen=True)
class LiftedFunction:
    index: int
    function: Function
    instructions: Tuple[LiftedInstruction, ...]
    failures: Tuple[DecodeFailure, ...] = ()

    @property
    def gaps(self) -> Tuple[LiftedInstruction, ...]:
        return tuple(entry for entry in self.instructions if entry.is_unimplemented)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "code": list(self.function.code.as_tuple()),
            "instructions": [entry.as_dict() for entry in self.instructions],
            "failures": [failure.as_dict() for failure in self.failures],
            "gap_count": len(self.gaps),
        }


def iter_instructions(
    buffer: Buffer, function: Function
) -> Iterator[Tuple[int, Instruction | DecodeError]]:
    """Yield ``(address, instruction_or_error)`` across ``function.code``.

    Undecodable words are reported and skipped one word at a time.  The
    decode window never extends past the end of the code range.
    """

    address = function.code.start
    end = function.code.end
    while address < end:
        try:
            instruction = Instruction.decode(buffer[address:end])
        except DecodeError as exc:
            yield address, exc
            address += WORD
            continue
        yield address, instruction
        address += instruction.length


def lift_function(
    module: Module,
    buffer: Buffer,
    index: int,
    *,
    stop_on_decode_error: bool = False,
) -> LiftedFunction:
    """Lift every instruction of function ``index``.

    Lift gaps stay local to their instruction.  Decode failures are recorded;
    with ``stop_on_decode_error`` the sweep ends at the first one.
    """

    if not 0 <= index < len(module.functions):
        raise IndexError(f"function index {index} outside {len(module.functions)} functions")
    function = module.functions[index]
    lifted: List[LiftedInstruction] = []
    failures: List[DecodeFailure] = []

    for address, decoded in iter_instructions(buffer, function):
        if isinstance(decoded, DecodeError):
            failures.append(DecodeFailure(address, str(decoded)))
            LOGGER.debug("Cannot decode function %d at 0x%x: %s", index, address, decoded)
            if stop_on_decode_error:
                break
            continue
        lifted.append(lift_decoded(module, decoded, address))

    result = LiftedFunction(index, function, tuple(lifted), tuple(failures))
    LOGGER.debug(
        "Lifted function %d: %d instructions, %d gaps, %d decode failures",
        index,
        len(result.instructions),
        len(result.gaps),
        len(result.failures),
    )
    return result
