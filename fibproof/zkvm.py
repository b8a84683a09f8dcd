"""
Execution environment for provable programs
===========================================

A program is a Python module with a ``main(env)`` entrypoint. ``env`` is the
only channel to the outside world:

    env.read_u32()        next value written to stdin by the host
    env.commit_slice(b)   append bytes to the public values
    env.println(text)     diagnostic output (collected, never committed)

``execute_program`` runs the entrypoint and counts the source lines executed
inside the program module; that count stands in for the cycle count of a
RISC-V zkVM. A program that raises, or that runs past the instruction limit,
is aborted: its committed values are discarded and ``ExecutionError`` is
raised.

The program "binary" is its module source. The verification key is the
BN254-masked SHA-256 of it, so keys are stable across runs and change with
every edit to the program.
"""

import inspect
import logging
import sys
from dataclasses import dataclass
from typing import Callable

from fibproof import kernel
from fibproof.errors import ExecutionError
from fibproof.field import bn254_digest
from fibproof.types import UINT32_MAX, ExecutionReport, VerificationKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Program:
    name: str
    entrypoint: Callable
    binary: bytes

    @property
    def vk(self):
        return VerificationKey(bn254_digest(self.binary))

    @property
    def filename(self):
        return self.entrypoint.__code__.co_filename

    @classmethod
    def from_module(cls, module, name=None):
        return cls(
            name=name or module.__name__.rsplit(".", 1)[-1],
            entrypoint=module.main,
            binary=inspect.getsource(module).encode(),
        )


FIBONACCI_PROGRAM = Program.from_module(kernel, name="fibonacci-program")


class ZkvmEnv:
    """stdin / public values / stdout of one program run."""

    def __init__(self, stdin):
        self._stdin = list(stdin)
        self.public_values = bytearray()
        self.stdout = []

    def read_u32(self):
        if not self._stdin:
            raise EOFError("stdin is exhausted")
        value = self._stdin.pop(0)
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= UINT32_MAX:
            raise TypeError(f"expected a uint32 on stdin, got {value!r}")
        return value

    def commit_slice(self, data):
        self.public_values.extend(data)

    def println(self, text):
        self.stdout.append(str(text))
        logger.debug("stdout: %s", text)


class _InstructionCounter:
    def __init__(self, filename, limit=None):
        self.filename = filename
        self.limit = limit
        self.count = 0

    def global_trace(self, frame, event, arg):
        if frame.f_code.co_filename == self.filename:
            return self.local_trace
        return None

    def local_trace(self, frame, event, arg):
        if event == "line":
            self.count += 1
            if self.limit is not None and self.count > self.limit:
                raise ExecutionError(f"instruction limit of {self.limit} exceeded")
        return self.local_trace


def execute_program(program, stdin, instruction_limit=None):
    """Run ``program`` on ``stdin``.

    Returns:
        tuple: (public values bytes, ExecutionReport)

    Raises:
        ExecutionError: the program aborted; the cause is chained
    """
    env = ZkvmEnv(stdin)
    counter = _InstructionCounter(program.filename, instruction_limit)

    previous = sys.gettrace()
    sys.settrace(counter.global_trace)
    try:
        program.entrypoint(env)
    except ExecutionError:
        raise
    except Exception as exc:
        raise ExecutionError(f"program {program.name} aborted: {exc}") from exc
    finally:
        sys.settrace(previous)

    report = ExecutionReport(total_instructions=counter.count, stdout=tuple(env.stdout))
    logger.debug("%s executed %d instructions", program.name, counter.count)
    return bytes(env.public_values), report
