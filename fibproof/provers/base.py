"""
Prover backend port
===================

Every backend offers the same four capabilities:

    setup(program)            -> (ProvingKey, VerificationKey)
    execute(program, stdin)   -> (public values, ExecutionReport)
    prove(pk, stdin, system)  -> Proof
    verify(proof, vk)         -> None, raises VerificationError on rejection

``setup`` and ``execute`` are shared: keys are derived from the program
binary and execution always happens in-process. Backends differ in how they
prove and verify.
"""

import abc
import logging

from fibproof.errors import VerificationError
from fibproof.types import ProvingKey
from fibproof.zkvm import FIBONACCI_PROGRAM, execute_program


class ProverBackend(abc.ABC):

    mode = None

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger(__name__)
        self._programs = {FIBONACCI_PROGRAM.vk.hex: FIBONACCI_PROGRAM}
        self._proving_keys = {}

    def setup(self, program):
        """Proving and verification key for ``program``; memoized per binary."""
        vk = program.vk
        if vk.hex not in self._proving_keys:
            self._programs[vk.hex] = program
            self._proving_keys[vk.hex] = ProvingKey(program=program, vk=vk)
            self.logger.debug("setup %s: vk=0x%s", program.name, vk.hex)
        pk = self._proving_keys[vk.hex]
        return pk, pk.vk

    def execute(self, program, stdin):
        return execute_program(program, stdin)

    def program_for(self, vk):
        try:
            return self._programs[vk.hex]
        except KeyError:
            raise VerificationError(f"unknown program verification key 0x{vk.hex}") from None

    @abc.abstractmethod
    def prove(self, pk, stdin, system, cancel=None):
        """Proof of ``pk.program`` on ``stdin`` for the requested proof system."""

    @abc.abstractmethod
    def verify(self, proof, vk):
        """Raise VerificationError unless ``proof`` is valid for ``vk``."""
