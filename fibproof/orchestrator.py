"""
Proving orchestrator
====================

Host-side driver of one proving run:

    1. setup              keys for the program (memoized by the backend)
    2. execute_locally    dry run; aborts and undecodable output stop here
    3. generate_proof     backend proof, optionally cancelled or time-bounded
    4. verify_locally     self-check of the proof just produced
    5. persist            artifacts, when requested

A failed or cancelled run returns no proof and so persists nothing.

Example:
    >>> from fibproof.orchestrator import ProvingOrchestrator
    >>> from fibproof.provers import MockProver
    >>> from fibproof.types import ProofRequest
    >>> outcome = ProvingOrchestrator(MockProver()).run(ProofRequest(n=10, mode="mock"))
    >>> outcome.result.as_tuple()
    (10, 55, 89)
"""

import logging
import threading
import time

from fibproof.encoding import decode_public_values
from fibproof.errors import (
    DecodingError,
    ExecutionError,
    FibproofError,
    LocalVerificationFailure,
    ProvingCancelled,
    ProvingError,
)
from fibproof.types import ProverMode, ProvingOutcome
from fibproof.zkvm import FIBONACCI_PROGRAM

MODE_NOTICES = {
    ProverMode.NETWORK: "This may take several minutes depending on network load...",
    ProverMode.CPU: (
        "CPU proving can take HOURS with the full SP1 prover; "
        "the binding circuit here takes seconds. Consider 'mock' for testing."
    ),
    ProverMode.MOCK: "Mock proving is fast but proofs are not secure!",
}

# seconds a timed-out backend gets to notice the cancel event
CANCEL_GRACE = 5.0


class ProvingOrchestrator:

    def __init__(self, prover, program=FIBONACCI_PROGRAM, mode=None, logger=None,
                 cancel_grace=CANCEL_GRACE):
        self.prover = prover
        self.cancel_grace = cancel_grace
        self.program = program
        self.mode = ProverMode.parse(mode) if mode is not None else prover.mode
        self.logger = logger or logging.getLogger(__name__)
        self._dry_runs = {}

    # ─────────────────────────────────────────────────────────────────
    # Operations
    # ─────────────────────────────────────────────────────────────────

    def setup(self):
        return self.prover.setup(self.program)

    def execute_locally(self, request):
        """Dry run of the program on ``request.n``.

        Returns:
            tuple: (ComputationResult, ExecutionReport)

        Raises:
            ExecutionError: the program aborted or committed undecodable values
        """
        public_values, report = self.prover.execute(self.program, [request.n])
        try:
            result = decode_public_values(public_values)
        except DecodingError as exc:
            raise ExecutionError("program committed undecodable public values", n=request.n) from exc
        if result.n != request.n:
            raise ExecutionError(f"program committed n={result.n}", n=request.n)
        self._dry_runs[request.n] = (result, public_values)
        return result, report

    def generate_proof(self, request, pk=None, cancel=None, timeout=None):
        """Backend proof for ``request``.

        Raises:
            ProvingCancelled: ``cancel`` was set or ``timeout`` seconds elapsed
            ProvingError: the backend failed (never retried)
            DecodingError: the proof commits other values than the dry run
        """
        if request.n not in self._dry_runs:
            self.execute_locally(request)
        expected, expected_values = self._dry_runs[request.n]
        if pk is None:
            pk, _ = self.setup()
        context = dict(system=request.system, mode=self.mode, n=request.n)

        cancel = cancel or threading.Event()
        try:
            proof = self._call_backend(pk, request, cancel, timeout)
        except ProvingCancelled as exc:
            raise ProvingCancelled(exc.message or "proving cancelled", **context) from exc
        except FibproofError as exc:
            raise ProvingError(f"{self.mode.value} backend failed: {exc}", **context) from exc
        except Exception as exc:
            raise ProvingError(f"{self.mode.value} backend failed: {exc!r}", **context) from exc

        if proof.public_values != expected_values:
            try:
                got = decode_public_values(proof.public_values).as_tuple()
            except DecodingError as exc:
                raise DecodingError("proof carries undecodable public values", **context) from exc
            raise DecodingError(
                f"proof public values {got} differ from the dry run {expected.as_tuple()}",
                **context,
            )
        return proof

    def _call_backend(self, pk, request, cancel, timeout):
        if timeout is None:
            if cancel.is_set():
                raise ProvingCancelled("proving cancelled")
            return self.prover.prove(pk, [request.n], request.system, cancel=cancel)

        outcome = {}

        def work():
            try:
                outcome["proof"] = self.prover.prove(pk, [request.n], request.system, cancel=cancel)
            except BaseException as exc:
                outcome["error"] = exc

        worker = threading.Thread(target=work, name="fibproof-prove", daemon=True)
        worker.start()
        worker.join(timeout)
        if worker.is_alive():
            cancel.set()
            worker.join(self.cancel_grace)
            if worker.is_alive():
                self.logger.warning(
                    "backend still running %.1fs after cancellation", self.cancel_grace
                )
            raise ProvingCancelled(f"proving timed out after {timeout}s")
        if "error" in outcome:
            raise outcome["error"]
        return outcome["proof"]

    def verify_locally(self, proof, vk):
        try:
            self.prover.verify(proof, vk)
        except Exception as exc:
            raise LocalVerificationFailure(
                f"local verification failed: {exc}", system=proof.system, mode=self.mode
            ) from exc

    # ─────────────────────────────────────────────────────────────────
    # Pipeline
    # ─────────────────────────────────────────────────────────────────

    def run(self, request, packager=None, cancel=None, timeout=None):
        timings = {}
        log = self.logger

        started = time.monotonic()
        pk, vk = self.setup()
        log.info("Program VKey: %s", vk.bytes32())

        result, report = self.execute_locally(request)
        log.info(
            "Local execution: n=%d, Fibonacci(%d)=%d, Fibonacci(%d)=%d, cycles=%d",
            result.n, max(result.n - 1, 0), result.a, result.n, result.b,
            report.total_instructions,
        )
        timings["execute"] = time.monotonic() - started

        log.info("Generating %s proof in %s mode", request.system.value.upper(), self.mode.value)
        log.info(MODE_NOTICES[self.mode])
        started = time.monotonic()
        proof = self.generate_proof(request, pk=pk, cancel=cancel, timeout=timeout)
        timings["prove"] = time.monotonic() - started
        log.info("%s proof generated: %d bytes", request.system.value.upper(), len(proof.bytes))

        started = time.monotonic()
        self.verify_locally(proof, vk)
        timings["verify"] = time.monotonic() - started
        log.info("Proof verification successful")

        outcome = ProvingOutcome(
            request=request, result=result, report=report, vk=vk, proof=proof, timings=timings
        )
        if request.persist_artifacts and packager is not None:
            outcome.bundle = packager.persist(proof, request, vk)
        return outcome
