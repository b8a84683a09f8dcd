"""
Local CPU prover
================

Proves the binding circuit over BN254 with either proof system. The circuit
takes two public inputs, both as FR elements:

    vk  = program verification key digest
    pv  = bn254_digest(public values)

so a proof is valid for exactly one (program, public values) pair. The
program itself is executed in-process; its correct execution is established
by that run, not by the proof.

Keys are derived deterministically from the program verification key:

    groth16  alpha, beta, gamma, delta, x = hash_to_fr(vk, "groth16/<name>")
    plonk    tau = sha256("fibproof/plonk/srs" || vk)

This makes every proof reproducible by any other CpuProver (the proving
service included) without shipping keys around. It also means anyone can
forge proofs: development setup only.
"""

import threading

from fibproof.encoding import (
    decode_groth16_proof,
    decode_plonk_proof,
    encode_groth16_proof,
    encode_plonk_proof,
    public_values_digest,
    split_selector,
)
from fibproof.errors import ProvingCancelled, VerificationError
from fibproof.field import fr_from_bytes32
from fibproof.groth16 import circuit as groth16_circuit
from fibproof.groth16.proving import prove as groth16_prove
from fibproof.groth16.setup import Groth16Keys
from fibproof.groth16.verifying import verify_with_keys
from fibproof.plonk.circuit import binding_circuit, binding_witness
from fibproof.plonk.polynomial import next_power_of_2
from fibproof.plonk.preprocessor import preprocess
from fibproof.plonk.prover import prove as plonk_prove
from fibproof.plonk.srs import SRS
from fibproof.plonk.verifier import verify as plonk_verify
from fibproof.provers.base import ProverBackend
from fibproof.types import Proof, ProofSystem, ProverMode


class PlonkKeys:
    def __init__(self, seed):
        circuit = binding_circuit()
        n = next_power_of_2(circuit.n)
        self.circuit = circuit
        self.srs = SRS.generate(3 * n + 10, seed=seed)
        self.preprocessed = preprocess(circuit, self.srs)


class CpuProver(ProverBackend):

    mode = ProverMode.CPU

    def __init__(self, logger=None):
        super().__init__(logger)
        self._keys = {}
        self._lock = threading.Lock()

    def keys_for(self, vk, system):
        """Groth16Keys or PlonkKeys for (vk, system), derived once."""
        cache_key = (vk.hex, system)
        with self._lock:
            if cache_key not in self._keys:
                self.logger.info("deriving %s keys for vk 0x%s", system.value, vk.hex[:16])
                if system is ProofSystem.GROTH16:
                    A, B, C = groth16_circuit.binding_r1cs()
                    keys = Groth16Keys.from_seed(A, B, C, groth16_circuit.PUB_R_INDEXS, vk.bytes)
                else:
                    keys = PlonkKeys(vk.bytes)
                self._keys[cache_key] = keys
            return self._keys[cache_key]

    def prove(self, pk, stdin, system, cancel=None):
        def checkpoint():
            if cancel is not None and cancel.is_set():
                raise ProvingCancelled("proving cancelled", system=system)

        public_values, _ = self.execute(pk.program, stdin)
        checkpoint()
        keys = self.keys_for(pk.vk, system)
        vk_fr = fr_from_bytes32(pk.vk.bytes)
        pv_fr = fr_from_bytes32(public_values_digest(public_values))

        if system is ProofSystem.GROTH16:
            witness = groth16_circuit.binding_witness(vk_fr, pv_fr)
            raw = encode_groth16_proof(groth16_prove(keys, witness, checkpoint=checkpoint))
        else:
            a_vals, b_vals, c_vals, public_inputs = binding_witness(vk_fr, pv_fr)
            proof = plonk_prove(keys.circuit, a_vals, b_vals, c_vals, public_inputs,
                                keys.preprocessed, keys.srs, checkpoint=checkpoint)
            raw = encode_plonk_proof(proof)

        self.logger.info("%s proof for %s: %d bytes", system.value, pk.program.name, len(raw))
        return Proof(bytes=raw, public_values=public_values, system=system)

    def verify(self, proof, vk):
        if proof.is_mock:
            raise VerificationError("empty proof: mock proofs are not accepted", system=proof.system)
        system, _ = split_selector(proof.bytes)
        if system is not proof.system:
            raise VerificationError(
                f"proof carries a {system.value} selector", system=proof.system
            )

        keys = self.keys_for(vk, system)
        vk_fr = fr_from_bytes32(vk.bytes)
        pv_fr = fr_from_bytes32(public_values_digest(proof.public_values))

        if system is ProofSystem.GROTH16:
            points = decode_groth16_proof(proof.bytes)
            ok = verify_with_keys(keys, points, groth16_circuit.public_witness(vk_fr, pv_fr))
        else:
            plonk_proof = decode_plonk_proof(proof.bytes)
            ok = plonk_verify(plonk_proof, [vk_fr, pv_fr], keys.preprocessed, keys.srs)

        if not ok:
            raise VerificationError("proof rejected by the pairing check", system=system)
