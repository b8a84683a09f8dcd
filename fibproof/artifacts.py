"""
Proof artifacts
===============

A proving run leaves five files in the output directory:

    proof_{system}_n{N}.bin          raw proof bytes
    public_values_n{N}.bin           ABI-encoded (n, a, b)
    verification_key.txt             0x-prefixed program key
    contract_call_data_n{N}.json     arguments for verifyFibonacciProof
    summary_n{N}.txt                 human-readable overview

File names depend only on (system, n), so a second run for the same pair
overwrites the first. The call-data document is the input of the on-chain
verification client.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from fibproof.encoding import decode_hex
from fibproof.errors import ArtifactNotFoundError, DecodingError, PersistenceError
from fibproof.types import ArtifactBundle, ProofSystem

FUNCTION_NAME = "verifyFibonacciProof"
FUNCTION_SIGNATURE = "verifyFibonacciProof(bytes,bytes)"
FUNCTION_RETURNS = "(uint32,uint32,uint32)"
DECODE_HINT = "Use abi.decode(publicValues, (PublicValuesStruct))"

VKEY_FILENAME = "verification_key.txt"


def bundle_paths(output_dir, system, n):
    output_dir = Path(output_dir)
    system = ProofSystem.parse(system)
    return ArtifactBundle(
        proof_path=output_dir / f"proof_{system.value}_n{n}.bin",
        public_values_path=output_dir / f"public_values_n{n}.bin",
        vkey_path=output_dir / VKEY_FILENAME,
        call_data_path=output_dir / f"contract_call_data_n{n}.json",
        summary_path=output_dir / f"summary_n{n}.txt",
    )


@dataclass(frozen=True)
class ContractCallData:
    n: int
    public_values: bytes
    proof_bytes: bytes

    @classmethod
    def from_proof(cls, proof, n):
        return cls(n=n, public_values=proof.public_values, proof_bytes=proof.bytes)

    def to_dict(self):
        return {
            "function": FUNCTION_NAME,
            "parameters": {
                "publicValues": "0x" + self.public_values.hex(),
                "proofBytes": "0x" + self.proof_bytes.hex(),
            },
            "expected_output": {
                "n": self.n,
                "decoded_from_public_values": DECODE_HINT,
            },
            "contract_interface": {
                "function_signature": FUNCTION_SIGNATURE,
                "returns": FUNCTION_RETURNS,
            },
        }

    def to_json(self):
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text):
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DecodingError(f"call data is not valid JSON: {exc}") from exc
        try:
            params = doc["parameters"]
            public_values = params["publicValues"]
            proof_bytes = params["proofBytes"]
            n = doc["expected_output"]["n"]
        except (KeyError, TypeError) as exc:
            raise DecodingError(f"call data is missing field {exc}") from exc
        if isinstance(n, bool) or not isinstance(n, int):
            raise DecodingError(f"call data expected_output.n must be an integer, got {n!r}")
        return cls(
            n=n,
            public_values=decode_hex(public_values, "publicValues"),
            proof_bytes=decode_hex(proof_bytes, "proofBytes"),
        )


def load_call_data(path):
    path = Path(path)
    if not path.is_file():
        raise ArtifactNotFoundError("contract call data not found", path=path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise PersistenceError(f"cannot read contract call data: {exc}", path=path) from exc
    try:
        return ContractCallData.from_json(text)
    except DecodingError as exc:
        raise DecodingError(exc.message, path=path) from exc


def render_summary(proof, request, vk):
    system = request.system.value
    public_values = proof.public_values.hex()
    proof_hex = proof.bytes.hex()
    return (
        f"SP1 {system.upper()} Proof Summary\n"
        "===================\n"
        f"Input: {request.n}\n"
        f"System: {system}\n"
        f"Verification Key: 0x{vk.hex}\n"
        f"Public Values: 0x{public_values}\n"
        f"Proof: 0x{proof_hex}\n"
        f"Proof Size: {len(proof.bytes)} bytes\n"
        "\n"
        "To verify on-chain:\n"
        f"1. Deploy Fibonacci contract with VKey: 0x{vk.hex}\n"
        "2. Call verifyFibonacciProof(proofBytes, publicValues)\n"
        f"3. Public Values: 0x{public_values}\n"
        f"4. Proof: 0x{proof_hex}\n"
    )


class ArtifactPackager:

    def __init__(self, output_dir, logger=None):
        self.output_dir = Path(output_dir)
        self.logger = logger or logging.getLogger(__name__)

    def persist(self, proof, request, vk):
        """Write the five artifacts; the first failing write aborts the rest.

        Raises:
            PersistenceError: naming the path that could not be written
        """
        bundle = bundle_paths(self.output_dir, request.system, request.n)
        call_data = ContractCallData.from_proof(proof, request.n)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"cannot create output directory: {exc}", path=self.output_dir) from exc

        writes = [
            (bundle.proof_path, proof.bytes),
            (bundle.public_values_path, proof.public_values),
            (bundle.vkey_path, vk.bytes32()),
            (bundle.call_data_path, call_data.to_json()),
            (bundle.summary_path, render_summary(proof, request, vk)),
        ]
        for path, content in writes:
            try:
                if isinstance(content, bytes):
                    path.write_bytes(content)
                else:
                    path.write_text(content)
            except OSError as exc:
                raise PersistenceError(
                    f"cannot write artifact: {exc}", path=path, system=request.system, n=request.n
                ) from exc
            self.logger.info("Saved %s", path)
        return bundle
