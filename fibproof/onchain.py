"""
On-chain verification client
============================

Replays a packaged proof against a deployed Fibonacci contract with two
read-only calls:

    getProgramVKey()                                  -> bytes32
    verifyFibonacciProof(bytes proofBytes, bytes publicValues)
                                                      -> (uint32 n, uint32 a, uint32 b)

The contract is reached through a small port (``VerifierContract``) so the
same client runs against a real RPC endpoint (``Web3VerifierContract``) or
an in-process simulation (``LocalVerifierContract``). Failures are sorted
into three kinds:

    revert                     VerificationRejected
    undecodable return data    DecodingError
    RPC / network failure      TransportError

Example:
    >>> from fibproof.onchain import verify_remote
    >>> outcome = verify_remote("artifacts", "0x44a4...", "https://rpc.sepolia.succinct.xyz")
    >>> (outcome.n, outcome.a, outcome.b)
    (10, 55, 89)
"""

import abc
import logging
from pathlib import Path

import requests
from web3 import HTTPProvider, Web3
from web3.exceptions import (
    BadFunctionCallOutput,
    ContractLogicError,
    ProviderConnectionError,
    TimeExhausted,
    Web3RPCError,
)

from fibproof.artifacts import bundle_paths, load_call_data
from fibproof.encoding import decode_public_values, split_selector
from fibproof.errors import (
    ArtifactNotFoundError,
    ConfigurationError,
    DecodingError,
    FibproofError,
    InconsistentResultError,
    TransportError,
    VerificationRejected,
)
from fibproof.kernel import fibonacci
from fibproof.types import MAX_N, OnChainVerificationOutcome, Proof, ProofSystem, VerificationKey
from fibproof.zkvm import FIBONACCI_PROGRAM

VERIFIER_ABI = [
    {
        "type": "function",
        "name": "getProgramVKey",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
    {
        "type": "function",
        "name": "verifyFibonacciProof",
        "stateMutability": "view",
        "inputs": [
            {"name": "proofBytes", "type": "bytes"},
            {"name": "publicValues", "type": "bytes"},
        ],
        "outputs": [
            {"name": "n", "type": "uint32"},
            {"name": "a", "type": "uint32"},
            {"name": "b", "type": "uint32"},
        ],
    },
]

TRANSPORT_ERRORS = (
    requests.RequestException,
    ProviderConnectionError,
    TimeExhausted,
    Web3RPCError,
    OSError,
)

REJECTION_CAUSES = (
    "Invalid proof data",
    "Wrong program VKey",
    "Contract not properly deployed",
)


# ─────────────────────────────────────────────────────────────────────
# Contract ports
# ─────────────────────────────────────────────────────────────────────

class VerifierContract(abc.ABC):

    @abc.abstractmethod
    def get_program_vkey(self):
        """The bytes32 program key the contract verifies against."""

    @abc.abstractmethod
    def verify_fibonacci_proof(self, proof_bytes, public_values):
        """(n, a, b) on success; raises ContractLogicError on revert."""


class Web3VerifierContract(VerifierContract):

    def __init__(self, address, rpc_url, w3=None):
        self.w3 = w3 or Web3(HTTPProvider(rpc_url))
        try:
            checksum = Web3.to_checksum_address(address)
        except ValueError as exc:
            raise ConfigurationError(f"invalid contract address {address!r}") from exc
        self.address = checksum
        self.contract = self.w3.eth.contract(address=checksum, abi=VERIFIER_ABI)

    def get_program_vkey(self):
        return bytes(self.contract.functions.getProgramVKey().call())

    def verify_fibonacci_proof(self, proof_bytes, public_values):
        n, a, b = self.contract.functions.verifyFibonacciProof(proof_bytes, public_values).call()
        return n, a, b


class LocalVerifierContract(VerifierContract):
    """In-process stand-in for the Fibonacci contract and its verifier gateway.

    Proofs are routed by their selector to ``prover.verify``. With
    ``mock=True`` it behaves like a mock verifier: only empty proofs pass.
    Rejections raise ContractLogicError, as a reverting ``eth_call`` does.
    """

    def __init__(self, prover, vk, mock=False):
        self.prover = prover
        self.vk = vk
        self.mock = mock

    def get_program_vkey(self):
        return self.vk.bytes

    def verify_fibonacci_proof(self, proof_bytes, public_values):
        proof_bytes = bytes(proof_bytes)
        try:
            result = decode_public_values(public_values)
        except DecodingError as exc:
            raise ContractLogicError("execution reverted: malformed public values") from exc

        if self.mock:
            if proof_bytes:
                raise ContractLogicError("execution reverted: InvalidProof()")
            return result.as_tuple()

        try:
            system, _ = split_selector(proof_bytes)
            self.prover.verify(Proof(bytes=proof_bytes, public_values=bytes(public_values),
                                     system=system), self.vk)
        except FibproofError as exc:
            raise ContractLogicError(f"execution reverted: {exc}") from exc
        return result.as_tuple()


# ─────────────────────────────────────────────────────────────────────
# Client
# ─────────────────────────────────────────────────────────────────────

class OnChainVerificationClient:

    def __init__(self, contract, expected_vkey=None, program=FIBONACCI_PROGRAM, logger=None):
        self.contract = contract
        self.expected_vkey = expected_vkey
        self.program = program
        self.logger = logger or logging.getLogger(__name__)

    def _call(self, what, fn, *args):
        try:
            return fn(*args)
        except ContractLogicError as exc:
            raise VerificationRejected(f"{what} reverted: {exc}") from exc
        except BadFunctionCallOutput as exc:
            raise DecodingError(f"{what} returned undecodable data: {exc}") from exc
        except TRANSPORT_ERRORS as exc:
            raise TransportError(f"{what} failed: {exc}") from exc

    def _resolve(self, bundle_path, n):
        path = Path(bundle_path)
        if path.is_dir():
            return bundle_paths(path, ProofSystem.GROTH16, n).call_data_path
        return path

    def _check_bundle(self, call_data_path, call_data):
        """Raise ArtifactNotFoundError unless every file of the bundle exists.

        The proof system comes from the verifier selector; an empty (mock) or
        unrecognised proof is accepted with either system's proof file.
        """
        try:
            systems = [split_selector(call_data.proof_bytes)[0]]
        except DecodingError:
            systems = list(ProofSystem)
        bundles = [bundle_paths(call_data_path.parent, system, call_data.n) for system in systems]
        if any(bundle.is_complete() for bundle in bundles):
            return bundles[0]
        missing = ", ".join(sorted({p.name for bundle in bundles for p in bundle.missing()}))
        raise ArtifactNotFoundError(f"incomplete artifact bundle, missing {missing}",
                                    path=call_data_path.parent, n=call_data.n)

    def _contract_vkey(self):
        # diagnostic only: a revert or bad return here must not stop verification
        try:
            return bytes(self._call("getProgramVKey", self.contract.get_program_vkey))
        except (VerificationRejected, DecodingError) as exc:
            self.logger.warning("could not read the contract VKey: %s", exc)
            return None

    def _expected_key(self, vkey_path):
        if self.expected_vkey is not None:
            return self.expected_vkey
        if vkey_path.is_file():
            return VerificationKey.from_hex(vkey_path.read_text())
        return self.program.vk

    def verify_remote(self, bundle_path, n=10):
        """Verify the packaged proof for ``n`` through the contract.

        Args:
            bundle_path: the call-data JSON file, or the artifact directory
            n: selects the call-data file when a directory is given

        Raises:
            ArtifactNotFoundError: no call data, or an incomplete bundle
            DecodingError: malformed call data, n above MAX_N, or an unexpected result
            VerificationRejected: the contract reverted
            TransportError: the RPC endpoint could not be reached
        """
        call_data_path = self._resolve(bundle_path, n)
        call_data = load_call_data(call_data_path)
        committed = decode_public_values(call_data.public_values)
        if committed.n > MAX_N or call_data.n != committed.n:
            raise DecodingError(
                f"call data for n={call_data.n} commits n={committed.n} (maximum {MAX_N})",
                path=call_data_path,
            )
        bundle = self._check_bundle(call_data_path, call_data)
        self.logger.info("Proof size: %d bytes", len(call_data.proof_bytes))
        self.logger.info("Public values: 0x%s", call_data.public_values.hex())

        expected = self._expected_key(bundle.vkey_path)
        contract_hex = vkey_matches = None
        contract_vkey = self._contract_vkey()
        if contract_vkey is not None:
            contract_hex = "0x" + contract_vkey.hex()
            vkey_matches = contract_vkey == expected.bytes
            self.logger.info("Contract VKey: %s", contract_hex)
            if not vkey_matches:
                self.logger.warning(
                    "contract VKey %s differs from the expected %s", contract_hex, expected.bytes32()
                )

        n_out, a, b = self._call(
            "verifyFibonacciProof",
            self.contract.verify_fibonacci_proof,
            call_data.proof_bytes,
            call_data.public_values,
        )
        if n_out != committed.n:
            raise InconsistentResultError(
                f"contract returned n={n_out}, call data is for n={call_data.n}",
                path=call_data_path,
            )
        if (a, b) != fibonacci(n_out):
            raise InconsistentResultError(
                f"contract returned Fibonacci({n_out}) = ({a}, {b}), expected {fibonacci(n_out)}",
                n=n_out,
            )

        self.logger.info("Proof verification successful: n=%d, a=%d, b=%d", n_out, a, b)
        return OnChainVerificationOutcome(
            n=n_out, a=a, b=b, contract_vkey=contract_hex, vkey_matches=vkey_matches
        )


def verify_remote(bundle_path, contract_address, rpc_endpoint, n=10, logger=None):
    contract = Web3VerifierContract(contract_address, rpc_endpoint)
    return OnChainVerificationClient(contract, logger=logger).verify_remote(bundle_path, n=n)
