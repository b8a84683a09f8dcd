import logging

import pytest
import requests
from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from fibproof.artifacts import VKEY_FILENAME, ArtifactPackager, ContractCallData
from fibproof.encoding import encode_public_values
from fibproof.errors import (
    ArtifactNotFoundError,
    ConfigurationError,
    DecodingError,
    InconsistentResultError,
    TransportError,
    VerificationRejected,
)
from fibproof.onchain import (
    LocalVerifierContract,
    OnChainVerificationClient,
    VerifierContract,
    Web3VerifierContract,
)
from fibproof.orchestrator import ProvingOrchestrator
from fibproof.types import ComputationResult, ProofRequest, VerificationKey
from fibproof.zkvm import FIBONACCI_PROGRAM


class FakeContract(VerifierContract):
    def __init__(self, vkey=None, result=(10, 55, 89), error=None, vkey_error=None):
        self.vkey = vkey if vkey is not None else FIBONACCI_PROGRAM.vk.bytes
        self.result = result
        self.error = error
        self.vkey_error = vkey_error
        self.calls = []

    def get_program_vkey(self):
        if self.vkey_error is not None:
            raise self.vkey_error
        return self.vkey

    def verify_fibonacci_proof(self, proof_bytes, public_values):
        self.calls.append((proof_bytes, public_values))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def mock_artifacts(mock_prover, output_dir):
    request = ProofRequest(n=10, mode="mock", output_dir=output_dir)
    ProvingOrchestrator(mock_prover).run(request, packager=ArtifactPackager(output_dir))
    return output_dir


# ── happy path ──
class TestVerifyRemote:
    def test_directory(self, mock_artifacts):
        contract = FakeContract()
        outcome = OnChainVerificationClient(contract).verify_remote(mock_artifacts, n=10)
        assert (outcome.n, outcome.a, outcome.b) == (10, 55, 89)
        assert outcome.vkey_matches is True
        assert outcome.contract_vkey == FIBONACCI_PROGRAM.vk.bytes32()

    def test_call_order_proof_then_public_values(self, mock_artifacts):
        contract = FakeContract()
        OnChainVerificationClient(contract).verify_remote(mock_artifacts)
        proof_bytes, public_values = contract.calls[0]
        assert proof_bytes == b""
        assert len(public_values) == 96

    def test_call_data_file(self, mock_artifacts):
        path = mock_artifacts / "contract_call_data_n10.json"
        outcome = OnChainVerificationClient(FakeContract()).verify_remote(path)
        assert outcome.n == 10

    def test_local_mock_contract(self, mock_prover, mock_artifacts):
        contract = LocalVerifierContract(mock_prover, FIBONACCI_PROGRAM.vk, mock=True)
        outcome = OnChainVerificationClient(contract).verify_remote(mock_artifacts)
        assert (outcome.n, outcome.a, outcome.b) == (10, 55, 89)


# ── vkey ──
class TestVkeyMismatch:
    def test_warns_and_continues(self, mock_artifacts, caplog):
        contract = FakeContract(vkey=b"\x01" * 32)
        with caplog.at_level(logging.WARNING, logger="fibproof"):
            outcome = OnChainVerificationClient(contract).verify_remote(mock_artifacts)
        assert outcome.vkey_matches is False
        assert "differs from the expected" in caplog.text

    def test_expected_vkey_from_file(self, mock_artifacts):
        other = VerificationKey(b"\x02" * 32)
        (mock_artifacts / VKEY_FILENAME).write_text(other.bytes32())
        contract = FakeContract(vkey=other.bytes)
        assert OnChainVerificationClient(contract).verify_remote(mock_artifacts).vkey_matches

    def test_explicit_expected_vkey(self, mock_artifacts):
        other = VerificationKey(b"\x03" * 32)
        client = OnChainVerificationClient(FakeContract(), expected_vkey=other)
        assert client.verify_remote(mock_artifacts).vkey_matches is False

    @pytest.mark.parametrize("error", [
        ContractLogicError("execution reverted"),
        BadFunctionCallOutput("could not decode"),
    ])
    def test_key_query_failure_still_verifies(self, mock_artifacts, caplog, error):
        contract = FakeContract(vkey_error=error)
        with caplog.at_level(logging.WARNING, logger="fibproof"):
            outcome = OnChainVerificationClient(contract).verify_remote(mock_artifacts)
        assert (outcome.n, outcome.a, outcome.b) == (10, 55, 89)
        assert outcome.contract_vkey is None
        assert outcome.vkey_matches is None
        assert len(contract.calls) == 1
        assert "could not read the contract VKey" in caplog.text

    def test_key_query_transport_failure(self, mock_artifacts):
        contract = FakeContract(vkey_error=requests.ConnectionError("connection refused"))
        with pytest.raises(TransportError):
            OnChainVerificationClient(contract).verify_remote(mock_artifacts)
        assert contract.calls == []


# ── bundle completeness ──
class TestIncompleteBundle:
    @pytest.mark.parametrize("name", [
        "proof_groth16_n10.bin",
        "public_values_n10.bin",
        "summary_n10.txt",
        VKEY_FILENAME,
    ])
    def test_missing_file(self, mock_artifacts, name):
        (mock_artifacts / name).unlink()
        contract = FakeContract()
        with pytest.raises(ArtifactNotFoundError, match=name):
            OnChainVerificationClient(contract).verify_remote(mock_artifacts, n=10)
        assert contract.calls == []

    def test_call_data_file_of_partial_bundle(self, mock_artifacts):
        (mock_artifacts / "proof_groth16_n10.bin").unlink()
        path = mock_artifacts / "contract_call_data_n10.json"
        with pytest.raises(ArtifactNotFoundError, match="incomplete"):
            OnChainVerificationClient(FakeContract()).verify_remote(path)

    def test_mock_bundle_of_either_system(self, mock_prover, output_dir):
        request = ProofRequest(n=10, system="plonk", mode="mock", output_dir=output_dir)
        ProvingOrchestrator(mock_prover).run(request, packager=ArtifactPackager(output_dir))
        outcome = OnChainVerificationClient(FakeContract()).verify_remote(output_dir, n=10)
        assert outcome.n == 10


# ── failures ──
class TestFailures:
    def test_missing_artifacts(self, tmp_path):
        with pytest.raises(ArtifactNotFoundError):
            OnChainVerificationClient(FakeContract()).verify_remote(tmp_path, n=10)

    def test_revert(self, mock_artifacts):
        contract = FakeContract(error=ContractLogicError("execution reverted: InvalidProof()"))
        with pytest.raises(VerificationRejected, match="InvalidProof"):
            OnChainVerificationClient(contract).verify_remote(mock_artifacts)

    def test_undecodable_output(self, mock_artifacts):
        contract = FakeContract(error=BadFunctionCallOutput("could not decode"))
        with pytest.raises(DecodingError):
            OnChainVerificationClient(contract).verify_remote(mock_artifacts)

    def test_transport(self, mock_artifacts):
        contract = FakeContract(error=requests.ConnectionError("connection refused"))
        with pytest.raises(TransportError):
            OnChainVerificationClient(contract).verify_remote(mock_artifacts)

    def test_wrong_n(self, mock_artifacts):
        contract = FakeContract(result=(11, 89, 144))
        with pytest.raises(InconsistentResultError, match="n=11"):
            OnChainVerificationClient(contract).verify_remote(mock_artifacts)

    def test_wrong_fibonacci(self, mock_artifacts):
        contract = FakeContract(result=(10, 55, 90))
        with pytest.raises(InconsistentResultError):
            OnChainVerificationClient(contract).verify_remote(mock_artifacts)

    def test_committed_n_above_limit(self, mock_artifacts):
        n = 30_000_000
        values = encode_public_values(ComputationResult(n=n, a=0, b=0))
        path = mock_artifacts / "contract_call_data_n10.json"
        path.write_text(ContractCallData(n=n, public_values=values, proof_bytes=b"").to_json())
        contract = FakeContract(result=(n, 0, 0))
        with pytest.raises(DecodingError, match="maximum 10000"):
            OnChainVerificationClient(contract).verify_remote(path)
        assert contract.calls == []

    def test_call_data_n_differs_from_committed(self, mock_artifacts):
        path = mock_artifacts / "contract_call_data_n10.json"
        path.write_text(path.read_text().replace('"n": 10', '"n": 11'))
        with pytest.raises(DecodingError, match="n=11"):
            OnChainVerificationClient(FakeContract()).verify_remote(path)

    def test_local_mock_rejects_real_bytes(self, mock_prover, mock_artifacts):
        path = mock_artifacts / "contract_call_data_n10.json"
        path.write_text(path.read_text().replace('"proofBytes": "0x"', '"proofBytes": "0x01"'))
        contract = LocalVerifierContract(mock_prover, FIBONACCI_PROGRAM.vk, mock=True)
        with pytest.raises(VerificationRejected):
            OnChainVerificationClient(contract).verify_remote(mock_artifacts)


# ── web3 binding ──
class TestWeb3VerifierContract:
    def test_checksums_address(self):
        contract = Web3VerifierContract("0x44a4c90114d64a027db4630639153dc54eaa6224", "http://127.0.0.1:8545")
        assert contract.address.lower() == "0x44a4c90114d64a027db4630639153dc54eaa6224"
        assert Web3.is_checksum_address(contract.address)

    def test_invalid_address(self):
        with pytest.raises(ConfigurationError, match="invalid contract address"):
            Web3VerifierContract("not-an-address", "http://127.0.0.1:8545")
