import logging
from pathlib import Path

import pytest

from fibproof.config import DEFAULT_CONTRACT_ADDRESS, DEFAULT_RPC_URL, Settings
from fibproof.errors import ConfigurationError, DecodingError, ProvingError
from fibproof.log import setup_logger
from fibproof.types import (
    ArtifactBundle,
    ProofRequest,
    ProofSystem,
    ProverMode,
    VerificationKey,
)


# ── enums ──
class TestProofSystem:
    def test_parse(self):
        assert ProofSystem.parse("groth16") is ProofSystem.GROTH16
        assert ProofSystem.parse(" PLONK ") is ProofSystem.PLONK
        assert ProofSystem.parse(ProofSystem.PLONK) is ProofSystem.PLONK

    def test_unknown(self):
        with pytest.raises(ConfigurationError, match="unknown proof system"):
            ProofSystem.parse("stark")


class TestProverMode:
    def test_parse(self):
        assert ProverMode.parse("mock") is ProverMode.MOCK
        assert ProverMode.parse("NETWORK") is ProverMode.NETWORK

    def test_local_is_cpu(self):
        assert ProverMode.parse("local") is ProverMode.CPU

    def test_unknown(self):
        with pytest.raises(ConfigurationError):
            ProverMode.parse("gpu")


# ── ProofRequest ──
class TestProofRequest:
    def test_defaults(self):
        request = ProofRequest(n=10)
        assert request.system is ProofSystem.GROTH16
        assert request.mode is ProverMode.CPU
        assert request.persist_artifacts is True
        assert request.output_dir == Path("artifacts")

    def test_parses_strings(self):
        request = ProofRequest(n=5, system="plonk", mode="mock", output_dir="out")
        assert request.system is ProofSystem.PLONK
        assert request.mode is ProverMode.MOCK
        assert request.output_dir == Path("out")

    @pytest.mark.parametrize("n", [-1, 2**32, True, "10", 1.5])
    def test_rejects_non_u32(self, n):
        with pytest.raises(ConfigurationError):
            ProofRequest(n=n)

    def test_above_max_n_is_still_a_valid_request(self):
        # the kernel, not the request, rejects it
        assert ProofRequest(n=10001).n == 10001


# ── VerificationKey ──
class TestVerificationKey:
    def test_from_hex(self):
        vk = VerificationKey.from_hex("0x" + "ab" * 32)
        assert vk.bytes == b"\xab" * 32
        assert vk.bytes32() == "0x" + "ab" * 32
        assert str(vk) == "ab" * 32

    def test_from_hex_without_prefix(self):
        assert VerificationKey.from_hex("00" * 32).bytes == bytes(32)

    def test_wrong_length(self):
        with pytest.raises(DecodingError, match="32 bytes"):
            VerificationKey.from_hex("0xabcd")

    def test_not_hex(self):
        with pytest.raises(DecodingError):
            VerificationKey.from_hex("0x" + "zz" * 32)


# ── ArtifactBundle ──
class TestArtifactBundle:
    def test_missing(self, tmp_path):
        paths = [tmp_path / name for name in ("p", "v", "k", "c", "s")]
        bundle = ArtifactBundle(*paths)
        assert bundle.missing() == paths
        for path in paths:
            path.write_text("x")
        assert bundle.is_complete()


# ── errors ──
class TestErrors:
    def test_context_in_message(self):
        err = ProvingError("backend failed", system=ProofSystem.PLONK, n=3)
        assert str(err) == "backend failed (system=plonk, n=3)"

    def test_context_as_attributes(self):
        err = ProvingError("backend failed", system=ProofSystem.PLONK, mode=None)
        assert err.system is ProofSystem.PLONK
        with pytest.raises(AttributeError):
            err.mode

    def test_plain_message(self):
        assert str(ConfigurationError("bad")) == "bad"


# ── Settings ──
class TestSettings:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.prover_mode is ProverMode.CPU
        assert settings.contract_address == DEFAULT_CONTRACT_ADDRESS
        assert settings.rpc_url == DEFAULT_RPC_URL
        assert settings.network_private_key is None
        assert settings.proof_timeout is None
        assert settings.poll_interval == 2.0
        assert settings.output_dir == Path("artifacts")

    def test_from_env(self):
        settings = Settings.from_env({
            "SP1_PROVER": "network",
            "NETWORK_PRIVATE_KEY": "secret",
            "FIBONACCI_CONTRACT_ADDRESS": "0x" + "11" * 20,
            "RPC_URL": "http://localhost:8545",
            "FIBPROOF_OUTPUT_DIR": "out",
            "FIBPROOF_PROOF_TIMEOUT": "30",
            "FIBPROOF_POLL_INTERVAL": "0.5",
            "FIBPROOF_LOG": "debug",
        })
        assert settings.prover_mode is ProverMode.NETWORK
        assert settings.network_private_key == "secret"
        assert settings.rpc_url == "http://localhost:8545"
        assert settings.output_dir == Path("out")
        assert settings.proof_timeout == 30.0
        assert settings.poll_interval == 0.5
        assert settings.log_level == "DEBUG"

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("SP1_PROVER", "mock")
        assert Settings.from_env().prover_mode is ProverMode.MOCK

    def test_unknown_mode(self):
        with pytest.raises(ConfigurationError):
            Settings.from_env({"SP1_PROVER": "gpu"})

    @pytest.mark.parametrize("raw", ["soon", "0", "-5"])
    def test_bad_timeout(self, raw):
        with pytest.raises(ConfigurationError, match="FIBPROOF_PROOF_TIMEOUT"):
            Settings.from_env({"FIBPROOF_PROOF_TIMEOUT": raw})

    def test_override_skips_none(self):
        settings = Settings.from_env({}).override(rpc_url="http://x", contract_address=None)
        assert settings.rpc_url == "http://x"
        assert settings.contract_address == DEFAULT_CONTRACT_ADDRESS


# ── logging ──
class TestSetupLogger:
    def test_level_and_single_handler(self):
        logger = setup_logger("DEBUG")
        setup_logger("WARNING")
        assert logger.level == logging.WARNING
        assert len([h for h in logger.handlers if getattr(h, "_fibproof", False)]) == 1

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logger("chatty").level == logging.INFO
