import json

import pytest

from fibproof.cli import EXIT_CONFIG, EXIT_ERROR, EXIT_OK, EXIT_REJECTED, EXIT_TRANSPORT, main
from fibproof.zkvm import FIBONACCI_PROGRAM


@pytest.fixture(autouse=True)
def in_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def prove_mock(output_dir, *extra):
    return main(["prove", "--mode", "mock", "--n", "10", "--output-dir", str(output_dir), *extra])


# ── vkey ──
class TestVkey:
    def test_prints_program_key(self, capsys):
        assert main(["vkey"]) == EXIT_OK
        assert capsys.readouterr().out.strip() == FIBONACCI_PROGRAM.vk.bytes32()


# ── prove ──
class TestProve:
    def test_mock_end_to_end(self, output_dir, capsys):
        assert prove_mock(output_dir, "--system", "plonk") == EXIT_OK
        out = capsys.readouterr().out
        assert "Fibonacci(9): 55" in out
        assert "Fibonacci(10): 89" in out
        assert "Proof Size: 0 bytes" in out
        assert (output_dir / "proof_plonk_n10.bin").is_file()
        doc = json.loads((output_dir / "contract_call_data_n10.json").read_text())
        assert doc["parameters"]["proofBytes"] == "0x"

    def test_mode_from_environment(self, output_dir, monkeypatch):
        monkeypatch.setenv("SP1_PROVER", "mock")
        assert main(["prove", "--output-dir", str(output_dir)]) == EXIT_OK
        assert (output_dir / "proof_groth16_n10.bin").read_bytes() == b""

    def test_no_save(self, output_dir):
        assert prove_mock(output_dir, "--no-save") == EXIT_OK
        assert not output_dir.exists()

    def test_unknown_system(self, output_dir):
        assert prove_mock(output_dir, "--system", "stark") == EXIT_CONFIG

    def test_unknown_mode(self, output_dir):
        assert main(["prove", "--mode", "gpu", "--output-dir", str(output_dir)]) == EXIT_CONFIG

    def test_negative_n(self, output_dir):
        assert main(["prove", "--mode", "mock", "--n", "-1", "--output-dir", str(output_dir)]) == EXIT_CONFIG

    def test_input_too_large(self, output_dir, capsys):
        code = main(["prove", "--mode", "mock", "--n", "10001", "--output-dir", str(output_dir)])
        assert code == EXIT_ERROR
        assert "Input too large" in capsys.readouterr().err
        assert not output_dir.exists()

    def test_proving_service_unreachable(self, output_dir, monkeypatch):
        for name in ("HTTP_PROXY", "http_proxy", "ALL_PROXY", "all_proxy"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("NETWORK_RPC_URL", "http://127.0.0.1:1")
        code = main(["prove", "--mode", "network", "--output-dir", str(output_dir)])
        assert code == EXIT_TRANSPORT
        assert not output_dir.exists()

    def test_bad_timeout_env(self, output_dir, monkeypatch):
        monkeypatch.setenv("FIBPROOF_PROOF_TIMEOUT", "never")
        assert prove_mock(output_dir) == EXIT_CONFIG


# ── verify-onchain ──
class TestVerifyOnchain:
    def test_local_mock(self, output_dir, capsys):
        assert prove_mock(output_dir) == EXIT_OK
        capsys.readouterr()
        code = main(["verify-onchain", "--local", "mock", "--artifacts", str(output_dir)])
        assert code == EXIT_OK
        out = capsys.readouterr().out
        assert "Proof verification successful!" in out
        assert "Fibonacci(10) = 89" in out

    def test_missing_artifacts(self, tmp_path, capsys):
        code = main(["verify-onchain", "--local", "mock", "--artifacts", str(tmp_path / "none")])
        assert code == EXIT_ERROR
        assert "fibproof prove" in capsys.readouterr().err

    def test_flag_overrides_env_output_dir(self, output_dir, tmp_path, monkeypatch):
        env_dir = tmp_path / "from_env"
        monkeypatch.setenv("FIBPROOF_OUTPUT_DIR", str(env_dir))
        assert prove_mock(output_dir) == EXIT_OK
        assert (output_dir / "contract_call_data_n10.json").is_file()
        assert not env_dir.exists()

        code = main(["verify-onchain", "--local", "mock"])
        assert code == EXIT_ERROR
        code = main(["verify-onchain", "--local", "mock", "--artifacts", str(output_dir)])
        assert code == EXIT_OK

    def test_incomplete_bundle(self, output_dir, capsys):
        assert prove_mock(output_dir) == EXIT_OK
        (output_dir / "public_values_n10.bin").unlink()
        code = main(["verify-onchain", "--local", "mock", "--artifacts", str(output_dir)])
        assert code == EXIT_ERROR
        err = capsys.readouterr().err
        assert "public_values_n10.bin" in err
        assert "fibproof prove" in err

    def test_rejected(self, output_dir, capsys):
        assert prove_mock(output_dir) == EXIT_OK
        path = output_dir / "contract_call_data_n10.json"
        path.write_text(path.read_text().replace('"proofBytes": "0x"', '"proofBytes": "0xdead"'))
        code = main(["verify-onchain", "--local", "mock", "--artifacts", str(output_dir)])
        assert code == EXIT_REJECTED
        err = capsys.readouterr().err
        assert "Proof verification failed!" in err
        assert "Wrong program VKey" in err

    def test_invalid_contract_address(self, output_dir):
        assert prove_mock(output_dir) == EXIT_OK
        code = main([
            "verify-onchain", "--artifacts", str(output_dir),
            "--contract-address", "0x1234", "--rpc-url", "http://127.0.0.1:1",
        ])
        assert code == EXIT_CONFIG
