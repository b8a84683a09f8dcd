import logging
import os
import sys

import pytest

# project root on sys.path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from fibproof.provers import CpuProver, MockProver

ENV_VARS = (
    "SP1_PROVER",
    "NETWORK_RPC_URL",
    "NETWORK_PRIVATE_KEY",
    "FIBONACCI_CONTRACT_ADDRESS",
    "RPC_URL",
    "FIBPROOF_OUTPUT_DIR",
    "FIBPROOF_PROOF_TIMEOUT",
    "FIBPROOF_POLL_INTERVAL",
    "FIBPROOF_LOG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Tests never see the developer's SP1 / fibproof environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers setup_logger attached to captured streams."""
    yield
    logger = logging.getLogger("fibproof")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def mock_prover():
    return MockProver()


@pytest.fixture(scope="session")
def cpu_prover():
    """Shared so derived keys are computed once per session."""
    return CpuProver()


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "artifacts"
