"""
Runtime configuration read from the environment.

The variable names follow the SP1 project scripts (SP1_PROVER, RPC_URL,
FIBONACCI_CONTRACT_ADDRESS, NETWORK_PRIVATE_KEY) so an existing ``.env`` file
keeps working. Values are validated here, once; the rest of the code only
sees ProverMode / ProofSystem members and typed numbers.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from fibproof.errors import ConfigurationError
from fibproof.types import ProverMode

DEFAULT_CONTRACT_ADDRESS = "0x44a4c90114d64A027DB4630639153DC54eaA6224"
DEFAULT_RPC_URL = "https://rpc.sepolia.succinct.xyz"
DEFAULT_NETWORK_RPC_URL = "http://127.0.0.1:5000"
DEFAULT_OUTPUT_DIR = "artifacts"


@dataclass(frozen=True)
class Settings:
    prover_mode: ProverMode = ProverMode.CPU
    network_rpc_url: str = DEFAULT_NETWORK_RPC_URL
    network_private_key: Optional[str] = None
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    rpc_url: str = DEFAULT_RPC_URL
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    proof_timeout: Optional[float] = None
    poll_interval: float = 2.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ
        return cls(
            prover_mode=ProverMode.parse(env.get("SP1_PROVER", "cpu")),
            network_rpc_url=env.get("NETWORK_RPC_URL", DEFAULT_NETWORK_RPC_URL),
            network_private_key=env.get("NETWORK_PRIVATE_KEY") or None,
            contract_address=env.get("FIBONACCI_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS),
            rpc_url=env.get("RPC_URL", DEFAULT_RPC_URL),
            output_dir=Path(env.get("FIBPROOF_OUTPUT_DIR", DEFAULT_OUTPUT_DIR)),
            proof_timeout=_optional_seconds(env, "FIBPROOF_PROOF_TIMEOUT"),
            poll_interval=_seconds(env, "FIBPROOF_POLL_INTERVAL", 2.0),
            log_level=env.get("FIBPROOF_LOG", "INFO").upper(),
        )

    def override(self, **changes):
        """Return a copy with the non-None ``changes`` applied (CLI flags win)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _seconds(env, name, default):
    value = _optional_seconds(env, name)
    return default if value is None else value


def _optional_seconds(env, name):
    raw = env.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value
