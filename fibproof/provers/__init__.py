from fibproof.config import Settings
from fibproof.provers.base import ProverBackend
from fibproof.provers.cpu import CpuProver
from fibproof.provers.mock import MockProver
from fibproof.provers.network import NetworkProver
from fibproof.types import ProverMode

__all__ = ["ProverBackend", "MockProver", "CpuProver", "NetworkProver", "prover_for_mode"]


def prover_for_mode(mode, settings=None, logger=None):
    """Backend for ``mode`` (a ProverMode or its name)."""
    mode = ProverMode.parse(mode)
    if mode is ProverMode.MOCK:
        return MockProver(logger=logger)
    if mode is ProverMode.CPU:
        return CpuProver(logger=logger)
    settings = settings or Settings.from_env()
    return NetworkProver.from_settings(settings, logger=logger)
