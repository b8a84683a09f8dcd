"""
Data model shared by the pipeline components.

ProofSystem and ProverMode are closed enums, parsed once at the configuration
boundary. Everything else is a plain dataclass; the records that cross
component boundaries (results, keys, proofs) are frozen.
"""

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from fibproof.errors import ConfigurationError, DecodingError

MAX_N = 10000
UINT32_MAX = 2**32 - 1


class ProofSystem(enum.Enum):
    GROTH16 = "groth16"
    PLONK = "plonk"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(s.value for s in cls)
            raise ConfigurationError(
                f"unknown proof system {value!r}, expected one of: {choices}"
            ) from None


class ProverMode(enum.Enum):
    MOCK = "mock"
    CPU = "cpu"
    NETWORK = "network"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        if text == "local":
            return cls.CPU
        try:
            return cls(text)
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ConfigurationError(
                f"unknown prover mode {value!r}, expected one of: {choices}"
            ) from None


@dataclass(frozen=True)
class ProofRequest:
    n: int
    system: ProofSystem = ProofSystem.GROTH16
    mode: ProverMode = ProverMode.CPU
    persist_artifacts: bool = True
    output_dir: Path = Path("artifacts")

    def __post_init__(self):
        if isinstance(self.n, bool) or not isinstance(self.n, int):
            raise ConfigurationError(f"n must be an integer, got {self.n!r}")
        if not 0 <= self.n <= UINT32_MAX:
            raise ConfigurationError(f"n must be a uint32, got {self.n}")
        object.__setattr__(self, "system", ProofSystem.parse(self.system))
        object.__setattr__(self, "mode", ProverMode.parse(self.mode))
        object.__setattr__(self, "output_dir", Path(self.output_dir))


@dataclass(frozen=True)
class ComputationResult:
    n: int
    a: int
    b: int

    def as_tuple(self):
        return (self.n, self.a, self.b)


@dataclass(frozen=True)
class ExecutionReport:
    total_instructions: int
    stdout: tuple = ()


@dataclass(frozen=True)
class VerificationKey:
    """Program verification key: a 32 byte digest of the program binary."""

    bytes: bytes

    @property
    def hex(self):
        return self.bytes.hex()

    def bytes32(self):
        return "0x" + self.hex

    @classmethod
    def from_hex(cls, text):
        text = text.strip()
        if text[:2] in ("0x", "0X"):
            text = text[2:]
        try:
            raw = bytes.fromhex(text)
        except ValueError as exc:
            raise DecodingError(f"malformed verification key hex: {exc}") from exc
        if len(raw) != 32:
            raise DecodingError(f"verification key must be 32 bytes, got {len(raw)}")
        return cls(raw)

    def __str__(self):
        return self.hex


@dataclass(frozen=True)
class ProvingKey:
    program: object
    vk: VerificationKey


@dataclass(frozen=True)
class Proof:
    bytes: bytes
    public_values: bytes
    system: ProofSystem

    @property
    def is_mock(self):
        return len(self.bytes) == 0


@dataclass(frozen=True)
class ArtifactBundle:
    proof_path: Path
    public_values_path: Path
    vkey_path: Path
    call_data_path: Path
    summary_path: Path

    def paths(self):
        return [
            self.proof_path,
            self.public_values_path,
            self.vkey_path,
            self.call_data_path,
            self.summary_path,
        ]

    def missing(self):
        return [p for p in self.paths() if not p.is_file()]

    def is_complete(self):
        return not self.missing()


@dataclass(frozen=True)
class OnChainVerificationOutcome:
    n: int
    a: int
    b: int
    contract_vkey: Optional[str] = None
    vkey_matches: Optional[bool] = None


@dataclass
class ProvingOutcome:
    request: ProofRequest
    result: ComputationResult
    report: ExecutionReport
    vk: VerificationKey
    proof: Proof
    bundle: Optional[ArtifactBundle] = None
    timings: dict = field(default_factory=dict)
