"""
Byte encodings
==============

**Public values**:
  ``abi.encode(uint32 n, uint32 a, uint32 b)``: three 32 byte big-endian
  words, 96 bytes, exactly what the Solidity contract decodes into its
  ``PublicValuesStruct``.

**Proof bytes**:
  ``selector (4) || body``. The selector names the verifier that must check
  the body, the way SP1 proofs are routed through the verifier gateway.

    groth16  A (64) || B (128) || C (64)                     = 260 bytes
    plonk    9 G1 commitments (576) || 7 scalars (224)       = 804 bytes

  G1 points are ``x || y``; G2 points use the EVM precompile order
  ``x.c1 || x.c0 || y.c1 || y.c0``. The point at infinity is all zeros.
  Every decoded point is checked to be on its curve, and every scalar to be
  below the group order.
"""

import hashlib

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError as AbiDecodingError
from py_ecc import bn128

from fibproof.errors import DecodingError
from fibproof.field import CURVE_ORDER, FIELD_MODULUS, FR, bn254_digest, is_on_g1, is_on_g2
from fibproof.plonk.prover import Proof as PlonkProof
from fibproof.types import ComputationResult, ProofSystem

PUBLIC_VALUES_TYPES = ["uint32", "uint32", "uint32"]
PUBLIC_VALUES_SIZE = 96

SELECTOR_SIZE = 4
G1_SIZE = 64
G2_SIZE = 128
SCALAR_SIZE = 32

VERIFIER_SELECTORS = {
    ProofSystem.GROTH16: hashlib.sha256(b"fibproof/groth16/v1").digest()[:SELECTOR_SIZE],
    ProofSystem.PLONK: hashlib.sha256(b"fibproof/plonk/v1").digest()[:SELECTOR_SIZE],
}

GROTH16_PROOF_SIZE = SELECTOR_SIZE + 2 * G1_SIZE + G2_SIZE
PLONK_PROOF_SIZE = SELECTOR_SIZE + 9 * G1_SIZE + 7 * SCALAR_SIZE


# ─────────────────────────────────────────────────────────────────────
# Public values
# ─────────────────────────────────────────────────────────────────────

def encode_public_values(result):
    return encode(PUBLIC_VALUES_TYPES, [result.n, result.a, result.b])


def decode_public_values(data):
    """Decode 96 bytes into a ComputationResult.

    Raises:
        DecodingError: wrong length, or padding bits set in any word
    """
    data = bytes(data)
    if len(data) != PUBLIC_VALUES_SIZE:
        raise DecodingError(
            f"public values must be {PUBLIC_VALUES_SIZE} bytes, got {len(data)}"
        )
    try:
        n, a, b = decode(PUBLIC_VALUES_TYPES, data)
    except AbiDecodingError as exc:
        raise DecodingError(f"public values are not (uint32, uint32, uint32): {exc}") from exc
    return ComputationResult(n=n, a=a, b=b)


def public_values_digest(data):
    return bn254_digest(data)


def decode_hex(text, what="hex string"):
    if not isinstance(text, str):
        raise DecodingError(f"{what} must be a hex string, got {type(text).__name__}")
    body = text.strip()
    if body[:2] in ("0x", "0X"):
        body = body[2:]
    if len(body) % 2:
        raise DecodingError(f"{what} has an odd number of hex digits")
    try:
        return bytes.fromhex(body)
    except ValueError as exc:
        raise DecodingError(f"{what} is not valid hex: {exc}") from exc


# ─────────────────────────────────────────────────────────────────────
# Field elements and curve points
# ─────────────────────────────────────────────────────────────────────

def _int_to_bytes(value):
    return int(value).to_bytes(32, "big")


def encode_scalar(value):
    return _int_to_bytes(int(value) % CURVE_ORDER)


def decode_scalar(data):
    value = int.from_bytes(data, "big")
    if value >= CURVE_ORDER:
        raise DecodingError("scalar is not reduced modulo the group order")
    return FR(value)


def encode_g1(point):
    if point is None:
        return b"\x00" * G1_SIZE
    x, y = point
    return _int_to_bytes(x) + _int_to_bytes(y)


def _coordinate(data):
    value = int.from_bytes(data, "big")
    if value >= FIELD_MODULUS:
        raise DecodingError("curve coordinate is not reduced modulo the field prime")
    return value


def decode_g1(data):
    if data == b"\x00" * G1_SIZE:
        return None
    point = (bn128.FQ(_coordinate(data[:32])), bn128.FQ(_coordinate(data[32:64])))
    if not is_on_g1(point):
        raise DecodingError("G1 point is not on the curve")
    return point


def encode_g2(point):
    if point is None:
        return b"\x00" * G2_SIZE
    x, y = point
    return b"".join(
        _int_to_bytes(c) for c in (x.coeffs[1], x.coeffs[0], y.coeffs[1], y.coeffs[0])
    )


def decode_g2(data):
    if data == b"\x00" * G2_SIZE:
        return None
    x_c1, x_c0, y_c1, y_c0 = (_coordinate(data[i:i + 32]) for i in range(0, G2_SIZE, 32))
    point = (bn128.FQ2([x_c0, x_c1]), bn128.FQ2([y_c0, y_c1]))
    if not is_on_g2(point):
        raise DecodingError("G2 point is not on the curve or not in the subgroup")
    return point


# ─────────────────────────────────────────────────────────────────────
# Proof bytes
# ─────────────────────────────────────────────────────────────────────

def split_selector(data):
    """Return (ProofSystem, body) for selector-prefixed proof bytes."""
    data = bytes(data)
    if len(data) < SELECTOR_SIZE:
        raise DecodingError(f"proof is too short to carry a verifier selector ({len(data)} bytes)")
    selector, body = data[:SELECTOR_SIZE], data[SELECTOR_SIZE:]
    for system, known in VERIFIER_SELECTORS.items():
        if selector == known:
            return system, body
    raise DecodingError(f"unknown verifier selector 0x{selector.hex()}")


def encode_groth16_proof(proof):
    prf_A, prf_B, prf_C = proof
    return (
        VERIFIER_SELECTORS[ProofSystem.GROTH16]
        + encode_g1(prf_A)
        + encode_g2(prf_B)
        + encode_g1(prf_C)
    )


def decode_groth16_proof(data):
    if len(data) != GROTH16_PROOF_SIZE:
        raise DecodingError(f"groth16 proof must be {GROTH16_PROOF_SIZE} bytes, got {len(data)}")
    system, body = split_selector(data)
    if system is not ProofSystem.GROTH16:
        raise DecodingError(f"expected a groth16 selector, got {system.value}")
    prf_A = decode_g1(body[:G1_SIZE])
    prf_B = decode_g2(body[G1_SIZE:G1_SIZE + G2_SIZE])
    prf_C = decode_g1(body[G1_SIZE + G2_SIZE:])
    return prf_A, prf_B, prf_C


def encode_plonk_proof(proof):
    parts = [VERIFIER_SELECTORS[ProofSystem.PLONK]]
    parts.extend(encode_g1(getattr(proof, name)) for name in proof.COMMITMENTS)
    parts.extend(encode_scalar(getattr(proof, name)) for name in proof.EVALUATIONS)
    return b"".join(parts)


def decode_plonk_proof(data):
    if len(data) != PLONK_PROOF_SIZE:
        raise DecodingError(f"plonk proof must be {PLONK_PROOF_SIZE} bytes, got {len(data)}")
    system, body = split_selector(data)
    if system is not ProofSystem.PLONK:
        raise DecodingError(f"expected a plonk selector, got {system.value}")

    fields = {}
    offset = 0
    for name in PlonkProof.COMMITMENTS:
        fields[name] = decode_g1(body[offset:offset + G1_SIZE])
        offset += G1_SIZE
    for name in PlonkProof.EVALUATIONS:
        fields[name] = decode_scalar(body[offset:offset + SCALAR_SIZE])
        offset += SCALAR_SIZE
    return PlonkProof(**fields)
