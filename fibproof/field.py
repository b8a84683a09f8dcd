"""
BN254 scalar field and curve operations
=======================================

Algebraic building blocks shared by the Groth16 and PLONK provers.

**Scalar field FR**:
  The scalar field of the bn128 (BN254) curve, order r ~ 2^254. Every
  polynomial, witness value and challenge lives here. r - 1 = 2^28 * m with
  m odd, so power-of-two evaluation domains up to 2^28 exist.

**Curve operations**:
  Thin wrappers around ``py_ecc.bn128`` for G1/G2 arithmetic and the optimal
  Ate pairing. ``None`` is the point at infinity, as in py_ecc.

**Digests**:
  ``bn254_digest`` hashes bytes with SHA-256 and clears the top three bits,
  so the result is always a canonical FR element. Program verification keys
  and public-values digests are computed this way, which lets the proving
  circuits take both as public inputs.

Example:
    >>> from fibproof.field import FR, G1, ec_mul
    >>> FR(3) * FR(7)
    21
    >>> P = ec_mul(G1, 5)
"""

import hashlib

from py_ecc import bn128
from py_ecc.fields import bn128_FQ as FQ


# ─────────────────────────────────────────────────────────────────────
# Scalar field
# ─────────────────────────────────────────────────────────────────────

class FR(FQ):
    """Element of the bn128 scalar field (modulus ``bn128.curve_order``)."""
    field_modulus = bn128.curve_order


CURVE_ORDER = bn128.curve_order
FIELD_MODULUS = bn128.field_modulus


# ─────────────────────────────────────────────────────────────────────
# Curve constants and operations
# ─────────────────────────────────────────────────────────────────────

G1 = bn128.G1
G2 = bn128.G2


def ec_mul(point, scalar):
    """scalar * point, for G1 or G2 points and int or FR scalars."""
    if point is None:
        return None
    if isinstance(scalar, FR):
        scalar = int(scalar)
    return bn128.multiply(point, scalar % CURVE_ORDER)


def ec_add(p1, p2):
    return bn128.add(p1, p2)


def ec_neg(point):
    return bn128.neg(point)


def ec_pairing(g2_point, g1_point):
    """Optimal Ate pairing e(g1_point, g2_point).

    Note: py_ecc takes the G2 argument first.
    """
    return bn128.pairing(g2_point, g1_point)


def is_on_g1(point):
    return point is None or bn128.is_on_curve(point, bn128.b)


def is_on_g2(point):
    if point is None:
        return True
    if not bn128.is_on_curve(point, bn128.b2):
        return False
    # subgroup check: r * P must be the point at infinity
    return bn128.multiply(point, CURVE_ORDER) is None


# ─────────────────────────────────────────────────────────────────────
# Roots of unity
# ─────────────────────────────────────────────────────────────────────

def get_root_of_unity(n):
    """Primitive n-th root of unity omega (omega^n = 1, omega^k != 1 for 0<k<n).

    Args:
        n: domain size, a power of two no larger than 2^28

    Returns:
        FR: omega = 5^((r-1)/n)

    Raises:
        ValueError: if n is not a power of two or exceeds 2^28
    """
    if n < 1 or (n & (n - 1)) != 0:
        raise ValueError(f"domain size must be a power of two: {n}")
    if n > (1 << 28):
        raise ValueError(f"domain size must not exceed 2^28: {n}")
    if n == 1:
        return FR(1)
    return FR(5) ** ((CURVE_ORDER - 1) // n)


def get_roots_of_unity(n):
    """The evaluation domain H = [1, omega, omega^2, ..., omega^(n-1)]."""
    omega = get_root_of_unity(n)
    roots = []
    current = FR(1)
    for _ in range(n):
        roots.append(current)
        current = current * omega
    return roots


# ─────────────────────────────────────────────────────────────────────
# Digests into the field
# ─────────────────────────────────────────────────────────────────────

def bn254_digest(data):
    """SHA-256 of ``data`` with the three most significant bits cleared.

    Returns:
        bytes: 32 byte digest whose big-endian value is below 2^253 < r
    """
    digest = bytearray(hashlib.sha256(bytes(data)).digest())
    digest[0] &= 0x1F
    return bytes(digest)


def fr_from_bytes32(data):
    return FR(int.from_bytes(data, "big"))


def hash_to_fr(*parts):
    """Derive a non-zero field element from labelled byte strings."""
    h = hashlib.sha256()
    for part in parts:
        if isinstance(part, str):
            part = part.encode()
        h.update(len(part).to_bytes(4, "big"))
        h.update(part)
    value = int.from_bytes(h.digest(), "big") % CURVE_ORDER
    return FR(value or 1)
