"""
KZG polynomial commitments
==========================

commit(p)        C  = p(tau) * G1, computed from the SRS powers [tau^i]_1
open(p, z)       pi = q(tau) * G1 with q(x) = (p(x) - p(z)) / (x - z)

The pairing check for openings lives in the verifier, where all openings at
zeta and zeta*omega are batched into a single equation.
"""

from fibproof.field import FR, ec_add, ec_mul
from fibproof.plonk.polynomial import Polynomial, divide_exact


def commit(poly, srs):
    """KZG commitment sum_i c_i * [tau^i]_1.

    Raises:
        ValueError: if deg(poly) exceeds the SRS size
    """
    if poly.degree > srs.max_degree:
        raise ValueError(
            f"polynomial degree {poly.degree} exceeds SRS max degree {srs.max_degree}"
        )
    result = None
    for i, coeff in enumerate(poly.coeffs):
        if coeff == FR(0):
            continue
        result = ec_add(result, ec_mul(srs.g1_powers[i], coeff))
    return result


def open_at(poly, point, srs):
    """Opening proof that poly(point) = poly.evaluate(point)."""
    if not isinstance(point, FR):
        point = FR(point)
    y = poly.evaluate(point)
    quotient = divide_exact(poly - y, Polynomial([FR(0) - point, FR(1)]), "opening numerator")
    return commit(quotient, srs)
