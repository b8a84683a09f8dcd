"""
Structured reference string for KZG
===================================

    SRS = { [G1, tau*G1, ..., tau^d*G1], [G2, tau*G2] }

The PLONK SRS is universal: one SRS of degree d serves every circuit whose
polynomials stay below d. Anyone who knows tau can forge proofs. Production
systems derive tau in a multi-party ceremony; here it is derived from a seed
(the program verification key), which makes keys reproducible and proofs
forgeable. It is a development setup, not a trusted one.
"""

import hashlib
import secrets

from fibproof.field import FR, G1, G2, CURVE_ORDER, ec_mul


class SRS:
    """Public KZG parameters.

    Attributes:
        g1_powers: [G1, tau*G1, tau^2*G1, ..., tau^d*G1]
        g2_powers: [G2, tau*G2]
        max_degree: d
    """

    def __init__(self, g1_powers, g2_powers, max_degree):
        self.g1_powers = g1_powers
        self.g2_powers = g2_powers
        self.max_degree = max_degree

    @classmethod
    def generate(cls, max_degree, seed=None):
        """Build an SRS supporting polynomials up to ``max_degree``.

        Args:
            max_degree: PLONK needs about 3n+5 for an n-gate circuit
            seed: bytes/str for a reproducible tau; random when omitted
        """
        if seed is not None:
            if isinstance(seed, str):
                seed = seed.encode()
            digest = hashlib.sha256(b"fibproof/plonk/srs" + bytes(seed)).digest()
            tau_int = int.from_bytes(digest, "big") % CURVE_ORDER
        else:
            tau_int = secrets.randbelow(CURVE_ORDER - 1) + 1
        tau = FR(tau_int or 1)

        g1_powers = []
        tau_power = FR(1)
        for _ in range(max_degree + 1):
            g1_powers.append(ec_mul(G1, tau_power))
            tau_power = tau_power * tau

        return cls(g1_powers, [G2, ec_mul(G2, tau)], max_degree)
