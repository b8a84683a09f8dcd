"""
Circuit preprocessing
=====================

Fixes the evaluation domain and commits to the circuit structure once, so
proofs for the same circuit reuse it:

    domain      n (power of two >= number of gates), omega, H
    selectors   q_L, q_R, q_O, q_M, q_C  and their KZG commitments
    permutation S_sigma1..3              and their KZG commitments

The prover needs the polynomials; the verifier only the commitments. The
commitments together form the circuit's verification key.
"""

from fibproof.field import get_root_of_unity, get_roots_of_unity
from fibproof.plonk.kzg import commit
from fibproof.plonk.permutation import build_permutation_polynomials
from fibproof.plonk.polynomial import Polynomial, next_power_of_2


class PreprocessedData:
    """Preprocessed circuit: domain, selector and permutation polynomials."""

    SELECTORS = ("q_l", "q_r", "q_o", "q_m", "q_c")
    PERMUTATIONS = ("s_sigma1", "s_sigma2", "s_sigma3")

    def commitments(self):
        """All fixed commitments in canonical order (selectors, then sigmas)."""
        return [getattr(self, f"{name}_comm") for name in self.SELECTORS + self.PERMUTATIONS]


def preprocess(circuit, srs):
    """Pad the circuit to a power of two and commit to its structure.

    Args:
        circuit: Circuit (padded in place)
        srs: SRS large enough for the circuit

    Returns:
        PreprocessedData
    """
    result = PreprocessedData()

    # ── 1. domain ──
    n = next_power_of_2(max(circuit.n, 2))
    circuit.pad_to(n)
    result.n = n
    result.omega = get_root_of_unity(n)
    result.domain = get_roots_of_unity(n)

    # ── 2. selectors ──
    for name, evals in zip(PreprocessedData.SELECTORS, circuit.selector_vectors()):
        poly = Polynomial.from_evaluations(evals, result.omega)
        setattr(result, f"{name}_poly", poly)
        setattr(result, f"{name}_comm", commit(poly, srs))

    # ── 3. permutation ──
    result.sigma = circuit.build_sigma()
    sigma_evals = build_permutation_polynomials(result.sigma, n, result.domain)
    for name, evals in zip(PreprocessedData.PERMUTATIONS, sigma_evals):
        poly = Polynomial.from_evaluations(evals, result.omega)
        setattr(result, f"{name}_poly", poly)
        setattr(result, f"{name}_comm", commit(poly, srs))

    result.num_public_inputs = circuit.num_public_inputs
    return result
