"""
PLONK prover
============

  Round 1  wire polynomials a, b, c (blinded)          -> [a], [b], [c]
  Round 2  beta, gamma; permutation accumulator z      -> [z]
  Round 3  alpha; quotient t = C / Z_H split in three  -> [t_lo], [t_mid], [t_hi]
  Round 4  zeta; evaluations a, b, c, S1, S2 at zeta and z at zeta*omega
  Round 5  v; linearisation r and the two opening proofs -> [W_zeta], [W_zeta_omega]

Public inputs are absorbed into the transcript before round 1 and enter the
gate constraint through PI(x) = sum_i (-pi_i) * L_i(x).

``prove`` accepts an optional ``checkpoint`` callable that is invoked between
rounds; it raises to abandon the proof (used for cancellation).
"""

import secrets

from fibproof.field import FR, CURVE_ORDER
from fibproof.plonk.kzg import commit, open_at
from fibproof.plonk.permutation import K1, K2, compute_accumulator
from fibproof.plonk.polynomial import (
    Polynomial,
    divide_exact,
    lagrange_basis_eval,
    public_input_polynomial,
)
from fibproof.plonk.transcript import Transcript


class Proof:
    """PLONK proof: nine G1 commitments and seven scalars.

    Round 1: a_comm, b_comm, c_comm
    Round 2: z_comm
    Round 3: t_lo_comm, t_mid_comm, t_hi_comm
    Round 4: a_eval, b_eval, c_eval, s_sigma1_eval, s_sigma2_eval, z_omega_eval
    Round 5: r_eval, W_zeta_comm, W_zeta_omega_comm
    """

    COMMITMENTS = (
        "a_comm", "b_comm", "c_comm", "z_comm",
        "t_lo_comm", "t_mid_comm", "t_hi_comm",
        "W_zeta_comm", "W_zeta_omega_comm",
    )
    EVALUATIONS = (
        "a_eval", "b_eval", "c_eval",
        "s_sigma1_eval", "s_sigma2_eval", "z_omega_eval", "r_eval",
    )

    def __init__(self, **fields):
        for name in self.COMMITMENTS + self.EVALUATIONS:
            setattr(self, name, fields.get(name))

    def __eq__(self, other):
        if not isinstance(other, Proof):
            return NotImplemented
        return all(
            getattr(self, name) == getattr(other, name)
            for name in self.COMMITMENTS + self.EVALUATIONS
        )


class ProverState:
    """Values shared between rounds."""

    def __init__(self, a_vals, b_vals, c_vals, public_inputs, preprocessed, srs):
        n = preprocessed.n
        self.a_vals = _pad(a_vals, n)
        self.b_vals = _pad(b_vals, n)
        self.c_vals = _pad(c_vals, n)
        self.public_inputs = [v if isinstance(v, FR) else FR(v) for v in public_inputs]
        self.preprocessed = preprocessed
        self.srs = srs
        self.transcript = Transcript()

        self.n = n
        self.omega = preprocessed.omega
        self.domain = preprocessed.domain
        self.proof = Proof()


def prove(circuit, a_vals, b_vals, c_vals, public_inputs, preprocessed, srs, checkpoint=None):
    """Run the five rounds and return a Proof.

    Raises:
        ValueError: if the witness does not satisfy the circuit
    """
    state = ProverState(a_vals, b_vals, c_vals, public_inputs, preprocessed, srs)
    if circuit is not None:
        bad = circuit.unsatisfied_gates(
            state.a_vals, state.b_vals, state.c_vals, state.public_inputs
        )
        if bad:
            raise ValueError(f"witness does not satisfy gates {sorted(set(bad))}")

    for round_fn in (_round1, _round2, _round3, _round4, _round5):
        if checkpoint is not None:
            checkpoint()
        round_fn(state)
    return state.proof


def _pad(values, n):
    values = [v if isinstance(v, FR) else FR(v) for v in values]
    return values + [FR(0)] * (n - len(values))


def _blind(poly, n, count):
    """poly + (r_0 + r_1*x + ...)*Z_H: unchanged on H, random elsewhere."""
    blind = Polynomial([FR(secrets.randbelow(CURVE_ORDER)) for _ in range(count)])
    return poly + blind * Polynomial.vanishing(n)


# ─────────────────────────────────────────────────────────────────────
# Round 1: wire polynomials
# ─────────────────────────────────────────────────────────────────────

def _round1(state):
    for value in state.public_inputs:
        state.transcript.append_scalar(b"pi", value)

    state.pi_poly = public_input_polynomial(
        [FR(0) - v for v in state.public_inputs], state.n, state.omega
    )

    state.a_poly = _blind(Polynomial.from_evaluations(state.a_vals, state.omega), state.n, 2)
    state.b_poly = _blind(Polynomial.from_evaluations(state.b_vals, state.omega), state.n, 2)
    state.c_poly = _blind(Polynomial.from_evaluations(state.c_vals, state.omega), state.n, 2)

    proof = state.proof
    proof.a_comm = commit(state.a_poly, state.srs)
    proof.b_comm = commit(state.b_poly, state.srs)
    proof.c_comm = commit(state.c_poly, state.srs)

    state.transcript.append_point(b"a_comm", proof.a_comm)
    state.transcript.append_point(b"b_comm", proof.b_comm)
    state.transcript.append_point(b"c_comm", proof.c_comm)


# ─────────────────────────────────────────────────────────────────────
# Round 2: permutation accumulator
# ─────────────────────────────────────────────────────────────────────

def _round2(state):
    state.beta = state.transcript.challenge_scalar(b"beta")
    state.gamma = state.transcript.challenge_scalar(b"gamma")

    z_evals = compute_accumulator(
        state.a_vals, state.b_vals, state.c_vals,
        state.preprocessed.sigma, state.n, state.domain,
        state.beta, state.gamma,
    )
    # z is opened at zeta and zeta*omega, hence three blinding scalars
    state.z_poly = _blind(Polynomial.from_evaluations(z_evals, state.omega), state.n, 3)

    state.proof.z_comm = commit(state.z_poly, state.srs)
    state.transcript.append_point(b"z_comm", state.proof.z_comm)


# ─────────────────────────────────────────────────────────────────────
# Round 3: quotient polynomial
# ─────────────────────────────────────────────────────────────────────

def _round3(state):
    state.alpha = state.transcript.challenge_scalar(b"alpha")

    n = state.n
    alpha, beta, gamma = state.alpha, state.beta, state.gamma
    pp = state.preprocessed
    a, b, c, z = state.a_poly, state.b_poly, state.c_poly, state.z_poly
    x = Polynomial.x()

    gate = (
        pp.q_l_poly * a
        + pp.q_r_poly * b
        + pp.q_o_poly * c
        + pp.q_m_poly * (a * b)
        + pp.q_c_poly
        + state.pi_poly
    )

    perm_num = (
        (a + x * beta + gamma)
        * (b + x * (beta * K1) + gamma)
        * (c + x * (beta * K2) + gamma)
        * z
    )
    perm_den = (
        (a + pp.s_sigma1_poly * beta + gamma)
        * (b + pp.s_sigma2_poly * beta + gamma)
        * (c + pp.s_sigma3_poly * beta + gamma)
        * z.shift(state.omega)
    )

    l1 = Polynomial.from_evaluations([FR(1)] + [FR(0)] * (n - 1), state.omega)
    boundary = (z - FR(1)) * l1

    constraint = gate + (perm_num - perm_den) * alpha + boundary * (alpha * alpha)
    t_poly = divide_exact(constraint, Polynomial.vanishing(n), "constraint polynomial")

    # t = t_lo + x^n t_mid + x^2n t_hi; t_hi keeps everything above 2n
    t_coeffs = list(t_poly.coeffs) + [FR(0)] * max(0, 3 * n - len(t_poly.coeffs))
    state.t_lo_poly = Polynomial(t_coeffs[:n])
    state.t_mid_poly = Polynomial(t_coeffs[n:2 * n])
    state.t_hi_poly = Polynomial(t_coeffs[2 * n:])

    proof = state.proof
    proof.t_lo_comm = commit(state.t_lo_poly, state.srs)
    proof.t_mid_comm = commit(state.t_mid_poly, state.srs)
    proof.t_hi_comm = commit(state.t_hi_poly, state.srs)

    state.transcript.append_point(b"t_lo_comm", proof.t_lo_comm)
    state.transcript.append_point(b"t_mid_comm", proof.t_mid_comm)
    state.transcript.append_point(b"t_hi_comm", proof.t_hi_comm)


# ─────────────────────────────────────────────────────────────────────
# Round 4: evaluations
# ─────────────────────────────────────────────────────────────────────

def _round4(state):
    state.zeta = state.transcript.challenge_scalar(b"zeta")
    zeta = state.zeta
    pp = state.preprocessed
    proof = state.proof

    proof.a_eval = state.a_poly.evaluate(zeta)
    proof.b_eval = state.b_poly.evaluate(zeta)
    proof.c_eval = state.c_poly.evaluate(zeta)
    proof.s_sigma1_eval = pp.s_sigma1_poly.evaluate(zeta)
    proof.s_sigma2_eval = pp.s_sigma2_poly.evaluate(zeta)
    proof.z_omega_eval = state.z_poly.evaluate(zeta * state.omega)

    for name in Proof.EVALUATIONS[:-1]:
        state.transcript.append_scalar(name.encode(), getattr(proof, name))


# ─────────────────────────────────────────────────────────────────────
# Round 5: linearisation and openings
# ─────────────────────────────────────────────────────────────────────

def _round5(state):
    state.v = state.transcript.challenge_scalar(b"v")
    v = state.v

    n = state.n
    zeta, omega = state.zeta, state.omega
    alpha, beta, gamma = state.alpha, state.beta, state.gamma
    pp = state.preprocessed
    proof = state.proof
    a_eval, b_eval, c_eval = proof.a_eval, proof.b_eval, proof.c_eval
    s1_eval, s2_eval = proof.s_sigma1_eval, proof.s_sigma2_eval
    z_omega_eval = proof.z_omega_eval

    pi_zeta = state.pi_poly.evaluate(zeta)
    l1_zeta = lagrange_basis_eval(0, n, omega, zeta)

    # r(x): C(x) with every polynomial except q_*, z and S_sigma3 fixed at zeta
    perm_z_scalar = (
        alpha
        * (a_eval + beta * zeta + gamma)
        * (b_eval + beta * K1 * zeta + gamma)
        * (c_eval + beta * K2 * zeta + gamma)
    )
    ab_factor = (a_eval + beta * s1_eval + gamma) * (b_eval + beta * s2_eval + gamma)
    perm_s3_scalar = alpha * ab_factor * beta * z_omega_eval
    r_const = (
        pi_zeta
        - alpha * ab_factor * z_omega_eval * (c_eval + gamma)
        - alpha * alpha * l1_zeta
    )

    r_poly = (
        pp.q_m_poly * (a_eval * b_eval)
        + pp.q_l_poly * a_eval
        + pp.q_r_poly * b_eval
        + pp.q_o_poly * c_eval
        + pp.q_c_poly
        + state.z_poly * (perm_z_scalar + alpha * alpha * l1_zeta)
        - pp.s_sigma3_poly * perm_s3_scalar
        + r_const
    )
    proof.r_eval = r_poly.evaluate(zeta)

    zeta_n = zeta ** n
    t_combined = (
        state.t_lo_poly
        + state.t_mid_poly * zeta_n
        + state.t_hi_poly * (zeta_n * zeta_n)
    )

    # batched opening at zeta: t, r, a, b, c, S1, S2 weighted by 1, v, ..., v^6
    opened = [
        t_combined, r_poly, state.a_poly, state.b_poly, state.c_poly,
        pp.s_sigma1_poly, pp.s_sigma2_poly,
    ]
    numerator = Polynomial.zero()
    v_power = FR(1)
    for poly in opened:
        numerator = numerator + (poly - poly.evaluate(zeta)) * v_power
        v_power = v_power * v
    w_zeta = divide_exact(numerator, Polynomial([FR(0) - zeta, FR(1)]), "opening numerator")

    proof.W_zeta_comm = commit(w_zeta, state.srs)
    proof.W_zeta_omega_comm = open_at(state.z_poly, zeta * omega, state.srs)
