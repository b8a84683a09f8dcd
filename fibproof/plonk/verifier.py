"""
PLONK verifier
==============

  1. Replay the Fiat-Shamir transcript: beta, gamma, alpha, zeta, v, u
  2. Z_H(zeta), L_1(zeta), PI(zeta)
  3. Linearisation commitment [D] and its constant part r_0
  4. Batched commitment [F] and evaluation E
  5. One pairing check for both openings

The prover's opening numerator at zeta is

    [t(x) - t(zeta)] + v [r(x) - r_eval] + v^2 [a(x) - a_eval] + ...
                                         + v^6 [S_sigma2(x) - s2_eval]

with commit(r) = [D] + r_0 * G1 and r(zeta) = t(zeta) * Z_H(zeta). The final
equation is

    e([W_zeta] + u [W_zeta_omega], [tau]_2)
        == e(zeta [W_zeta] + u zeta omega [W_zeta_omega] + [F] + u [z] - E G1, G2)

Example:
    >>> from fibproof.plonk.verifier import verify
    >>> verify(proof, public_inputs, preprocessed, srs)
    True
"""

from fibproof.field import FR, G1, ec_add, ec_mul, ec_neg, ec_pairing
from fibproof.plonk.permutation import K1, K2
from fibproof.plonk.polynomial import (
    lagrange_basis_eval,
    public_input_poly_eval,
    vanishing_poly_eval,
)
from fibproof.plonk.prover import Proof
from fibproof.plonk.transcript import Transcript

# per round, in prover order: scalars absorbed, points absorbed, challenges squeezed
TRANSCRIPT_SCHEDULE = (
    ((), ("a_comm", "b_comm", "c_comm"), ("beta", "gamma")),
    ((), ("z_comm",), ("alpha",)),
    ((), ("t_lo_comm", "t_mid_comm", "t_hi_comm"), ("zeta",)),
    (Proof.EVALUATIONS[:-1], (), ("v",)),
    (("r_eval",), ("W_zeta_comm", "W_zeta_omega_comm"), ("u",)),
)


def _replay_transcript(proof, public_inputs):
    transcript = Transcript()
    for value in public_inputs:
        transcript.append_scalar(b"pi", value)

    challenges = {}
    for scalars, points, squeezed in TRANSCRIPT_SCHEDULE:
        for name in scalars:
            transcript.append_scalar(name.encode(), getattr(proof, name))
        for name in points:
            transcript.append_point(name.encode(), getattr(proof, name))
        for name in squeezed:
            challenges[name] = transcript.challenge_scalar(name.encode())
    return challenges


def verify(proof, public_inputs, preprocessed, srs):
    """Check a PLONK proof against its public inputs.

    Args:
        proof: Proof from ``prover.prove``
        public_inputs: FR values, one per public input gate
        preprocessed: PreprocessedData of the circuit
        srs: SRS the circuit was preprocessed with

    Returns:
        bool
    """
    pp = preprocessed
    n = pp.n
    omega = pp.omega
    public_inputs = [v if isinstance(v, FR) else FR(v) for v in public_inputs]
    if len(public_inputs) != pp.num_public_inputs:
        return False

    # ── 1. transcript ──
    challenges = _replay_transcript(proof, public_inputs)
    beta, gamma, alpha, zeta, v, u = (
        challenges[name] for name in ("beta", "gamma", "alpha", "zeta", "v", "u")
    )

    # ── 2. domain values ──
    a_eval, b_eval, c_eval = proof.a_eval, proof.b_eval, proof.c_eval
    s_sigma1_eval, s_sigma2_eval = proof.s_sigma1_eval, proof.s_sigma2_eval
    z_omega_eval = proof.z_omega_eval

    zh_zeta = vanishing_poly_eval(n, zeta)
    if zh_zeta == FR(0):
        return False
    l1_zeta = lagrange_basis_eval(0, n, omega, zeta)
    pi_zeta = public_input_poly_eval(
        [FR(0) - value for value in public_inputs], n, omega, zeta
    )

    # ── 3. linearisation ──
    D = pp.q_c_comm
    for comm, weight in (
        (pp.q_m_comm, a_eval * b_eval),
        (pp.q_l_comm, a_eval),
        (pp.q_r_comm, b_eval),
        (pp.q_o_comm, c_eval),
    ):
        D = ec_add(D, ec_mul(comm, weight))

    perm_z_scalar = (
        alpha
        * (a_eval + beta * zeta + gamma)
        * (b_eval + beta * K1 * zeta + gamma)
        * (c_eval + beta * K2 * zeta + gamma)
    )
    D = ec_add(D, ec_mul(proof.z_comm, perm_z_scalar + alpha * alpha * l1_zeta))

    ab_factor = (
        (a_eval + beta * s_sigma1_eval + gamma)
        * (b_eval + beta * s_sigma2_eval + gamma)
    )
    perm_s3_scalar = alpha * ab_factor * beta * z_omega_eval
    D = ec_add(D, ec_neg(ec_mul(pp.s_sigma3_comm, perm_s3_scalar)))

    r_0 = (
        pi_zeta
        - alpha * ab_factor * z_omega_eval * (c_eval + gamma)
        - alpha * alpha * l1_zeta
    )

    # ── 4. batched commitment and evaluation ──
    zeta_n = zeta ** n
    t_comm = ec_add(
        proof.t_lo_comm,
        ec_add(ec_mul(proof.t_mid_comm, zeta_n), ec_mul(proof.t_hi_comm, zeta_n * zeta_n)),
    )

    r_eval = proof.r_eval
    t_eval = r_eval / zh_zeta

    F = ec_add(t_comm, ec_mul(D, v))
    F = ec_add(F, ec_mul(G1, v * r_0))
    e_scalar = t_eval + v * r_eval

    v_pow = v
    for comm, value in (
        (proof.a_comm, a_eval),
        (proof.b_comm, b_eval),
        (proof.c_comm, c_eval),
        (pp.s_sigma1_comm, s_sigma1_eval),
        (pp.s_sigma2_comm, s_sigma2_eval),
    ):
        v_pow = v_pow * v
        F = ec_add(F, ec_mul(comm, v_pow))
        e_scalar = e_scalar + v_pow * value
    e_scalar = e_scalar + u * z_omega_eval

    E = ec_mul(G1, e_scalar)

    # ── 5. pairing ──
    lhs_point = ec_add(proof.W_zeta_comm, ec_mul(proof.W_zeta_omega_comm, u))

    rhs_point = ec_mul(proof.W_zeta_comm, zeta)
    rhs_point = ec_add(rhs_point, ec_mul(proof.W_zeta_omega_comm, u * zeta * omega))
    rhs_point = ec_add(rhs_point, F)
    rhs_point = ec_add(rhs_point, ec_mul(proof.z_comm, u))
    rhs_point = ec_add(rhs_point, ec_neg(E))

    return ec_pairing(srs.g2_powers[1], lhs_point) == ec_pairing(srs.g2_powers[0], rhs_point)
