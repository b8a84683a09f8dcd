import secrets

from fibproof.field import FR, CURVE_ORDER, ec_add, ec_mul, ec_neg
from fibproof.groth16.qap import create_divisor_polynomial, create_solution_polynomials


def _commit_columns(bases, polys, Rx, start):
    # start + sum_i r_i * poly_i(x), with poly_i(x) taken from the powers of x in bases
    point = start
    for poly, ri in zip(polys, Rx):
        temp = None
        for j, coeff in enumerate(poly):
            temp = ec_add(temp, ec_mul(bases[j], coeff))
        point = ec_add(point, ec_mul(temp, ri))
    return point


def proof_a(sigma1_1, sigma1_2, Ax, Rx, r):
    proof_A = _commit_columns(sigma1_2, Ax, Rx, sigma1_1[0])
    return ec_add(proof_A, ec_mul(sigma1_1[2], r))


def proof_b(sigma2_1, sigma2_2, Bx, Rx, s):
    proof_B = _commit_columns(sigma2_2, Bx, Rx, sigma2_1[0])
    return ec_add(proof_B, ec_mul(sigma2_1[2], s))


def proof_c(sigma1_1, sigma1_2, sigma1_4, sigma1_5, Bx, Rx, Hx, s, r, prf_A, pub_r_indexs):
    # B computed in G1
    temp_proof_B = _commit_columns(sigma1_2, Bx, Rx, sigma1_1[1])
    temp_proof_B = ec_add(temp_proof_B, ec_mul(sigma1_1[2], s))

    proof_C = ec_add(
        ec_add(ec_mul(prf_A, s), ec_mul(temp_proof_B, r)),
        ec_neg(ec_mul(sigma1_1[2], s * r)),
    )

    for i in range(len(Rx)):
        if i in pub_r_indexs:
            continue
        proof_C = ec_add(proof_C, ec_mul(sigma1_4[i], Rx[i]))

    for i, coeff in enumerate(Hx):
        proof_C = ec_add(proof_C, ec_mul(sigma1_5[i], coeff))

    return proof_C


def build_rpub_enum(pub_r_indexs, r_vec):
    return [(i, r_vec[i]) for i in pub_r_indexs]


def prove(keys, Rx, r=None, s=None, checkpoint=None):
    """Groth16 proof (A, B, C) for the witness ``Rx``.

    r and s blind the proof and are drawn at random unless given.

    Raises:
        ValueError: if Rx does not satisfy the constraint system
    """
    Rx = [v if isinstance(v, FR) else FR(v) for v in Rx]
    if r is None:
        r = FR(secrets.randbelow(CURVE_ORDER))
    if s is None:
        s = FR(secrets.randbelow(CURVE_ORDER))

    _, _, _, sol = create_solution_polynomials(Rx, keys.Ax, keys.Bx, keys.Cx)
    Hx = create_divisor_polynomial(sol, keys.Z)

    if checkpoint is not None:
        checkpoint()
    prf_A = proof_a(keys.sigma1_1, keys.sigma1_2, keys.Ax, Rx, r)
    if checkpoint is not None:
        checkpoint()
    prf_B = proof_b(keys.sigma2_1, keys.sigma2_2, keys.Bx, Rx, s)
    if checkpoint is not None:
        checkpoint()
    prf_C = proof_c(keys.sigma1_1, keys.sigma1_2, keys.sigma1_4, keys.sigma1_5,
                    keys.Bx, Rx, Hx, s, r, prf_A, keys.pub_r_indexs)
    return prf_A, prf_B, prf_C
