"""
Permutation argument
====================

Copy constraints become a grand product. Wire positions are labelled by
disjoint cosets of H:

    a wires: w^i        b wires: K1 * w^i        c wires: K2 * w^i

S_sigma1..3 map every position to the label of its image under sigma. The
accumulator z satisfies z(w^0) = 1 and

    z(w^(i+1)) = z(w^i) * prod_k (w_k,i + beta*id_k(w^i) + gamma)
                        / prod_k (w_k,i + beta*S_sigma_k(w^i) + gamma)

which wraps back to 1 exactly when the witness respects sigma.
"""

from fibproof.field import FR

K1 = FR(2)
K2 = FR(3)


def position_label(pos, n, domain):
    if pos < n:
        return domain[pos]
    if pos < 2 * n:
        return K1 * domain[pos - n]
    return K2 * domain[pos - 2 * n]


def build_permutation_polynomials(sigma, n, domain):
    """Evaluations of S_sigma1, S_sigma2, S_sigma3 on H.

    Returns:
        tuple of three FR lists of length n
    """
    return tuple(
        [position_label(sigma[w * n + i], n, domain) for i in range(n)]
        for w in range(3)
    )


def compute_accumulator(a_vals, b_vals, c_vals, sigma, n, domain, beta, gamma):
    """Evaluations [z(w^0), ..., z(w^(n-1))] of the grand product."""
    s1, s2, s3 = build_permutation_polynomials(sigma, n, domain)

    z_evals = [FR(1)]
    for i in range(n - 1):
        num = (
            (a_vals[i] + beta * domain[i] + gamma)
            * (b_vals[i] + beta * K1 * domain[i] + gamma)
            * (c_vals[i] + beta * K2 * domain[i] + gamma)
        )
        den = (
            (a_vals[i] + beta * s1[i] + gamma)
            * (b_vals[i] + beta * s2[i] + gamma)
            * (c_vals[i] + beta * s3[i] + gamma)
        )
        z_evals.append(z_evals[-1] * num / den)
    return z_evals
