from fibproof.field import FR, G1, G2, ec_mul, hash_to_fr
from fibproof.groth16.qap import eval_columns, eval_poly, r1cs_to_qap

TOXIC_LABELS = ("alpha", "beta", "gamma", "delta", "x")


def sigma11(alpha, beta, delta):
    return [ec_mul(G1, alpha), ec_mul(G1, beta), ec_mul(G1, delta)]


def sigma12(numGates, x_val):
    return [ec_mul(G1, x_val ** i) for i in range(numGates)]


def sigma13(numWires, alpha, beta, gamma, Ax_val, Bx_val, Cx_val, pub_r_indexs):
    sigma1_3 = []
    for i in range(numWires):
        if i in pub_r_indexs:
            val = (beta * Ax_val[i] + alpha * Bx_val[i] + Cx_val[i]) / gamma
            sigma1_3.append(ec_mul(G1, val))
        else:
            sigma1_3.append(None)
    return sigma1_3


def sigma14(numWires, alpha, beta, delta, Ax_val, Bx_val, Cx_val, pub_r_indexs):
    sigma1_4 = []
    for i in range(numWires):
        if i in pub_r_indexs:
            sigma1_4.append(None)
        else:
            val = (beta * Ax_val[i] + alpha * Bx_val[i] + Cx_val[i]) / delta
            sigma1_4.append(ec_mul(G1, val))
    return sigma1_4


def sigma15(numGates, delta, x_val, Zx_val):
    return [ec_mul(G1, (x_val ** i * Zx_val) / delta) for i in range(numGates - 1)]


def sigma21(beta, gamma, delta):
    return [ec_mul(G2, beta), ec_mul(G2, gamma), ec_mul(G2, delta)]


def sigma22(numGates, x_val):
    return [ec_mul(G2, x_val ** i) for i in range(numGates)]


def derive_toxic_waste(seed):
    """alpha, beta, gamma, delta, x derived from ``seed``.

    Anyone holding the seed can forge proofs for keys made this way, so they
    are only fit for development and reproducible tests.
    """
    return tuple(hash_to_fr(seed, "groth16/" + label) for label in TOXIC_LABELS)


class Groth16Keys:
    """Proving and verifying material for one R1CS.

    Ax, Bx, Cx are the per-wire QAP polynomials and Z the target polynomial;
    the sigma lists follow the usual CRS layout.
    """

    def __init__(self, A, B, C, pub_r_indexs, toxic):
        alpha, beta, gamma, delta, x_val = toxic
        self.pub_r_indexs = list(pub_r_indexs)

        self.Ax, self.Bx, self.Cx, self.Z = r1cs_to_qap(A, B, C)
        self.numWires = len(self.Ax)
        self.numGates = len(self.Ax[0])

        Ax_val = eval_columns(self.Ax, x_val)
        Bx_val = eval_columns(self.Bx, x_val)
        Cx_val = eval_columns(self.Cx, x_val)
        Zx_val = eval_poly(self.Z, x_val)

        self.sigma1_1 = sigma11(alpha, beta, delta)
        self.sigma1_2 = sigma12(self.numGates, x_val)
        self.sigma1_3 = sigma13(self.numWires, alpha, beta, gamma,
                                Ax_val, Bx_val, Cx_val, self.pub_r_indexs)
        self.sigma1_4 = sigma14(self.numWires, alpha, beta, delta,
                                Ax_val, Bx_val, Cx_val, self.pub_r_indexs)
        self.sigma1_5 = sigma15(self.numGates, delta, x_val, Zx_val)
        self.sigma2_1 = sigma21(beta, gamma, delta)
        self.sigma2_2 = sigma22(self.numGates, x_val)

    @classmethod
    def from_seed(cls, A, B, C, pub_r_indexs, seed):
        return cls(A, B, C, pub_r_indexs, derive_toxic_waste(seed))
