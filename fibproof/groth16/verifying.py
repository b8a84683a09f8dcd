from fibproof.field import FR, ec_add, ec_mul, ec_pairing, is_on_g1, is_on_g2


def lhs(prf_A, prf_B):
    return ec_pairing(prf_B, prf_A)


# rx_pub = [(index_i, r_i), ...]
def rhs(prf_C, sigma1_1, sigma1_3, sigma2_1, rx_pub):
    RHS = ec_pairing(sigma2_1[0], sigma1_1[0])
    temp = None
    for i, ri in rx_pub:
        temp = ec_add(temp, ec_mul(sigma1_3[i], ri))
    return RHS * ec_pairing(sigma2_1[1], temp) * ec_pairing(sigma2_1[2], prf_C)


def verify(prf_A, prf_B, prf_C, sigma1_1, sigma1_3, sigma2_1, rx_pub):
    if not (is_on_g1(prf_A) and is_on_g2(prf_B) and is_on_g1(prf_C)):
        return False
    return lhs(prf_A, prf_B) == rhs(prf_C, sigma1_1, sigma1_3, sigma2_1, rx_pub)


def verify_with_keys(keys, proof, public_r):
    prf_A, prf_B, prf_C = proof
    if len(public_r) != len(keys.pub_r_indexs):
        return False
    public_r = [v if isinstance(v, FR) else FR(v) for v in public_r]
    rx_pub = list(zip(keys.pub_r_indexs, public_r))
    return verify(prf_A, prf_B, prf_C, keys.sigma1_1, keys.sigma1_3, keys.sigma2_1, rx_pub)
