from fibproof.field import FR

# wires: [1, vk, pv, vk*pv, vk*pv + vk]
#   gate 1: vk * pv = prod
#   gate 2: (prod + vk) * 1 = out
BINDING_A = [
    [0, 1, 0, 0, 0],
    [0, 1, 0, 1, 0],
]
BINDING_B = [
    [0, 0, 1, 0, 0],
    [1, 0, 0, 0, 0],
]
BINDING_C = [
    [0, 0, 0, 1, 0],
    [0, 0, 0, 0, 1],
]

# the constant wire plus the two digests
PUB_R_INDEXS = [0, 1, 2]


def binding_r1cs():
    return BINDING_A, BINDING_B, BINDING_C


def binding_witness(vk, pv):
    vk = vk if isinstance(vk, FR) else FR(vk)
    pv = pv if isinstance(pv, FR) else FR(pv)
    prod = vk * pv
    return [FR(1), vk, pv, prod, prod + vk]


def public_witness(vk, pv):
    return binding_witness(vk, pv)[:len(PUB_R_INDEXS)]
