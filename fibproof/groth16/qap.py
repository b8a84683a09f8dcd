from itertools import zip_longest

from fibproof.field import FR


# Dense FR coefficient lists, lowest degree first.

def multiply_polys(a, b):
    out = [FR(0)] * (len(a) + len(b) - 1)
    for i, x in enumerate(a):
        for j, y in enumerate(b):
            out[i + j] += x * y
    return out


def add_polys(a, b, subtract=False):
    sign = FR(-1) if subtract else FR(1)
    return [x + sign * y for x, y in zip_longest(a, b, fillvalue=FR(0))]


def subtract_polys(a, b):
    return add_polys(a, b, subtract=True)


# Long division a / b -> (quotient, remainder)
def div_polys(a, b):
    lead = b[-1]
    if lead == FR(0):
        raise ZeroDivisionError("leading coefficient of the divisor is zero")
    rem = list(a)
    quot = [FR(0)] * max(len(a) - len(b) + 1, 1)
    for pos in reversed(range(len(a) - len(b) + 1)):
        factor = rem[pos + len(b) - 1] / lead
        quot[pos] = factor
        for j, coeff in enumerate(b):
            rem[pos + j] -= factor * coeff
    return quot, rem[:max(len(b) - 1, 1)]


def eval_poly(poly, x):
    acc = FR(0)
    for coeff in poly[::-1]:
        acc = acc * x + coeff
    return acc


# Polynomial that is `height` at x = point_loc and 0 at every other x in 1..total_pts
def mk_singleton(point_loc, height, total_pts):
    others = [x for x in range(1, total_pts + 1) if x != point_loc]
    poly = [FR(1)]
    denom = FR(1)
    for x in others:
        poly = multiply_polys(poly, [FR(-x), FR(1)])
        denom *= FR(point_loc - x)
    scale = FR(height) / denom
    return [c * scale for c in poly]


# Polynomial through (1, vec[0]), (2, vec[1]), ...
def lagrange_interp(vec):
    out = [FR(0)] * len(vec)
    for x, y in enumerate(vec, start=1):
        out = add_polys(out, mk_singleton(x, y, len(vec)))
    return out


def transpose(matrix):
    return [list(col) for col in zip(*matrix)]


# R1CS rows are gates and columns wires; the QAP has one polynomial per wire
# and the target Z vanishes on every gate index 1..numGates.
def r1cs_to_qap(A, B, C):
    def columns(matrix):
        return [lagrange_interp([FR(v) for v in col]) for col in transpose(matrix)]

    num_gates = len(A)
    Z = [FR(1)]
    for gate in range(1, num_gates + 1):
        Z = multiply_polys(Z, [FR(-gate), FR(1)])
    return columns(A), columns(B), columns(C), Z


def _combine(r, polys):
    acc = []
    for rval, poly in zip(r, polys):
        acc = add_polys(acc, [FR(rval) * c for c in poly])
    return acc


def create_solution_polynomials(r, new_A, new_B, new_C):
    Apoly = _combine(r, new_A)
    Bpoly = _combine(r, new_B)
    Cpoly = _combine(r, new_C)
    sol = subtract_polys(multiply_polys(Apoly, Bpoly), Cpoly)
    return Apoly, Bpoly, Cpoly, sol


# H = (A*B - C) / Z; a non-zero remainder means r does not satisfy the R1CS
def create_divisor_polynomial(sol, Z):
    quot, rem = div_polys(sol, Z)
    if any(coeff != FR(0) for coeff in rem):
        raise ValueError("witness does not satisfy the constraint system")
    return quot


def eval_columns(polys, x):
    return [eval_poly(poly, x) for poly in polys]


def _dot(row, r):
    return sum((FR(coeff) * r[j] for j, coeff in enumerate(row) if coeff), FR(0))


def r1cs_satisfied(A, B, C, r):
    return all(
        _dot(a_row, r) * _dot(b_row, r) == _dot(c_row, r)
        for a_row, b_row, c_row in zip(A, B, C)
    )
