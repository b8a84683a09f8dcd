"""
Polynomials over FR
===================

Coefficient-form polynomials, the radix-2 NTT over roots of unity, long
division, and the closed-form domain evaluations the verifier needs.

**Polynomial**:
  p(x) = c0 + c1*x + c2*x^2 + ..., stored as ``coeffs = [c0, c1, ...]`` and
  kept trimmed (no trailing zero coefficients). Arithmetic accepts ints and
  FR scalars on either side.

**NTT**:
  ``fft`` evaluates on H = {1, w, ..., w^(n-1)} with an iterative
  bit-reversed butterfly, ``ifft`` interpolates back. Inputs must have
  power-of-two length.

**Domain evaluations**:
  Z_H(z) = z^n - 1, L_i(z), and the public input polynomial
  PI(x) = sum_i pi_i * L_i(x) with its O(|pi|) evaluation.

Example:
    >>> p = Polynomial([FR(1), FR(2), FR(3)])  # 1 + 2x + 3x^2
    >>> p.evaluate(FR(2))
    17
"""

from itertools import zip_longest

from fibproof.field import FR

ZERO = FR(0)
ONE = FR(1)


def _fr(value):
    return value if isinstance(value, FR) else FR(value)


def _as_poly(value):
    if isinstance(value, Polynomial):
        return value
    return Polynomial([value])


# ─────────────────────────────────────────────────────────────────────
# Polynomial
# ─────────────────────────────────────────────────────────────────────

class Polynomial:
    """Polynomial with FR coefficients, lowest degree first."""

    def __init__(self, coeffs=None):
        coeffs = [_fr(c) for c in (coeffs or ())]
        while coeffs and coeffs[-1] == ZERO:
            coeffs.pop()
        self.coeffs = coeffs or [ZERO]

    @property
    def degree(self):
        """Degree; the zero polynomial has degree 0."""
        return len(self.coeffs) - 1

    def is_zero(self):
        return self.coeffs == [ZERO]

    def evaluate(self, point):
        """p(point) by Horner's rule."""
        point = _fr(point)
        acc = ZERO
        for c in self.coeffs[::-1]:
            acc = acc * point + c
        return acc

    def __add__(self, other):
        other = _as_poly(other)
        return Polynomial([x + y for x, y in zip_longest(self.coeffs, other.coeffs, fillvalue=ZERO)])

    __radd__ = __add__

    def __neg__(self):
        return Polynomial([-c for c in self.coeffs])

    def __sub__(self, other):
        return self + (-_as_poly(other))

    def __rsub__(self, other):
        return _as_poly(other) + (-self)

    def __mul__(self, other):
        """Product with a polynomial (schoolbook) or a scalar."""
        if not isinstance(other, Polynomial):
            k = _fr(other)
            return Polynomial([c * k for c in self.coeffs])
        out = [ZERO] * (len(self.coeffs) + len(other.coeffs) - 1)
        for i, x in enumerate(self.coeffs):
            if x == ZERO:
                continue
            for j, y in enumerate(other.coeffs):
                out[i + j] += x * y
        return Polynomial(out)

    __rmul__ = __mul__

    def __eq__(self, other):
        if isinstance(other, (int, FR)):
            other = Polynomial([other])
        if not isinstance(other, Polynomial):
            return NotImplemented
        return self.coeffs == other.coeffs

    def __len__(self):
        return len(self.coeffs)

    def __repr__(self):
        return f"Polynomial({[int(c) for c in self.coeffs]})"

    def shift(self, factor):
        """p(factor * x): coefficient i is scaled by factor^i."""
        scaled = []
        power = ONE
        for c in self.coeffs:
            scaled.append(c * power)
            power *= factor
        return Polynomial(scaled)

    @classmethod
    def zero(cls):
        return cls()

    @classmethod
    def x(cls):
        return cls([ZERO, ONE])

    @classmethod
    def vanishing(cls, n):
        """Z_H(x) = x^n - 1, zero on every point of H."""
        return cls([-ONE] + [ZERO] * (n - 1) + [ONE])

    @classmethod
    def from_evaluations(cls, evals, omega):
        """The unique polynomial of degree < n with p(w^i) = evals[i]."""
        return cls(ifft(evals, omega))


# ─────────────────────────────────────────────────────────────────────
# NTT
# ─────────────────────────────────────────────────────────────────────

def _bit_reverse(values):
    n = len(values)
    bits = n.bit_length() - 1
    return [values[int(format(i, f"0{bits}b")[::-1], 2) if bits else 0] for i in range(n)]


def fft(coeffs, omega):
    """Evaluate coefficients on [1, w, ..., w^(n-1)].

    Args:
        coeffs: FR list whose length is a power of two
        omega: primitive n-th root of unity

    Returns:
        list[FR]: [p(1), p(w), ..., p(w^(n-1))]
    """
    n = len(coeffs)
    vals = _bit_reverse([_fr(c) for c in coeffs])
    size = 2
    while size <= n:
        step = omega ** (n // size)
        half = size // 2
        for start in range(0, n, size):
            w = ONE
            for k in range(start, start + half):
                t = w * vals[k + half]
                vals[k], vals[k + half] = vals[k] + t, vals[k] - t
                w *= step
        size *= 2
    return vals


def ifft(evals, omega):
    """Interpolate evaluations on H back to coefficients."""
    n_inv = ONE / FR(len(evals))
    return [c * n_inv for c in fft(evals, ONE / omega)]


# ─────────────────────────────────────────────────────────────────────
# Division
# ─────────────────────────────────────────────────────────────────────

def poly_div(a, b):
    """Long division a(x) = b(x) * q(x) + r(x).

    Returns:
        tuple: (q, r) as Polynomials

    Raises:
        ZeroDivisionError: if b is the zero polynomial
    """
    if b.is_zero():
        raise ZeroDivisionError("polynomial division by zero")

    rem = list(a.coeffs)
    d = b.coeffs
    shift = len(rem) - len(d)
    if shift < 0:
        return Polynomial.zero(), Polynomial(rem)

    inv_lead = ONE / d[-1]
    quot = [ZERO] * (shift + 1)
    for pos in reversed(range(shift + 1)):
        factor = rem[pos + len(d) - 1] * inv_lead
        quot[pos] = factor
        if factor != ZERO:
            for j, dj in enumerate(d):
                rem[pos + j] -= factor * dj
    return Polynomial(quot), Polynomial(rem)


def divide_exact(a, b, what="polynomial"):
    """a / b, raising ValueError unless the division leaves no remainder."""
    q, r = poly_div(a, b)
    if not r.is_zero():
        raise ValueError(f"{what} is not divisible by the given divisor")
    return q


# ─────────────────────────────────────────────────────────────────────
# Closed-form evaluations over the domain
# ─────────────────────────────────────────────────────────────────────

def next_power_of_2(n):
    return 1 if n <= 1 else 1 << (n - 1).bit_length()


def vanishing_poly_eval(n, zeta):
    """Z_H(zeta) = zeta^n - 1."""
    return zeta ** n - ONE


def lagrange_basis_eval(i, n, omega, zeta):
    """L_i(zeta) = (w^i / n) * (zeta^n - 1) / (zeta - w^i).

    Returns 1 when zeta is exactly w^i.
    """
    zeta = _fr(zeta)
    w_i = omega ** i
    if zeta == w_i:
        return ONE
    return w_i * vanishing_poly_eval(n, zeta) / (FR(n) * (zeta - w_i))


def public_input_polynomial(pi_values, n, omega):
    """PI(x) = sum_i pi_values[i] * L_i(x), built by interpolation."""
    if not pi_values:
        return Polynomial.zero()
    evals = [_fr(v) for v in pi_values] + [ZERO] * (n - len(pi_values))
    return Polynomial.from_evaluations(evals, omega)


def public_input_poly_eval(pi_values, n, omega, zeta):
    """PI(zeta) without building the polynomial."""
    return sum(
        (_fr(v) * lagrange_basis_eval(i, n, omega, zeta) for i, v in enumerate(pi_values)),
        ZERO,
    )
