"""
Fibonacci program
=================

The provable program. It runs inside a ``ZkvmEnv`` (see ``fibproof.zkvm``):

    n = env.read_u32()                     input from the prover
    (a, b) = fibonacci(n)                  a = fib(n-1), b = fib(n)
    env.commit_slice(abi.encode(n, a, b))  public values, checked on-chain

Inputs above MAX_N abort the program, so no public values exist for them
and no proof can be produced. Arithmetic is reduced modulo 7919 at every
step, which keeps both outputs inside uint32.

The verification key of this program is a digest of this module's source:
editing the file produces a different program.
"""

from fibproof.encoding import encode_public_values
from fibproof.errors import InputTooLarge
from fibproof.types import MAX_N, ComputationResult

MODULUS = 7919


def fibonacci(n):
    """(fib(n-1), fib(n)) with fib(-1) = 0, reduced modulo 7919.

    >>> fibonacci(10)
    (55, 89)
    """
    a, b = 0, 1
    for _ in range(n):
        a, b = b, (a + b) % MODULUS
    return a, b


def main(env):
    n = env.read_u32()

    if n > MAX_N:
        raise InputTooLarge(f"Input too large: maximum allowed is {MAX_N}")

    env.println(f"Computing Fibonacci for n = {n}")

    a, b = fibonacci(n)

    if n == 0:
        assert (a, b) == (0, 1)
    elif n == 1:
        assert (a, b) == (1, 1)

    env.println(f"Fibonacci({max(n - 1, 0)}) = {a}, Fibonacci({n}) = {b}")

    env.commit_slice(encode_public_values(ComputationResult(n=n, a=a, b=b)))
