"""
Fiat-Shamir transcript
======================

The prover and the verifier absorb the same messages in the same order and
squeeze identical challenges from a running SHA-256 state:

    public inputs             -> (absorbed first)
    Round 1 [a], [b], [c]     -> beta, gamma
    Round 2 [z]               -> alpha
    Round 3 [t_lo, t_mid, t_hi] -> zeta
    Round 4 six evaluations   -> v
    Round 5 [W_zeta], [W_zeta_omega] -> u (verifier only)

Every item is prefixed with a label for domain separation.
"""

import hashlib

from fibproof.field import FR, CURVE_ORDER


class Transcript:
    """SHA-256 based Fiat-Shamir transcript."""

    def __init__(self, label=b"fibproof-plonk"):
        self.state = bytearray(label)

    def append_scalar(self, label, scalar):
        self.state.extend(label)
        self.state.extend((int(scalar) % CURVE_ORDER).to_bytes(32, "big"))

    def append_point(self, label, point):
        """Absorb a G1 point; the point at infinity is 64 zero bytes."""
        self.state.extend(label)
        if point is None:
            self.state.extend(b"\x00" * 64)
        else:
            x, y = point
            self.state.extend(int(x).to_bytes(32, "big"))
            self.state.extend(int(y).to_bytes(32, "big"))

    def challenge_scalar(self, label):
        """Squeeze a challenge; the digest is fed back into the state."""
        self.state.extend(label)
        digest = hashlib.sha256(bytes(self.state)).digest()
        self.state.extend(digest)
        return FR(int.from_bytes(digest, "big") % CURVE_ORDER)
