"""
PLONK circuits
==============

Each gate constrains its three wires a, b, c through five selectors plus the
public input polynomial:

    q_L*a + q_R*b + q_O*c + q_M*a*b + q_C + PI = 0

  | kind   | q_L | q_R | q_O | q_M | q_C | meaning            |
  |--------|-----|-----|-----|-----|-----|--------------------|
  | public |  1  |  0  |  0  |  0  |  0  | a = public value   |
  | mul    |  0  |  0  | -1  |  1  |  0  | a*b = c            |
  | add    |  1  |  1  | -1  |  0  |  0  | a + b = c          |
  | pad    |  0  |  0  |  0  |  0  |  0  | (always satisfied) |

Public input gates come first: gate i carries PI(w^i) = -value_i.

Copy constraints say that two wire positions hold the same value. They are
encoded in a permutation sigma over the 3n wire positions
(a_0..a_{n-1}, b_0..b_{n-1}, c_0..c_{n-1}).

**Binding circuit** (what the cpu prover proves):

  | gate | kind   | a        | b  | c            |
  |------|--------|----------|----|--------------|
  | 0    | public | vk       | 0  | 0            |
  | 1    | public | pv       | 0  | 0            |
  | 2    | mul    | vk       | pv | vk*pv        |
  | 3    | add    | vk*pv    | vk | vk*pv + vk   |

vk is the program verification key digest and pv the public-values digest,
both as FR elements. The proof commits to both through PI, so it cannot be
replayed for another program or other public values.
"""

from fibproof.field import FR

A, B, C = 0, 1, 2


class Gate:
    """One arithmetic gate (one row of the circuit)."""

    def __init__(self, q_l, q_r, q_o, q_m, q_c):
        self.q_l = q_l if isinstance(q_l, FR) else FR(q_l)
        self.q_r = q_r if isinstance(q_r, FR) else FR(q_r)
        self.q_o = q_o if isinstance(q_o, FR) else FR(q_o)
        self.q_m = q_m if isinstance(q_m, FR) else FR(q_m)
        self.q_c = q_c if isinstance(q_c, FR) else FR(q_c)

    def evaluate(self, a, b, c, pi=FR(0)):
        return (
            self.q_l * a
            + self.q_r * b
            + self.q_o * c
            + self.q_m * (a * b)
            + self.q_c
            + pi
        )

    def check(self, a, b, c, pi=FR(0)):
        return self.evaluate(FR(a), FR(b), FR(c), FR(pi)) == FR(0)


class Circuit:
    """Gates plus copy constraints.

    Attributes:
        gates: list of Gate
        copy_constraints: (gate1, wire1, gate2, wire2) tuples, wire in {A, B, C}
        num_public_inputs: number of leading public input gates
    """

    def __init__(self):
        self.gates = []
        self.copy_constraints = []
        self.num_public_inputs = 0

    @property
    def n(self):
        return len(self.gates)

    def add_public_input_gate(self):
        if self.num_public_inputs != len(self.gates):
            raise ValueError("public input gates must precede all other gates")
        self.gates.append(Gate(1, 0, 0, 0, 0))
        self.num_public_inputs += 1
        return len(self.gates) - 1

    def add_multiplication_gate(self):
        self.gates.append(Gate(0, 0, -1, 1, 0))
        return len(self.gates) - 1

    def add_addition_gate(self):
        self.gates.append(Gate(1, 1, -1, 0, 0))
        return len(self.gates) - 1

    def add_copy_constraint(self, gate1, wire1, gate2, wire2):
        self.copy_constraints.append((gate1, wire1, gate2, wire2))

    def pad_to(self, size):
        while len(self.gates) < size:
            self.gates.append(Gate(0, 0, 0, 0, 0))

    def selector_vectors(self):
        """(q_L, q_R, q_O, q_M, q_C) as FR lists indexed by gate."""
        return (
            [g.q_l for g in self.gates],
            [g.q_r for g in self.gates],
            [g.q_o for g in self.gates],
            [g.q_m for g in self.gates],
            [g.q_c for g in self.gates],
        )

    def build_sigma(self):
        """Wire permutation of length 3n.

        Position of wire w at gate i is w*n + i. Starting from the identity,
        each copy constraint swaps the images of its two positions, which
        merges their cycles.
        """
        n = self.n
        sigma = list(range(3 * n))
        for g1, w1, g2, w2 in self.copy_constraints:
            pos1 = w1 * n + g1
            pos2 = w2 * n + g2
            sigma[pos1], sigma[pos2] = sigma[pos2], sigma[pos1]
        return sigma

    def unsatisfied_gates(self, a_vals, b_vals, c_vals, public_inputs):
        """Indexes of gates violated by a witness (empty when it satisfies)."""
        bad = []
        for i, gate in enumerate(self.gates):
            pi = FR(0) - public_inputs[i] if i < len(public_inputs) else FR(0)
            if not gate.check(a_vals[i], b_vals[i], c_vals[i], pi):
                bad.append(i)
        for g1, w1, g2, w2 in self.copy_constraints:
            wires = (a_vals, b_vals, c_vals)
            if wires[w1][g1] != wires[w2][g2]:
                bad.append(g1)
        return bad


def binding_circuit():
    circuit = Circuit()
    circuit.add_public_input_gate()
    circuit.add_public_input_gate()
    circuit.add_multiplication_gate()
    circuit.add_addition_gate()

    circuit.add_copy_constraint(0, A, 2, A)
    circuit.add_copy_constraint(1, A, 2, B)
    circuit.add_copy_constraint(2, C, 3, A)
    circuit.add_copy_constraint(0, A, 3, B)
    return circuit


def binding_witness(vk, pv):
    """Wire values and public inputs of the binding circuit.

    Returns:
        tuple: (a_vals, b_vals, c_vals, public_inputs)
    """
    vk = vk if isinstance(vk, FR) else FR(vk)
    pv = pv if isinstance(pv, FR) else FR(pv)
    product = vk * pv
    a_vals = [vk, pv, vk, product]
    b_vals = [FR(0), FR(0), pv, vk]
    c_vals = [FR(0), FR(0), product, product + vk]
    return a_vals, b_vals, c_vals, [vk, pv]
