"""
PLONK tests: polynomials, circuit, transcript, KZG and the full
circuit -> SRS -> preprocess -> prove -> verify pipeline on the binding
circuit.
"""

import copy

import pytest

from fibproof.field import FR, G1, ec_mul, get_root_of_unity
from fibproof.plonk.circuit import A, B, C, Circuit, binding_circuit, binding_witness
from fibproof.plonk.kzg import commit
from fibproof.plonk.polynomial import (
    Polynomial,
    divide_exact,
    fft,
    ifft,
    lagrange_basis_eval,
    next_power_of_2,
    poly_div,
    public_input_poly_eval,
    public_input_polynomial,
    vanishing_poly_eval,
)
from fibproof.plonk.preprocessor import preprocess
from fibproof.plonk.prover import prove
from fibproof.plonk.srs import SRS
from fibproof.plonk.transcript import Transcript
from fibproof.plonk.verifier import verify

VK = FR(11)
PV = FR(13)


# ─────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="module")
def binding_data():
    """Binding circuit with vk=11, pv=13 and one proof for it."""
    circuit = binding_circuit()
    n = next_power_of_2(circuit.n)
    srs = SRS.generate(3 * n + 10, seed=b"plonk-tests")
    preprocessed = preprocess(circuit, srs)
    a_vals, b_vals, c_vals, public_inputs = binding_witness(VK, PV)
    proof = prove(circuit, a_vals, b_vals, c_vals, public_inputs, preprocessed, srs)
    return {
        "circuit": circuit,
        "witness": (a_vals, b_vals, c_vals),
        "public_inputs": public_inputs,
        "srs": srs,
        "preprocessed": preprocessed,
        "proof": proof,
    }


# =====================================================================
# Polynomials
# =====================================================================

class TestPolynomial:
    def test_evaluate(self):
        assert Polynomial([1, 2, 3]).evaluate(FR(2)) == FR(17)

    def test_trimmed(self):
        p = Polynomial([1, 0, 0])
        assert p.degree == 0
        assert Polynomial([]).is_zero()

    def test_mul(self):
        assert Polynomial([1, 1]) * Polynomial([-1, 1]) == Polynomial([-1, 0, 1])

    def test_sub_scalar(self):
        assert Polynomial([5, 1]) - 5 == Polynomial.x()

    def test_vanishing(self):
        n = 4
        omega = get_root_of_unity(n)
        z = Polynomial.vanishing(n)
        for i in range(n):
            assert z.evaluate(omega ** i) == FR(0)
            assert vanishing_poly_eval(n, omega ** i) == FR(0)


class TestFFT:
    def test_matches_evaluation(self):
        omega = get_root_of_unity(4)
        coeffs = [FR(1), FR(2), FR(3), FR(4)]
        evals = fft(coeffs, omega)
        p = Polynomial(coeffs)
        assert evals == [p.evaluate(omega ** k) for k in range(4)]

    def test_ifft_inverts_fft(self):
        omega = get_root_of_unity(8)
        coeffs = [FR(i * i + 1) for i in range(8)]
        assert ifft(fft(coeffs, omega), omega) == coeffs


class TestDivision:
    def test_exact(self):
        q, r = poly_div(Polynomial([-1, 0, 1]), Polynomial([-1, 1]))
        assert q == Polynomial([1, 1])
        assert r.is_zero()

    def test_remainder(self):
        with pytest.raises(ValueError):
            divide_exact(Polynomial([1, 0, 1]), Polynomial([-1, 1]))

    def test_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            poly_div(Polynomial([1]), Polynomial.zero())


class TestDomainEvaluations:
    def test_lagrange_basis_on_domain(self):
        n = 4
        omega = get_root_of_unity(n)
        for i in range(n):
            for j in range(n):
                expected = FR(1) if i == j else FR(0)
                assert lagrange_basis_eval(i, n, omega, omega ** j) == expected

    def test_public_input_eval_matches_polynomial(self):
        n = 4
        omega = get_root_of_unity(n)
        values = [FR(7), FR(9)]
        zeta = FR(123456789)
        poly = public_input_polynomial(values, n, omega)
        assert public_input_poly_eval(values, n, omega, zeta) == poly.evaluate(zeta)


# =====================================================================
# Circuit
# =====================================================================

class TestCircuit:
    def test_binding_witness_satisfies(self):
        a_vals, b_vals, c_vals, public_inputs = binding_witness(VK, PV)
        assert binding_circuit().unsatisfied_gates(a_vals, b_vals, c_vals, public_inputs) == []

    def test_wrong_product(self):
        a_vals, b_vals, c_vals, public_inputs = binding_witness(VK, PV)
        c_vals[2] = c_vals[2] + FR(1)
        assert 2 in binding_circuit().unsatisfied_gates(a_vals, b_vals, c_vals, public_inputs)

    def test_public_input_mismatch(self):
        a_vals, b_vals, c_vals, _ = binding_witness(VK, PV)
        bad = binding_circuit().unsatisfied_gates(a_vals, b_vals, c_vals, [VK, PV + FR(1)])
        assert 1 in bad

    def test_public_gates_first(self):
        circuit = Circuit()
        circuit.add_multiplication_gate()
        with pytest.raises(ValueError):
            circuit.add_public_input_gate()

    def test_sigma_is_permutation(self):
        circuit = binding_circuit()
        sigma = circuit.build_sigma()
        assert sorted(sigma) == list(range(3 * circuit.n))
        # a_0 and a_2 share a cycle
        assert sigma[A * circuit.n + 0] != A * circuit.n + 0

    def test_wire_constants(self):
        assert (A, B, C) == (0, 1, 2)


# =====================================================================
# Transcript and KZG
# =====================================================================

class TestTranscript:
    def test_deterministic(self):
        t1, t2 = Transcript(), Transcript()
        for t in (t1, t2):
            t.append_scalar(b"pi", FR(5))
            t.append_point(b"a", G1)
        assert t1.challenge_scalar(b"beta") == t2.challenge_scalar(b"beta")

    def test_depends_on_input(self):
        t1, t2 = Transcript(), Transcript()
        t1.append_scalar(b"pi", FR(5))
        t2.append_scalar(b"pi", FR(6))
        assert t1.challenge_scalar(b"beta") != t2.challenge_scalar(b"beta")

    def test_successive_challenges_differ(self):
        t = Transcript()
        assert t.challenge_scalar(b"beta") != t.challenge_scalar(b"gamma")


class TestKZG:
    def test_constant_commitment(self):
        srs = SRS.generate(4, seed=b"kzg")
        assert commit(Polynomial([3]), srs) == ec_mul(G1, 3)

    def test_zero_commitment_is_infinity(self):
        srs = SRS.generate(4, seed=b"kzg")
        assert commit(Polynomial.zero(), srs) is None

    def test_degree_bound(self):
        srs = SRS.generate(2, seed=b"kzg")
        with pytest.raises(ValueError, match="exceeds SRS"):
            commit(Polynomial([1, 1, 1, 1]), srs)

    def test_seeded_srs_is_reproducible(self):
        assert SRS.generate(2, seed=b"s").g1_powers == SRS.generate(2, seed=b"s").g1_powers


# =====================================================================
# Prove / verify
# =====================================================================

class TestProveVerify:
    def test_valid_proof(self, binding_data):
        d = binding_data
        assert verify(d["proof"], d["public_inputs"], d["preprocessed"], d["srs"])

    def test_wrong_public_input(self, binding_data):
        d = binding_data
        assert not verify(d["proof"], [VK, PV + FR(1)], d["preprocessed"], d["srs"])

    def test_wrong_public_input_count(self, binding_data):
        d = binding_data
        assert not verify(d["proof"], [VK], d["preprocessed"], d["srs"])

    def test_tampered_evaluation(self, binding_data):
        d = binding_data
        forged = copy.copy(d["proof"])
        forged.a_eval = forged.a_eval + FR(1)
        assert not verify(forged, d["public_inputs"], d["preprocessed"], d["srs"])

    def test_unsatisfied_witness_is_not_proven(self, binding_data):
        d = binding_data
        a_vals, b_vals, c_vals = (list(w) for w in d["witness"])
        c_vals[3] = c_vals[3] + FR(1)
        with pytest.raises(ValueError, match="does not satisfy"):
            prove(d["circuit"], a_vals, b_vals, c_vals, d["public_inputs"], d["preprocessed"], d["srs"])

    def test_checkpoint_aborts(self, binding_data):
        d = binding_data

        def checkpoint():
            raise RuntimeError("stop")

        with pytest.raises(RuntimeError, match="stop"):
            prove(d["circuit"], *d["witness"], d["public_inputs"], d["preprocessed"], d["srs"],
                  checkpoint=checkpoint)
