import sys

import pytest

from fibproof.encoding import decode_public_values
from fibproof.errors import ExecutionError, InputTooLarge
from fibproof.kernel import MODULUS, fibonacci
from fibproof.types import MAX_N
from fibproof.zkvm import FIBONACCI_PROGRAM, Program, ZkvmEnv, execute_program


# ── fibonacci ──
class TestFibonacci:
    def test_base_cases(self):
        assert fibonacci(0) == (0, 1)
        assert fibonacci(1) == (1, 1)
        assert fibonacci(2) == (1, 2)

    def test_n_10(self):
        assert fibonacci(10) == (55, 89)

    def test_below_modulus_is_plain_fibonacci(self):
        assert fibonacci(20) == (4181, 6765)

    def test_reduced_modulo_7919(self):
        # fib(21) = 10946
        assert fibonacci(21) == (6765, 10946 % MODULUS)

    def test_outputs_stay_in_range(self):
        for n in range(0, 300, 7):
            a, b = fibonacci(n)
            assert 0 <= a < MODULUS
            assert 0 <= b < MODULUS


# ── ZkvmEnv ──
class TestZkvmEnv:
    def test_read_u32_in_order(self):
        env = ZkvmEnv([3, 4])
        assert env.read_u32() == 3
        assert env.read_u32() == 4

    def test_read_past_end(self):
        with pytest.raises(EOFError):
            ZkvmEnv([]).read_u32()

    @pytest.mark.parametrize("value", [-1, 2**32, "10", True])
    def test_read_rejects_non_u32(self, value):
        with pytest.raises(TypeError):
            ZkvmEnv([value]).read_u32()

    def test_commit_slice_appends(self):
        env = ZkvmEnv([])
        env.commit_slice(b"ab")
        env.commit_slice(b"c")
        assert bytes(env.public_values) == b"abc"


# ── execute_program ──
class TestExecuteProgram:
    def test_commits_n_a_b(self):
        public_values, report = execute_program(FIBONACCI_PROGRAM, [10])
        assert decode_public_values(public_values).as_tuple() == (10, 55, 89)
        assert report.total_instructions > 0

    def test_stdout_collected(self):
        _, report = execute_program(FIBONACCI_PROGRAM, [10])
        assert report.stdout[0] == "Computing Fibonacci for n = 10"
        assert report.stdout[1] == "Fibonacci(9) = 55, Fibonacci(10) = 89"

    def test_n_zero(self):
        public_values, _ = execute_program(FIBONACCI_PROGRAM, [0])
        assert decode_public_values(public_values).as_tuple() == (0, 0, 1)

    def test_max_n_accepted(self):
        public_values, _ = execute_program(FIBONACCI_PROGRAM, [MAX_N])
        assert decode_public_values(public_values).n == MAX_N

    def test_above_max_n_aborts(self):
        with pytest.raises(ExecutionError) as exc_info:
            execute_program(FIBONACCI_PROGRAM, [MAX_N + 1])
        assert isinstance(exc_info.value.__cause__, InputTooLarge)
        assert "Input too large: maximum allowed is 10000" in str(exc_info.value)

    def test_missing_input_aborts(self):
        with pytest.raises(ExecutionError):
            execute_program(FIBONACCI_PROGRAM, [])

    def test_cycles_grow_with_n(self):
        _, small = execute_program(FIBONACCI_PROGRAM, [5])
        _, large = execute_program(FIBONACCI_PROGRAM, [500])
        assert large.total_instructions > small.total_instructions

    def test_instruction_limit(self):
        with pytest.raises(ExecutionError, match="instruction limit"):
            execute_program(FIBONACCI_PROGRAM, [1000], instruction_limit=50)

    def test_restores_previous_trace(self):
        before = sys.gettrace()
        execute_program(FIBONACCI_PROGRAM, [3])
        assert sys.gettrace() is before


# ── Program ──
class TestProgram:
    def test_vk_is_stable(self):
        assert FIBONACCI_PROGRAM.vk == FIBONACCI_PROGRAM.vk
        assert len(FIBONACCI_PROGRAM.vk.bytes) == 32

    def test_vk_fits_the_scalar_field(self):
        assert FIBONACCI_PROGRAM.vk.bytes[0] <= 0x1F

    def test_vk_bytes32_format(self):
        text = FIBONACCI_PROGRAM.vk.bytes32()
        assert text.startswith("0x")
        assert len(text) == 66

    def test_other_binary_other_vk(self):
        other = Program(name="other", entrypoint=FIBONACCI_PROGRAM.entrypoint, binary=b"other")
        assert other.vk != FIBONACCI_PROGRAM.vk

    def test_name(self):
        assert FIBONACCI_PROGRAM.name == "fibonacci-program"
