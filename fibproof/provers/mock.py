from fibproof.encoding import decode_public_values
from fibproof.errors import VerificationError
from fibproof.provers.base import ProverBackend
from fibproof.types import Proof, ProverMode


class MockProver(ProverBackend):
    """Executes the program and returns an empty proof.

    Verification re-executes the program on the committed ``n`` and compares
    the public values. Fast, and not secure: anyone can produce a mock proof.
    """

    mode = ProverMode.MOCK

    def prove(self, pk, stdin, system, cancel=None):
        public_values, _ = self.execute(pk.program, stdin)
        self.logger.info("mock %s proof for %s", system.value, pk.program.name)
        return Proof(bytes=b"", public_values=public_values, system=system)

    def verify(self, proof, vk):
        if not proof.is_mock:
            raise VerificationError("mock verifier only accepts empty proofs", system=proof.system)
        program = self.program_for(vk)
        result = decode_public_values(proof.public_values)
        expected, _ = self.execute(program, [result.n])
        if expected != proof.public_values:
            raise VerificationError(
                "public values do not match a re-execution of the program", n=result.n
            )
