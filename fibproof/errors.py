"""
Error taxonomy for the proving pipeline.

Every error raised by fibproof derives from ``FibproofError``. Pipeline
errors take keyword context (``system``, ``mode``, ``n``, ``path``) that is
kept on the instance and rendered into the message, so a caller can tell a
transport failure from a cryptographic rejection without parsing strings.

    ConfigurationError        invalid configuration, raised before any work
    InputTooLarge             kernel abort on an oversized input
    ExecutionError            local dry run failed (defect level)
    ProvingError              backend failed to produce a proof
      ProvingCancelled        cancellation or timeout while proving
    VerificationError         a proof did not verify
      LocalVerificationFailure  a self-produced proof failed self-verification
    PersistenceError          artifact write failed
    ArtifactNotFoundError     proving has not been run yet
    DecodingError             malformed persisted or remote data
      InconsistentResultError remote result disagrees with the kernel
    VerificationRejected      the remote verifier reverted
    TransportError            network or RPC failure
"""


class FibproofError(Exception):
    """Base class of all fibproof errors."""

    def __init__(self, message="", **context):
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}
        super().__init__(self.__str__())

    def __str__(self):
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={_render(v)}" for k, v in self.context.items())
        return f"{self.message} ({details})"

    def __getattr__(self, name):
        # context keys read like attributes: err.system, err.n, ...
        context = self.__dict__.get("context", {})
        if name in context:
            return context[name]
        raise AttributeError(name)


def _render(value):
    return getattr(value, "value", value)


class ConfigurationError(FibproofError):
    pass


class InputTooLarge(FibproofError):
    pass


class ExecutionError(FibproofError):
    pass


class ProvingError(FibproofError):
    pass


class ProvingCancelled(ProvingError):
    pass


class VerificationError(FibproofError):
    pass


class LocalVerificationFailure(VerificationError):
    pass


class PersistenceError(FibproofError):
    pass


class ArtifactNotFoundError(FibproofError):
    pass


class DecodingError(FibproofError):
    pass


class InconsistentResultError(DecodingError):
    pass


class VerificationRejected(FibproofError):
    pass


class TransportError(FibproofError):
    pass
