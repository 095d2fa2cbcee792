"""Exception types raised by the cleaning pipeline."""


class ClearSendError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(ClearSendError):
    """Raised when settings cannot be turned into a usable PipelineConfig."""


class StepExecutionError(ClearSendError):
    """
    A pipeline step failed unexpectedly.

    Carries the failing step name so the caller can attribute the abort; the
    original exception is chained as ``__cause__``.
    """

    def __init__(self, step_name: str, cause: BaseException):
        self.step_name = step_name
        self.cause = cause
        super().__init__(f"Step '{step_name}' failed: {cause}")
