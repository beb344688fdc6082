"""Error types and explicit outcomes for retriable code.

- ErrorToken: per-loop identity used to key strategy state
- StandfastError/RetriableError: wrapped failures raised on give-up
- Exhausted/Unhandled: loop outcomes carried in Err
- Result/Ok/Err: monadic outcome of a retriable loop
"""

from .errors import (
    ErrorToken,
    Exhausted,
    RetriableError,
    RetryFailure,
    StandfastError,
    Unhandled,
    describe_failure,
    original_failure,
)
from .result import Err, Ok, Result

__all__ = [
    # Failures
    "ErrorToken", "StandfastError", "RetriableError", "describe_failure", "original_failure",
    # Outcomes
    "Exhausted", "Unhandled", "RetryFailure",
    # Result monad
    "Result", "Ok", "Err",
]
