"""Base classes for ledger transports."""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Optional, TypeVar

from ..config.defaults import TransportParams
from ..execution.models import CallResult, ContractHandle
from ..logging.config import get_transport_logger

T = TypeVar("T")


class TransportError(Exception):
    """Base exception for transport errors."""
    pass


class TransportRetryableError(TransportError):
    """Submission did not reach the ledger and may be attempted again."""
    pass


class TransportPermanentError(TransportError):
    """Permanent transport error that should not be retried."""
    pass


class BaseTransport(ABC):
    """
    Base class for transports that submit creations and calls to a ledger.

    Subclasses implement ``_create`` and ``_call``; the public
    ``submit_create`` and ``submit_call`` wrap them in the retry policy from
    ``TransportParams``. Only ``TransportRetryableError`` is retried: any
    other exception may mean the submission already landed.
    """

    def __init__(self, name: str, config: Optional[TransportParams] = None):
        self.name = name
        self.config = config or TransportParams()
        self.logger = get_transport_logger(__name__, name)
        self._submission_count = 0
        self._error_count = 0
        self._retry_count = 0

    @abstractmethod
    def _create(self, contract_name: str, args: list[Any]) -> ContractHandle:
        """Submit one contract creation."""
        pass

    @abstractmethod
    def _call(self, handle: ContractHandle, method: str, args: list[Any]) -> CallResult:
        """Submit one method call."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the transport can reach its ledger."""
        pass

    def submit_create(self, contract_name: str, args: list[Any]) -> ContractHandle:
        """Create a contract, retrying retryable failures."""
        return self._with_retry(
            "create",
            contract_name,
            lambda: self._create(contract_name, args)
        )

    def submit_call(self, handle: ContractHandle, method: str, args: list[Any]) -> CallResult:
        """Call a method on a deployed contract, retrying retryable failures."""
        return self._with_retry(
            "call",
            f"{handle.contract_name}.{method}",
            lambda: self._call(handle, method, args)
        )

    def _with_retry(self, operation: str, target: str, action: Callable[[], T]) -> T:
        max_retries = self.config.retry_attempts
        retry_delay = self.config.retry_delay_seconds
        attempt = 0

        while True:
            try:
                result = action()
                self._submission_count += 1
                return result

            except TransportRetryableError as e:
                attempt += 1
                if attempt > max_retries:
                    self._error_count += 1
                    self.logger.error(
                        "Submission failed after retries",
                        operation=operation,
                        target=target,
                        attempts=attempt,
                        error=str(e)
                    )
                    raise

                self._retry_count += 1
                self.logger.warning(
                    f"Submission attempt {attempt} failed, retrying in {retry_delay}s",
                    operation=operation,
                    target=target,
                    error=str(e)
                )
                time.sleep(retry_delay)

            except Exception as e:
                self._error_count += 1
                self.logger.error(
                    "Submission failed",
                    operation=operation,
                    target=target,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise

    def get_stats(self) -> dict[str, Any]:
        """Get submission statistics."""
        total = self._submission_count + self._error_count
        return {
            "name": self.name,
            "submission_count": self._submission_count,
            "error_count": self._error_count,
            "retry_count": self._retry_count,
            "success_rate": self._submission_count / total if total > 0 else 0.0
        }

    def reset_stats(self):
        """Reset submission statistics."""
        self._submission_count = 0
        self._error_count = 0
        self._retry_count = 0
