"""
Staged, all-or-nothing execution of ledger mutations.

A ledger mutation is a short list of steps, store writes and token
transfers. Steps run in order; if one fails, every completed step's
compensation runs in reverse order before the error is raised. The final
step usually has no compensation.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from tierstake.errors import LedgerError, TransferFailed

logger = logging.getLogger(__name__)


@dataclass
class Step:
    description: str
    operation: Callable[[], Any]
    compensation: Optional[Callable[[], Any]] = None


class LedgerTransaction:
    """
    Executes a list of steps with rollback support.

    An operation fails when it raises or returns ``False`` (the token
    interface reports rejected transfers that way).
    """

    def __init__(self, name: str):
        self.name = name
        self.steps: List[Step] = []
        self._completed: List[Step] = []

    def add(
        self,
        description: str,
        operation: Callable[[], Any],
        compensation: Optional[Callable[[], Any]] = None
    ) -> "LedgerTransaction":
        """
        Append a step.

        Args:
            description: Human readable step name used in errors and logs
            operation: Callable performing the step
            compensation: Optional callable undoing the step
        """
        self.steps.append(Step(description, operation, compensation))
        return self

    def execute(self) -> List[Any]:
        """
        Run all steps.

        Returns:
            The result of each operation, in order

        Raises:
            TransferFailed: If a step was rejected or raised a non-ledger error
            LedgerError: Re-raised unchanged if a step raised one
        """
        results = []
        self._completed = []

        for step in self.steps:
            try:
                result = step.operation()
            except LedgerError:
                self._rollback()
                raise
            except Exception as e:
                self._rollback()
                raise TransferFailed(f"{self.name}: {step.description} failed: {e}") from e

            if result is False:
                self._rollback()
                raise TransferFailed(f"{self.name}: {step.description} rejected")

            self._completed.append(step)
            results.append(result)

        return results

    def _rollback(self):
        """Run compensations of completed steps, newest first."""
        for step in reversed(self._completed):
            if step.compensation is None:
                continue
            try:
                if step.compensation() is False:
                    logger.error(f"{self.name}: compensation for '{step.description}' was rejected")
                else:
                    logger.warning(f"{self.name}: compensated '{step.description}'")
            except Exception as rollback_error:
                logger.error(
                    f"{self.name}: error compensating '{step.description}': {str(rollback_error)}"
                )
        self._completed = []
