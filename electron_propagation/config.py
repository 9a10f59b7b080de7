"""Runtime options for the propagation kernels."""

import os
from dataclasses import dataclass
from typing import Optional

from .exceptions import ConfigurationError

__all__ = ["SAMPLING_CHECKS", "PropagationOptions", "DEFAULT_OPTIONS"]


SAMPLING_CHECKS = ("warn", "raise", "ignore")


@dataclass(frozen=True)
class PropagationOptions:
    """
    Options shared by the propagation components.

    Parameters                  Meaning
    ==========================  ================================================
    workers                     Threads used by DirectPropagation. None means
                                one per CPU.
    rows_per_task               Target rows computed by a single worker task.
    progress                    Show a tqdm progress bar for DirectPropagation.
    sampling_check              What TransferFunctionPropagation does when the
                                grid violates critical sampling: "warn",
                                "raise" or "ignore".
    """
    workers: Optional[int] = None
    rows_per_task: int = 8
    progress: bool = True
    sampling_check: str = "warn"

    def __post_init__(self):
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError(
                f"Invalid number of workers: {self.workers}. Must be >= 1."
            )
        if self.rows_per_task < 1:
            raise ConfigurationError(
                f"Invalid rows_per_task: {self.rows_per_task}. Must be >= 1."
            )
        if self.sampling_check not in SAMPLING_CHECKS:
            raise ConfigurationError(
                f"Invalid sampling check: '{self.sampling_check}'. "
                f"Choose one of {', '.join(SAMPLING_CHECKS)}."
            )

    @property
    def max_workers(self) -> int:
        return self.workers or os.cpu_count() or 1


DEFAULT_OPTIONS = PropagationOptions()
