"""Base agent class and the progress side channel shared by agents."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class BaseAgent(ABC):
    """Abstract base class for all agents."""

    @abstractmethod
    async def run(self, input_data: dict[str, Any]) -> dict[str, Any]:
        """Execute the agent's main task."""
        pass

    @staticmethod
    def emit(on_progress: ProgressCallback | None, status: str) -> None:
        """Forward a status line to the caller's progress callback, if any."""
        logger.debug("progress: %s", status)
        if on_progress is not None:
            on_progress(status)
