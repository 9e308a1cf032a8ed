from __future__ import annotations


class EngineError(Exception):
    """Base class for failures that abort a single evaluation."""


class InvalidInputError(EngineError, ValueError):
    def __init__(self, message: str):
        super().__init__(f"invalid input: {message}")


class InsufficientHistoryError(EngineError):
    def __init__(self, indicator: str, required: int, available: int):
        self.indicator = indicator
        self.required = int(required)
        self.available = int(available)
        super().__init__(
            f"insufficient history for {indicator}: need {self.required} bars, got {self.available}"
        )
