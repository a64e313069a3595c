from __future__ import annotations


class TaskPackError(RuntimeError):
    """Base class for every error raised by the interpreter."""


class ValidationError(TaskPackError):
    """
    Structural problems found in a task pack before execution.

    All violations are collected; `errors` keeps them individually and the
    message joins them one per line.
    """

    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors) if errors else [message]


class InputValidationError(TaskPackError):
    def __init__(self, message: str, *, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors) if errors else [message]


class TemplateResolutionError(TaskPackError):
    pass


class TargetResolutionError(TaskPackError):
    def __init__(self, message: str, *, tried: int = 0, last_error: Exception | None = None) -> None:
        super().__init__(message)
        self.tried = tried
        self.last_error = last_error


class AssertionFailedError(TaskPackError):
    pass


class StepExecutionError(TaskPackError):
    def __init__(self, message: str, *, step_id: str | None, step_type: str, step_index: int) -> None:
        super().__init__(message)
        self.step_id = step_id
        self.step_type = step_type
        self.step_index = step_index


class RunCancelledError(TaskPackError):
    def __init__(self, message: str, *, steps_executed: int) -> None:
        super().__init__(message)
        self.steps_executed = steps_executed


class UnknownProviderError(TaskPackError):
    pass


class PackLoadError(TaskPackError):
    pass
