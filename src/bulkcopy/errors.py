from __future__ import annotations

from typing import Sequence


class BcpError(Exception):
    pass


class BcpProcessError(BcpError):
    """Raised when the bcp executable cannot be started, exits non-zero, or times out."""

    def __init__(
        self,
        command: str,
        *,
        returncode: int | None,
        stdout: str = "",
        stderr: str = "",
        timed_out: bool = False,
    ):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.timed_out = timed_out

        if timed_out:
            reason = "timed out"
        elif returncode is None:
            reason = "could not be started"
        else:
            reason = f"exited with code {returncode}"

        message = f"bcp {reason}: {command}"
        detail = (stderr or stdout).strip()
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)


class FormatFileError(BcpError):
    """Raised when a bcp XML format file cannot be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Invalid format file {path}: {reason}")


class MissingColumnError(BcpError):
    def __init__(self, table: str, column: str):
        self.table = table
        self.column = column
        super().__init__(f"{table} does not contain column {column}")


class FieldDecodeError(BcpError):
    def __init__(self, field_name: str, type_tag: str, value: str):
        self.field_name = field_name
        self.type_tag = type_tag
        self.value = value
        super().__init__(f"Cannot decode {value!r} as {type_tag} for field '{field_name}'")


class FieldEncodeError(BcpError):
    def __init__(self, field_name: str, type_tag: str, value: object):
        self.field_name = field_name
        self.type_tag = type_tag
        self.value = value
        super().__init__(f"Cannot encode {value!r} as {type_tag} for field '{field_name}'")


class CleanupError(BcpError):
    """Raised when one or more of a set of parallel filesystem tasks failed."""

    def __init__(self, action: str, failures: Sequence[tuple[str, BaseException]]):
        self.action = action
        self.failures = list(failures)
        listed = "; ".join(f"{path}: {error}" for path, error in self.failures)
        super().__init__(f"Failed to {action} {len(self.failures)} path(s): {listed}")


class BcpOperationError(BcpError):
    """
    The single failure raised by every public Bcp operation.

    Names the operation and the step that failed; the originating error is
    available as `cause` (and chained as __cause__).
    """

    def __init__(self, operation: str, step: str, cause: BaseException):
        self.operation = operation
        self.step = step
        self.cause = cause
        super().__init__(f"{operation} failed at step '{step}': {cause}")

