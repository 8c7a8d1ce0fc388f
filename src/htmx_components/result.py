import logging
import os
import sys

from .utils import format_template

logger = logging.getLogger(__name__)


class Result:
    """
    Outcome of an operation that can fail in an expected way.
    CRUD delegates return results rather than raising, so that views can turn failures into a 400 response.
    """

    def __init__(self, message: str = "", is_error: bool = False):
        self.message = message
        self.is_error = is_error

    def __repr__(self):
        state = "error" if self.is_error else "ok"
        return f"<{self.__class__.__name__} {state} {self.message!r}>"

    @classmethod
    def ok(cls, message: str = "") -> "Result":
        return Result(message)

    @classmethod
    def value_of(cls, value, message: str = "") -> "ValueResult":
        return ValueResult(value, message)

    @classmethod
    def error(cls, template: str, *args, level: int = logging.ERROR) -> "ValueResult":
        """
        Log the message and return a failed result.
        The returned ValueResult has no value so it can stand in for either kind of result.
        """
        message = format_template(template, *args)
        caller = sys._getframe(1)
        logger.log(
            level,
            "%s",
            message,
            extra={
                "file_name": os.path.basename(caller.f_code.co_filename),
                "line_number": caller.f_lineno,
            },
            stacklevel=2,
        )
        return ValueResult(None, message, is_error=True)


class ValueResult(Result):
    def __init__(self, value, message: str = "", is_error: bool = False):
        super().__init__(message, is_error)
        self.value = value
