"""Collect several errors and report them as a single exception.

:class:`ErrorList` accumulates errors; ``None`` is ignored, so it is safe to
add the result of any operation unconditionally. :meth:`ErrorList.err`
returns a :class:`MultiError` when anything was collected, or ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

#: Default text placed between messages when a MultiError is shown.
SEPARATOR = ", "


class MultiError(Exception):
    """An exception that holds a list of other errors."""

    def __init__(self, errors: List[BaseException], separator: str = "") -> None:
        super().__init__(*errors)
        self._errors = list(errors)
        self.separator = separator

    def errors(self) -> List[BaseException]:
        """Return the errors held by this exception."""
        return list(self._errors)

    def __str__(self) -> str:
        sep = self.separator or SEPARATOR
        return sep.join(str(err) for err in self._errors)


@dataclass
class ErrorList:
    """A working list of errors; not itself an exception.

    ``separator`` optionally overrides the module-wide :data:`SEPARATOR`.
    """

    separator: str = ""
    _errors: List[BaseException] = field(default_factory=list, repr=False)

    def add(self, *args: Any) -> bool:
        """Add every non-None error and report whether anything was added.

        Objects with an ``errors()`` method contribute their errors, and
        lists or tuples of errors are added element by element.
        """
        added = False
        for err in args:
            if err is None:
                continue
            nested = getattr(err, "errors", None)
            if callable(nested):
                errs = list(nested())
                if errs:
                    self._errors.extend(errs)
                    added = True
                continue
            if isinstance(err, (list, tuple)):
                if self.add(*err):
                    added = True
                continue
            self._errors.append(err)
            added = True
        return added

    def err(self) -> Optional[MultiError]:
        """Return the collected errors as a MultiError, or None if empty."""
        if not self._errors:
            return None
        return MultiError(self._errors, self.separator)