"""Compare errors against expectations by exact text, substring or kind.

Each function returns an empty string when the error matches what was
wanted, and a human-readable description of the mismatch otherwise. This
makes them convenient in table-driven tests::

    diff = substring(err, case.want_substring)
    assert diff == "", diff
"""

from __future__ import annotations

import json
from typing import Any, Optional


def _quote(s: str) -> str:
    """Return s as a double-quoted, escaped string literal."""
    return json.dumps(s, ensure_ascii=False)


def _unexpected(got: BaseException) -> str:
    return f"got err={got}, want err=nil"


def text(got: Optional[BaseException], want: str) -> str:
    """Describe how the text of got differs from the exact text want.

    An empty want means no error is expected.
    """
    if want == "":
        if got is None:
            return ""
        return _unexpected(got)
    if got is None:
        return f"got err=nil, want err with exact text {_quote(want)}"
    if str(got) != want:
        return f"got err={got}, want err with exact text {_quote(want)}"
    return ""


def substring(got: Optional[BaseException], want: str) -> str:
    """Describe how got differs from an error whose text contains want.

    An empty want means no error is expected.
    """
    if want == "":
        if got is None:
            return ""
        return _unexpected(got)
    if got is None:
        return f"got err=nil, want err containing {_quote(want)}"
    if want not in str(got):
        return f"got err={got}, want err containing {_quote(want)}"
    return ""


def check(got: Optional[BaseException], want: Any) -> str:
    """Describe how got differs from want, interpreted by its type.

    * None: no error is wanted.
    * bool: True wants some error, False wants none.
    * str: same as :func:`substring`.
    * an exception: the texts of both errors must be equal.
    """
    if want is None:
        if got is None:
            return ""
        return _unexpected(got)
    if isinstance(want, bool):
        if want and got is None:
            return "did not get expected error"
        if not want and got is not None:
            return _unexpected(got)
        return ""
    if isinstance(want, str):
        return substring(got, want)
    if isinstance(want, BaseException):
        if got is None:
            return f"got err=nil, want err={want}"
        if str(got) == str(want):
            return ""
        return f"got err={got}, want err={want}"
    return f"unsupported type in Check: {type(want).__name__}"