from gnmiutil import errlist
from gnmiutil.errlist import ErrorList, MultiError


def test_nil():
    assert ErrorList().err() is None


def test_list_is_not_an_exception_but_err_is():
    errs = ErrorList()
    assert not isinstance(errs, BaseException)
    errs.add(ValueError("some error"))
    e = errs.err()
    assert isinstance(e, MultiError)
    assert str(e) == "some error"


def test_add():
    errs = ErrorList()
    wanted = [ValueError("error 1"), ValueError("error 2"), ValueError("error 3")]

    assert errs.add(None) is False
    assert errs.err() is None
    for i, e in enumerate(wanted, start=1):
        assert errs.add(e) is True
        assert errs.add(None) is False
        got = errs.err().errors()
        assert len(got) == i
        assert all(a is b for a, b in zip(got, wanted[:i]))


def test_add_list():
    err = ErrorList()
    err1 = ErrorList()
    assert err.add(err1.err()) is False
    assert err.err() is None

    err1.add(ValueError("error1"))
    err1.add(ValueError("error2"))
    assert err.add(err1.err()) is True

    er = err.err()
    assert isinstance(er, MultiError)
    assert len(er.errors()) == 2

    el = [None, ValueError("error3"), ValueError("error4"), None]
    assert err.add(el) is True
    assert str(err.err()) == "error1, error2, error3, error4"


def test_add_empty_list_adds_nothing():
    err = ErrorList()
    assert err.add([None, None]) is False
    assert err.err() is None


def test_separator(monkeypatch):
    monkeypatch.setattr(errlist, "SEPARATOR", ":")
    lst = ErrorList()
    lst.add(ValueError("one"))
    lst.add(ValueError("two"))
    assert str(lst.err()) == "one:two"

    lst.separator = "-"
    assert str(lst.err()) == "one-two"