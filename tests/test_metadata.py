import pytest

from gnmiutil import latency
from gnmiutil import metadata as md


@pytest.fixture
def server_name():
    md.register_server_name_metadata()
    try:
        yield md.SERVER_NAME
    finally:
        md.unregister_server_name_metadata()


def test_path_invalid():
    assert md.path("invalid") is None


def test_path_valid_values():
    for registry in (md.TARGET_BOOL_VALUES, md.TARGET_INT_VALUES, md.TARGET_STR_VALUES):
        for value in registry:
            assert md.path(value) == [md.ROOT, value]


def test_get_int_initial():
    m = md.Metadata()
    for value in md.TARGET_INT_VALUES:
        assert m.get_int(value) == 0


def test_get_bool_initial():
    m = md.Metadata()
    for value in md.TARGET_BOOL_VALUES:
        assert m.get_bool(value) is False


def test_get_str_initial():
    m = md.Metadata()
    for k, val in md.TARGET_STR_VALUES.items():
        if val.reset_action == md.ResetAction.DELETE:
            m.set_str(k, "")
        assert m.get_str(k) == ""


def test_connect_error_unset_initially():
    m = md.Metadata()
    with pytest.raises(md.UnsetValueError):
        m.get_str(md.CONNECT_ERROR)


def test_add_get_int():
    m = md.Metadata()
    with pytest.raises(md.InvalidValueError):
        m.add_int("invalid", 1)
    for i in range(1, 6):
        for value in md.TARGET_INT_VALUES:
            m.add_int(value, 1)
            assert m.get_int(value) == i
    with pytest.raises(md.InvalidValueError):
        m.get_int("invalid")


def test_set_get_int():
    m = md.Metadata()
    with pytest.raises(md.InvalidValueError):
        m.set_int("invalid", 1)
    for i in range(10):
        for x, value in enumerate(md.TARGET_INT_VALUES, start=1):
            want = x + i
            m.set_int(value, want)
            assert m.get_int(value) == want


def test_set_get_bool():
    m = md.Metadata()
    with pytest.raises(md.InvalidValueError):
        m.set_bool("invalid", True)
    for want in (True, False, True, False):
        for value in md.TARGET_BOOL_VALUES:
            m.set_bool(value, want)
            assert m.get_bool(value) is want
    with pytest.raises(md.InvalidValueError):
        m.get_bool("invalid")


def test_set_get_str():
    m = md.Metadata()
    with pytest.raises(md.InvalidValueError):
        m.set_str("invalid", "invalidValue")
    for want in ("value1", "value2", "value3", "value4"):
        for value in md.TARGET_STR_VALUES:
            m.set_str(value, want)
            assert m.get_str(value) == want
    with pytest.raises(md.InvalidValueError):
        m.get_str("invalid")


def test_reset_entry():
    m = md.Metadata()
    for k in md.TARGET_BOOL_VALUES:
        m.set_bool(k, True)
        m.reset_entry(k)
        assert m.get_bool(k) is False

    for k, val in md.TARGET_INT_VALUES.items():
        m.set_int(k, 1)
        m.reset_entry(k)
        if val.init_zero:
            assert m.get_int(k) == 0
        else:
            with pytest.raises(md.UnsetValueError):
                m.get_int(k)

    for k, val in md.TARGET_STR_VALUES.items():
        m.set_str(k, "xx")
        m.reset_entry(k)
        if val.reset_action == md.ResetAction.DELETE:
            with pytest.raises(md.UnsetValueError):
                m.get_str(k)
        else:
            assert m.get_str(k) == ""


def test_reset_entry_keeps_server_name(server_name):
    m = md.Metadata()
    m.set_str(server_name, "yy")
    m.reset_entry(server_name)
    assert m.get_str(server_name) == "yy"


def test_reset_entry_unsupported():
    m = md.Metadata()
    with pytest.raises(md.InvalidValueError, match="unsupported entry"):
        m.reset_entry("unsupported")


def test_clear():
    m = md.Metadata()
    m.set_bool(md.SYNC, True)
    m.set_int(md.ADD_COUNT, 7)
    m.set_str(md.CONNECTED_ADDR, "addr")
    m.set_str(md.CONNECT_ERROR, "boom")
    m.clear()
    for k in md.TARGET_BOOL_VALUES:
        assert m.get_bool(k) is False
    for k, val in md.TARGET_INT_VALUES.items():
        if val.init_zero:
            assert m.get_int(k) == 0
        else:
            with pytest.raises(md.UnsetValueError):
                m.get_int(k)
    for k, val in md.TARGET_STR_VALUES.items():
        if val.reset_action == md.ResetAction.DELETE:
            with pytest.raises(md.UnsetValueError):
                m.get_str(k)
        else:
            assert m.get_str(k) == ""


def test_register_latency_metadata():
    windows = [2 * latency.SECOND, 5 * latency.MINUTE]
    types = (latency.StatType.AVG, latency.StatType.MAX, latency.StatType.MIN)
    lat_metas = {
        latency.metadata_name(w, typ): latency.path(w, typ, [md.ROOT])
        for w in windows
        for typ in types
    }
    for name in lat_metas:
        assert name not in md.TARGET_INT_VALUES
    try:
        md.register_latency_metadata(windows)
        for name, want in lat_metas.items():
            assert md.TARGET_INT_VALUES[name].path == want
            assert md.path(name) == want
        m = md.Metadata()
        with pytest.raises(md.UnsetValueError):
            m.get_int("avgLatencyWindow2s")
        m.set_int("avgLatencyWindow2s", 5)
        assert m.get_int("avgLatencyWindow2s") == 5
    finally:
        for name in lat_metas:
            md.unregister_int_value(name)
    assert all(name not in md.TARGET_INT_VALUES for name in lat_metas)


def test_latency_path_values():
    assert md.latency_path(2 * latency.SECOND, latency.StatType.AVG) == [
        "meta", "latency", "window", "2s", "avg",
    ]
    assert md.latency_path(5 * latency.MINUTE, latency.StatType.MIN) == [
        "meta", "latency", "window", "5m", "min",
    ]


def test_register_server_name_metadata():
    assert md.path(md.SERVER_NAME) is None
    md.register_server_name_metadata()
    try:
        assert md.path(md.SERVER_NAME) == [md.ROOT, md.SERVER_NAME]
        assert md.TARGET_STR_VALUES[md.SERVER_NAME].reset_action == md.ResetAction.KEEP
    finally:
        md.unregister_server_name_metadata()
    assert md.path(md.SERVER_NAME) is None


def test_register_and_unregister_str_value():
    md.register_str_value("custom", md.StrValue(md.ResetAction.DELETE))
    try:
        m = md.Metadata()
        with pytest.raises(md.UnsetValueError):
            m.get_str("custom")
        m.set_str("custom", "v")
        assert m.get_str("custom") == "v"
    finally:
        md.unregister_str_value("custom")
    with pytest.raises(md.InvalidValueError):
        md.Metadata().get_str("custom")