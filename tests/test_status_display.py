import pytest

from cistern.core.status_display import (
    STATUS_SEVERITY,
    display_name,
    severity,
    status_symbol,
    worst_status,
)
from cistern.models.status import BuildStatus as S


def test_every_status_has_presentation_values():
    for status in S:
        assert status in STATUS_SEVERITY
        assert display_name(status)
        assert status_symbol(status)


def test_severity_total_order():
    assert severity(S.FAILED) == severity(S.ERROR)
    assert severity(S.ERROR) > severity(S.FAILING)
    assert severity(S.FAILING) > severity(S.RUNNING)
    assert severity(S.RUNNING) > severity(S.ON_HOLD)
    assert severity(S.ON_HOLD) > severity(S.CANCELED)
    assert severity(S.CANCELED) == severity(S.NOT_RUN) == severity(S.UNKNOWN)
    assert severity(S.UNKNOWN) > severity(S.SUCCESS)


@pytest.mark.parametrize("statuses, expected", [
    ([], S.UNKNOWN),
    ([S.SUCCESS], S.SUCCESS),
    ([S.SUCCESS, S.RUNNING, S.ON_HOLD], S.RUNNING),
    ([S.SUCCESS, S.FAILING, S.RUNNING], S.FAILING),
    ([S.CANCELED, S.SUCCESS], S.CANCELED),
    ([S.RUNNING, S.ERROR, S.FAILING], S.ERROR),
])
def test_worst_status(statuses, expected):
    assert worst_status(statuses) == expected


def test_worst_status_accepts_generators():
    assert worst_status(s for s in [S.SUCCESS, S.FAILED]) == S.FAILED


def test_display_names():
    assert display_name(S.NOT_RUN) == "Not Run"
    assert display_name(S.ON_HOLD) == "On Hold"
    assert display_name(S.CANCELED) == "Canceled"
