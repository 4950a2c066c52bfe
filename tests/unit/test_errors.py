"""Unit tests for error codes and the ApiResponse envelope."""

from unittest.mock import MagicMock

import pytest

from src.au_common.errors import (
    AppError,
    DepositBelowMinimumError,
    EmptyProfileUpdateError,
    InsufficientBalanceError,
    InsufficientHoldingsError,
    InvalidBuyDurationError,
    InvalidStatusTransitionError,
    PermissionDeniedError,
    PositionNotFoundError,
    PricesUnavailableError,
    ProcedureFailedError,
    ProcedureRejectedError,
    UserNotFoundError,
)
from src.au_common.response import error_response, success_response


@pytest.mark.parametrize(
    ("error", "code", "status"),
    [
        (UserNotFoundError("u1"), 1006, 404),
        (DepositBelowMinimumError(100, 200_000), 2001, 422),
        (InsufficientHoldingsError("gold", 5_000, 1_000), 2002, 422),
        (InvalidStatusTransitionError("Deposit", "d1", "approved", "rejected"), 2005, 422),
        (InsufficientBalanceError(1_000_000, 20_000), 2006, 422),
        (PositionNotFoundError("p1"), 2007, 404),
        (InvalidBuyDurationError(30, 90, 365), 2008, 422),
        (PricesUnavailableError("silver"), 3001, 503),
        (PermissionDeniedError("admin"), 6001, 403),
        (EmptyProfileUpdateError(), 6005, 422),
        (ProcedureFailedError("sell_asset", "OperationalError"), 9003, 502),
        (ProcedureRejectedError("sell_asset", "position closed"), 9004, 422),
    ],
)
def test_codes_and_statuses(error: AppError, code: int, status: int) -> None:
    assert isinstance(error, AppError)
    assert error.code == code
    assert error.http_status == status


def test_messages_carry_context() -> None:
    err = InsufficientHoldingsError("gold", 5_000, 1_000)
    assert "5000 mg" in err.message
    assert "1000 mg" in err.message
    assert str(ProcedureRejectedError("sell_asset", "position closed")).endswith("position closed")


def test_success_response_takes_request_id_from_state() -> None:
    request = MagicMock()
    request.state.request_id = "req_abc"
    resp = success_response({"x": 1}, request)
    assert resp.code == 0
    assert resp.data == {"x": 1}
    assert resp.request_id == "req_abc"


def test_error_response_has_no_data() -> None:
    resp = error_response(2001, "too small")
    assert resp.code == 2001
    assert resp.message == "too small"
    assert resp.data is None
    assert resp.request_id.startswith("req_")
