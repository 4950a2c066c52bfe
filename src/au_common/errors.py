"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Account (deposits, withdrawals, positions)
  3xxx: Market prices
  6xxx: Admin / authorization
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1006, f"User not found: {user_id}", 404)


# --- 2xxx: Account ---

class DepositBelowMinimumError(AppError):
    def __init__(self, amount: int, minimum: int) -> None:
        super().__init__(
            2001,
            f"Deposit of {amount} piastres is below the minimum of {minimum} piastres",
            422,
        )


class InsufficientHoldingsError(AppError):
    def __init__(self, metal_type: str, requested_mg: int, available_mg: int) -> None:
        super().__init__(
            2002,
            f"Insufficient {metal_type}: requested {requested_mg} mg, available {available_mg} mg",
            422,
        )


class DepositNotFoundError(AppError):
    def __init__(self, deposit_id: str) -> None:
        super().__init__(2003, f"Deposit not found: {deposit_id}", 404)


class WithdrawalNotFoundError(AppError):
    def __init__(self, withdrawal_id: str) -> None:
        super().__init__(2004, f"Withdrawal not found: {withdrawal_id}", 404)


class InvalidStatusTransitionError(AppError):
    def __init__(self, entity: str, entity_id: str, status: str, target: str) -> None:
        super().__init__(
            2005,
            f"{entity} {entity_id} in status {status} cannot become {target}",
            422,
        )


class InsufficientBalanceError(AppError):
    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            2006,
            f"Insufficient wallet balance: requested {requested} piastres, available {available}",
            422,
        )


class PositionNotFoundError(AppError):
    def __init__(self, position_id: str) -> None:
        super().__init__(2007, f"Position not found: {position_id}", 404)


class InvalidBuyDurationError(AppError):
    def __init__(self, days: int, minimum: int, maximum: int) -> None:
        super().__init__(
            2008, f"Holding period must be {minimum} to {maximum} days, got {days}", 422
        )


# --- 3xxx: Market prices ---

class PricesUnavailableError(AppError):
    def __init__(self, metal_type: str) -> None:
        super().__init__(3001, f"No price published for {metal_type}", 503)


class InvalidPriceError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3002, f"Invalid price: {detail}", 422)


# --- 6xxx: Admin / authorization ---

class PermissionDeniedError(AppError):
    def __init__(self, role: str) -> None:
        super().__init__(6001, f"Role required: {role}", 403)


class GoldsmithNotFoundError(AppError):
    def __init__(self, goldsmith_id: str) -> None:
        super().__init__(6002, f"Goldsmith not found: {goldsmith_id}", 404)


class FeeRuleNotFoundError(AppError):
    def __init__(self, fee_type: str) -> None:
        super().__init__(6003, f"Fee rule not found: {fee_type}", 404)


class InvalidFeeRuleError(AppError):
    def __init__(self, percent_bps: int) -> None:
        super().__init__(6004, f"Fee must be between 0 and 10000 bps, got {percent_bps}", 422)


class EmptyProfileUpdateError(AppError):
    def __init__(self) -> None:
        super().__init__(6005, "No profile fields to update", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class ProcedureFailedError(AppError):
    def __init__(self, procedure: str, detail: str) -> None:
        super().__init__(9003, f"Procedure {procedure} failed: {detail}", 502)


class ProcedureRejectedError(AppError):
    def __init__(self, procedure: str, detail: str) -> None:
        super().__init__(9004, f"Procedure {procedure} rejected the request: {detail}", 422)
