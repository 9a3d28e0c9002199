# core/errors.py

from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from pydantic import BaseModel, ValidationError

from core.logging_config import logger
from models.enums import BaseStrEnum


# -----------------------------------------------------
# ERROR CODES
# -----------------------------------------------------
class ErrorCode(BaseStrEnum):
    """Machine-readable failure codes returned by every service."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Invite codes
    APARTMENT_NOT_FOUND = "APARTMENT_NOT_FOUND"
    CODE_GENERATION_FAILED = "CODE_GENERATION_FAILED"
    INVALID_CODE = "INVALID_CODE"
    CODE_NOT_ACTIVE = "CODE_NOT_ACTIVE"
    CODE_EXPIRED = "CODE_EXPIRED"
    APARTMENT_ALREADY_OWNED = "APARTMENT_ALREADY_OWNED"
    CODE_NOT_FOUND = "CODE_NOT_FOUND"
    CODE_NOT_CANCELLABLE = "CODE_NOT_CANCELLABLE"

    # Buildings / apartments
    BUILDING_NOT_FOUND = "BUILDING_NOT_FOUND"
    BUILDING_ALREADY_EXISTS = "BUILDING_ALREADY_EXISTS"
    FLOOR_CONFLICT = "FLOOR_CONFLICT"
    FLOOR_OUT_OF_RANGE = "FLOOR_OUT_OF_RANGE"
    APARTMENT_ALREADY_EXISTS = "APARTMENT_ALREADY_EXISTS"

    # Water meters
    WATER_METER_NOT_FOUND = "WATER_METER_NOT_FOUND"
    SERIAL_NUMBER_TAKEN = "SERIAL_NUMBER_TAKEN"

    # Auth
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_TAKEN = "EMAIL_TAKEN"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ORGANIZATION_CODE_TAKEN = "ORGANIZATION_CODE_TAKEN"

    # Roles
    ROLE_NOT_FOUND = "ROLE_NOT_FOUND"
    ROLE_ALREADY_EXISTS = "ROLE_ALREADY_EXISTS"
    INVALID_PERMISSIONS = "INVALID_PERMISSIONS"


ERROR_MESSAGES: Dict[str, str] = {
    ErrorCode.VALIDATION_FAILED: "The submitted data is invalid",
    ErrorCode.INTERNAL_ERROR: "Something went wrong on our side, please try again",
    ErrorCode.APARTMENT_NOT_FOUND: "Apartment not found or you do not have access to it",
    ErrorCode.CODE_GENERATION_FAILED: "Could not generate a unique code",
    ErrorCode.INVALID_CODE: "The invite code is not valid",
    ErrorCode.CODE_NOT_ACTIVE: "The invite code is no longer active",
    ErrorCode.CODE_EXPIRED: "The invite code has expired",
    ErrorCode.APARTMENT_ALREADY_OWNED: "The apartment already has an owner",
    ErrorCode.CODE_NOT_FOUND: "Invite code not found",
    ErrorCode.CODE_NOT_CANCELLABLE: "The invite code cannot be cancelled",
    ErrorCode.BUILDING_NOT_FOUND: "Building not found",
    ErrorCode.BUILDING_ALREADY_EXISTS: "A building with the same name and address already exists",
    ErrorCode.FLOOR_CONFLICT: "Cannot reduce floors while apartments exist on the removed floors",
    ErrorCode.FLOOR_OUT_OF_RANGE: "The apartment floor is above the building's top floor",
    ErrorCode.APARTMENT_ALREADY_EXISTS: "An apartment with this number already exists in the building",
    ErrorCode.WATER_METER_NOT_FOUND: "Water meter not found",
    ErrorCode.SERIAL_NUMBER_TAKEN: "A water meter with this serial number already exists in the organization",
    ErrorCode.INVALID_CREDENTIALS: "Invalid email or password",
    ErrorCode.EMAIL_TAKEN: "An account with this email already exists",
    ErrorCode.USER_NOT_FOUND: "User not found",
    ErrorCode.ORGANIZATION_CODE_TAKEN: "The organization code is already in use",
    ErrorCode.ROLE_NOT_FOUND: "Role not found",
    ErrorCode.ROLE_ALREADY_EXISTS: "A role with this name already exists",
    ErrorCode.INVALID_PERMISSIONS: "One or more permissions are not recognised",
}


# -----------------------------------------------------
# UNIFORM SERVICE RESULT
# -----------------------------------------------------
class ServiceResult(BaseModel):
    """
    Shape returned by every service call.

    Success:  {success: True, data}
    Failure:  {success: False, error, code, details?}
    """

    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[str] = None
    details: Any = None

    @classmethod
    def ok(cls, data: Any = None) -> "ServiceResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        code: ErrorCode,
        error: Optional[str] = None,
        details: Any = None,
    ) -> "ServiceResult":
        return cls(
            success=False,
            error=error or ERROR_MESSAGES.get(code, ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR]),
            code=str(code),
            details=details,
        )


def validation_details(error: ValidationError) -> List[dict]:
    """Reduce pydantic errors to {loc, msg, type} entries safe to return to clients."""
    return [
        {
            "loc": [str(part) for part in item.get("loc", ())],
            "msg": item.get("msg", ""),
            "type": item.get("type", ""),
        }
        for item in error.errors()
    ]


def validation_failure(error: ValidationError) -> ServiceResult:
    return ServiceResult.fail(ErrorCode.VALIDATION_FAILED, details=validation_details(error))


def internal_failure(error: Exception, operation: str) -> ServiceResult:
    """
    Log an unexpected persistence error server side and return a generic
    failure. No internal detail leaves the process.
    """
    logger.error(f"{operation}: {extract_store_error(error)}", exc_info=error)
    return ServiceResult.fail(ErrorCode.INTERNAL_ERROR)


# -----------------------------------------------------
# STORE ERRORS
# -----------------------------------------------------
class StoreError(Exception):
    """Raised by store backends when a read or write fails."""


def extract_store_error(error: Exception) -> str:
    """
    Safely extract readable details from store errors.
    Handles:
      • PostgREST errors (message attribute)
      • Errors with args
      • Generic Python exceptions
    """

    if hasattr(error, "message"):
        try:
            return str(error.message)
        except Exception:
            pass

    if hasattr(error, "args") and error.args:
        try:
            return str(error.args[0])
        except Exception:
            pass

    try:
        return str(error)
    except Exception:
        return "Unknown store error"


# -----------------------------------------------------
# RESULT → HTTP
# -----------------------------------------------------
NOT_FOUND_CODES = {
    ErrorCode.INVALID_CODE,
    ErrorCode.APARTMENT_NOT_FOUND,
    ErrorCode.BUILDING_NOT_FOUND,
    ErrorCode.CODE_NOT_FOUND,
    ErrorCode.WATER_METER_NOT_FOUND,
    ErrorCode.USER_NOT_FOUND,
    ErrorCode.ROLE_NOT_FOUND,
}

CONFLICT_CODES = {
    ErrorCode.BUILDING_ALREADY_EXISTS,
    ErrorCode.APARTMENT_ALREADY_EXISTS,
    ErrorCode.SERIAL_NUMBER_TAKEN,
    ErrorCode.EMAIL_TAKEN,
    ErrorCode.FLOOR_CONFLICT,
    ErrorCode.ORGANIZATION_CODE_TAKEN,
    ErrorCode.ROLE_ALREADY_EXISTS,
}


def status_for_code(code: Optional[str]) -> int:
    if code == ErrorCode.VALIDATION_FAILED:
        return 400
    if code == ErrorCode.INTERNAL_ERROR or code is None:
        return 500
    if code == ErrorCode.INVALID_CREDENTIALS:
        return 401
    if code in NOT_FOUND_CODES:
        return 404
    if code in CONFLICT_CODES:
        return 409
    return 400


def result_to_response(result: ServiceResult, status_code: Optional[int] = None) -> HTTPException:
    """
    Convert a failed ServiceResult into an HTTPException.
    Returns (doesn't raise) so the caller decides when to raise.
    """
    return HTTPException(
        status_code=status_code or status_for_code(result.code),
        detail={
            "success": False,
            "error": result.error,
            "code": result.code,
            "details": result.details,
        },
    )


def unwrap(result: ServiceResult) -> Any:
    """Return result.data, raising the matching HTTPException on failure."""
    if not result.success:
        raise result_to_response(result)
    return result.data
