from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from typing import Optional

class APIException(HTTPException):
    kind: str = "error"

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class AppointmentError(APIException):
    """Base for errors that abort an appointment operation."""

    status_code_default: int = 400

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code_default, detail=detail)


class NotFound(AppointmentError):
    kind = "not_found"
    status_code_default = 404


class Forbidden(AppointmentError):
    kind = "forbidden"
    status_code_default = 403


class SlotConflict(AppointmentError):
    kind = "slot_conflict"

    def __init__(self, detail: str = "This time slot is already booked"):
        super().__init__(detail)


class InvalidTransition(AppointmentError):
    kind = "invalid_transition"


class InvalidState(AppointmentError):
    kind = "invalid_state"


class InvalidSlot(AppointmentError):
    kind = "invalid_slot"


class NotifierFailure(Exception):
    """Raised by notifier adapters; always caught and logged by the dispatcher."""

    def __init__(self, reason: str, recipient: Optional[str] = None) -> None:
        self.reason = reason
        self.recipient = recipient
        super().__init__(f"Failed to send notification: {reason}")


def create_error_response(error_message: str, kind: Optional[str] = None) -> dict:
    """Create a standardized error response"""
    body = {
        "success": False,
        "data": None,
        "error": error_message
    }
    if kind:
        body["kind"] = kind
    return body


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", "unauthorized")
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, getattr(exc, "kind", None)),
        headers=getattr(exc, "headers", None),
    )
