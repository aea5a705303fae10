from fastapi import HTTPException

from shopledger.services.inventory_service import InsufficientStock


def http_error(e: Exception, status_code: int = None) -> HTTPException:
    """Translate a service exception into an HTTPException with a message payload."""
    detail = {"message": str(e)}
    if isinstance(e, InsufficientStock):
        detail["available"] = e.available
        detail["requested"] = e.requested
    return HTTPException(status_code=status_code or getattr(e, "status_code", 400), detail=detail)
