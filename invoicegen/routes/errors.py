from fastapi import HTTPException

from invoicegen.services.exceptions import NotFoundError, ServiceError, ValidationError


def to_http_exception(exc: ServiceError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=400,
            detail={"message": exc.message, "errors": [error.as_dict() for error in exc.errors]},
        )
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail={"message": exc.message})
    return HTTPException(status_code=500, detail={"message": exc.message})
