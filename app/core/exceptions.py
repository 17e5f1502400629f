from fastapi import HTTPException, status


class BaseAppException(HTTPException):
    """HTTP error carrying a machine-readable code for the response envelope"""

    code = "APPLICATION_ERROR"

    def __init__(self, status_code: int, detail: str, code: str = None):
        super().__init__(status_code=status_code, detail=detail)
        if code:
            self.code = code


class ValidationError(BaseAppException):
    code = "VALIDATION_ERROR"

    def __init__(self, detail: str = "Validation error"):
        super().__init__(status_code=422, detail=detail)


class LinkageError(BaseAppException):
    code = "LINKAGE_ERROR"

    def __init__(self, detail: str = "Referenced record does not exist"):
        super().__init__(status_code=422, detail=detail)


class NotFoundError(BaseAppException):
    code = "NOT_FOUND"

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AuthorizationError(BaseAppException):
    code = "UNAUTHORIZED_ACTION"

    def __init__(self, detail: str = "You are not authorized to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class StaleStateError(BaseAppException):
    code = "STALE_STATE"

    def __init__(self, detail: str = "Request was modified by another action, reload and retry"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidTransitionError(BaseAppException):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, detail: str = "Invalid status transition"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ProcessingError(BaseAppException):
    """Unexpected persistence failure, never retried here"""

    code = "REQUEST_PROCESSING_FAILED"

    def __init__(self, detail: str = "Error processing request"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
