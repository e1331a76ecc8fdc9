"""Custom exception classes for NextCRM."""


class NextCRMError(Exception):
    """Base exception for all NextCRM errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int = 500,
        details: dict | None = None,
    ):
        """Initialize NextCRMError.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            status_code: HTTP status code for API responses.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "INTERNAL_ERROR"
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert exception to the public result shape."""
        result = {
            "success": False,
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(NextCRMError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        message: str | None = None,
    ):
        """Initialize NotFoundError.

        Args:
            resource_type: Type of resource (e.g., "Template", "Profile").
            resource_id: ID or slug of the resource that was not found.
            message: Optional custom message.
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            message=message or f"{resource_type} with ID '{resource_id}' not found",
            error_code="NOT_FOUND",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ValidationError(NextCRMError):
    """Raised when input validation fails.

    Carries every offending field, never only the first one.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        errors: list[dict] | None = None,
    ):
        """Initialize ValidationError.

        Args:
            message: Error message.
            errors: List of validation errors with field, message and type.
        """
        self.errors = errors or []
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details={"errors": self.errors},
        )

    @staticmethod
    def pydantic_errors(exc: Exception, prefix: str = "") -> list[dict]:
        """Flatten a Pydantic ValidationError into field/message dicts.

        Args:
            exc: The Pydantic ValidationError.
            prefix: Dotted path prepended to every field location.

        Returns:
            List of error dicts.
        """
        errors = []
        if hasattr(exc, "errors"):
            for error in exc.errors():
                loc = ".".join(str(part) for part in error.get("loc", ()))
                field = ".".join(part for part in (prefix, loc) if part)
                errors.append(
                    {
                        "field": field,
                        "message": error.get("msg", "Invalid value"),
                        "type": error.get("type", "unknown"),
                    }
                )
        return errors

    @classmethod
    def from_pydantic(cls, exc: Exception, prefix: str = "") -> "ValidationError":
        """Create ValidationError from Pydantic ValidationError."""
        return cls(message="Validation failed", errors=cls.pydantic_errors(exc, prefix))


class UnauthorizedError(NextCRMError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication required"):
        """Initialize UnauthorizedError."""
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED",
            status_code=401,
        )


class ForbiddenError(NextCRMError):
    """Raised when user lacks permission for an action."""

    def __init__(
        self,
        message: str = "You don't have permission to perform this action",
        resource_type: str | None = None,
        action: str | None = None,
    ):
        """Initialize ForbiddenError."""
        details = {}
        if resource_type:
            details["resource_type"] = resource_type
        if action:
            details["action"] = action

        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            status_code=403,
            details=details if details else None,
        )


class ConflictError(NextCRMError):
    """Raised when there's a conflict (duplicate name or slug, optimistic lock failure)."""

    def __init__(
        self,
        message: str = "Resource conflict",
        conflict_type: str | None = None,
        details: dict | None = None,
    ):
        """Initialize ConflictError."""
        merged = dict(details or {})
        if conflict_type:
            merged["conflict_type"] = conflict_type

        super().__init__(
            message=message,
            error_code="CONFLICT",
            status_code=409,
            details=merged if merged else None,
        )


class PersistenceError(NextCRMError):
    """Raised when the backing store fails.

    The public message never carries storage detail; the underlying
    ClientError is chained as the cause for logs.
    """

    def __init__(self, operation: str, message: str = "Storage is temporarily unavailable"):
        """Initialize PersistenceError."""
        self.operation = operation
        super().__init__(
            message=message,
            error_code="PERSISTENCE_ERROR",
            status_code=503,
        )
