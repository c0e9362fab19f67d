"""Domain errors raised by the service layer.

Services never let raw storage errors escape: constraint violations are mapped to
one of the families below and anything else becomes `StorageError`. The HTTP layer
turns `code` / `status_code` into the JSON error envelope.
"""

from __future__ import annotations


class ServiceError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidDateRange(ValidationError):
    code = "INVALID_DATE_RANGE"


class NotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = 404


class ReferenceInvalid(ServiceError):
    code = "INVALID_REFERENCE"
    status_code = 400


class CurrencyNotFound(ReferenceInvalid):
    code = "CURRENCY_NOT_FOUND"

    def __init__(self, message: str = "Currency not found") -> None:
        super().__init__(message)


class AccountNotFound(ReferenceInvalid):
    code = "ACCOUNT_NOT_FOUND"

    def __init__(self, message: str = "Account not found or not accessible") -> None:
        super().__init__(message)


class CategoryNotFound(ReferenceInvalid):
    code = "CATEGORY_NOT_FOUND"

    def __init__(self, message: str = "Category not found or not accessible") -> None:
        super().__init__(message)


class ParentNotFound(ReferenceInvalid):
    code = "PARENT_NOT_FOUND"

    def __init__(self, message: str = "Parent category does not exist or is not active") -> None:
        super().__init__(message)


class MaxDepthExceeded(ReferenceInvalid):
    code = "MAX_DEPTH_EXCEEDED"

    def __init__(self, message: str = "Maximum category depth is 2 levels") -> None:
        super().__init__(message)


class TypeMismatch(ReferenceInvalid):
    code = "TYPE_MISMATCH"

    def __init__(self, message: str = "Subcategory type must match parent category type") -> None:
        super().__init__(message)


class SelfParentError(ReferenceInvalid):
    code = "SELF_PARENT"

    def __init__(self, message: str = "Category cannot be its own parent") -> None:
        super().__init__(message)


class StaleReference(ReferenceInvalid):
    code = "STALE_REFERENCE"

    def __init__(self, message: str = "Referenced account, category, or currency no longer exists") -> None:
        super().__init__(message)


class Conflict(ServiceError):
    code = "CONFLICT"
    status_code = 409


class DuplicateName(Conflict):
    code = "DUPLICATE_NAME"

    def __init__(self, message: str = "A category with this name already exists in the same location") -> None:
        super().__init__(message)


class DuplicateTransaction(Conflict):
    code = "DUPLICATE_TRANSACTION"

    def __init__(self, message: str = "Transaction already exists") -> None:
        super().__init__(message)


class InUse(ServiceError):
    code = "IN_USE"
    status_code = 409


class CategoryInUse(InUse):
    code = "CATEGORY_IN_USE"

    def __init__(self, count: int) -> None:
        super().__init__(f"Cannot delete category with active transactions: {count} transaction(s) found")
        self.count = count


class StorageError(ServiceError):
    code = "DATABASE_ERROR"
    status_code = 503
