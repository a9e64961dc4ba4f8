"""Custom exception classes for the rule service.

Each exception carries an error_code that maps to the error catalog in
errors.py. Validation problems in a condition tree are not exceptions on their
own; ``InvalidConditionsError`` wraps a failed ``ValidationResult`` when a save
has to be refused.
"""

from typing import Any


class RuleServiceError(Exception):
    """Base exception for all rule service errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "RULE_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
    """

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int = 500,
    ):
        """Initialize the exception.

        Args:
            error_code: Error code from errors.py
            details: Additional error context (not shown to users)
            http_status: HTTP status code (default: 500)
        """
        self.error_code = error_code
        self.details = details or {}
        self.http_status = http_status
        super().__init__(error_code)


class InvalidConditionsError(RuleServiceError):
    """Raised when a rule's condition tree fails validation.

    The individual path-tagged messages are kept on ``errors`` so the editor
    can highlight the first offending condition.
    """

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("RULE_001", details={"errors": self.errors}, http_status=422)


class RuleNotFoundError(RuleServiceError):
    """Raised when a rule doesn't exist or belongs to another user."""

    def __init__(self, rule_id: Any):
        super().__init__("RULE_002", details={"rule_id": str(rule_id)}, http_status=404)


class InvalidCategoryError(RuleServiceError):
    """Raised when a rule targets a category outside the taxonomy."""

    def __init__(self, category: str | None):
        super().__init__("RULE_003", details={"category": category}, http_status=422)


class DuplicateRuleNameError(RuleServiceError):
    """Raised when a user already has a rule with the requested name."""

    def __init__(self, name: str):
        super().__init__("RULE_004", details={"name": name}, http_status=409)


class TargetUserNotFoundError(RuleServiceError):
    """Raised when an admin re-sync targets a user that doesn't exist."""

    def __init__(self, user_id: Any):
        super().__init__("ADMIN_001", details={"user_id": str(user_id)}, http_status=404)
