"""Error codes and user-friendly messages.

Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

ERROR_CATALOG: dict[str, dict] = {
    "RULE_001": {
        "code": "RULE_001",
        "message": "Rule conditions failed validation",
        "user_message": "Some of this rule's conditions are incomplete or invalid.",
        "suggestion": "Fix the highlighted condition and save again.",
        "retry_allowed": True,
    },
    "RULE_002": {
        "code": "RULE_002",
        "message": "Transaction rule not found",
        "user_message": "We couldn't find this rule.",
        "suggestion": "Please refresh your rules and try again.",
        "retry_allowed": False,
    },
    "RULE_003": {
        "code": "RULE_003",
        "message": "Invalid personal finance category",
        "user_message": "That category isn't supported.",
        "suggestion": "Please choose a category from the allowed list.",
        "retry_allowed": False,
    },
    "RULE_004": {
        "code": "RULE_004",
        "message": "Duplicate rule name",
        "user_message": "You already have a rule with this name.",
        "suggestion": "Choose a different name for the rule.",
        "retry_allowed": False,
    },
    "ADMIN_001": {
        "code": "ADMIN_001",
        "message": "Target user not found",
        "user_message": "We couldn't find this user.",
        "suggestion": "Please check the user ID and try again.",
        "retry_allowed": False,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details (a generic entry for unknown codes)
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]
