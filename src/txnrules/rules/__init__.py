"""Transaction categorization rules.

User-authored condition trees are validated, normalized into their stored
form, and evaluated against transactions locally (no network calls). The
trigger applies a user's rules to their transactions, first match wins.
"""

from .applier import apply_rules, order_rules, run_item_batches
from .conditions import Connective, Field, Group, Leaf, Operator
from .evaluator import MalformedConditionError, evaluate
from .normalizer import AuthoredConditions, StoredConditions, denormalize, normalize
from .validator import ValidationResult, validate

__all__ = [
    "AuthoredConditions",
    "Connective",
    "Field",
    "Group",
    "Leaf",
    "MalformedConditionError",
    "Operator",
    "StoredConditions",
    "ValidationResult",
    "apply_rules",
    "denormalize",
    "evaluate",
    "normalize",
    "order_rules",
    "run_item_batches",
    "validate",
]
