"""Transaction rules service: user-authored categorization rules for bank transactions."""

__version__ = "0.1.0"
