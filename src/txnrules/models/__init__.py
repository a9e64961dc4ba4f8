"""Database models."""
from txnrules.models.user import User
from txnrules.models.item import Item
from txnrules.models.transaction import Transaction
from txnrules.models.transaction_rule import TransactionRule

__all__ = ["User", "Item", "Transaction", "TransactionRule"]
