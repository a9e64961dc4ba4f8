"""Unit tests for first-match rule application and per-item batches."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from txnrules.rules.applier import (
    ApplyResult,
    ItemOutcome,
    apply_rules,
    compile_rule,
    first_matching_rule,
    order_rules,
    run_item_batches,
)
from txnrules.rules.normalizer import StoredConditions

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0)


def make_rule(rule_id, category, conditions, minutes=0):
    return {
        "id": rule_id,
        "name": f"rule {rule_id}",
        "personal_finance_category": category,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
        "conditions": conditions,
    }


COFFEE = make_rule(
    "r1",
    "FOOD_AND_DRINK",
    {"field": "merchant_name", "op": "contains", "value": "starbucks"},
    minutes=0,
)
BIG_SPEND = make_rule(
    "r2",
    "GENERAL_MERCHANDISE",
    {"field": "amount", "op": "lt", "value": -50},
    minutes=5,
)


def txn(txn_id, merchant, amount, category="OTHER"):
    return {
        "id": txn_id,
        "name": merchant,
        "merchant_name": merchant,
        "account_id": "acc_1",
        "amount": Decimal(amount),
        "primary_category": category,
    }


class TestCompileRule:
    def test_compiles_mapping(self):
        compiled = compile_rule(COFFEE)

        assert compiled.rule_id == "r1"
        assert compiled.category == "FOOD_AND_DRINK"
        assert isinstance(compiled.conditions, StoredConditions)

    def test_compiles_objects(self):
        class Rule:
            id = "r9"
            name = "Rent"
            personal_finance_category = "RENT_AND_UTILITIES"
            created_at = BASE_TIME
            conditions = {"field": "name", "op": "equals", "value": "Rent"}

        compiled = compile_rule(Rule())

        assert compiled.matches({"name": "Rent", "amount": Decimal("-1500")})


class TestOrdering:
    def test_orders_by_creation_time(self):
        ordered = order_rules([BIG_SPEND, COFFEE])

        assert [rule.rule_id for rule in ordered] == ["r1", "r2"]

    def test_ties_break_on_rule_id(self):
        a = make_rule("b", "X", COFFEE["conditions"])
        b = make_rule("a", "Y", COFFEE["conditions"])

        assert [rule.rule_id for rule in order_rules([a, b])] == ["a", "b"]
        assert [rule.rule_id for rule in order_rules([b, a])] == ["a", "b"]

    def test_first_matching_rule(self):
        ordered = order_rules([COFFEE, BIG_SPEND])

        assert first_matching_rule(ordered, txn(1, "STARBUCKS", "-60")).rule_id == "r1"
        assert first_matching_rule(ordered, txn(2, "BEST BUY", "-60")).rule_id == "r2"
        assert first_matching_rule(ordered, txn(3, "BEST BUY", "-10")) is None


class TestApplyRules:
    @pytest.mark.parametrize("rules", [[COFFEE, BIG_SPEND], [BIG_SPEND, COFFEE]])
    def test_first_match_wins_regardless_of_input_order(self, rules):
        transaction = txn(1, "STARBUCKS RESERVE", "-75")

        result = apply_rules(rules, [transaction])

        assert transaction["primary_category"] == "FOOD_AND_DRINK"
        assert result.num_matched == 1
        assert result.num_adjusted == 1

    def test_unmatched_transactions_keep_category(self):
        transaction = txn(1, "PAYROLL", "2500", category="INCOME")

        result = apply_rules([COFFEE, BIG_SPEND], [transaction])

        assert transaction["primary_category"] == "INCOME"
        assert result.num_transactions == 1
        assert result.num_matched == 0
        assert result.assignments == []

    def test_counts_only_changed_categories(self):
        transactions = [
            txn(1, "STARBUCKS", "-5"),
            txn(2, "STARBUCKS", "-5", category="FOOD_AND_DRINK"),
            txn(3, "APPLE STORE", "-999"),
            txn(4, "PAYROLL", "2500"),
        ]

        result = apply_rules([COFFEE, BIG_SPEND], transactions)

        assert result.num_transactions == 4
        assert result.num_matched == 3
        assert result.num_adjusted == 2
        assert [(a.transaction_id, a.previous_category, a.category) for a in result.assignments] == [
            (1, "OTHER", "FOOD_AND_DRINK"),
            (3, "OTHER", "GENERAL_MERCHANDISE"),
        ]

    def test_idempotent(self):
        transactions = [txn(1, "STARBUCKS", "-5"), txn(2, "APPLE STORE", "-999"), txn(3, "PAYROLL", "2500")]

        apply_rules([COFFEE, BIG_SPEND], transactions)
        snapshot = [t["primary_category"] for t in transactions]
        second = apply_rules([COFFEE, BIG_SPEND], transactions)

        assert [t["primary_category"] for t in transactions] == snapshot
        assert second.num_adjusted == 0

    def test_sets_attribute_on_objects(self):
        class Txn:
            id = 7
            name = "Starbucks"
            merchant_name = "Starbucks"
            account_id = "acc_1"
            amount = Decimal("-3")
            primary_category = None

        transaction = Txn()

        apply_rules([COFFEE], [transaction])

        assert transaction.primary_category == "FOOD_AND_DRINK"

    def test_no_rules_is_a_no_op(self):
        result = apply_rules([], [txn(1, "STARBUCKS", "-5")])

        assert result.num_transactions == 1
        assert result.num_adjusted == 0

    def test_merge(self):
        merged = ApplyResult(num_transactions=2, num_matched=1).merge(ApplyResult(num_transactions=3, num_matched=2))

        assert (merged.num_transactions, merged.num_matched) == (5, 3)


class TestRunItemBatches:
    @pytest.mark.asyncio
    async def test_failure_in_one_item_does_not_stop_others(self):
        data = {
            "A": [txn(1, "STARBUCKS", "-5")],
            "C": [txn(2, "APPLE STORE", "-120"), txn(3, "PAYROLL", "2500")],
        }
        saved, discarded = [], []

        async def load(item_id):
            if item_id == "B":
                raise RuntimeError("aggregator timeout")
            return data[item_id]

        async def save(item_id, result):
            saved.append(item_id)

        async def discard(item_id):
            discarded.append(item_id)

        outcomes = await run_item_batches(["A", "B", "C"], [COFFEE, BIG_SPEND], load, save, discard)

        assert [o.item_id for o in outcomes] == ["A", "B", "C"]
        assert [o.success for o in outcomes] == [True, False, True]
        assert outcomes[1].error == "aggregator timeout"
        assert outcomes[0].num_adjusted == 1
        assert outcomes[2].num_adjusted == 1
        assert saved == ["A", "C"]
        assert discarded == ["B"]
        assert data["A"][0]["primary_category"] == "FOOD_AND_DRINK"

    @pytest.mark.asyncio
    async def test_malformed_rule_fails_each_item(self):
        broken = make_rule("bad", "OTHER", {"field": "amount", "op": "gt", "value": "x"}, minutes=10)
        loaded, discarded = [], []

        async def load(item_id):
            loaded.append(item_id)
            return [txn(1, "STARBUCKS", "-5")]

        async def save(item_id, result):
            raise AssertionError("should not save")

        async def discard(item_id):
            discarded.append(item_id)

        outcomes = await run_item_batches(["A", "B"], [COFFEE, broken], load, save, discard)

        assert [o.success for o in outcomes] == [False, False]
        assert {o.error for o in outcomes} == {"amount value must be a number"}
        assert loaded == []
        assert discarded == ["A", "B"]

    @pytest.mark.asyncio
    async def test_failed_save_is_discarded(self):
        async def load(item_id):
            return [txn(1, "STARBUCKS", "-5")]

        async def save(item_id, result):
            raise ValueError()

        discarded = []

        async def discard(item_id):
            discarded.append(item_id)

        outcomes = await run_item_batches(["A"], [COFFEE], load, save, discard)

        assert outcomes == [ItemOutcome(item_id="A", success=False, error="ValueError")]
        assert discarded == ["A"]

    @pytest.mark.asyncio
    async def test_no_items(self):
        async def load(item_id):
            raise AssertionError("should not load")

        async def save(item_id, result):
            raise AssertionError("should not save")

        assert await run_item_batches([], [COFFEE], load, save) == []

    def test_outcome_as_dict_omits_missing_error(self):
        assert ItemOutcome(item_id="A", success=True).as_dict() == {"item_id": "A", "success": True}
        assert ItemOutcome(item_id="B", success=False, error="boom").as_dict() == {
            "item_id": "B",
            "success": False,
            "error": "boom",
        }
