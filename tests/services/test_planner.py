"""Tests for task planning."""

from unittest.mock import MagicMock

import pytest

from cloud_rename.models.items import Item, Task
from cloud_rename.services.planner import filter_unchanged, plan_tasks
from cloud_rename.utils.errors import ValidationError


def test_plan_tasks_keeps_order_and_indices(items, prefix_rule):
    tasks = plan_tasks(items, prefix_rule)

    assert [t.target_name for t in tasks] == ["x_a.txt", "x_b.txt", "x_c.txt"]
    assert [t.original_index for t in tasks] == [0, 1, 2]
    assert tasks[0].item is items[0]


def test_rule_receives_index_and_total(items):
    rule = MagicMock(return_value="same")

    plan_tasks(items, rule)

    assert [c.args for c in rule.call_args_list] == [
        ("a.txt", 0, 3),
        ("b.txt", 1, 3),
        ("c.txt", 2, 3),
    ]


def test_skip_unchanged_preserves_original_indices():
    items = [Item(id="1", name="keep.txt"), Item(id="2", name="old.txt")]

    tasks = plan_tasks(
        items,
        lambda name, i, n: name if name == "keep.txt" else "new.txt",
        skip_unchanged=True,
    )

    assert len(tasks) == 1
    assert tasks[0].original_index == 1


def test_plan_tasks_rejects_empty_items(prefix_rule):
    with pytest.raises(ValidationError):
        plan_tasks([], prefix_rule)


def test_plan_tasks_rejects_missing_rule(items):
    with pytest.raises(ValidationError):
        plan_tasks(items, None)


def test_filter_unchanged(items):
    tasks = [
        Task(item=items[0], target_name="a.txt", original_index=0),
        Task(item=items[1], target_name="renamed.txt", original_index=1),
    ]
    assert filter_unchanged(tasks) == [tasks[1]]
