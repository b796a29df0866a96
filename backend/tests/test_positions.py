import random
from types import SimpleNamespace

import pytest

from themestudio.domain.exceptions import InvariantViolation, PersistenceConflict, ValidationError
from themestudio.domain import positions


def items(*ids):
    return [SimpleNamespace(id=item_id, position=index) for index, item_id in enumerate(ids)]


def order_of(siblings):
    return [s.id for s in positions.ordered(siblings)]


def test_insert_at_shifts_later_siblings():
    siblings = items("a", "b", "c")
    new = SimpleNamespace(id="x", position=None)

    changed = positions.insert_at(siblings, new, 1)

    assert order_of(siblings + [new]) == ["a", "x", "b", "c"]
    assert {s.id for s in changed} == {"x", "b", "c"}


def test_insert_at_clamps_out_of_range_index():
    siblings = items("a", "b")
    new = SimpleNamespace(id="x", position=None)

    positions.insert_at(siblings, new, 99)
    assert new.position == 2

    other = SimpleNamespace(id="y", position=None)
    positions.insert_at(siblings + [new], other, -5)
    assert order_of(siblings + [new, other]) == ["y", "a", "b", "x"]


def test_remove_shifts_down():
    siblings = items("a", "b", "c", "d")
    gone = siblings[1]

    positions.remove(siblings, gone)

    assert order_of([s for s in siblings if s is not gone]) == ["a", "c", "d"]
    assert [s.position for s in positions.ordered(s for s in siblings if s is not gone)] == [0, 1, 2]


def test_compact_closes_gaps_and_keeps_order():
    siblings = [SimpleNamespace(id="a", position=3), SimpleNamespace(id="b", position=7),
                SimpleNamespace(id="c", position=0)]

    positions.compact(siblings)

    assert order_of(siblings) == ["c", "a", "b"]
    assert positions.is_contiguous(siblings)


def test_duplicate_position_is_right_after_original():
    original = SimpleNamespace(id="a", position=2)
    assert positions.duplicate_position(original) == 3


def test_apply_reorder_accepts_id_list_and_position_objects():
    siblings = items("a", "b", "c")

    positions.apply_reorder(siblings, ["c", "a", "b"])
    assert order_of(siblings) == ["c", "a", "b"]

    positions.apply_reorder(siblings, [{"id": "a", "position": 2}, {"id": "b", "position": 0},
                                       {"id": "c", "position": 1}])
    assert order_of(siblings) == ["b", "c", "a"]


def test_apply_reorder_unchanged_order_changes_nothing():
    siblings = items("a", "b")
    assert positions.apply_reorder(siblings, ["a", "b"]) == []


def test_apply_reorder_rejects_stale_and_missing_ids():
    siblings = items("a", "b", "c")

    with pytest.raises(PersistenceConflict) as exc:
        positions.apply_reorder(siblings, ["a", "b", "zombie"])
    assert exc.value.details == {"stale_ids": ["zombie"], "missing_ids": ["c"]}
    assert order_of(siblings) == ["a", "b", "c"]


@pytest.mark.parametrize("target", [
    ["a", "a", "b"],
    [{"id": "a", "position": 0}, {"id": "b", "position": 2}, {"id": "c", "position": 3}],
    [{"id": "a", "position": "0"}],
    ["a", {"id": "b", "position": 1}],
    "abc",
])
def test_apply_reorder_rejects_malformed_targets(target):
    with pytest.raises(ValidationError):
        positions.apply_reorder(items("a", "b", "c"), target)


def test_assert_contiguous():
    positions.assert_contiguous(items("a", "b"))
    positions.assert_contiguous([])

    with pytest.raises(InvariantViolation):
        positions.assert_contiguous([SimpleNamespace(id="a", position=0),
                                     SimpleNamespace(id="b", position=2)])
    with pytest.raises(InvariantViolation):
        positions.assert_contiguous([SimpleNamespace(id="a", position=0),
                                     SimpleNamespace(id="b", position=0)])


def test_random_operation_sequences_stay_contiguous():
    rng = random.Random(1234)
    siblings = items("s0", "s1", "s2")
    counter = 3

    for _ in range(500):
        op = rng.choice(["insert", "remove", "move", "reorder", "duplicate"])
        if op == "insert" or not siblings:
            new = SimpleNamespace(id=f"s{counter}", position=None)
            counter += 1
            positions.insert_at(siblings, new, rng.randint(-1, len(siblings) + 1))
            siblings.append(new)
        elif op == "remove":
            gone = rng.choice(siblings)
            positions.remove(siblings, gone)
            siblings.remove(gone)
        elif op == "move":
            positions.move(siblings, rng.choice(siblings), rng.randint(0, len(siblings)))
        elif op == "duplicate":
            original = rng.choice(siblings)
            clone = SimpleNamespace(id=f"s{counter}", position=None)
            counter += 1
            positions.insert_at(siblings, clone, positions.duplicate_position(original))
            siblings.append(clone)
            assert clone.position == original.position + 1
        else:
            target = [s.id for s in siblings]
            rng.shuffle(target)
            positions.apply_reorder(siblings, target)
            assert order_of(siblings) == target

        positions.assert_contiguous(siblings)
