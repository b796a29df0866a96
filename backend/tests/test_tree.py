from themestudio.domain.tree import find_node, flatten, nest, prune_disabled


def rows():
    return [
        {"id": "h", "type": "heading", "position": 1, "parent_block_id": None, "settings": {"text": "Hi"}},
        {"id": "c", "type": "container", "position": 0, "parent_block_id": None, "settings": {"gap": 8}},
        {"id": "b2", "type": "button", "position": 5, "parent_block_id": "c", "settings": {}},
        {"id": "b1", "type": "button", "position": 2, "parent_block_id": "c", "settings": {}},
        {"id": "t", "type": "text", "position": 0, "parent_block_id": "inner", "settings": {}},
        {"id": "inner", "type": "container", "position": 9, "parent_block_id": "c", "settings": {}},
    ]


def ids(nodes):
    return [n["id"] for n in nodes]


def test_nest_groups_sorts_and_renumbers_each_level():
    tree = nest(rows())

    assert ids(tree) == ["c", "h"]
    container = tree[0]
    assert ids(container["blocks"]) == ["b1", "b2", "inner"]
    assert [n["position"] for n in container["blocks"]] == [0, 1, 2]
    assert ids(container["blocks"][2]["blocks"]) == ["t"]
    assert container["blocks"][2]["parent_block_id"] == "c"


def test_round_trip_is_stable():
    tree = nest(rows())
    assert nest(flatten(tree)) == tree


def test_flatten_uses_one_global_counter_depth_first():
    flat = flatten(nest(rows()))

    assert ids(flat) == ["c", "b1", "b2", "inner", "t", "h"]
    assert [r["position"] for r in flat] == [0, 1, 2, 3, 4, 5]
    assert all("blocks" not in r for r in flat)
    assert {r["id"]: r["parent_block_id"] for r in flat}["t"] == "inner"


def test_orphans_and_cycles_land_at_top_level():
    tree = nest([
        {"id": "a", "type": "text", "position": 0, "parent_block_id": "gone"},
        {"id": "x", "type": "container", "position": 1, "parent_block_id": "y"},
        {"id": "y", "type": "container", "position": 2, "parent_block_id": "x"},
    ])

    assert sorted(ids(tree)) == ["a", "x", "y"]
    assert all(n["parent_block_id"] is None for n in tree)


def test_cycle_members_all_detach_whatever_the_input_order():
    x = {"id": "x", "type": "container", "position": 0, "parent_block_id": "y"}
    y = {"id": "y", "type": "container", "position": 1, "parent_block_id": "x"}

    for rows in ([x, y], [y, x]):
        tree = nest(rows)
        assert sorted(ids(tree)) == ["x", "y"]
        assert all(n["blocks"] == [] for n in tree)


def test_embedded_legacy_children_become_child_nodes():
    tree = nest([{
        "id": "c",
        "type": "container",
        "position": 0,
        "settings": {
            "direction": "row",
            "blocks": [
                {"type": "text", "settings": {"text": "one"}},
                {"type": "container", "settings": {"childBlocks": [{"type": "image"}]}},
            ],
        },
    }])

    container = tree[0]
    assert container["settings"] == {"direction": "row"}
    assert ids(container["blocks"]) == ["c.0", "c.1"]
    assert container["blocks"][0]["settings"] == {"text": "one"}
    assert ids(container["blocks"][1]["blocks"]) == ["c.1.0"]
    assert nest(flatten(tree)) == tree


def test_explicit_child_rows_win_over_embedded_copy():
    tree = nest([
        {"id": "c", "type": "container", "position": 0, "settings": {"blocks": [{"type": "text"}]}},
        {"id": "real", "type": "image", "position": 0, "parent_block_id": "c"},
    ])

    assert ids(tree[0]["blocks"]) == ["real"]
    assert "blocks" not in tree[0]["settings"]


def test_prune_disabled_and_find_node():
    tree = nest(rows())
    tree[0]["blocks"][0]["enabled"] = False

    pruned = prune_disabled(tree)

    assert ids(pruned[0]["blocks"]) == ["b2", "inner"]
    assert [n["position"] for n in pruned[0]["blocks"]] == [0, 1]
    assert find_node(tree, "t")["type"] == "text"
    assert find_node(tree, "nope") is None
