from accessgraph.core import hierarchy


def lookup(mapping):
    return hierarchy.parent_lookup(mapping)


def test_no_cycle_in_chain():
    parents = {"c": ["b"], "b": ["a"], "a": []}
    assert not hierarchy.has_cycle("c", lookup(parents))


def test_cycle_detected():
    parents = {"a": ["c"], "b": ["a"], "c": ["b"]}
    assert hierarchy.has_cycle("a", lookup(parents))


def test_diamond_is_not_a_cycle():
    parents = {"d": ["b", "c"], "b": ["a"], "c": ["a"], "a": []}
    assert not hierarchy.has_cycle("d", lookup(parents))


def test_self_loop_is_a_cycle():
    assert hierarchy.has_cycle("a", lookup({"a": ["a"]}))


def test_unknown_nodes_are_dead_ends():
    parents = {"b": ["missing"]}
    assert not hierarchy.has_cycle("b", lookup(parents))
    assert hierarchy.collect_ancestors_bfs("b", lookup(parents)) == {"missing"}


def test_ancestor_collection_excludes_start():
    parents = {"d": ["b", "c"], "b": ["a"], "c": ["a"], "a": []}
    assert hierarchy.collect_ancestors_bfs("d", lookup(parents)) == {"a", "b", "c"}
    assert hierarchy.collect_ancestors_dfs("d", lookup(parents)) == {"a", "b", "c"}


def test_ancestor_collection_terminates_on_cycles():
    parents = {"a": ["b"], "b": ["a"]}
    assert hierarchy.collect_ancestors_bfs("a", lookup(parents)) == {"b"}
    assert hierarchy.collect_ancestors_dfs("a", lookup(parents)) == {"b"}


def test_deep_chain_does_not_recurse():
    depth = 5000
    parents = {i: [i + 1] for i in range(depth)}
    assert not hierarchy.has_cycle(0, lookup(parents))
    assert len(hierarchy.collect_ancestors_dfs(0, lookup(parents))) == depth


def test_with_extra_parent_leaves_input_untouched():
    parents = {"a": frozenset(), "b": frozenset({"a"})}
    hypothetical = hierarchy.with_extra_parent(parents, "a", "b")
    assert hypothetical["a"] == {"b"}
    assert parents["a"] == frozenset()
    assert hierarchy.has_cycle("a", lookup(hypothetical))
