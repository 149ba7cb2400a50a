"""
Unit tests for inheritance resolution over the derivation graph.
Run from backend: python -m pytest tests/test_inheritance.py -v
"""


def _kb(records):
    from halal_core.knowledge.knowledge_base import KnowledgeBase
    return KnowledgeBase(records)


def test_haram_propagates_through_chain():
    """marshmallow -> gelatin -> pork resolves haram with the root source."""
    from halal_core.evaluation.inheritance import resolve
    from halal_core.models.ingredient_record import Ruling
    kb = _kb({
        "pork": {"ruling": "haram"},
        "gelatin": {"ruling": "haram", "derives_from": ["pork"]},
        "marshmallow": {"ruling": "conditional", "derives_from": ["gelatin"]},
    })
    r = resolve(kb, "marshmallow")
    assert r.ruling == Ruling.HARAM
    assert r.inherited_haram_source == "pork"
    assert r.chain == ("gelatin", "pork")
    assert r.missing_ancestors == ()


def test_own_ruling_without_ancestors():
    """A record with no ancestors resolves to its own ruling."""
    from halal_core.evaluation.inheritance import InheritanceResolver
    from halal_core.models.ingredient_record import Ruling
    kb = _kb({"apple": {"ruling": "halal"}})
    r = InheritanceResolver(kb).resolve("Apple")
    assert r.ruling == Ruling.HALAL
    assert r.inherited_haram_source is None
    assert r.chain == ()


def test_absent_identifier_returns_none():
    """Resolution of an identifier not in the knowledge base is None."""
    from halal_core.evaluation.inheritance import resolve
    assert resolve(_kb({}), "ghost") is None


def test_conditional_ancestor_downgrades_halal():
    """Conditional beats halal; haram beats conditional."""
    from halal_core.evaluation.inheritance import resolve
    from halal_core.models.ingredient_record import Ruling
    kb = _kb({
        "milk": {"ruling": "halal"},
        "rennet": {"ruling": "conditional"},
        "alcohol": {"ruling": "haram"},
        "cheese": {"ruling": "halal", "derives_from": ["milk", "rennet"]},
        "tiramisu": {"ruling": "halal", "derives_from": ["cheese", "alcohol"]},
    })
    cheese = resolve(kb, "cheese")
    assert cheese.ruling == Ruling.CONDITIONAL
    assert cheese.chain == ("milk", "rennet")
    tiramisu = resolve(kb, "tiramisu")
    assert tiramisu.ruling == Ruling.HARAM
    assert tiramisu.inherited_haram_source == "alcohol"
    assert tiramisu.chain == ("cheese", "milk", "rennet", "alcohol")


def test_own_haram_never_downgraded():
    """A record marked haram stays haram even when its ancestors are halal."""
    from halal_core.evaluation.inheritance import resolve
    from halal_core.models.ingredient_record import Ruling
    kb = _kb({"corn": {"ruling": "halal"}, "bourbon": {"ruling": "haram", "derives_from": ["corn"]}})
    r = resolve(kb, "bourbon")
    assert r.ruling == Ruling.HARAM
    assert r.inherited_haram_source is None


def test_missing_ancestors_reported():
    """Dangling ancestors are skipped and listed."""
    from halal_core.evaluation.inheritance import resolve
    from halal_core.models.ingredient_record import Ruling
    kb = _kb({"cake": {"ruling": "halal", "derives_from": ["flour", "mystery_glaze"]}, "flour": {"ruling": "halal"}})
    r = resolve(kb, "cake")
    assert r.ruling == Ruling.HALAL
    assert r.missing_ancestors == ("mystery_glaze",)
    assert any("mystery_glaze" in s for s in r.steps)


def test_cycle_terminates():
    """A <-> B terminates; the branch closing the cycle is dropped."""
    from halal_core.evaluation.inheritance import resolve
    from halal_core.models.ingredient_record import Ruling
    kb = _kb({
        "a": {"ruling": "halal", "derives_from": ["b"]},
        "b": {"ruling": "conditional", "derives_from": ["a"]},
    })
    ra = resolve(kb, "a")
    assert ra.ruling == Ruling.CONDITIONAL
    assert ra.chain == ("b",)
    rb = resolve(kb, "b")
    assert rb.ruling == Ruling.CONDITIONAL
    assert rb.chain == ("a",)


def test_diamond_is_not_a_cycle():
    """Sibling branches do not share visited nodes, so shared ancestors resolve on both."""
    from halal_core.evaluation.inheritance import resolve
    from halal_core.models.ingredient_record import Ruling
    kb = _kb({
        "pork": {"ruling": "haram"},
        "left": {"ruling": "halal", "derives_from": ["pork"]},
        "right": {"ruling": "halal", "derives_from": ["pork"]},
        "top": {"ruling": "halal", "derives_from": ["left", "right"]},
    })
    r = resolve(kb, "top")
    assert r.ruling == Ruling.HARAM
    assert r.inherited_haram_source == "pork"
    assert r.chain == ("left", "pork", "right")


def test_resolved_status_to_dict():
    """Serialized form uses plain values."""
    from halal_core.evaluation.inheritance import resolve
    kb = _kb({"pork": {"ruling": "haram"}, "lard": {"ruling": "haram", "derives_from": ["pork"]}})
    d = resolve(kb, "lard").to_dict()
    assert d["ruling"] == "haram"
    assert d["inherited_haram_source"] == "pork"
    assert d["chain"] == ["pork"]


def _deep_chain(depth):
    """item0 -> item1 -> ... -> item{depth}, with only the last record haram."""
    records = {f"item{i}": {"ruling": "halal", "derives_from": [f"item{i + 1}"]} for i in range(depth)}
    records[f"item{depth}"] = {"ruling": "haram"}
    return records


def test_deep_chain_resolves_without_recursion_limit():
    """A chain deeper than the interpreter's recursion limit still resolves."""
    import sys
    from halal_core.evaluation.halal_engine import HalalEngine
    from halal_core.evaluation.inheritance import resolve
    from halal_core.models.ingredient_record import Ruling
    depth = max(1500, sys.getrecursionlimit() + 500)
    kb = _kb(_deep_chain(depth))
    r = resolve(kb, "item0")
    assert r.ruling == Ruling.HARAM
    assert r.inherited_haram_source == f"item{depth}"
    assert len(r.chain) == depth
    assert r.chain[0] == "item1"
    assert r.chain[-1] == f"item{depth}"
    result = HalalEngine(kb).evaluate("item0")
    assert result.ruling == Ruling.HARAM
    assert result.inherited_from == f"item{depth}"


def test_deep_chain_cycle_search():
    """Cycle diagnostics walk deep chains too, and find a cycle closed at the far end."""
    from halal_core.knowledge.knowledge_base import KnowledgeBase
    records = _deep_chain(1500)
    assert KnowledgeBase(records).find_cycles() == []
    records["item1500"] = {"ruling": "haram", "derives_from": ["item1499"]}
    assert KnowledgeBase(records).find_cycles() == [("item1499", "item1500")]
