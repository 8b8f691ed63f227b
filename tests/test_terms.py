"""Tests for the interned term model."""
import pytest

from obostream.storage.terms import (
    Namespace,
    ParentTermID,
    Prefix,
    PrefixPool,
    RelationKind,
    Subset,
    Term,
    TermID,
    TermIDPool,
    TermXref,
)


# ========== PrefixPool Tests ==========

class TestPrefixPool:
    def test_same_instance(self):
        pool = PrefixPool()
        assert pool.get_or_create("GO") is pool.get_or_create("GO")

    def test_distinct_prefixes(self):
        pool = PrefixPool()
        go = pool.get_or_create("GO")
        chebi = pool.get_or_create("CHEBI")
        assert go is not chebi
        assert len(pool) == 2
        assert "GO" in pool


# ========== TermID Tests ==========

class TestTermID:
    def test_parse(self):
        term_id = TermID.parse("GO:0000001")
        assert term_id.prefix == Prefix("GO")
        assert term_id.local_id == "0000001"
        assert str(term_id) == "GO:0000001"
        assert term_id.is_numeric

    def test_textual_local_id(self):
        term_id = TermID.parse("RO:has_part")
        assert str(term_id) == "RO:has_part"
        assert not term_id.is_numeric

    def test_splits_at_first_colon(self):
        term_id = TermID.parse("X:a:b")
        assert term_id.prefix.name == "X"
        assert term_id.local_id == "a:b"

    @pytest.mark.parametrize("text", ["nocolon", ":0000001", "GO:", ""])
    def test_unresolvable(self, text):
        assert TermID.parse(text) is None

    def test_structural_equality(self):
        assert TermID.parse("GO:0000001") == TermID.parse("GO:0000001")
        assert hash(TermID.parse("GO:0000001")) == hash(TermID.parse("GO:0000001"))
        assert TermID.parse("GO:0000001") != TermID.parse("GO:0000002")


# ========== TermIDPool Tests ==========

class TestTermIDPool:
    def test_from_string_interns(self):
        pool = TermIDPool()
        assert pool.from_string("GO:0000001") is pool.from_string("GO:0000001")
        assert len(pool) == 1

    def test_bytes_and_string_share_instance(self):
        pool = TermIDPool()
        a = pool.from_bytes(b"GO:0000001")
        b = pool.from_string("GO:0000001")
        c = pool.from_bytes(b"GO:0000001")
        assert a is b is c

    def test_prefix_shared_across_ids(self):
        pool = TermIDPool()
        a = pool.from_string("GO:0000001")
        b = pool.from_string("GO:0000002")
        assert a is not b
        assert a.prefix is b.prefix
        assert len(pool.prefix_pool) == 1

    def test_get_or_create_maps_foreign_id(self):
        pool = TermIDPool()
        pooled = pool.from_string("GO:0000001")
        foreign = TermID(Prefix("GO"), "0000001")
        assert pool.get_or_create(foreign) is pooled

    def test_get_or_create_inserts(self):
        pool = TermIDPool()
        created = pool.get_or_create(TermID(Prefix("GO"), "0000003"))
        assert pool.from_string("GO:0000003") is created
        assert created.prefix is pool.prefix_pool.get_or_create("GO")

    def test_unresolvable_not_inserted(self):
        pool = TermIDPool()
        assert pool.from_bytes(b"garbage") is None
        assert len(pool) == 0

    def test_get_does_not_create(self):
        pool = TermIDPool()
        assert pool.get("GO:0000001") is None
        assert "GO:0000001" not in pool

    def test_stats(self):
        pool = TermIDPool()
        pool.from_string("GO:0000001")
        pool.from_string("GO:0000001")
        stats = pool.stats()
        assert stats["identifiers"] == 1
        assert stats["prefixes"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1


# ========== RelationKind Tests ==========

class TestRelationKind:
    @pytest.mark.parametrize("token,kind", [
        ("part_of", RelationKind.PART_OF),
        ("regulates", RelationKind.REGULATES),
        ("positively_regulates", RelationKind.POSITIVELY_REGULATES),
        ("negatively_regulates", RelationKind.NEGATIVELY_REGULATES),
        (b"PART_OF", RelationKind.PART_OF),
        ("has_part", RelationKind.UNKNOWN),
        ("is_a", RelationKind.UNKNOWN),
    ])
    def test_from_token(self, token, kind):
        assert RelationKind.from_token(token) is kind


# ========== Subset Tests ==========

class TestSubset:
    def test_from_string_with_description(self):
        subset = Subset.from_string('goslim_generic "Generic GO slim"')
        assert subset.name == "goslim_generic"
        assert subset.description == "Generic GO slim"

    def test_from_string_name_only(self):
        subset = Subset.from_string("gocheck_do_not_annotate")
        assert subset.name == "gocheck_do_not_annotate"
        assert subset.description == ""

    def test_unquoted_description(self):
        subset = Subset.from_string("slim some words")
        assert subset.description == "some words"


# ========== Term Tests ==========

class TestTerm:
    def _term(self, text="GO:0000001", name="x", **kwargs):
        return Term(id=TermID.parse(text), name=name, **kwargs)

    def test_identity_by_id(self):
        a = self._term(name="first")
        b = self._term(name="second")
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_different_ids(self):
        assert self._term("GO:0000001") != self._term("GO:0000002")

    def test_immutable(self):
        term = self._term()
        with pytest.raises(AttributeError):
            term.name = "other"

    def test_defaults(self):
        term = self._term()
        assert term.namespace is None
        assert term.obsolete is False
        assert term.definition is None
        assert term.parents == ()
        assert term.is_root

    def test_parent_ids(self):
        is_a = TermID.parse("GO:0000002")
        part_of = TermID.parse("GO:0000003")
        term = self._term(parents=(
            ParentTermID(is_a, RelationKind.IS_A),
            ParentTermID(part_of, RelationKind.PART_OF),
        ))
        assert term.parent_ids() == [is_a, part_of]
        assert term.parent_ids(RelationKind.PART_OF) == [part_of]
        assert not term.is_root

    def test_str(self):
        assert str(self._term(name="mitochondrion")) == "GO:0000001 (mitochondrion)"

    def test_value_types(self):
        assert str(Namespace("biological_process")) == "biological_process"
        assert str(TermXref("Wikipedia", "Mitochondrion")) == "Wikipedia:Mitochondrion"
