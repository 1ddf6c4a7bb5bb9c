# ==============================================
# Tests for the MetadataSource operations
# ==============================================
#
# Every test here runs against both SQLMetadataStore and
# FileMetadataStore through the parametrized `store` fixture.
# ==============================================

from metastore.sources.base import MetadataSource


class TestCapabilitySet:

    def test_implements_metadata_source(self, store):
        assert isinstance(store, MetadataSource)


class TestUpsertAndGet:

    def test_round_trip(self, store):
        value = {"entityid": "https://sp.example", "contacts": [{"type": "technical", "email": "a@b.c"}]}
        assert store.upsert_entry("sp", "https://sp.example", value) is True
        assert store.get_entry("sp", "https://sp.example") == value

    def test_second_upsert_replaces_value(self, store):
        assert store.upsert_entry("idp", "https://idp.example", {"version": 1})
        assert store.upsert_entry("idp", "https://idp.example", {"version": 2})

        assert store.get_entry("idp", "https://idp.example") == {"version": 2}
        assert store.list_entries("idp") == {"https://idp.example": {"version": 2}}

    def test_unknown_entry_is_none(self, store):
        assert store.get_entry("idp", "https://nowhere.example") is None

    def test_same_entity_in_different_sets(self, store):
        store.upsert_entry("idp", "https://both.example", {"role": "idp"})
        store.upsert_entry("sp", "https://both.example", {"role": "sp"})

        assert store.get_entry("idp", "https://both.example") == {"role": "idp"}
        assert store.get_entry("sp", "https://both.example") == {"role": "sp"}

    def test_unserializable_value_returns_false(self, store):
        assert store.upsert_entry("idp", "https://idp.example", {"bad": {1, 2}}) is False
        assert store.get_entry("idp", "https://idp.example") is None

    def test_non_mapping_value_returns_false(self, store):
        assert store.upsert_entry("idp", "https://idp.example", "plain string") is False

    def test_integer_keys_rejected_not_rewritten(self, store):
        value = {"endpoints": {0: "https://a.example", 1: "https://b.example"}}

        assert store.upsert_entry("idp", "k", value) is False
        assert store.get_entry("idp", "k") is None


class TestListing:

    def test_empty_store_has_no_sets(self, store):
        assert store.list_sets() == set()

    def test_sets_are_distinct(self, store):
        store.upsert_entry("idp", "a", {})
        store.upsert_entry("idp", "b", {})
        store.upsert_entry("sp", "c", {})

        assert store.list_sets() == {"idp", "sp"}

    def test_empty_set_gives_empty_mapping(self, store):
        assert store.list_entries("idp") == {}

    def test_entries_keyed_by_entity(self, store):
        store.upsert_entry("idp", "https://one.example", {"n": 1})
        store.upsert_entry("idp", "https://two.example", {"n": 2})
        store.upsert_entry("sp", "https://three.example", {"n": 3})

        assert store.list_entries("idp") == {
            "https://one.example": {"n": 1},
            "https://two.example": {"n": 2},
        }


class TestDelete:

    def test_delete_absent_key_is_noop(self, store):
        store.upsert_entry("idp", "keep", {"x": 1})

        assert store.delete_entry("idp", "missing") is True
        assert store.delete_entry("nope", "missing") is True
        assert store.list_entries("idp") == {"keep": {"x": 1}}

    def test_delete_only_touches_its_key(self, store):
        store.upsert_entry("idp", "a", {})
        store.upsert_entry("idp", "b", {})

        store.delete_entry("idp", "a")

        assert store.list_entries("idp") == {"b": {}}

    def test_set_disappears_with_last_entry(self, store):
        store.upsert_entry("idp", "a", {})
        store.delete_entry("idp", "a")

        assert "idp" not in store.list_sets()


class TestIdpScenario:

    def test_register_lookup_remove(self, store):
        assert store.upsert_entry("idp", "https://idp.example", {"expire": 1000})
        assert store.get_entry("idp", "https://idp.example") == {"expire": 1000}
        assert "idp" in store.list_sets()

        assert store.delete_entry("idp", "https://idp.example")
        assert store.get_entry("idp", "https://idp.example") is None


LONG_ENTITY = "https://idp.example.org/" + "seg/" * 53 + "metadata.xml"
LONG_SET = "urn:x-federation:" + "collection:" * 20


class TestLongKeys:

    def test_long_entity_round_trip(self, store):
        assert len(LONG_ENTITY) > 240
        value = {"entityid": LONG_ENTITY, "expire": 1000}

        assert store.upsert_entry("idp", LONG_ENTITY, value) is True
        assert store.get_entry("idp", LONG_ENTITY) == value
        assert store.list_entries("idp") == {LONG_ENTITY: value}

        assert store.delete_entry("idp", LONG_ENTITY) is True
        assert store.get_entry("idp", LONG_ENTITY) is None

    def test_long_set_name(self, store):
        assert len(LONG_SET) > 200

        assert store.upsert_entry(LONG_SET, LONG_ENTITY, {"n": 1})
        assert store.upsert_entry(LONG_SET, "short", {"n": 2})

        assert store.list_sets() == {LONG_SET}
        assert store.list_entries(LONG_SET) == {LONG_ENTITY: {"n": 1}, "short": {"n": 2}}

    def test_long_and_short_keys_stay_apart(self, store):
        shorter = LONG_ENTITY[:-1]
        store.upsert_entry("idp", LONG_ENTITY, {"which": "long"})
        store.upsert_entry("idp", shorter, {"which": "shorter"})

        assert store.get_entry("idp", LONG_ENTITY) == {"which": "long"}
        assert store.get_entry("idp", shorter) == {"which": "shorter"}
