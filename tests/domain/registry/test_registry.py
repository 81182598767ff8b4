from __future__ import annotations

import pytest

from namebridge.domain.model import (
    DemoteTarget,
    DuplicateAliasError,
    DuplicateKeyError,
    KeyCollisionError,
    NameComponents,
    NotFoundError,
    SourceId,
)
from namebridge.domain.registry import Registry, VariantCache, find_variant_conflicts
from tests.helpers.identities import (
    FIXED_NOW,
    fixed_clock,
    make_identity,
    make_registry,
    make_term,
)


def test_add_indexes_every_variant() -> None:
    registry = make_registry([make_identity("JOHN SMITH", homonyms=["JOHN SMYTH"])])

    assert registry.lookup_by_variant("john smyth") == "JOHN SMITH"
    assert registry.lookup_by_key("john  smith").key == "JOHN SMITH"
    entry = registry.entry("JOHN SMITH")
    assert entry.created_at == entry.last_modified_at == FIXED_NOW
    assert entry.remote_location is None


def test_add_duplicate_key_is_a_hard_stop() -> None:
    registry = make_registry([make_identity("JOHN SMITH", homonyms=["J SMITH"])])

    with pytest.raises(DuplicateKeyError):
        registry.add(make_identity("john smith", candidates=["JOHNNY SMITH"]))

    assert len(registry) == 1
    assert registry.owner_of("JOHNNY SMITH") is None


def test_add_rejects_variant_owned_by_another_identity() -> None:
    registry = make_registry([make_identity("JOHN SMITH", homonyms=["J SMITH"])])

    with pytest.raises(DuplicateAliasError) as excinfo:
        registry.add(make_identity("JACK SMITH", candidates=["J SMITH"]))

    assert excinfo.value.owner_key == "JOHN SMITH"
    assert "JACK SMITH" not in registry


def test_lookups_raise_not_found() -> None:
    registry = Registry(clock=fixed_clock)

    with pytest.raises(NotFoundError):
        registry.lookup_by_key("NOBODY")
    with pytest.raises(NotFoundError):
        registry.lookup_by_variant("NOBODY")


def test_change_primary_rekeys_and_demotes() -> None:
    registry = make_registry([make_identity("JOHN SMITH", candidates=["JOHN Q SMITH"])])

    entry = registry.change_primary("JOHN SMITH", "john q smith", DemoteTarget.HOMONYMS)

    assert entry.key == "JOHN Q SMITH"
    assert "JOHN SMITH" not in registry
    assert registry.lookup_by_variant("JOHN SMITH") == "JOHN Q SMITH"
    assert [term.value for term in entry.identity.aliases.homonyms] == ["JOHN SMITH"]
    assert entry.identity.primary.source_id is SourceId.VISION_APPRAISAL


def test_change_primary_to_new_value_uses_manual_term() -> None:
    registry = make_registry([make_identity("JOHN SMITH")])

    entry = registry.change_primary("JOHN SMITH", "JOHNNY SMITH", DemoteTarget.SYNONYMS)

    assert entry.identity.primary.source_id is SourceId.MANUAL_EDIT
    assert [term.value for term in entry.identity.aliases.synonyms] == ["JOHN SMITH"]


@pytest.mark.parametrize("new_value", ["MARY JONES", "M JONES"])
def test_change_primary_refuses_keys_owned_elsewhere(new_value: str) -> None:
    registry = make_registry(
        [make_identity("JOHN SMITH"), make_identity("MARY JONES", homonyms=["M JONES"])]
    )

    with pytest.raises(KeyCollisionError):
        registry.change_primary("JOHN SMITH", new_value, DemoteTarget.HOMONYMS)

    assert registry.lookup_by_key("JOHN SMITH").aliases.count == 1


def test_add_alias_and_remove_alias_refresh_variant_cache() -> None:
    registry = make_registry([make_identity("JOHN SMITH"), make_identity("MARY JONES")])

    registry.add_alias("JOHN SMITH", make_term("J SMITH"))
    assert registry.owner_of("J SMITH") == "JOHN SMITH"

    with pytest.raises(DuplicateAliasError):
        registry.add_alias("MARY JONES", make_term("J SMITH"))

    registry.remove_alias("JOHN SMITH", "J SMITH")
    assert registry.owner_of("J SMITH") is None


def test_merge_sighting_returns_owner() -> None:
    registry = make_registry([make_identity("JOHN SMITH", homonyms=["J SMITH"])])

    owner = registry.merge_sighting(make_term("J SMITH", SourceId.PHONEBOOK, index=3))

    assert owner == "JOHN SMITH"
    term = registry.lookup_by_key("JOHN SMITH").aliases.homonyms[0]
    assert term.source_map[SourceId.PHONEBOOK].index == 3
    assert registry.merge_sighting(make_term("NOBODY")) is None


def test_discard_removes_identity_and_variants() -> None:
    registry = make_registry([make_identity("JOHN SMITH", homonyms=["J SMITH"])])

    registry.discard("JOHN SMITH", reason="test")

    assert len(registry) == 0
    assert registry.owner_of("J SMITH") is None


def test_variant_cache_primary_wins_over_alternates() -> None:
    first = make_identity("JOHN SMITH", homonyms=["J SMITH"])
    second = make_identity("J SMITH")

    cache = VariantCache.build([first, second])

    assert cache.get("J SMITH") == "J SMITH"
    assert find_variant_conflicts([first, second]) == {"J SMITH": ("JOHN SMITH", "J SMITH")}


def test_variant_cache_first_alternate_mapping_wins() -> None:
    first = make_identity("JOHN SMITH", candidates=["J SMITH"])
    second = make_identity("JACK SMITH", candidates=["J SMITH"])

    assert VariantCache.build([first, second]).get("j smith") == "JOHN SMITH"


def test_stats_and_queries() -> None:
    registry = make_registry(
        [
            make_identity("JOHN SMITH", homonyms=["JOHN SMYTH"], candidates=["J SMITH"]),
            make_identity("MARY SMITH", synonyms=["MARIE SMITH"]),
        ]
    )
    registry.lookup_by_key("JOHN SMITH").components = NameComponents(first="JOHN", last="SMITH")

    stats = registry.stats()

    assert (stats.identities, stats.homonyms, stats.synonyms, stats.candidates) == (2, 1, 1, 1)
    assert stats.variants == 5
    assert [identity.key for identity in registry.find_by_last_name("smith")] == ["JOHN SMITH"]
    assert [identity.key for identity in registry.find_by_pattern("^mar")] == ["MARY SMITH"]
    assert registry.keys() == ["JOHN SMITH", "MARY SMITH"]


def test_appends_update_the_variant_cache_like_a_rebuild() -> None:
    registry = make_registry([make_identity("JOHN SMITH", homonyms=["J SMITH"])])
    registry.add(make_identity("MARY JONES", candidates=["M JONES"]))
    registry.add_alias("MARY JONES", make_term("MOLLY JONES"))

    rebuilt = VariantCache.build(registry.identities())

    assert sorted(registry.variant_cache.items()) == sorted(rebuilt.items())
    assert registry.owner_of("molly jones") == "MARY JONES"


def test_variant_cache_add_keeps_primary_precedence() -> None:
    cache = VariantCache.build([make_identity("JOHN SMITH", homonyms=["J SMITH"])])

    cache.add(make_identity("J SMITH", candidates=["JOHN SMITH"]))
    cache.add_variant("j smith", "SOMEONE ELSE")

    assert cache.get("J SMITH") == "J SMITH"
    assert cache.get("JOHN SMITH") == "JOHN SMITH"
