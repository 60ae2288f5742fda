"""Tests for payload hashing, change classification, slugs and the guardrail."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from typing import TYPE_CHECKING

import pytest
from conftest import SYNC_TIME

from stall_sync.resolution.assembler import assemble_stall
from stall_sync.resolution.canonical import CanonicalStall
from stall_sync.resolution.grouping import group_records
from stall_sync.sync.diff import (
    ActiveIndexEntry,
    classify_changes,
    closure_ratio,
    evaluate_guardrail,
    payload_hash,
    resolve_slugs,
)
from stall_sync.utils.identity import make_stable_hash

if TYPE_CHECKING:
    from conftest import MakeRecord


@pytest.fixture
def make_stall(make_record: MakeRecord):
    def _make(name: str = "Tiong Bahru Porridge", **fields) -> CanonicalStall:
        records = [make_record(name=name, **fields)]
        return assemble_stall(group_records(records)[0], synced_at=SYNC_TIME)

    return _make


def _index(*stalls: CanonicalStall) -> dict[str, ActiveIndexEntry]:
    return {
        s.source_key: ActiveIndexEntry(source_key=s.source_key, payload_hash=payload_hash(s), slug=s.slug)
        for s in stalls
    }


class TestPayloadHash:
    def test_stable_for_identical_input(self, make_stall) -> None:
        assert payload_hash(make_stall()) == payload_hash(make_stall())

    def test_ignores_bookkeeping_fields(self, make_stall) -> None:
        stall = make_stall()
        noisy = replace(
            stall,
            rank_score=stall.rank_score + 7,
            source_rows_hash="different",
            source_media_hash="different",
            slug="another-slug",
            last_synced_at=SYNC_TIME + timedelta(days=1),
        )
        assert payload_hash(noisy) == payload_hash(stall)

    def test_visible_field_change_changes_hash(self, make_stall) -> None:
        assert payload_hash(make_stall(price=4.5)) != payload_hash(make_stall(price=5.0))

    def test_new_location_changes_hash(self, make_stall, make_record: MakeRecord) -> None:
        one = make_stall()
        records = [
            make_record(name="Tiong Bahru Porridge"),
            make_record(name="Tiong Bahru Porridge", address="Another Branch"),
        ]
        two = assemble_stall(group_records(records)[0], synced_at=SYNC_TIME)
        assert payload_hash(one) != payload_hash(two)

    def test_location_details_change_hash(self, make_record: MakeRecord) -> None:
        def _stall(**branch_fields) -> CanonicalStall:
            records = [
                make_record(name="Tiong Bahru Porridge"),
                make_record(name="Tiong Bahru Porridge", address="Another Branch", **branch_fields),
            ]
            return assemble_stall(group_records(records)[0], synced_at=SYNC_TIME)

        plain = _stall()
        assert payload_hash(_stall(lat=1.3, lng=103.8)) != payload_hash(plain)
        assert payload_hash(_stall(media_ref="CCCCCCCCCCC")) != payload_hash(plain)


class TestClassifyChanges:
    def test_buckets(self, make_stall) -> None:
        same = make_stall("Same Stall")
        changed_before = make_stall("Changed Stall", price=3.0)
        changed_after = make_stall("Changed Stall", price=3.5)
        gone = make_stall("Gone Stall")
        fresh = make_stall("Fresh Stall")

        changes = classify_changes(
            _index(same, changed_before, gone), [same, changed_after, fresh]
        )

        assert changes.unchanged == [same.source_key]
        assert changes.updated == [changed_after.source_key]
        assert changes.new == [fresh.source_key]
        assert changes.closed == [gone.source_key]
        assert changes.to_write == {changed_after.source_key, fresh.source_key}
        assert changes.hashes[fresh.source_key] == payload_hash(fresh)

    def test_empty_index_makes_everything_new(self, make_stall) -> None:
        stalls = [make_stall("One"), make_stall("Two")]
        changes = classify_changes({}, stalls)
        assert len(changes.new) == 2
        assert changes.closed == []


class TestResolveSlugs:
    def test_persisted_key_keeps_stored_slug(self, make_stall) -> None:
        stall = make_stall("Renamed Porridge")
        resolved, warnings = resolve_slugs([stall], {stall.source_key: "tiong-bahru-porridge"})
        assert resolved[0].slug == "tiong-bahru-porridge"
        assert warnings == []

    def test_collision_with_store_gets_hash_suffix(self, make_stall) -> None:
        stall = make_stall("Tiong Bahru Porridge", cuisine="congee")
        resolved, warnings = resolve_slugs([stall], {"other|SG|porridge": "tiong-bahru-porridge"})

        suffix = make_stable_hash(f"{stall.source_key}|1")[:6]
        assert resolved[0].slug == f"tiong-bahru-porridge-{suffix}"
        assert len(warnings) == 1

    def test_batch_collision_resolved_in_key_order(self, make_stall) -> None:
        b = make_stall("Tiong Bahru Porridge", cuisine="zhou")
        a = make_stall("Tiong Bahru Porridge!", cuisine="congee")
        assert a.slug == b.slug

        forward, _ = resolve_slugs([b, a], {})
        backward, _ = resolve_slugs([a, b], {})

        assert {s.source_key: s.slug for s in forward} == {s.source_key: s.slug for s in backward}
        # "congee" sorts first and keeps the bare slug
        assert a.source_key < b.source_key
        assert forward[1].slug == "tiong-bahru-porridge"
        assert forward[0].slug != "tiong-bahru-porridge"

    def test_input_order_preserved(self, make_stall) -> None:
        stalls = [make_stall("Zeta"), make_stall("Alpha")]
        resolved, _ = resolve_slugs(stalls, {})
        assert [s.name for s in resolved] == ["Zeta", "Alpha"]


class TestGuardrail:
    def test_closure_ratio(self) -> None:
        assert closure_ratio(6, 10) == pytest.approx(0.6)
        assert closure_ratio(3, 0) == 0.0

    def test_trips_above_max(self) -> None:
        decision = evaluate_guardrail(
            closed_count=6, previous_active_count=10, max_ratio=0.5, force_apply=False
        )
        assert decision.tripped
        assert "0.60" in decision.message

    def test_ratio_equal_to_max_passes(self) -> None:
        decision = evaluate_guardrail(
            closed_count=5, previous_active_count=10, max_ratio=0.5, force_apply=False
        )
        assert not decision.tripped

    def test_force_bypasses(self) -> None:
        decision = evaluate_guardrail(
            closed_count=10, previous_active_count=10, max_ratio=0.5, force_apply=True
        )
        assert not decision.tripped
        assert decision.ratio == 1.0

    def test_empty_store_never_trips(self) -> None:
        decision = evaluate_guardrail(
            closed_count=0, previous_active_count=0, max_ratio=0.5, force_apply=False
        )
        assert not decision.tripped
