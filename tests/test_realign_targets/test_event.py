import pytest

from realign_targets.constants import EVENT_KIND
from realign_targets.event import BoundaryState, Event
from realign_targets.span import GenomicSpan

from .mock import both, indel, point

WINDOW = 10


class TestEvent:
    def test_from_locus_indel(self):
        event = indel(100, 120)
        assert event.span == GenomicSpan('1', 100, 100)
        assert event.points == ()
        assert event.horizon == 120

    def test_from_locus_point(self):
        event = point(100)
        assert event.span is None
        assert event.points == (100,)

    def test_from_locus_both(self):
        event = both(100, 130)
        assert event.span == GenomicSpan('1', 100, 100)
        assert event.points == (100,)

    def test_bad_kind(self):
        with pytest.raises(KeyError):
            Event(GenomicSpan('1', 100), 100, 'other')

    def test_half_span_error(self):
        with pytest.raises(ValueError):
            Event(GenomicSpan('1', 100), 100, EVENT_KIND.INDEL, start=100)

    def test_inverted_span_error(self):
        with pytest.raises(ValueError):
            Event(GenomicSpan('1', 100), 100, EVENT_KIND.INDEL, start=101, end=100)

    def test_eq(self):
        assert indel(100, 120) == indel(100, 120)
        assert indel(100, 120) != indel(100, 121)
        assert indel(100, 120) != point(100, 120)


class TestMergeable:
    def test_horizon_boundary(self):
        assert indel(100, 120).mergeable(indel(120, 150))
        assert not indel(100, 120).mergeable(indel(121, 150))

    def test_other_contig(self):
        assert not indel(100, 120).mergeable(indel(110, 150, chrom='2', chr_index=1))

    def test_point_uses_anchor_locus(self):
        assert point(100, 130).mergeable(point(130))
        assert not point(100, 130).mergeable(point(131))


class TestMerge:
    def test_indels(self):
        merged = indel(100, 120).merge(indel(115, 140), WINDOW)
        assert merged.span == GenomicSpan('1', 100, 115)
        assert merged.horizon == 140
        assert merged.kind == EVENT_KIND.INDEL

    def test_inputs_unchanged(self):
        first = indel(100, 120)
        second = indel(115, 140)
        first.merge(second, WINDOW)
        assert first == indel(100, 120)
        assert second == indel(115, 140)

    def test_points_within_window(self):
        merged = point(100, 150).merge(point(100 + WINDOW - 1, 160), WINDOW)
        assert merged.span == GenomicSpan('1', 100, 109)
        assert merged.points == (100, 109)
        assert merged.horizon == 160
        assert merged.kind == EVENT_KIND.POINT

    def test_points_at_window_size_not_extended(self):
        merged = point(100, 150).merge(point(100 + WINDOW, 160), WINDOW)
        assert merged.span is None
        assert merged.points == (100, 110)
        assert merged.horizon == 160

    def test_point_cluster(self):
        event = point(100, 150)
        for pos in range(101, 106):
            event = event.merge(point(pos, 150), WINDOW)
        assert event.span == GenomicSpan('1', 100, 105)
        assert event.points == tuple(range(100, 106))

    def test_window_uses_latest_point(self):
        event = point(100, 200).merge(point(108, 200), WINDOW)
        event = event.merge(point(117, 200), WINDOW)
        assert event.span == GenomicSpan('1', 100, 117)

    def test_point_onto_indel_outside_window(self):
        merged = indel(100, 150).merge(point(140, 160), WINDOW)
        assert merged.span == GenomicSpan('1', 100, 100)
        assert merged.kind == EVENT_KIND.BOTH
        assert merged.horizon == 160

    def test_indel_onto_point(self):
        merged = point(100, 150).merge(indel(120, 170), WINDOW)
        assert merged.span == GenomicSpan('1', 120, 120)
        assert merged.kind == EVENT_KIND.BOTH
        assert merged.horizon == 170

    def test_point_onto_both(self):
        merged = both(100, 150).merge(point(105, 155), WINDOW)
        assert merged.span == GenomicSpan('1', 100, 105)
        assert merged.kind == EVENT_KIND.BOTH

    def test_clustered_points_onto_point(self):
        # the later event already holds a clustered span outside the window
        cluster = point(130, 150).merge(point(132, 160), WINDOW)
        merged = point(100, 150).merge(cluster, WINDOW)
        assert merged.span == GenomicSpan('1', 130, 132)
        assert merged.horizon == 160
        assert merged.points == (100, 130, 132)

    def test_merge_matches_sequential(self):
        # merging a cluster gives the same span as merging its points one at a time
        sequential = point(100, 150)
        for pos in [104, 108]:
            sequential = sequential.merge(point(pos, 150), WINDOW)
        grouped = point(100, 150).merge(point(104, 150).merge(point(108, 150), WINDOW), WINDOW)
        assert grouped.span == sequential.span
        assert grouped.points == sequential.points

    def test_grouping_keeps_horizon(self):
        first = indel(105, 113)
        second = point(113, 119)
        third = both(116, 127).merge(point(120, 135), WINDOW)
        lhs = first.merge(second, WINDOW).merge(third, WINDOW)
        rhs = first.merge(second.merge(third, WINDOW), WINDOW)
        assert lhs == rhs
        assert lhs.span == GenomicSpan('1', 105, 120)
        assert lhs.horizon == 135

    def test_grouped_indel_then_point(self):
        # the first point of the later event is compared against the last point of this one
        sequential = point(100, 150).merge(indel(104, 150), WINDOW).merge(point(106, 160), WINDOW)
        grouped = point(100, 150).merge(indel(104, 150).merge(point(106, 160), WINDOW), WINDOW)
        assert grouped == sequential
        assert grouped.span == GenomicSpan('1', 100, 106)

    def test_grouped_cluster_outside_window(self):
        sequential = indel(115, 123)
        for event in [point(122, 138), point(131, 148), both(138, 139)]:
            sequential = sequential.merge(event, WINDOW)
        grouped = indel(115, 123).merge(
            point(122, 138).merge(point(131, 148), WINDOW).merge(both(138, 139), WINDOW), WINDOW
        )
        assert grouped == sequential
        assert grouped.horizon == 139


class TestBoundaryState:
    def test_right_without_left(self):
        with pytest.raises(ValueError):
            BoundaryState(right=indel(100, 120))

    def test_empty(self):
        state = BoundaryState()
        assert state.is_empty
        assert state.open_events == ()

    def test_finalized_sorted_unique(self):
        state = BoundaryState(
            finalized=[GenomicSpan('1', 50, 60), GenomicSpan('1', 1, 5), GenomicSpan('1', 50, 60)]
        )
        assert state.finalized == (GenomicSpan('1', 1, 5), GenomicSpan('1', 50, 60))
        assert not state.is_empty

    def test_open_events(self):
        state = BoundaryState(indel(100, 120), indel(200, 220))
        assert state.open_events == (indel(100, 120), indel(200, 220))

    def test_eq(self):
        assert BoundaryState(indel(100, 120)) == BoundaryState(indel(100, 120))
        assert BoundaryState(indel(100, 120)) != BoundaryState(indel(100, 121))
