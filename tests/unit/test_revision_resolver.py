"""
Tests for revision resolution.

Covers:
- is_future definition
- current revision walk (gap, overlap, cycle, single revision)
- future revision walk over a successor index
- endpoint inclusivity and day granularity
- rejection of naive evaluation instants
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from src.components.rate_plans import (
    InvalidArgumentError,
    MalformedChainError,
    PlanChain,
    PlanRevision,
    ResolutionConfig,
    contains,
    effective_revision,
    future_plan_links,
    future_plan_start_date,
    is_future,
    is_future_at,
    resolve_current,
    resolve_future,
)


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=UTC)


def rev(
    revision_id: str,
    start: datetime,
    end: datetime | None = None,
    previous_id: str | None = None,
) -> PlanRevision:
    return PlanRevision(id=revision_id, start=start, end=end, previous_id=previous_id)


def lookup(*revisions: PlanRevision) -> dict[str, PlanRevision]:
    return {r.id: r for r in revisions}


class ExplodingLookup:
    """Lookup that fails the test if the resolver traverses."""

    def get(self, revision_id: str) -> PlanRevision | None:
        raise AssertionError(f"unexpected traversal to {revision_id}")


# --- is_future ---


class TestIsFuture:
    """is_future(R, T) == T < R.start."""

    @pytest.mark.parametrize(
        ("now", "expected"),
        [
            (utc(2024, 2, 29), True),
            (utc(2024, 3, 1), False),
            (utc(2024, 3, 2), False),
        ],
    )
    def test_matches_start_comparison(self, now: datetime, expected: bool) -> None:
        revision = rev("r1", utc(2024, 3, 1))
        assert is_future(revision, now) is expected
        assert is_future(revision, now) == (now < revision.start)

    def test_compares_across_timezones(self) -> None:
        """Same instant expressed in another zone is not in the future."""
        revision = rev("r1", utc(2024, 3, 1, 12))
        tokyo = utc(2024, 3, 1, 12).astimezone(ZoneInfo("Asia/Tokyo"))
        assert is_future(revision, tokyo) is False

    def test_naive_now_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            is_future(rev("r1", utc(2024, 3, 1)), datetime(2024, 1, 1))

    def test_day_granularity_compares_against_midnight(self) -> None:
        revision = rev("r1", utc(2024, 3, 1, 9))
        now = utc(2024, 3, 1, 12)
        assert is_future_at(revision, now) is False
        assert is_future_at(revision, now, ResolutionConfig(granularity="day")) is True


class TestRevisionValidation:
    """Revisions only hold timezone-aware boundaries."""

    @pytest.mark.parametrize(
        ("start", "end", "name"),
        [
            (datetime(2030, 1, 1), None, "start"),
            (utc(2030, 1, 1), datetime(2031, 1, 1), "end"),
        ],
    )
    def test_naive_boundary_rejected(
        self, start: datetime, end: datetime | None, name: str
    ) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            PlanRevision(id="r", start=start, end=end)
        assert exc_info.value.name == name


# --- contains ---


class TestContains:
    """Interval containment with configurable endpoints."""

    def test_open_ended_has_not_ended(self) -> None:
        assert contains(rev("r1", utc(2020, 1, 1)), utc(2099, 1, 1)) is True

    def test_before_start(self) -> None:
        assert contains(rev("r1", utc(2020, 1, 1)), utc(2019, 12, 31)) is False

    def test_endpoints_inclusive_by_default(self) -> None:
        revision = rev("r1", utc(2020, 1, 1), utc(2020, 6, 1))
        assert contains(revision, utc(2020, 1, 1)) is True
        assert contains(revision, utc(2020, 6, 1)) is True

    def test_exclusive_endpoints(self) -> None:
        revision = rev("r1", utc(2020, 1, 1), utc(2020, 6, 1))
        config = ResolutionConfig(start_inclusive=False, end_inclusive=False)
        assert contains(revision, utc(2020, 1, 1), config) is False
        assert contains(revision, utc(2020, 6, 1), config) is False
        assert contains(revision, utc(2020, 3, 1), config) is True


# --- resolve_current ---


class TestResolveCurrent:
    """Current revision resolution."""

    def test_single_future_revision_resolves_to_none(self) -> None:
        revision = rev("r1", utc(2030, 1, 1))
        assert resolve_current(revision, utc(2024, 1, 1), lookup(revision)) is None

    @pytest.mark.parametrize("now", [utc(2024, 3, 1), utc(2025, 1, 1)])
    def test_non_future_revision_needs_no_resolution(self, now: datetime) -> None:
        revision = rev("r1", utc(2024, 3, 1))
        assert resolve_current(revision, now, ExplodingLookup()) is None

    def test_returns_containing_predecessor(self) -> None:
        old = rev("r2", utc(2023, 1, 1), utc(2023, 12, 31))
        new = rev("r1", utc(2024, 1, 1), previous_id="r2")
        assert resolve_current(new, utc(2023, 6, 1), lookup(new, old)) == old

    def test_gap_resolves_to_none(self) -> None:
        newest = rev("r1", utc(2024, 3, 1), previous_id="r2")
        older = rev("r2", utc(2023, 1, 1), utc(2023, 6, 1))
        assert resolve_current(newest, utc(2023, 9, 1), lookup(newest, older)) is None

    def test_overlap_nearest_ancestor_wins(self) -> None:
        newest = rev("r1", utc(2025, 1, 1), previous_id="r2")
        nearer = rev("r2", utc(2024, 6, 1), utc(2024, 12, 31), previous_id="r3")
        farther = rev("r3", utc(2024, 1, 1), utc(2024, 12, 31))
        chain = lookup(newest, nearer, farther)
        assert resolve_current(newest, utc(2024, 7, 1), chain) == nearer

    def test_skips_ancestors_not_yet_started(self) -> None:
        """A future ancestor (malformed ordering) is walked past."""
        newest = rev("r1", utc(2030, 1, 1), previous_id="r2")
        scheduled = rev("r2", utc(2029, 1, 1), previous_id="r3")
        running = rev("r3", utc(2020, 1, 1))
        chain = lookup(newest, scheduled, running)
        assert resolve_current(newest, utc(2024, 1, 1), chain) == running

    def test_cycle_raises(self, cyclic_revisions: list[PlanRevision]) -> None:
        chain = PlanChain.from_revisions("loop", cyclic_revisions)
        with pytest.raises(MalformedChainError) as exc_info:
            resolve_current(chain.by_id("loop-a"), utc(2024, 1, 1), chain)
        assert exc_info.value.revision_id == "loop-a"

    def test_dangling_predecessor_raises(self) -> None:
        newest = rev("r1", utc(2030, 1, 1), previous_id="missing")
        with pytest.raises(MalformedChainError):
            resolve_current(newest, utc(2024, 1, 1), lookup(newest))

    def test_naive_now_rejected_before_traversal(self) -> None:
        newest = rev("r1", utc(2030, 1, 1), previous_id="r2")
        with pytest.raises(InvalidArgumentError):
            resolve_current(newest, datetime(2024, 1, 1), ExplodingLookup())

    def test_idempotent(self, standard_revisions: list[PlanRevision]) -> None:
        chain = PlanChain.from_revisions("standard", standard_revisions)
        head = chain.head
        assert head is not None
        first = resolve_current(head, utc(2025, 6, 1), chain)
        second = resolve_current(head, utc(2025, 6, 1), chain)
        assert first is second
        assert first is not None and first.id == "standard-2024"

    @pytest.mark.parametrize("length", [1, 2, 5, 25])
    @pytest.mark.parametrize("position", ["oldest", "newest"])
    def test_single_containing_revision_found_at_any_depth(
        self, length: int, position: str
    ) -> None:
        """Back-to-back yearly revisions under a future head."""
        base = utc(2000, 1, 1)
        revisions = []
        previous_id = None
        for i in range(length):
            start = base + timedelta(days=366 * i)
            end = start + timedelta(days=365)
            revisions.append(rev(f"r{i}", start, end, previous_id))
            previous_id = f"r{i}"
        head = rev("head", base + timedelta(days=366 * length + 30), previous_id=previous_id)
        chain = lookup(head, *revisions)

        target = revisions[0] if position == "oldest" else revisions[-1]
        now = target.start + timedelta(days=10)

        assert resolve_current(head, now, chain) == target

    def test_end_exclusive_boundary(self) -> None:
        newest = rev("r1", utc(2024, 6, 2), previous_id="r2")
        older = rev("r2", utc(2024, 1, 1), utc(2024, 6, 1))
        chain = lookup(newest, older)
        now = utc(2024, 6, 1)

        assert resolve_current(newest, now, chain) == older
        exclusive = ResolutionConfig(end_inclusive=False)
        assert resolve_current(newest, now, chain, exclusive) is None

    def test_day_granularity_uses_midnight_in_revision_zone(self) -> None:
        """A plan starting later today is still future at day granularity."""
        newest = rev("r1", utc(2024, 3, 1, 9), previous_id="r2")
        older = rev("r2", utc(2023, 1, 1), utc(2024, 3, 1, 8))
        chain = lookup(newest, older)
        now = utc(2024, 3, 1, 12)

        assert resolve_current(newest, now, chain) is None
        day = ResolutionConfig(granularity="day")
        assert resolve_current(newest, now, chain, day) == older


# --- resolve_future ---


class TestResolveFuture:
    """Future revision resolution over a backward-linked chain."""

    def test_returns_scheduled_successor(
        self, standard_revisions: list[PlanRevision]
    ) -> None:
        current = standard_revisions[1]
        future = resolve_future(current, utc(2025, 6, 1), standard_revisions)
        assert future is not None and future.id == "standard-2031"

    def test_future_revision_has_no_future(
        self, standard_revisions: list[PlanRevision]
    ) -> None:
        scheduled = standard_revisions[2]
        assert resolve_future(scheduled, utc(2025, 6, 1), standard_revisions) is None

    def test_past_revision_has_no_future(
        self, standard_revisions: list[PlanRevision]
    ) -> None:
        past = standard_revisions[0]
        assert resolve_future(past, utc(2025, 6, 1), standard_revisions) is None

    def test_no_successor(self) -> None:
        only = rev("r1", utc(2020, 1, 1))
        assert resolve_future(only, utc(2024, 1, 1), [only]) is None

    def test_skips_started_successors(self) -> None:
        """Overlapping successor already running; the next one is returned."""
        current = rev("r1", utc(2020, 1, 1))
        running = rev("r2", utc(2023, 1, 1), previous_id="r1")
        scheduled = rev("r3", utc(2030, 1, 1), previous_id="r2")
        chain = [scheduled, running, current]
        assert resolve_future(current, utc(2024, 1, 1), chain) == scheduled

    def test_accepts_plan_chain(self, standard_revisions: list[PlanRevision]) -> None:
        chain = PlanChain.from_revisions("standard", standard_revisions)
        current = chain.by_id("standard-2024")
        assert current is not None
        assert resolve_future(current, utc(2025, 6, 1), chain) == chain.head

    def test_forked_successors_raise(self) -> None:
        current = rev("r1", utc(2020, 1, 1))
        chain = [
            current,
            rev("r2", utc(2030, 1, 1), previous_id="r1"),
            rev("r2b", utc(2031, 1, 1), previous_id="r1"),
        ]
        with pytest.raises(MalformedChainError):
            resolve_future(current, utc(2024, 1, 1), chain)

    def test_successor_cycle_raises(self) -> None:
        a = rev("a", utc(2024, 1, 1), previous_id="b")
        b = rev("b", utc(2023, 1, 1), previous_id="a")
        with pytest.raises(MalformedChainError):
            resolve_future(a, utc(2024, 6, 1), [a, b])

    def test_naive_now_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            resolve_future(rev("r1", utc(2020, 1, 1)), datetime(2024, 1, 1), [])


# --- Chain-level helpers ---


class TestEffectiveRevision:
    """Effective revision of a whole chain."""

    @pytest.mark.parametrize(
        ("now", "expected"),
        [
            (utc(2023, 6, 1), "standard-2023"),
            (utc(2025, 6, 1), "standard-2024"),
            (utc(2031, 6, 1), "standard-2031"),
            (utc(2022, 6, 1), None),
        ],
    )
    def test_effective_revision(
        self,
        standard_revisions: list[PlanRevision],
        now: datetime,
        expected: str | None,
    ) -> None:
        chain = PlanChain.from_revisions("standard", standard_revisions)
        result = effective_revision(chain, now)
        assert (result.id if result else None) == expected

    def test_empty_chain(self) -> None:
        assert effective_revision(PlanChain("empty", ()), utc(2024, 1, 1)) is None


class TestFuturePlanLinks:
    """Current/future switcher links."""

    @pytest.fixture
    def chain(self, standard_revisions: list[PlanRevision]) -> PlanChain:
        return PlanChain.from_revisions("standard", standard_revisions)

    def test_future_revision_links_back_to_current(self, chain: PlanChain) -> None:
        links = future_plan_links(chain.by_id("standard-2031"), chain, utc(2025, 6, 1))
        assert [(link.revision_id, link.is_active) for link in links] == [
            ("standard-2024", False),
            ("standard-2031", True),
        ]
        assert links[0].css_class == "rate-plan-current-link"
        assert links[1].title == "Future rate plan"

    def test_current_revision_links_forward(self, chain: PlanChain) -> None:
        links = future_plan_links(chain.by_id("standard-2024"), chain, utc(2025, 6, 1))
        assert [(link.revision_id, link.is_active) for link in links] == [
            ("standard-2024", True),
            ("standard-2031", False),
        ]

    def test_past_revision_has_no_links(self, chain: PlanChain) -> None:
        assert future_plan_links(chain.by_id("standard-2023"), chain, utc(2025, 6, 1)) == ()

    def test_custom_titles(self, chain: PlanChain) -> None:
        links = future_plan_links(
            chain.by_id("standard-2024"),
            chain,
            utc(2025, 6, 1),
            current_title="Now",
            future_title="Next",
        )
        assert [link.title for link in links] == ["Now", "Next"]

    def test_future_plan_start_date(self, chain: PlanChain) -> None:
        current = chain.by_id("standard-2024")
        assert future_plan_start_date(current, chain, utc(2025, 6, 1)) == utc(2031, 1, 1)
        assert future_plan_start_date(current, chain, utc(2031, 6, 1)) is None
