"""End-to-end tests for a full scheduling pass."""

from datetime import timedelta
from io import StringIO

import pytest

from studyplan.exceptions import ScheduleConflictError, ValidationError
from studyplan.logger import reset_logger, setup_logger
from studyplan.models import BlockOrigin, Horizon, TaskStatus
from studyplan.scheduler import SchedulingService, availability, generate_schedule, validate
from studyplan.scheduler import service as service_module
from tests.conftest import dt, make_block, make_event, make_prefs, make_task, one_day


def spans(blocks):
    return [(f"{b.start:%H:%M}", f"{b.end:%H:%M}") for b in blocks]


def busy_week():
    """A realistic nursing week: lectures, a clinical and a spread of tasks."""
    events = [
        make_event("lec-mon", dt(1, 10), dt(1, 12)),
        make_event("clinical-tue", dt(2, 7), dt(2, 19)),
        make_event("lec-wed", dt(3, 10), dt(3, 12)),
        make_event("sim-thu", dt(4, 13), dt(4, 16)),
    ]
    tasks = [
        make_task("care-plan", dt(3, 23, 59), 4, complexity=4),
        make_task("reading", dt(2, 23, 59), 3),
        make_task("quiz-prep", dt(4, 9), 1.5, complexity=2),
        make_task("essay", dt(7, 23, 59), 6, buffer_percentage=20),
    ]
    return tasks, events


class TestScenario:
    """The reference scenario from the planner's documentation."""

    def test_lecture_day_two_hour_task(self, prefs):
        """09:00-21:00, 60 min sessions, 15 min break, lecture 10-12, 2 h task due tonight."""
        lecture = make_event("lecture", dt(1, 10), dt(1, 12))
        task = make_task("care-plan", dt(1, 23, 59), 2)

        result = generate_schedule([task], [lecture], prefs, one_day())

        assert spans(result.blocks) == [("09:00", "10:00"), ("12:15", "13:15")]
        assert [b.id for b in result.blocks] == ["care-plan-1", "care-plan-2"]
        assert not result.warnings


class TestProperties:
    """Invariants that hold for any input."""

    def test_idempotent(self, prefs, week):
        tasks, events = busy_week()

        first = generate_schedule(tasks, events, prefs, week)
        second = generate_schedule(tasks, events, prefs, week)

        assert first.blocks == second.blocks
        assert first.warnings == second.warnings

    def test_no_overlap(self, prefs, week):
        tasks, events = busy_week()

        result = generate_schedule(tasks, events, prefs, week)

        assert validate(result.blocks, events) == []

    def test_conservation_for_fully_scheduled_tasks(self, prefs, week):
        tasks, events = busy_week()

        result = generate_schedule(tasks, events, prefs, week)

        for task in tasks:
            if task.id in result.warnings.unscheduled_task_ids:
                continue
            total = sum(
                (b.duration for b in result.blocks if b.task_id == task.id), timedelta(0)
            )
            assert total == task.required_time, task.id

    def test_blocks_end_by_due_date(self, prefs, week):
        tasks, events = busy_week()
        due = {t.id: t.due_date for t in tasks}

        result = generate_schedule(tasks, events, prefs, week)

        assert all(b.end <= due[b.task_id] for b in result.blocks)

    def test_priority_under_scarcity(self, prefs):
        """Two tasks compete for one free hour; the earlier deadline wins."""
        horizon = Horizon(start=dt(1, 20), end=dt(1, 23, 59))
        sooner = make_task("sooner", dt(1, 22), 1)
        later = make_task("later", dt(1, 23), 1)

        result = generate_schedule([later, sooner], [], prefs, horizon)

        assert [b.task_id for b in result.blocks] == ["sooner"]
        assert result.warnings.unscheduled_task_ids == {"later"}

    def test_lower_priority_task_gets_only_leftover_time(self):
        """A takes the only four hours before its deadline; B is two hours short."""
        prefs = make_prefs(start="09:00", end="13:00", gap=0)
        horizon = Horizon(start=dt(1), end=dt(2, 23, 59))
        task_a = make_task("a", dt(1, 23, 59), 4)
        task_b = make_task("b", dt(2, 11), 4)

        result = generate_schedule([task_b, task_a], [], prefs, horizon)

        assert sum((b.duration for b in result.blocks if b.task_id == "a"), timedelta(0)) == (
            timedelta(hours=4)
        )
        assert [(b.start, b.end) for b in result.blocks if b.task_id == "b"] == [
            (dt(2, 9), dt(2, 10)),
            (dt(2, 10), dt(2, 11)),
        ]
        assert [(d.task_id, d.missing_hours) for d in result.warnings.details] == [("b", 2.0)]

    def test_removing_event_never_adds_warnings(self, prefs):
        events = [
            make_event("lec-1", dt(1, 9), dt(1, 15)),
            make_event("lec-2", dt(1, 15), dt(1, 20)),
        ]
        tasks = [make_task("a", dt(1, 23), 1), make_task("b", dt(1, 23), 2)]

        with_events = generate_schedule(tasks, events, prefs, one_day())
        without_one = generate_schedule(tasks, events[1:], prefs, one_day())

        assert (
            without_one.warnings.unscheduled_task_ids
            <= with_events.warnings.unscheduled_task_ids
        )
        assert with_events.warnings.total_missing_hours > without_one.warnings.total_missing_hours

    def test_completed_tasks_get_no_blocks(self, prefs, week):
        done = make_task("done", dt(3), 2, status=TaskStatus.COMPLETED)

        result = generate_schedule([done], [], prefs, week)

        assert result.blocks == []
        assert not result.warnings


class TestPinnedBlocks:
    """Manual blocks in a pass."""

    def test_pinned_blocks_kept_and_avoided(self, prefs):
        task = make_task("essay", dt(1, 23, 59), 2)
        pinned = make_block("essay-1", "essay", dt(1, 9), dt(1, 10))

        result = generate_schedule([task], [], prefs, one_day(), pinned=[pinned])

        assert [(b.id, b.origin) for b in result.blocks] == [
            ("essay-1", BlockOrigin.MANUAL),
            ("essay-2", BlockOrigin.AUTO),
        ]
        assert spans(result.blocks) == [("09:00", "10:00"), ("10:15", "11:15")]

    def test_break_before_pinned_block(self, prefs):
        """An auto block never runs straight into a manual one."""
        tasks = [
            make_task("essay", dt(1, 23, 59), 1),
            make_task("reading", dt(1, 23, 59), 1),
        ]
        pinned = make_block("reading-1", "reading", dt(1, 10), dt(1, 11))

        result = generate_schedule(tasks, [], prefs, one_day(), pinned=[pinned])

        assert [b.id for b in result.blocks] == ["reading-1", "essay-1"]
        assert spans(result.blocks) == [("10:00", "11:00"), ("11:15", "12:15")]
        for earlier, later in zip(result.blocks, result.blocks[1:]):
            assert later.start - earlier.end >= timedelta(minutes=15)

    def test_short_session_fits_before_pinned_block(self, prefs):
        task = make_task("quiz", dt(1, 23, 59), 0.75)
        pinned = make_block("essay-1", "essay", dt(1, 10), dt(1, 11))

        result = generate_schedule(
            [task, make_task("essay", dt(1, 23, 59), 1)], [], prefs, one_day(), pinned=[pinned]
        )

        assert spans(result.blocks) == [("09:00", "09:45"), ("10:00", "11:00")]

    def test_overlapping_pinned_blocks_only_warn(self, prefs):
        """Conflicts among blocks the student placed are not the allocator's fault."""
        task = make_task("essay", dt(1, 23, 59), 1)
        pinned = [
            make_block("essay-1", "essay", dt(1, 9), dt(1, 10)),
            make_block("essay-2", "essay", dt(1, 9, 30), dt(1, 10, 30)),
        ]

        result = generate_schedule([task], [], prefs, one_day(), pinned=pinned)

        assert [b.id for b in result.blocks] == ["essay-1", "essay-2"]

    def test_new_block_conflict_is_fatal(self, prefs, monkeypatch):
        """If allocation ever produced an overlap, the pass refuses to return it."""
        task = make_task("essay", dt(1, 23, 59), 1)
        lecture = make_event("lecture", dt(1, 9), dt(1, 10))
        real_resolve = availability.resolve_availability

        def resolve_ignoring_events(events, preferences, horizon, *, pinned=()):
            return real_resolve([], preferences, horizon, pinned=pinned)

        monkeypatch.setattr(service_module, "resolve_availability", resolve_ignoring_events)

        with pytest.raises(ScheduleConflictError) as exc_info:
            SchedulingService([task], [lecture], prefs, one_day()).schedule()
        assert exc_info.value.conflicts == [("essay-1", "lecture")]


class TestErrors:
    """Fatal input errors."""

    def test_invalid_task_raises_before_allocation(self, prefs, week):
        with pytest.raises(ValidationError):
            generate_schedule([make_task("bad", dt(3), 0)], [], prefs, week)

    def test_infeasible_is_not_an_error(self, prefs):
        task = make_task("huge", dt(1, 23, 59), 40)

        result = generate_schedule([task], [], prefs, one_day())

        assert result.warnings.unscheduled_task_ids == {"huge"}
        assert result.blocks


class TestMetadata:
    """Pass metadata and logging."""

    def test_metadata_counts(self, prefs):
        task = make_task("essay", dt(1, 23, 59), 2)

        result = generate_schedule([task], [], prefs, one_day())

        assert result.metadata["tasks_considered"] == 1
        assert result.metadata["blocks_placed"] == 2
        assert result.metadata["free_intervals"] == 1

    def test_verbosity_0_silent(self, prefs):
        output_stream = StringIO()
        setup_logger(0, stream=output_stream)

        try:
            generate_schedule([make_task("essay", dt(1, 23, 59), 2)], [], prefs, one_day())
            output = output_stream.getvalue()
        finally:
            reset_logger()

        assert output == ""

    def test_verbosity_1_shows_placements(self, prefs):
        output_stream = StringIO()
        setup_logger(1, stream=output_stream)

        try:
            generate_schedule([make_task("essay", dt(1, 23, 59), 2)], [], prefs, one_day())
            output = output_stream.getvalue()
        finally:
            reset_logger()

        assert "Placed essay-1" in output
        assert "Resolved" not in output

    def test_verbosity_2_shows_checks(self, prefs):
        output_stream = StringIO()
        setup_logger(2, stream=output_stream)

        try:
            generate_schedule([make_task("essay", dt(1, 23, 59), 2)], [], prefs, one_day())
            output = output_stream.getvalue()
        finally:
            reset_logger()

        assert "Placed essay-1" in output
        assert "Resolved 1 free interval(s)" in output
