"""
Tests for seeding and regenerating care tasks, independent of any store.
"""
from datetime import datetime, timedelta, timezone

import pytest

from plantia.exceptions import AlreadyCompleted
from plantia.schemas import Task, TaskType
from plantia.services.recurrence import RecurrenceEngine

START = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def engine():
    return RecurrenceEngine()


def _task(notes, **overrides):
    data = dict(
        id="task-1",
        plant_id="plant-1",
        type=TaskType.WATER,
        title="Water Plant",
        notes=notes,
        next_run_at=START,
    )
    data.update(overrides)
    return Task(**data)


class TestSeedTasks:

    def test_water_and_fertilize_seeded(self, engine, make_identification):
        profile = make_identification(watering="every 7 days", fertilizer="monthly").care_profile
        tasks = engine.seed_tasks("plant-1", profile, START)

        by_type = {t.type: t for t in tasks}
        assert set(by_type) == {TaskType.WATER, TaskType.FERTILIZE}
        assert by_type[TaskType.WATER].next_run_at == START + timedelta(days=7)
        assert by_type[TaskType.FERTILIZE].next_run_at == START + timedelta(days=28)
        assert by_type[TaskType.WATER].title == "Water Plant"
        assert by_type[TaskType.FERTILIZE].title == "Fertilize"

    def test_notes_record_source_instruction(self, engine, make_identification):
        profile = make_identification(watering="Every 5 days", fertilizer="occasionally").care_profile
        tasks = engine.seed_tasks("plant-1", profile, START)

        assert len(tasks) == 1
        assert tasks[0].notes == "Every 5 days"
        assert tasks[0].plant_id == "plant-1"
        assert tasks[0].pending

    def test_no_schedule_no_tasks(self, engine, make_identification):
        profile = make_identification(watering="occasionally", fertilizer="occasionally").care_profile
        assert engine.seed_tasks("plant-1", profile, START) == []

    def test_seeded_ids_are_distinct(self, engine, make_identification):
        profile = make_identification(watering="weekly", fertilizer="weekly").care_profile
        tasks = engine.seed_tasks("plant-1", profile, START)
        assert len({t.id for t in tasks}) == 2


class TestCompleteTask:

    def test_recurring_task_gets_successor(self, engine):
        done_at = START + timedelta(days=9)
        result = engine.complete_task(_task("every 7 days"), done_at)

        assert result.task.completed_at == done_at
        assert result.task.id == "task-1"
        successor = result.successor
        assert successor is not None
        assert successor.id != "task-1"
        assert successor.pending
        assert (successor.plant_id, successor.type, successor.title, successor.notes) == (
            "plant-1", TaskType.WATER, "Water Plant", "every 7 days"
        )

    def test_successor_counts_from_completion_not_due_date(self, engine):
        """A late completion shifts the schedule instead of catching up."""
        done_at = START + timedelta(days=3)
        result = engine.complete_task(_task("every 7 days"), done_at)
        assert result.successor.next_run_at == done_at + timedelta(days=7)

    def test_non_recurring_task_has_no_successor(self, engine):
        result = engine.complete_task(_task("Repot when roots show", type=TaskType.REPOT), START)
        assert result.task.completed_at == START
        assert result.successor is None

    def test_task_without_notes_has_no_successor(self, engine):
        result = engine.complete_task(_task(None), START)
        assert result.successor is None

    def test_original_task_untouched(self, engine):
        task = _task("weekly")
        engine.complete_task(task, START)
        assert task.pending

    def test_completed_task_raises(self, engine):
        task = _task("weekly", completed_at=START)
        with pytest.raises(AlreadyCompleted):
            engine.complete_task(task, START + timedelta(hours=1))
