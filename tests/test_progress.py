"""Avancement et statut d'un DAO."""
import random
from datetime import date, timedelta

import pytest

from app.models.dao import Task
from Core.progress import (
    EMPTY_PROGRESS,
    calculate_dao_progress,
    calculate_dao_status,
    days_until,
    summarize_daos,
    with_status,
)

TODAY = date(2025, 3, 1)


def _task(i, progress, applicable=True):
    return Task(id=i, name=f"Tâche {i}", progress=progress, is_applicable=applicable)


class TestCalculateDaoProgress:
    def test_mean_of_applicable_tasks(self):
        tasks = [_task(1, 100), _task(2, 50), _task(3, 0)]
        assert calculate_dao_progress(tasks) == 50

    def test_null_progress_counts_as_zero(self):
        assert calculate_dao_progress([_task(1, 100), _task(2, None)]) == 50

    def test_non_applicable_tasks_are_ignored(self):
        tasks = [_task(1, 80), _task(2, None, applicable=False)]
        assert calculate_dao_progress(tasks) == 80

    def test_no_applicable_task_gives_zero(self):
        assert calculate_dao_progress([]) == EMPTY_PROGRESS == 0
        assert calculate_dao_progress([_task(1, None, applicable=False)]) == 0

    def test_rounds_half_up(self):
        # (100 + 1) / 2 = 50.5
        assert calculate_dao_progress([_task(1, 100), _task(2, 1)]) == 51
        # (33 + 33 + 34) / 3 = 33.33
        assert calculate_dao_progress([_task(1, 33), _task(2, 33), _task(3, 34)]) == 33

    def test_invariant_under_reordering(self):
        tasks = [_task(i, p) for i, p in enumerate([10, 20, 35, 90, 0, 55], start=1)]
        expected = calculate_dao_progress(tasks)
        rng = random.Random(42)
        for _ in range(10):
            shuffled = tasks[:]
            rng.shuffle(shuffled)
            assert calculate_dao_progress(shuffled) == expected

    def test_invariant_under_non_applicable_field_changes(self):
        base = [_task(1, 30), _task(2, 70)]
        a = base + [Task(id=3, name="X", is_applicable=False, comment="a", assigned_to="m1")]
        b = base + [Task(id=3, name="Y", is_applicable=False, comment="b")]
        assert calculate_dao_progress(a) == calculate_dao_progress(b) == 50


class TestCalculateDaoStatus:
    @pytest.mark.parametrize("offset", [-30, -1, 0, 2, 4, 5, 100])
    def test_completed_regardless_of_date(self, offset):
        assert calculate_dao_status(TODAY + timedelta(days=offset), 100, TODAY) == "completed"

    @pytest.mark.parametrize("progress", [0, 50, 99])
    def test_past_deadline_is_urgent(self, progress):
        assert calculate_dao_status(TODAY - timedelta(days=1), progress, TODAY) == "urgent"

    def test_boundaries(self):
        assert calculate_dao_status(TODAY + timedelta(days=5), 10, TODAY) == "safe"
        assert calculate_dao_status(TODAY + timedelta(days=4), 10, TODAY) == "default"
        assert calculate_dao_status(TODAY + timedelta(days=3), 10, TODAY) == "urgent"

    def test_deadline_today_is_urgent(self):
        assert calculate_dao_status(TODAY, 0, TODAY) == "urgent"

    def test_days_until(self):
        assert days_until(date(2025, 3, 6), TODAY) == 5
        assert days_until(date(2025, 2, 28), TODAY) == -1


class TestWithStatus:
    def test_enriches_dao(self, dao):
        row = with_status(dao, TODAY)
        # tâches applicables : 100 et 40
        assert row.progress == 70
        assert row.status == "safe"
        assert row.numero_liste == dao.numero_liste

    def test_summary_counts(self, dao):
        done = dao.model_copy(deep=True, update={"id": "dao_2"})
        for t in done.tasks:
            t.progress = 100
        late = dao.model_copy(deep=True, update={"id": "dao_3", "date_depot": TODAY - timedelta(days=2)})

        rows, stats = summarize_daos([dao, done, late], TODAY)
        assert [r.status for r in rows] == ["safe", "completed", "urgent"]
        assert stats == {"total": 3, "completed": 1, "in_progress": 1, "at_risk": 1}
