"""Règles de gestion des tâches (fonctions pures)."""
from datetime import datetime, timedelta, timezone

import pytest

from app.models.dao import DaoUpdateInput, TaskCreateInput, TaskUpdateInput, TeamMember
from Core import tasks as rules
from Core.dossiers import apply_dao_update
from Core.errors import Forbidden, InvalidReference, NotFound, ValidationError

LATER = datetime(2025, 3, 2, 9, 30, tzinfo=timezone.utc)


class TestAddTask:
    def test_assigns_next_id_and_stamps(self, dao, admin):
        updated = rules.add_task(dao, TaskCreateInput(name="Planning"), admin, now=LATER)
        new = updated.tasks[-1]
        assert new.id == 4
        assert new.name == "Planning"
        assert new.progress is None
        assert new.last_updated_by == admin.id
        assert new.last_updated_at == LATER
        assert updated.updated_at == LATER

    def test_input_dao_untouched(self, dao, admin):
        before = dao.model_dump()
        rules.add_task(dao, TaskCreateInput(name="Planning"), admin, now=LATER)
        assert dao.model_dump() == before

    def test_deleted_id_not_reused(self, dao, admin):
        after_delete = rules.delete_task(dao, 3, admin, now=LATER)
        assert [t.id for t in after_delete.tasks] == [1, 2]
        readded = rules.add_task(after_delete, TaskCreateInput(name="Nouvelle"), admin, now=LATER)
        assert readded.tasks[-1].id == 4

    def test_remaining_ids_not_renumbered(self, dao, admin):
        after_middle = rules.delete_task(dao, 2, admin, now=LATER)
        assert [t.id for t in after_middle.tasks] == [1, 3]
        readded = rules.add_task(after_middle, TaskCreateInput(name="Nouvelle"), admin, now=LATER)
        assert [t.id for t in readded.tasks] == [1, 3, 4]

    def test_legacy_dao_without_high_water_mark(self, dao, admin):
        legacy = dao.model_copy(update={"last_task_id": 0})
        assert rules.add_task(legacy, TaskCreateInput(name="X"), admin).tasks[-1].id == 4

    def test_starts_at_one(self, dao, admin):
        empty = dao.model_copy(update={"tasks": []})
        updated = rules.add_task(empty, TaskCreateInput(name="Première"), admin)
        assert updated.tasks[0].id == 1

    def test_progress_forced_null_when_not_applicable(self, dao, admin):
        draft = TaskCreateInput(name="Optionnelle", is_applicable=False, progress=60)
        assert rules.add_task(dao, draft, admin).tasks[-1].progress is None

    def test_progress_out_of_range_rejected(self, dao, admin):
        with pytest.raises(ValidationError):
            rules.add_task(dao, TaskCreateInput(name="X", progress=120), admin)

    def test_blank_name_rejected(self, dao, admin):
        draft = TaskCreateInput.model_construct(name="<b> </b>", is_applicable=True, progress=None)
        with pytest.raises(ValidationError):
            rules.add_task(dao, draft, admin)

    def test_unknown_assignee_rejected(self, dao, admin):
        with pytest.raises(InvalidReference):
            rules.add_task(dao, TaskCreateInput(name="X", assigned_to="ghost"), admin)

    def test_user_forbidden(self, dao, user):
        with pytest.raises(Forbidden):
            rules.add_task(dao, TaskCreateInput(name="X"), user)


class TestUpdateTask:
    def test_partial_update(self, dao, user):
        updated = rules.update_task(dao, 2, TaskUpdateInput(progress=75), user, now=LATER)
        task = updated.find_task(2)
        assert task.progress == 75
        assert task.assigned_to == "m2"
        assert task.last_updated_by == user.id
        assert updated.updated_at == LATER

    def test_progress_clamped(self, dao, user):
        assert rules.update_task(dao, 2, TaskUpdateInput(progress=150), user).find_task(2).progress == 100
        assert rules.update_task(dao, 2, TaskUpdateInput(progress=-5), user).find_task(2).progress == 0

    def test_not_applicable_forces_null(self, dao, user):
        patch = TaskUpdateInput(is_applicable=False, progress=80)
        task = rules.update_task(dao, 2, patch, user).find_task(2)
        assert task.is_applicable is False
        assert task.progress is None

    def test_progress_ignored_while_not_applicable(self, dao, user):
        task = rules.update_task(dao, 3, TaskUpdateInput(progress=50), user).find_task(3)
        assert task.progress is None

    def test_comment_replaced(self, dao, user):
        task = rules.update_task(dao, 1, TaskUpdateInput(comment="Validé <i>par</i> le chef"), user).find_task(1)
        assert task.comment == "Validé par le chef"

    def test_noop_patch_still_stamps(self, dao, user):
        updated = rules.update_task(dao, 1, TaskUpdateInput(), user, now=LATER)
        assert updated.find_task(1).last_updated_at == LATER
        assert updated.updated_at == LATER
        assert updated.find_task(1).progress == 100

    def test_missing_task_not_found_and_dao_unchanged(self, dao, user):
        before = dao.updated_at
        with pytest.raises(NotFound):
            rules.update_task(dao, 99, TaskUpdateInput(progress=10), user, now=LATER)
        assert dao.updated_at == before

    def test_assign_to_non_member(self, dao, user):
        with pytest.raises(InvalidReference):
            rules.update_task(dao, 1, TaskUpdateInput(assigned_to="ghost"), user)

    def test_clear_assignment_with_null(self, dao, user):
        task = rules.update_task(dao, 2, TaskUpdateInput(assigned_to=None), user).find_task(2)
        assert task.assigned_to is None


class TestAssignment:
    def test_assign(self, dao, user):
        assert rules.assign_task(dao, 1, "m1", user).find_task(1).assigned_to == "m1"

    def test_assign_unknown_member(self, dao, user):
        with pytest.raises(InvalidReference):
            rules.assign_task(dao, 1, "m9", user)

    def test_unassign(self, dao, user):
        updated = rules.unassign_task(dao, 2, user, now=LATER)
        assert updated.find_task(2).assigned_to is None
        assert updated.find_task(2).last_updated_at == LATER


class TestStructuralOperations:
    def test_user_cannot_delete(self, dao, user):
        with pytest.raises(Forbidden):
            rules.delete_task(dao, 1, user)

    def test_user_cannot_rename(self, dao, user):
        with pytest.raises(Forbidden):
            rules.rename_task(dao, 1, "Autre", user)

    def test_rename(self, dao, admin):
        assert rules.rename_task(dao, 1, " Résumé final ", admin).find_task(1).name == "Résumé final"

    def test_delete_missing(self, dao, admin):
        with pytest.raises(NotFound):
            rules.delete_task(dao, 42, admin)


class TestDaoUpdate:
    def test_removed_member_tasks_unassigned(self, dao, user):
        patch = DaoUpdateInput(equipe=[TeamMember(id="m1", name="Alice Chef", role="chef_equipe")])
        updated = apply_dao_update(dao, patch, user, now=LATER)
        task = updated.find_task(2)
        assert task.assigned_to is None
        assert task.last_updated_at == LATER

    def test_only_given_fields_change(self, dao, user):
        updated = apply_dao_update(dao, DaoUpdateInput(reference="AO-NEW"), user, now=LATER)
        assert updated.reference == "AO-NEW"
        assert updated.objet_dossier == dao.objet_dossier
        assert updated.updated_at == LATER
        assert updated.created_at == dao.created_at

    def test_team_without_chef_rejected(self):
        with pytest.raises(ValueError):
            DaoUpdateInput(equipe=[TeamMember(id="m2", name="Bob", role="membre_equipe")])

    def test_date_from_iso_timestamp(self, dao, user):
        updated = apply_dao_update(dao, DaoUpdateInput(date_depot="2025-04-01T00:00:00.000Z"), user)
        assert updated.date_depot == (dao.date_depot + timedelta(days=12))
