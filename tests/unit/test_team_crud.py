import pytest
from sqlalchemy.orm import Session


@pytest.fixture
def team_of_three(db_session: Session, make_user):
    """Команда [alice, bob, carol], администратор alice"""
    from crud.team import create_team, add_member
    from schemas.team import TeamCreate

    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    team = create_team(db_session, TeamCreate(team_name="Core", user_id=alice.user_id))
    add_member(db_session, team.team_id, bob.user_id)
    add_member(db_session, team.team_id, carol.user_id)
    return team, alice, bob, carol


class TestCreateTeam:

    def test_creator_is_admin_and_only_member(self, db_session: Session, make_user):
        from crud.team import create_team
        from crud.user import get_user
        from schemas.team import TeamCreate

        alice = make_user("alice")
        team = create_team(db_session, TeamCreate(team_name="Core", user_id=alice.user_id, description="d"))

        assert team.administrator == alice.user_id
        assert team.members == [alice.user_id]
        assert get_user(db_session, alice.user_id).team_id == team.team_id

    def test_missing_fields(self, db_session: Session):
        from crud.team import create_team
        from exceptions import InvalidInputError
        from schemas.team import TeamCreate

        with pytest.raises(InvalidInputError, match="Missing teamName or userId"):
            create_team(db_session, TeamCreate(team_name="Core"))

    def test_unknown_creator(self, db_session: Session):
        from crud.team import create_team
        from exceptions import NotFoundError
        from schemas.team import TeamCreate

        with pytest.raises(NotFoundError):
            create_team(db_session, TeamCreate(team_name="Core", user_id="ghost"))


class TestMembership:

    def test_add_member_is_idempotent(self, db_session: Session, team_of_three):
        from crud.team import add_member

        team, alice, bob, carol = team_of_three
        team = add_member(db_session, team.team_id, bob.user_id)
        assert team.members == [alice.user_id, bob.user_id, carol.user_id]

    def test_add_member_sets_team_and_join_date(self, db_session: Session, team_of_three):
        from crud.user import get_user

        team, _, bob, _ = team_of_three
        bob = get_user(db_session, bob.user_id)
        assert bob.team_id == team.team_id
        assert bob.join_date is not None

    def test_add_member_unknown_team_or_user(self, db_session: Session, team_of_three):
        from crud.team import add_member
        from exceptions import NotFoundError

        team, alice, _, _ = team_of_three
        with pytest.raises(NotFoundError, match="Team not found"):
            add_member(db_session, "missing", alice.user_id)
        with pytest.raises(NotFoundError, match="User not found"):
            add_member(db_session, team.team_id, "ghost")

    def test_assign_role(self, db_session: Session, team_of_three, make_user):
        from crud.team import assign_role
        from exceptions import InvalidStateError

        team, _, bob, _ = team_of_three
        assert assign_role(db_session, team.team_id, bob.user_id, "QA").role == "QA"

        outsider = make_user("dave")
        with pytest.raises(InvalidStateError, match="User not in this team"):
            assign_role(db_session, team.team_id, outsider.user_id, "QA")

    def test_members_detailed(self, db_session: Session, team_of_three):
        from crud.task import create_task
        from crud.team import get_team_members_detailed
        from schemas.task import TaskCreate

        team, alice, bob, carol = team_of_three
        task = create_task(db_session, TaskCreate(title="Review", user_ids=[bob.user_id], user_id=alice.user_id))

        details = get_team_members_detailed(db_session, team.team_id)
        assert [member["userId"] for member in details] == [alice.user_id, bob.user_id, carol.user_id]
        assert details[0]["tasks"] == []
        assert details[1]["tasks"][0]["taskId"] == task.task_id
        assert details[1]["phone"] == ""


class TestSuccession:

    def test_admin_leaves_earliest_member_takes_over(self, db_session: Session, team_of_three):
        from crud.team import leave_team, MSG_USER_LEFT
        from crud.user import get_user

        team, alice, bob, carol = team_of_three
        message, team = leave_team(db_session, team.team_id, alice.user_id)

        assert message == MSG_USER_LEFT
        assert team.members == [bob.user_id, carol.user_id]
        assert team.administrator == bob.user_id
        alice = get_user(db_session, alice.user_id)
        assert alice.team_id is None
        assert alice.role is None

    def test_regular_member_leaves(self, db_session: Session, team_of_three):
        from crud.team import leave_team

        team, alice, bob, carol = team_of_three
        _, team = leave_team(db_session, team.team_id, carol.user_id)
        assert team.members == [alice.user_id, bob.user_id]
        assert team.administrator == alice.user_id

    def test_last_member_leaving_deletes_team(self, db_session: Session, make_user):
        from crud.team import create_team, leave_team, get_team, MSG_ADMIN_LEFT_TEAM_DELETED
        from schemas.team import TeamCreate

        alice = make_user("alice")
        team = create_team(db_session, TeamCreate(team_name="Solo", user_id=alice.user_id))
        message, remaining = leave_team(db_session, team.team_id, alice.user_id)

        assert message == MSG_ADMIN_LEFT_TEAM_DELETED
        assert remaining is None
        assert get_team(db_session, team.team_id) is None

    def test_leave_by_non_member(self, db_session: Session, team_of_three, make_user):
        from crud.team import leave_team
        from exceptions import InvalidStateError

        team, _, _, _ = team_of_three
        outsider = make_user("dave")
        with pytest.raises(InvalidStateError, match="User not in team"):
            leave_team(db_session, team.team_id, outsider.user_id)


class TestDeleteTeam:

    def test_delete_clears_team_id_but_keeps_role(self, db_session: Session, team_of_three):
        from crud.team import assign_role, delete_team, get_team
        from crud.user import get_user

        team, alice, bob, _ = team_of_three
        assign_role(db_session, team.team_id, bob.user_id, "QA")

        deleted = delete_team(db_session, team.team_id)

        assert deleted["teamId"] == team.team_id
        assert get_team(db_session, team.team_id) is None
        bob = get_user(db_session, bob.user_id)
        assert bob.team_id is None
        assert bob.role == "QA"
        assert get_user(db_session, alice.user_id).team_id is None

    def test_delete_unknown_team(self, db_session: Session):
        from crud.team import delete_team
        from exceptions import NotFoundError

        with pytest.raises(NotFoundError):
            delete_team(db_session, "missing")


class TestCascadeFailure:

    def test_delete_team_survives_cascade_failure(self, committing_session: Session, monkeypatch, caplog):
        import logging
        from sqlalchemy.exc import SQLAlchemyError
        import crud.team
        from crud.team import create_team, delete_team, get_team
        from crud.user import create_user, get_user
        from schemas.team import TeamCreate
        from schemas.user import RegisterRequest

        alice = create_user(committing_session, RegisterRequest(
            username="alice", email="alice@example.com", password="Passw0rd_1"
        ))
        team = create_team(committing_session, TeamCreate(team_name="Core", user_id=alice.user_id))
        team_id = team.team_id

        def failing_cascade(db, team_id):
            raise SQLAlchemyError("cascade write failed")

        monkeypatch.setattr(crud.team, "_clear_team_affiliation", failing_cascade)

        with caplog.at_level(logging.ERROR, logger="crud.team"):
            delete_team(committing_session, team_id)

        assert get_team(committing_session, team_id) is None
        # teamId остался устаревшим: каскад не выполнился, но удаление зафиксировано
        assert get_user(committing_session, alice.user_id).team_id == team_id
        assert any(
            record.levelno == logging.ERROR and team_id in record.getMessage()
            for record in caplog.records
        )
