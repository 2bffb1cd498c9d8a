import datetime

import pytest
from sqlalchemy.orm import Session


@pytest.fixture
def linked_user(db_session: Session, make_user):
    """Пользователь с привязанным GitLab (gitlabUserId = 501)"""
    user = make_user("alice")
    user.gitlab_access_token = "gl-token"
    user.gitlab_user_id = 501
    db_session.commit()
    return user


class TestIssueMapping:

    def test_issue_to_task(self, db_session: Session, linked_user, issue_factory):
        from crud.gitlab import issue_to_task

        issue = issue_factory(9001, 3, assignees=[{"id": 501}, {"id": 999}])
        task = issue_to_task(issue, "42", [linked_user], "importer")

        assert task["task_id"] == "gitlab-9001"
        assert task["status"] == "To Do"
        assert task["deadline"] == datetime.date(2026, 11, 1)
        assert task["user_ids"] == [linked_user.user_id]
        assert task["gitlab_issue_iid"] == 3
        assert task["gitlab_project_id"] == "42"
        assert task["created_at"] == datetime.datetime(2026, 10, 1, 8, 30)
        assert task["creator"] == "importer"

    def test_closed_issue_is_done(self, issue_factory):
        from crud.gitlab import issue_to_task

        task = issue_to_task(issue_factory(1, 1, state="closed", due_date=None), 42, [], "importer")
        assert task["status"] == "Done"
        assert task["deadline"] is None
        assert task["gitlab_project_id"] == "42"

    @pytest.mark.parametrize("shape", [
        {"assignees": [{"id": 501}, {"id": 501}]},
        {"assignees": None, "assignee": {"id": 501}},
    ])
    def test_assignee_shapes(self, db_session: Session, linked_user, shape):
        from crud.gitlab import resolve_assignees

        assert resolve_assignees(shape, [linked_user]) == [linked_user.user_id]

    def test_unmatched_assignees_dropped(self, db_session: Session, linked_user):
        from crud.gitlab import resolve_assignees

        assert resolve_assignees({"assignees": [{"id": 7}]}, [linked_user]) == []
        assert resolve_assignees({}, [linked_user]) == []


class TestImport:

    def test_import_is_idempotent(self, db_session: Session, linked_user, fake_gitlab, issue_factory):
        from crud.gitlab import import_project_issues
        from models.task import TaskDB

        fake_gitlab.issues = [issue_factory(1, 1), issue_factory(2, 2, assignees=[{"id": 501}])]
        first = import_project_issues(db_session, linked_user.user_id, "42", fake_gitlab.client_factory)
        assert [task.task_id for task in first] == ["gitlab-1", "gitlab-2"]

        fake_gitlab.issues = [issue_factory(1, 1, title="Renamed", state="closed"), issue_factory(2, 2)]
        import_project_issues(db_session, linked_user.user_id, "42", fake_gitlab.client_factory)

        assert db_session.query(TaskDB).count() == 2
        renamed = db_session.query(TaskDB).filter(TaskDB.task_id == "gitlab-1").one()
        assert renamed.title == "Renamed"
        assert renamed.status == "Done"
        unassigned = db_session.query(TaskDB).filter(TaskDB.task_id == "gitlab-2").one()
        assert unassigned.user_ids == []

    def test_reimport_keeps_provenance(self, db_session: Session, linked_user, fake_gitlab, issue_factory, make_user):
        from crud.gitlab import import_project_issues

        fake_gitlab.issues = [issue_factory(1, 1)]
        task = import_project_issues(db_session, linked_user.user_id, "42", fake_gitlab.client_factory)[0]
        created_at = task.created_at

        other = make_user("bob")
        other.gitlab_access_token = "other-token"
        db_session.commit()
        fake_gitlab.issues = [issue_factory(1, 1, created_at="2030-01-01T00:00:00Z")]
        task = import_project_issues(db_session, other.user_id, "42", fake_gitlab.client_factory)[0]

        assert task.creator == linked_user.user_id
        assert task.created_at == created_at

    def test_empty_project(self, db_session: Session, linked_user, fake_gitlab):
        from crud.gitlab import import_project_issues

        assert import_project_issues(db_session, linked_user.user_id, "42", fake_gitlab.client_factory) == []

    def test_import_single_issue(self, db_session: Session, linked_user, fake_gitlab, issue_factory):
        from crud.gitlab import import_single_issue
        from exceptions import NotFoundError

        fake_gitlab.issues = [issue_factory(77, 5)]
        task = import_single_issue(db_session, linked_user.user_id, "42", 5, fake_gitlab.client_factory)
        assert task.task_id == "gitlab-77"

        with pytest.raises(NotFoundError, match="Issue not found"):
            import_single_issue(db_session, linked_user.user_id, "42", 6, fake_gitlab.client_factory)

    def test_not_linked(self, db_session: Session, make_user, fake_gitlab):
        from crud.gitlab import import_project_issues
        from exceptions import UnauthorizedError

        user = make_user("bob")
        with pytest.raises(UnauthorizedError, match="GitLab not linked"):
            import_project_issues(db_session, user.user_id, "42", fake_gitlab.client_factory)
        assert fake_gitlab.requests == []

    def test_remote_failure(self, db_session: Session, linked_user, fake_gitlab):
        from crud.gitlab import import_project_issues
        from exceptions import RemoteFailureError
        from models.task import TaskDB

        fake_gitlab.fail = True
        with pytest.raises(RemoteFailureError):
            import_project_issues(db_session, linked_user.user_id, "42", fake_gitlab.client_factory)
        assert db_session.query(TaskDB).count() == 0

    def test_bearer_token_sent(self, db_session: Session, linked_user, fake_gitlab):
        from crud.gitlab import list_project_names

        names = list_project_names(db_session, linked_user.user_id, fake_gitlab.client_factory)
        assert names == [{"id": 42, "name": "collab"}]
        assert fake_gitlab.requests[0].headers["Authorization"] == "Bearer gl-token"


class TestLinking:

    def test_link_and_unlink(self, db_session: Session, make_user, fake_gitlab):
        from crud.gitlab import link_account, unlink_account

        user = make_user("alice")
        user = link_account(db_session, "oauth-code", user.user_id, fake_gitlab.client_factory)
        assert user.gitlab_access_token == "gl-token"
        assert user.gitlab_user_id == 501

        user = unlink_account(db_session, user.user_id)
        assert user.gitlab_access_token is None
        assert user.gitlab_user_id == 501

    def test_link_unknown_user(self, db_session: Session, fake_gitlab):
        from crud.gitlab import link_account
        from exceptions import NotFoundError

        with pytest.raises(NotFoundError):
            link_account(db_session, "oauth-code", "ghost", fake_gitlab.client_factory)
