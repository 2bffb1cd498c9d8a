from .user import (
    get_user,
    get_user_by_email,
    get_users,
    create_user,
    authenticate_user,
    update_profile,
    set_user_status,
    get_user_status,
    get_all_user_statuses,
    delete_user,
    user_to_dict,
)

from .team import (
    get_team,
    create_team,
    add_member,
    assign_role,
    leave_team,
    delete_team,
    get_team_members_detailed,
    team_to_dict,
)

from .task import (
    get_task,
    get_tasks,
    group_tasks,
    create_task,
    update_task,
    assign_user,
    change_status,
    upsert_tasks,
    delete_task,
    delete_all_tasks,
    get_task_summary,
    get_calendar,
    get_task_progress,
    task_to_dict,
)

from .gitlab import (
    issue_to_task,
    resolve_assignees,
    import_project_issues,
    import_single_issue,
)
