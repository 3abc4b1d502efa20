# taskboard/models/__init__.py

from .user import User, RoleEnum
from .project import Project, ProjectStatusEnum
from .project_member import ProjectMember
from .task import Task, TaskStatusEnum, TaskPriorityEnum


def register_models():
    return [
        User,
        Project,
        ProjectMember,
        Task,
    ]

__all__ = [
    "User", "RoleEnum",
    "Project", "ProjectStatusEnum",
    "ProjectMember",
    "Task", "TaskStatusEnum", "TaskPriorityEnum",
    "register_models",
]
