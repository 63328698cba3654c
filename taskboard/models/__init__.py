from .project import Project
from .team import Team

__all__ = [
    "Project",
    "Team",
]
