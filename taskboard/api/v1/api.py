from fastapi import APIRouter

from taskboard.api.v1.endpoints import comments, health, projects, tasks

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])

# Task and comment mutations are mounted at the API root (/move-task, /add-comment...)
api_router.include_router(tasks.router, tags=["tasks"])
api_router.include_router(comments.router, tags=["comments"])
