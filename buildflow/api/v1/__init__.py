"""
API v1 - REST endpoints for the estimation back end.

- Users (create with contact, list, lookup, delete)
- Work items (CRUD and derived queries)
- Projects (CRUD, paginated by builder / owner or both)
- Project participants (CRUD, paginated per project)
- Estimates (aggregate CRUD: estimates, groups, lines)
- Quotes (CRUD, paginated by creator / supplier)
"""
from fastapi import APIRouter

from .users import router as users_router
from .work_items import router as work_items_router
from .projects import router as projects_router
from .participants import router as participants_router
from .estimates import router as estimates_router
from .quotes import router as quotes_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(users_router, prefix="/users", tags=["Users"])
api_router.include_router(work_items_router, prefix="/work-items", tags=["Work Items"])
api_router.include_router(projects_router, prefix="/projects", tags=["Projects"])
api_router.include_router(
    participants_router, prefix="/projects/{project_id}/participants", tags=["Project Participants"]
)
api_router.include_router(estimates_router, prefix="/estimates", tags=["Estimates"])
api_router.include_router(quotes_router, prefix="/quotes", tags=["Quotes"])
