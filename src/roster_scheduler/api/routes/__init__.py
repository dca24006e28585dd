from fastapi import APIRouter

from . import groups, planning, resources, system

api_router = APIRouter()

api_router.include_router(system.router, prefix="/system", tags=["system"])
api_router.include_router(resources.router, prefix="/resources", tags=["resources"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(planning.router, prefix="/planning", tags=["planning"])
