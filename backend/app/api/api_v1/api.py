from fastapi import APIRouter

from app.api.api_v1.endpoints import (
    auth, dashboards, templates, connections, user_groups, favorites
)

api_router = APIRouter()


# 添加API根路径处理器
@api_router.get("/")
async def api_root():
    """API根路径"""
    return {
        "message": "Dashboard Builder API",
        "version": "0.1.0",
        "status": "running",
        "endpoints": {
            "auth": "/api/auth/",
            "dashboards": "/api/dashboards/",
            "templates": "/api/templates/",
            "connections": "/api/connections/",
            "groups": "/api/groups/",
            "favorites": "/api/favorites/",
            "docs": "/docs",
            "openapi": "/openapi.json"
        }
    }

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(dashboards.router, prefix="/dashboards", tags=["dashboards"])
api_router.include_router(templates.router, prefix="/templates", tags=["templates"])
api_router.include_router(connections.router, prefix="/connections", tags=["connections"])
api_router.include_router(user_groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
