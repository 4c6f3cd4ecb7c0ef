from mapapp.routers.dashboard import router as dashboard_router

__all__ = ["dashboard_router"]
