from .charts_router import router as charts_router

__all__ = [
    "charts_router",
]
