from app.routes.auth import router as auth_router
from app.routes.demo_data import router as demo_data_router

__all__ = [
    'auth_router',
    'demo_data_router',
]
