from .billing import router as billing_router
from .subscriptions import router as subscriptions_router

__all__ = ['billing_router', 'subscriptions_router']
