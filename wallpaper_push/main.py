from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from wallpaper_push.api.routes import health, notifications
from wallpaper_push.core.exceptions import DispatchError, dispatch_exception_handler, global_exception_handler, http_exception_handler, request_validation_exception_handler
from wallpaper_push.core.lifespan import lifespan
from wallpaper_push.core.middleware import RequestLoggingMiddleware

app = FastAPI(title="twain-wallpaper-push", version="0.1.0", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(DispatchError, dispatch_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(health.router, tags=["health"])
app.include_router(notifications.router, tags=["notifications"])
