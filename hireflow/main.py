import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from hireflow.api.v1.health import router as health_router
from hireflow.api.v1.jobs import router as jobs_router
from hireflow.api.v1.matching import router as matching_router
from hireflow.api.v1.resumes import router as resumes_router
from hireflow.api.v1.users import router as users_router
from hireflow.core.cors import cors_allowed_origins
from hireflow.core.rate_limit import limiter
from hireflow.core.config import settings
from hireflow.core.lifespan import lifespan

logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="HireFlow Recruiting API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allowed_origins(),
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(users_router, prefix="/v1", tags=["Users"])
app.include_router(jobs_router, prefix="/v1", tags=["Jobs"])
app.include_router(resumes_router, prefix="/v1", tags=["Resumes"])
app.include_router(matching_router, prefix="/v1", tags=["Matching"])
