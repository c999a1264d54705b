"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from matchpoint.api import courts, matches, ops
from matchpoint.api.errors import install_error_handlers
from matchpoint.infra import postgres
from matchpoint.obs import init as obs_init
from matchpoint.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.match_store_backend == "postgres":
		await postgres.init_pool()
	logger.info("startup store_backend=%s env=%s", settings.match_store_backend, settings.environment)
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Matchpoint API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []

# Starlette disallows wildcard '*' with allow_credentials=True. Replace '*' with explicit origins.
if "*" in allow_origins:
	if settings.is_dev():
		allow_origins = [
			"http://localhost:3000",
			"http://127.0.0.1:3000",
			"http://localhost:5173",
			"http://127.0.0.1:5173",
		]
	else:
		allow_origins = [origin for origin in allow_origins if origin != "*"]

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["GET"],
	allow_headers=["*"],
)

obs_init(app)

app.include_router(matches.router)
app.include_router(courts.router)
app.include_router(ops.router)
