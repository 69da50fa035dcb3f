"""
FastAPI app factory.

Responsibilities:
- Create and configure FastAPI app
- Set up middleware
- Initialize shared resources (transcription dispatcher, debug sampler)
- Register routes
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI

from adapters.asr.base import TranscriptionDispatcher
from adapters.asr.openai_dispatcher import OpenAITranscriptionDispatcher
from audio.debug_sampler import DebugSampler
from config import AppConfig
from observability.logger import log_event

from server.routes import register_routes


def create_app(
    config: AppConfig | None = None,
    dispatcher: TranscriptionDispatcher | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This is the app factory pattern that allows:
    - Testing with different configurations / a fake dispatcher
    - Environment-specific setup
    - ASGI server compatibility
    """
    if config is None:
        config = AppConfig.load_from_env()

    app = FastAPI(title="Instant Talk Capture API")

    app.state.config = config

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # tighten later
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Shared across every connection in the process
    app.state.dispatcher = dispatcher or build_dispatcher(config)
    app.state.debug_sampler = DebugSampler(
        directory=config.debug_sample_dir,
        every_n=config.debug_sample_every,
    )

    # Routes
    register_routes(app)

    log_event({
        "event_type": "APP_CREATED",
        "env": config.env,
        "port": config.port,
        "dispatcher": type(app.state.dispatcher).__name__,
        "debug_sample_every": config.debug_sample_every,
        "debug_sample_dir": config.debug_sample_dir,
        "max_buffered_bytes": config.max_buffered_bytes,
        "buffer_overflow_policy": config.buffer_overflow_policy,
    })

    return app


def build_dispatcher(config: AppConfig) -> TranscriptionDispatcher:
    """Build the OpenAI-backed dispatcher. Creates the client ONCE per process."""
    if not config.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable not set")

    return OpenAITranscriptionDispatcher(
        client=AsyncOpenAI(api_key=config.openai_api_key),
        model=config.stt_model,
        language=config.stt_language,
    )
