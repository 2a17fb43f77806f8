# app.py: progress tracker API
# - Bearer-token auth resolved once per request by middleware
# - Admin-only edits of the topic/level/question hierarchy
# - Per-user completion on the "questions" and "revision" tracks

import json
import logging
import sqlite3
from contextlib import asynccontextmanager, contextmanager
from typing import Any, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

import auth, curriculum, db, progress, seed
from env_validation import cors_origins, validate_environment
from errors import CurriculumError, InternalError
from schemas import Level, LoginBody, LoginResponse, NameBody, ProgressBody, Profile, RenameBody, Topic, TopicProgress

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_: FastAPI):
    try:
        validate_environment()
        db.init()
        seed.ensure_seed_users()
        yield
    except Exception as e:
        logger.error("Failed to initialize application: %s", str(e), exc_info=True)
        raise


app = FastAPI(title="Progress Tracker API", version="1.0.0", lifespan=_lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)

_PUBLIC_PATHS = frozenset({"/api/auth/login"})


def _normalize_path(path: str) -> str:
    if not path or path == "/":
        return "/"
    return path.rstrip("/")


def _json_error(status_code: int, detail: str) -> Response:
    return Response(
        status_code=status_code,
        content=json.dumps({"detail": detail}),
        media_type="application/json",
    )


@app.middleware("http")
async def _resolve_caller(request: Request, call_next):
    normalized_path = _normalize_path(request.url.path)
    if normalized_path.startswith("/api/") and normalized_path not in _PUBLIC_PATHS:
        try:
            token = auth.extract_bearer(request.headers.get("authorization"))
            request.state.caller = await run_in_threadpool(auth.resolve_caller, token)
        except CurriculumError as exc:
            return _json_error(exc.status_code, exc.message)
        except sqlite3.Error:
            logger.exception("Store failure while resolving caller")
            error = InternalError()
            return _json_error(error.status_code, error.message)
    return await call_next(request)


@contextmanager
def _api_errors(operation: str):
    """Map domain failures and unexpected store errors onto HTTP errors."""
    try:
        yield
    except CurriculumError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except sqlite3.Error as exc:
        logger.exception("Store failure during %s", operation)
        error = InternalError()
        raise HTTPException(status_code=error.status_code, detail=error.message) from exc


def _caller(request: Request) -> dict[str, Any]:
    return request.state.caller


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------- Auth ----------
@app.post("/api/auth/login", response_model=LoginResponse)
def auth_login(body: LoginBody):
    with _api_errors("login"):
        return auth.login(body.email, body.password)


@app.get("/api/auth/me", response_model=Profile)
def auth_me(request: Request):
    return auth.public_profile(_caller(request))


# ---------- Topics ----------
@app.get("/api/topics", response_model=List[Topic])
def topics_list(request: Request):
    with _api_errors("list topics"):
        return curriculum.list_topics()


@app.post("/api/topics", response_model=Topic)
def topic_create(body: NameBody, request: Request):
    with _api_errors("create topic"):
        return curriculum.create_topic(_caller(request), body.name)


@app.put("/api/topics/{topic_id}", response_model=Topic)
def topic_rename(topic_id: str, body: RenameBody, request: Request):
    with _api_errors("rename topic"):
        return curriculum.rename_topic(_caller(request), topic_id, body.name)


@app.delete("/api/topics/{topic_id}")
def topic_delete(topic_id: str, request: Request):
    with _api_errors("delete topic"):
        return curriculum.delete_topic(_caller(request), topic_id)


# ---------- Levels ----------
@app.post("/api/topics/{topic_id}/levels", response_model=Topic)
def level_create(topic_id: str, body: NameBody, request: Request):
    with _api_errors("add level"):
        return curriculum.add_level(_caller(request), topic_id, body.name)


@app.put("/api/topics/{topic_id}/levels/{level_id}", response_model=Topic)
def level_rename(topic_id: str, level_id: str, body: RenameBody, request: Request):
    with _api_errors("rename level"):
        return curriculum.rename_level(_caller(request), topic_id, level_id, body.name)


@app.delete("/api/topics/{topic_id}/levels/{level_id}", response_model=Topic)
def level_delete(topic_id: str, level_id: str, request: Request):
    with _api_errors("delete level"):
        return curriculum.delete_level(_caller(request), topic_id, level_id)


# ---------- Questions ----------
@app.post("/api/topics/{topic_id}/levels/{level_id}/questions", response_model=Level)
def question_create(topic_id: str, level_id: str, body: NameBody, request: Request):
    with _api_errors("add question"):
        return curriculum.add_question(_caller(request), topic_id, level_id, body.name)


@app.put("/api/topics/{topic_id}/levels/{level_id}/questions/{question_id}", response_model=Level)
def question_rename(topic_id: str, level_id: str, question_id: str, body: RenameBody, request: Request):
    with _api_errors("rename question"):
        return curriculum.rename_question(_caller(request), topic_id, level_id, question_id, body.name)


@app.delete("/api/topics/{topic_id}/levels/{level_id}/questions/{question_id}", response_model=Level)
def question_delete(topic_id: str, level_id: str, question_id: str, request: Request):
    with _api_errors("delete question"):
        return curriculum.delete_question(_caller(request), topic_id, level_id, question_id)


# ---------- Progress ----------
@app.get("/api/progress", response_model=List[TopicProgress])
def progress_get(request: Request):
    with _api_errors("get progress"):
        return progress.get_progress(_caller(request)["id"])


@app.post("/api/progress")
def progress_set(body: ProgressBody, request: Request):
    with _api_errors("set progress"):
        return progress.set_progress(
            _caller(request)["id"],
            body.topicId,
            body.levelId,
            body.questionId,
            body.track,
            body.completed,
        )
