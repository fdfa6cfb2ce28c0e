from __future__ import annotations

from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from recall.config import get_default_user_id, get_due_set_limit
from recall.due_set import DueSetFilters
from recall.errors import CardNotFound, RecallError
from recall.logging_config import get_logger
from recall.review_service import ReviewService
from recall.sm2.database import ReviewStore
from recall_api.schemas import (
    ERROR_RESPONSES,
    DueCardsResponse,
    EvaluateRequest,
    FrequencyModeBody,
    ReviewRequest,
    ReviewStateOut,
    ReviewStateResponse,
    SkipRequest,
    SuspendRequest,
    VerdictOut,
)

logger = get_logger("recall.api")

STATUS_BY_CATEGORY = {
    "content": 422,
    "retry": 409,
    "client": 400,
}


def error_status(exc: RecallError) -> int:
    if isinstance(exc, CardNotFound):
        return 404
    return STATUS_BY_CATEGORY.get(exc.category, 400)


def get_service(request: Request) -> ReviewService:
    return request.app.state.service


def get_user_id(x_user_id: str | None = Header(None, description="Learner id")) -> str:
    return x_user_id or get_default_user_id()


def create_app(store: ReviewStore | None = None) -> FastAPI:
    """
    Build the HTTP app around a review store.

    Without an explicit store, one is created from DATABASE_URL and its
    tables are created if missing.
    """
    if store is None:
        store = ReviewStore.from_env()
        store.init_db()

    app = FastAPI(title="Recall Review Engine", responses=ERROR_RESPONSES)
    app.state.service = ReviewService(store)

    @app.exception_handler(RecallError)
    async def recall_error_handler(request: Request, exc: RecallError) -> JSONResponse:
        status = error_status(exc)
        logger.info("%s %s -> %s %s", request.method, request.url.path, status, type(exc).__name__)
        return JSONResponse(status_code=status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "error": "RequestValidationError",
                "category": "client",
                "message": "Request payload failed validation",
                "detail": {"errors": jsonable_errors(exc)},
            },
        )

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    @app.post("/review", response_model=ReviewStateResponse)
    def post_review(
        body: ReviewRequest,
        user_id: str = Depends(get_user_id),
        service: ReviewService = Depends(get_service),
    ) -> ReviewStateResponse:
        state = service.submit_review(
            user_id,
            body.card_id,
            body.quality,
            response_time_ms=body.response_time_ms,
            expected_version=body.expected_version,
        )
        return ReviewStateResponse(new_state=ReviewStateOut.from_state(state))

    @app.post("/skip", response_model=ReviewStateResponse)
    def post_skip(
        body: SkipRequest,
        user_id: str = Depends(get_user_id),
        service: ReviewService = Depends(get_service),
    ) -> ReviewStateResponse:
        state = service.skip_card(user_id, body.card_id, expected_version=body.expected_version)
        return ReviewStateResponse(new_state=ReviewStateOut.from_state(state))

    @app.get("/review-state/{card_id}", response_model=ReviewStateOut)
    def get_review_state(
        card_id: str,
        user_id: str = Depends(get_user_id),
        service: ReviewService = Depends(get_service),
    ) -> ReviewStateOut:
        return ReviewStateOut.from_state(service.get_review_state(user_id, card_id))

    @app.put("/review-state/{card_id}/suspended", response_model=ReviewStateOut)
    def put_suspended(
        card_id: str,
        body: SuspendRequest,
        user_id: str = Depends(get_user_id),
        service: ReviewService = Depends(get_service),
    ) -> ReviewStateOut:
        state = service.set_suspended(
            user_id, card_id, body.suspended, expected_version=body.expected_version
        )
        return ReviewStateOut.from_state(state)

    @app.get("/due-cards", response_model=DueCardsResponse)
    def get_due_cards(
        course_id: Optional[str] = Query(None),
        difficult_only: bool = Query(False),
        recently_learned: bool = Query(False),
        shuffle: bool = Query(False),
        practice_all: bool = Query(False),
        limit: Optional[int] = Query(None, ge=0, description="0 disables the limit"),
        user_id: str = Depends(get_user_id),
        service: ReviewService = Depends(get_service),
    ) -> DueCardsResponse:
        if limit is None:
            limit = get_due_set_limit()
        elif limit == 0:
            limit = None
        filters = DueSetFilters(
            course_id=course_id,
            difficult_only=difficult_only,
            recently_learned=recently_learned,
            shuffle=shuffle,
            practice_all=practice_all,
            limit=limit,
        )
        return DueCardsResponse.from_due_set(service.due_cards(user_id, filters))

    @app.post("/evaluate", response_model=VerdictOut)
    def post_evaluate(
        body: EvaluateRequest,
        service: ReviewService = Depends(get_service),
    ) -> VerdictOut:
        return VerdictOut.from_verdict(service.evaluate_response(body.card_id, body.response))

    @app.get("/user-settings/frequency-mode", response_model=FrequencyModeBody)
    def get_frequency_mode(
        user_id: str = Depends(get_user_id),
        service: ReviewService = Depends(get_service),
    ) -> FrequencyModeBody:
        return FrequencyModeBody(frequency_mode=service.get_frequency_mode(user_id))

    @app.put("/user-settings/frequency-mode", response_model=FrequencyModeBody)
    def put_frequency_mode(
        body: FrequencyModeBody,
        user_id: str = Depends(get_user_id),
        service: ReviewService = Depends(get_service),
    ) -> FrequencyModeBody:
        return FrequencyModeBody(frequency_mode=service.set_frequency_mode(user_id, body.frequency_mode))

    @app.get("/stats/summary")
    def get_summary(
        course_id: Optional[str] = Query(None),
        days: int = Query(7, ge=1, le=90, description="Upcoming workload window"),
        user_id: str = Depends(get_user_id),
        service: ReviewService = Depends(get_service),
    ) -> JSONResponse:
        return JSONResponse(service.summary(user_id, course_id=course_id, days=days).to_dict())

    return app


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": str(err.get("msg", ""))}
        for err in exc.errors()
    ]
