# app/core/exceptions.py

"""
애플리케이션 공통 오류 분류(taxonomy)를 정의하는 모듈입니다.

모든 오류는 FastAPI의 HTTPException을 상속하므로 CRUD 계층과 라우터 어디에서든
그대로 raise 할 수 있으며, 순수 로직 모듈(diff/reconcile)에서도 동일한 예외를 사용합니다.
`register_exception_handlers()`가 등록되면 응답 본문에 기계가 읽을 수 있는 `code`가 추가됩니다.
"""

import logging
from typing import Any, Iterable, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """코드가 부여된 애플리케이션 오류의 기본 클래스"""
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "APP_ERROR"

    def __init__(self, detail: str, *, details: Optional[Any] = None):
        super().__init__(status_code=self.status_code, detail=detail)
        self.details = details


class ValidationError(AppError):
    """필수 값 누락, 코멘트 누락, 잘못된 상태 값 등 클라이언트 입력 오류 (400)"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    """존재하지 않는 리소스 (404)"""
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class StateError(AppError):
    """허용되지 않은 상태에서 시도된 전이 또는 편집 (400)"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_STATE"

    @classmethod
    def for_states(cls, action: str, allowed: Iterable[str], current: Optional[str] = None) -> "StateError":
        allowed_text = " or ".join(sorted(allowed))
        message = f"Can only {action} {allowed_text} requests"
        if current:
            message += f" (current status: {current})"
        return cls(message, details={"allowed": sorted(allowed), "current": current})


class NoChangesError(AppError):
    """diff가 비어 있는 변경 요청 제출 (400)"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "NO_CHANGES"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.detail)
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.detail)

    content = {"detail": exc.detail, "code": exc.code}
    if exc.details is not None:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """FastAPI 애플리케이션에 AppError 핸들러를 등록합니다."""
    app.add_exception_handler(AppError, app_error_handler)
