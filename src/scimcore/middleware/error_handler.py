import time
import traceback
from typing import Callable, Optional
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError
from scimcore.utils import logger
from scimcore.schemas.error import ErrorResponse
from scimcore.exceptions import SCIMException, PersistenceError


def error_response(status_code: int, detail: Optional[str], scim_type: Optional[str] = None) -> JSONResponse:
    error = ErrorResponse(status=status_code, detail=detail, scim_type=scim_type)
    return JSONResponse(
        status_code=status_code,
        content=error.model_dump(by_alias=True, exclude_none=True)
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Render every failure as a SCIM error body; storage details stay out of production responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        production = request.app.state.settings.is_production

        try:
            return await call_next(request)

        except PersistenceError as e:
            logger.error(f"Persistence error in {request.method} {request.url.path}: {e.detail}")
            return error_response(e.status_code, "An internal error occurred" if production else e.detail)

        except SCIMException as e:
            logger.warning(f"SCIM error ({e.status_code}): {e.detail}")
            return error_response(e.status_code, e.detail, e.scim_type)

        except ValidationError as e:
            # Raised past request parsing, e.g. by a stored document that no longer validates
            logger.warning(f"Validation error: {e}")
            return error_response(400, "Invalid resource", "invalidValue")

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path} "
                f"(duration: {duration:.3f}s): {e}\n"
                f"{traceback.format_exc()}"
            )
            return error_response(500, "An internal error occurred" if production else str(e))
