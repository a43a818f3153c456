"""Format extraction endpoint."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request, Security

from extractor_api.api.dependencies import get_pipeline
from extractor_api.api.schemas import ErrorResponse, ExtractResponse
from extractor_api.core.errors import APIError
from extractor_api.core.validation import URLValidator
from extractor_api.middleware.auth import APIKeyAuth, api_key_header, get_auth
from extractor_api.services.pipeline import ExtractionPipeline

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["extract"])

url_validator = URLValidator()


@router.get(
    "/extract",
    response_model=ExtractResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid url"},
        401: {"model": ErrorResponse, "description": "Missing or invalid API key"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Extraction failed"},
    },
)
async def extract_formats(
    request: Request,
    url: Optional[str] = Query(None, description="Media page URL"),  # noqa: B008
    auth: APIKeyAuth = Depends(get_auth),  # noqa: B008
    pipeline: ExtractionPipeline = Depends(get_pipeline),  # noqa: B008
    _api_key: Optional[str] = Security(api_key_header),  # noqa: B008
) -> Any:
    """
    List downloadable formats for a media page.

    Checks run in a fixed order: the url parameter must be present, then the
    API key (when configured) must match, then the url must be a valid
    http(s) URL. Only then is the extractor invoked.

    Other URI schemes (``ftp:``, ``file:``, ``data:``) are rejected with
    ``400 Invalid url`` on purpose rather than handed to yt-dlp, which would
    read local files or fail with a 500.
    """
    if not url:
        raise APIError.missing_url()

    auth.authenticate(request)

    validation = url_validator.validate(url)
    if not validation.is_valid or validation.sanitized_value is None:
        raise APIError.invalid_url()

    logger.info("extract_requested", url=validation.sanitized_value)
    return await pipeline.run(validation.sanitized_value)
