import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse, RedirectResponse
from redis.asyncio import Redis

from shortener.dependencies import get_redis, get_registry
from shortener.models import URLMapping
from shortener.repository import URLRegistry
from shortener.services import (
    DuplicateMapping,
    EntropyFailure,
    InvalidURL,
    RecordNotFound,
    StorageFailed,
    resolveURL,
    shortenURL,
)

logger = logging.getLogger(__name__)
router = APIRouter()


# Routes
@router.get("/health")
def health_check():
    health_status = {"status": "healthy"}
    logger.info("Health Check: OK")
    return JSONResponse(content=health_status, status_code=status.HTTP_200_OK)


@router.get("/{slug}")
async def redirect(
    registry: Annotated[URLRegistry, Depends(get_registry)],
    redis: Annotated[Optional[Redis], Depends(get_redis)],
    slug: str,
):
    try:
        long_url = await resolveURL(registry, redis, slug)
        return RedirectResponse(url=long_url)

    except RecordNotFound as exc:
        return JSONResponse(
            status_code=404,
            content={"error": "Content not found", "detail": str(exc)},
        )

    except StorageFailed as exc:
        return JSONResponse(
            status_code=500,
            content={"error": "Internal Server Error", "detail": str(exc)},
        )

    except Exception as exc:
        logger.error(f"Error redirecting URL: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)},
        )


@router.post("/shorten", response_model=URLMapping)
async def shorten(
    registry: Annotated[URLRegistry, Depends(get_registry)],
    redis: Annotated[Optional[Redis], Depends(get_redis)],
    url: str = Body(..., embed=True),
):
    try:
        return await shortenURL(registry, redis, url)

    except InvalidURL as exc:
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid URL", "detail": str(exc)},
        )

    except DuplicateMapping as exc:
        return JSONResponse(
            status_code=409,
            content={"error": "Already shortened", "detail": str(exc)},
        )

    except StorageFailed as exc:
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": f"There was an issue shortening '{url}'. {exc.message}",
            },
        )

    except EntropyFailure:
        raise

    except Exception as exc:
        logger.error(f"Error shortening URL: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)},
        )
