"""
FastAPI application for listing insights.

Exposes each orchestration caller as one JSON endpoint:
POST /api/poll, POST /api/ocr and POST /api/scrape. Failures come back as an
``{error, details?}`` envelope whose status follows the error classification.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Optional, TypeVar

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .agents import (
    ProductFetcher,
    extract_data_from_screenshot,
    parse_bulk_asins,
    run_poll_simulation,
    validate_bulk_asins,
    validate_ocr_extraction,
    validate_poll_result,
)
from .config import Settings, get_settings
from .constants import DEFAULT_IMAGE_MEDIA_TYPE, ErrorKind
from .core.auth import verify_api_key
from .models import OCRExtraction, PollRequest, PollResult
from .schemas import (
    BulkScrapeResponse,
    EnvCheckResponse,
    ErrorResponse,
    ItemStatus,
    OCRRequest,
    ScrapeRequest,
    SerializedProduct,
    SingleScrapeResponse,
)
from .services.images import ImageProcessor
from .services.llm import LLMClient
from .services.scraper import ScrapeOpsClient, is_valid_asin
from .utils.errors import (
    OperationCancelled,
    ProductFetchError,
    classify_error,
    user_friendly_message,
)

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

T = TypeVar("T")


def _build_client(factory, settings: Settings, name: str):
    try:
        return factory(settings)
    except ValueError as e:
        logger.warning(f"{name} client disabled: {e}")
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    app.state.llm = _build_client(LLMClient.from_settings, settings, "LLM")
    app.state.scraper = _build_client(ScrapeOpsClient.from_settings, settings, "ScrapeOps")
    try:
        yield
    finally:
        for client in (app.state.llm, app.state.scraper):
            if client is not None:
                await client.close()


app = FastAPI(
    title="Listing Insights API",
    description="Simulated consumer polls, screenshot extraction and Amazon product fetching",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ServiceNotConfigured(Exception):
    pass


# ============================================================================
# ERROR ENVELOPE
# ============================================================================

def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def status_for(error: Exception) -> int:
    """
    400 for input/client errors, 401 for auth errors, 503 for a cancelled
    operation, 500 for everything else.
    """
    if isinstance(error, OperationCancelled):
        return 503
    kind = classify_error(error).kind
    if kind == ErrorKind.AUTH_ERROR:
        return 401
    if kind == ErrorKind.CLIENT_ERROR:
        return 400
    return 500


def failure_response(error: Exception, message: Optional[str] = None) -> JSONResponse:
    friendly = message or user_friendly_message(error)
    details = str(error) or None
    return error_response(status_for(error), friendly, details if details != friendly else None)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return error_response(400, "Invalid request body", problems or None)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(ServiceNotConfigured)
async def not_configured_handler(request: Request, exc: ServiceNotConfigured):
    return error_response(500, str(exc))


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_llm(request: Request) -> LLMClient:
    llm = getattr(request.app.state, "llm", None)
    if llm is None:
        raise ServiceNotConfigured("OPENAI_API_KEY not configured in environment variables")
    return llm


def get_scraper(request: Request) -> ScrapeOpsClient:
    scraper = getattr(request.app.state, "scraper", None)
    if scraper is None:
        raise ServiceNotConfigured("SCRAPEOPS_API_KEY not configured in environment variables")
    return scraper


async def get_image_processor():
    """One image cache per request, released when the response is done."""
    async with ImageProcessor() as processor:
        yield processor


async def run_with_timeout(work: Awaitable[T], settings: Settings) -> T:
    if settings.request_timeout:
        return await asyncio.wait_for(work, settings.request_timeout)
    return await work


# ============================================================================
# ROUTES
# ============================================================================

@app.get("/")
async def root():
    return {
        "message": "Listing Insights API",
        "version": __version__,
        "endpoints": {
            "poll": "/api/poll",
            "ocr": "/api/ocr",
            "scrape": "/api/scrape",
            "test_env": "/api/test-env",
            "docs": "/docs",
        }
    }


@app.post("/api/poll", response_model=PollResult, dependencies=[Depends(verify_api_key)])
async def poll(
    body: PollRequest,
    llm: LLMClient = Depends(get_llm),
    settings: Settings = Depends(get_settings),
):
    """
    Run one simulated consumer poll.

    Returns:
        PollResult with rankings sorted by share

    Errors:
        400: no products, missing demographic/question, invalid poll type
        500: poll failed or the result did not validate
    """
    logger.info(
        f"Poll request: type={body.poll_type.value}, products={len(body.products)}, "
        f"demographic={body.demographic!r}"
    )

    if not body.products:
        return error_response(400, "No products provided")
    if not body.demographic.strip() or not body.question.strip():
        return error_response(400, "Demographic and question are required")

    try:
        result = await run_with_timeout(run_poll_simulation(body, llm), settings)
    except Exception as e:
        logger.error(f"Poll API error: {e}")
        return failure_response(e)

    if not validate_poll_result(result):
        logger.error(f"Poll result validation failed: {result.rankings}")
        return error_response(500, "Invalid poll results")

    return result


@app.post("/api/ocr", response_model=OCRExtraction, dependencies=[Depends(verify_api_key)])
async def ocr(
    body: OCRRequest,
    llm: LLMClient = Depends(get_llm),
    settings: Settings = Depends(get_settings),
):
    if not body.image:
        return error_response(400, "No image provided")

    try:
        extraction = await run_with_timeout(
            extract_data_from_screenshot(body.image, body.media_type or DEFAULT_IMAGE_MEDIA_TYPE, llm),
            settings,
        )
    except Exception as e:
        logger.error(f"OCR API error: {e}")
        return failure_response(e)

    if not validate_ocr_extraction(extraction):
        logger.warning(f"OCR extraction out of range: {extraction}")
        return error_response(400, "Invalid OCR extraction results")

    return extraction


@app.post("/api/scrape", dependencies=[Depends(verify_api_key)])
async def scrape(
    body: ScrapeRequest,
    scraper: ScrapeOpsClient = Depends(get_scraper),
    images: ImageProcessor = Depends(get_image_processor),
    settings: Settings = Depends(get_settings),
):
    """
    Fetch products from ScrapeOps.

    Body is one of:
    - {"asin": "B08WM3LMJF"}
    - {"asins": ["B08WM3LMJF", "B0731Y59HG"]}
    - {"bulkText": "B08WM3LMJF, B0731Y59HG"}
    """
    if not (body.asin or body.asins or body.bulk_text):
        return error_response(400, "Missing required field: asin, asins, or bulkText")

    fetcher = ProductFetcher(scraper, images, item_delay=settings.bulk_fetch_item_delay)

    if body.asin:
        asin = body.asin.strip().upper()
        if not is_valid_asin(asin):
            return error_response(
                400, f"Invalid ASIN format: {asin}. Must be 10 alphanumeric characters."
            )
        try:
            product = await run_with_timeout(fetcher.fetch_and_process_product(asin), settings)
        except ProductFetchError as e:
            logger.error(f"Single ASIN fetch error: {e}")
            return failure_response(e, f"Failed to fetch ASIN {asin}")
        except Exception as e:
            logger.error(f"Single ASIN fetch error: {e}")
            return failure_response(e)

        response = SingleScrapeResponse(
            product=SerializedProduct.from_product(product),
            validation=product.validation,
        )
        return response.model_dump(by_alias=True, mode="json")

    if body.bulk_text:
        asin_list = parse_bulk_asins(body.bulk_text)
    else:
        asin_list = [a.strip().upper() for a in body.asins or [] if a and a.strip()]

    if not asin_list:
        return error_response(400, "No valid ASINs provided")

    valid, invalid = validate_bulk_asins(asin_list)
    if not valid:
        return error_response(400, "No valid ASINs found", ", ".join(invalid))
    if invalid:
        logger.warning(f"Found {len(invalid)} invalid ASINs: {invalid}")

    try:
        result = await run_with_timeout(fetcher.fetch_bulk_products(valid), settings)
    except Exception as e:
        logger.error(f"Bulk ASIN fetch error: {e}")
        return failure_response(e, "Bulk fetch failed")

    response = BulkScrapeResponse(
        total_requested=len(asin_list),
        valid_count=len(valid),
        invalid_count=len(invalid),
        success_count=result.success_count,
        failed_count=result.failed_count,
        needs_review_count=result.needs_review_count,
        invalid_asins=invalid,
        products=[SerializedProduct.from_product(r.data) for r in result.results if r.data],
        results=[ItemStatus(asin=r.asin, status=r.status, error=r.error) for r in result.results],
    )
    return response.model_dump(by_alias=True, mode="json")


@app.get("/api/test-env", response_model=EnvCheckResponse)
async def test_env(settings: Settings = Depends(get_settings)):
    """Report which credentials are configured, never their values."""
    return EnvCheckResponse(
        has_openai_key=bool(settings.openai_api_key),
        openai_key_length=len(settings.openai_api_key or ""),
        has_scrapeops_key=bool(settings.scrapeops_api_key),
        scrapeops_key_length=len(settings.scrapeops_api_key or ""),
        env=settings.env,
    )


@app.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    return {
        "status": "healthy",
        "openai_configured": bool(settings.openai_api_key),
        "scrapeops_configured": bool(settings.scrapeops_api_key),
    }
