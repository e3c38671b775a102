"""
Checkout session endpoint.

``GET`` redirects the browser straight to Stripe (no CORS involved); ``POST``
returns the URL as JSON for fetch/XHR callers. Both share ``SessionInitiator``.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from payments.checkout import SessionInitiator
from payments.cors import apply_cors_headers
from payments.errors import PaymentError, ProviderError
from payments.models import CheckoutURLResponse, ErrorResponse
from monitoring.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["checkout"])

CHECKOUT_PATH = "/create-checkout"


def _initiator(request: Request) -> SessionInitiator:
    return request.app.state.session_initiator


def _with_cors(request: Request, response: Response) -> Response:
    return apply_cors_headers(
        response,
        request.headers.get("origin"),
        request.app.state.settings.allowed_origins,
    )


def _error_response(request: Request, error: PaymentError) -> Response:
    if isinstance(error, ProviderError):
        logger.error("Checkout session creation failed", extra={"error": error.message})
    return _with_cors(
        request,
        JSONResponse(status_code=error.status_code, content={"error": error.message}),
    )


@router.options(CHECKOUT_PATH, status_code=204)
async def checkout_preflight(request: Request) -> Response:
    """Answer the browser's CORS pre-flight probe."""
    return _with_cors(request, Response(status_code=204))


@router.get(
    CHECKOUT_PATH,
    status_code=303,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def create_checkout_redirect(request: Request) -> Response:
    """
    Create a checkout session from query parameters and redirect to it.

    Accepts: amount_cents, currency, email, description, businessName,
    contactName, phone
    """
    params: Dict[str, Any] = dict(request.query_params)
    try:
        url = await _initiator(request).create_session(params)
    except PaymentError as e:
        return _error_response(request, e)

    return _with_cors(request, RedirectResponse(url, status_code=303))


@router.post(
    CHECKOUT_PATH,
    response_model=CheckoutURLResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def create_checkout_json(request: Request) -> Response:
    """
    Create a checkout session from a JSON body.

    Returns: {"url": "<hosted checkout URL>"}
    """
    raw = await request.body()
    if raw.strip():
        try:
            params = await request.json()
        except ValueError:
            return _with_cors(
                request,
                JSONResponse(status_code=400, content={"error": "Request body must be JSON"}),
            )
    else:
        params = {}

    if not isinstance(params, dict):
        return _with_cors(
            request,
            JSONResponse(status_code=400, content={"error": "Request body must be a JSON object"}),
        )

    try:
        url = await _initiator(request).create_session(params)
    except PaymentError as e:
        return _error_response(request, e)

    return _with_cors(request, JSONResponse(content={"url": url}))
