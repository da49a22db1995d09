"""
OCSP Protocol Endpoint - ocsp_responder/api/ocsp.py
"""
import asyncio
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request, Response

from ocsp_responder.api.deps import get_app_settings, get_responder
from ocsp_responder.core.config import Settings
from ocsp_responder.core.errors import ResponderError, status_code_for
from ocsp_responder.core.logging import get_logger
from ocsp_responder.services.responder import StatusResponder

logger = get_logger(__name__)

router = APIRouter(tags=["OCSP Protocol"])

OCSP_RESPONSE_TYPE = "application/ocsp-response"


async def run_bounded(func: Callable[[bytes], bytes], data: bytes, timeout: Optional[float]) -> bytes:
    """Run func(data) in the default executor, giving up after timeout seconds"""
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, func, data)
    if not timeout:
        return await future
    try:
        return await asyncio.wait_for(future, timeout)
    except asyncio.TimeoutError:
        raise ResponderError.internal(f"OCSP response not produced within {timeout}s")


@router.post("/ocsp",
    summary="OCSP Responder",
    description="Online Certificate Status Protocol endpoint (RFC 6960)",
    response_class=Response,
    responses={
        200: {
            "description": "Signed OCSP response in DER format",
            "content": {OCSP_RESPONSE_TYPE: {"schema": {"type": "string", "format": "binary"}}}
        },
        400: {"description": "malformedRequest OCSP response"},
        500: {"description": "internalError OCSP response"},
    })
async def ocsp_responder(
    request: Request,
    responder: StatusResponder = Depends(get_responder),
    settings: Settings = Depends(get_app_settings),
):
    """
    OCSP Responder endpoint

    Accepts a DER encoded OCSP request and returns the certificate status:
    - **GOOD**: Certificate is known and not revoked
    - **REVOKED**: Certificate has been revoked (revocation time, reason unspecified)
    - **UNKNOWN**: No record for the serial number

    The nonce extension is not supported.

    Example usage with OpenSSL:
    ```bash
    openssl ocsp -issuer ca.pem -cert cert.pem -url http://localhost:8889/ocsp
    ```
    """
    ocsp_request_data = await request.body()

    try:
        response_bytes = await run_bounded(
            responder.handle,
            ocsp_request_data,
            settings.OCSP_RESPONSE_TIMEOUT_SECONDS,
        )
    except ResponderError as e:
        if e.is_rejection:
            logger.warning(f"OCSP request rejected: {e.message}")
        else:
            logger.error(f"OCSP responder error: {e.message}", exc_info=e)
        return Response(
            content=responder.error_response(e),
            status_code=status_code_for(e.kind),
            media_type=OCSP_RESPONSE_TYPE,
        )
    except Exception as e:
        logger.exception(f"Unexpected OCSP responder error: {e}")
        error = ResponderError.internal("Unexpected OCSP responder error")
        return Response(
            content=responder.error_response(error),
            status_code=status_code_for(error.kind),
            media_type=OCSP_RESPONSE_TYPE,
        )

    return Response(
        content=response_bytes,
        status_code=200,
        media_type=OCSP_RESPONSE_TYPE,
        headers={"Cache-Control": "no-cache"},
    )
