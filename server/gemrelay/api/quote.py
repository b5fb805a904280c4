import logging
from typing import List, Optional, Tuple
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from gemrelay.api.deps import get_form_relay, get_settings
from gemrelay.config import Settings
from gemrelay.core.form_relay import ATTACHMENT_FIELD, Attachment, FormRelay

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/submit-quote")
async def submit_quote(
    http_request: Request,
    settings: Settings = Depends(get_settings),
    relay: FormRelay = Depends(get_form_relay),
) -> Response:
    """Forward the quote form (with optional attachment) and relay the upstream answer."""
    try:
        form = await http_request.form(max_files=1)
    except StarletteHTTPException as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.detail})
    except MultiPartException as e:
        return JSONResponse(status_code=400, content={"error": e.message})

    fields: List[Tuple[str, str]] = []
    attachment: Optional[Attachment] = None
    try:
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key != ATTACHMENT_FIELD:
                    return JSONResponse(status_code=400, content={"error": f"Unexpected field: {key}"})
                # Starlette records the size while spooling; reject before loading it
                too_large = value.size is not None and value.size > settings.max_upload_bytes
                content = b"" if too_large else await value.read()
                if too_large or len(content) > settings.max_upload_bytes:
                    return JSONResponse(
                        status_code=413,
                        content={"error": f"Attachment exceeds limit of {settings.max_upload_bytes} bytes"},
                    )
                attachment = Attachment(
                    filename=value.filename or ATTACHMENT_FIELD,
                    content=content,
                    content_type=value.content_type or "application/octet-stream",
                )
            else:
                fields.append((key, value))
    finally:
        await form.close()

    try:
        relayed = await relay.forward(fields, attachment)
    except Exception:
        logger.exception("Error in /api/submit-quote")
        return PlainTextResponse("Internal Server Error", status_code=500)
    return Response(content=relayed.text, status_code=relayed.status_code, media_type="text/html")
