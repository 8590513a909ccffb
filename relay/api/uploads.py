"""
File upload API endpoint for the relay server.

POST /upload stores one multipart file in the blob store and returns the
public path it is served under. Clients then announce the upload in a room
with an ordinary chat message.
"""

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import PlainTextResponse

from ..dependencies import get_blob_store
from ..exceptions import ValidationError
from ..services.blob_store import LocalBlobStore
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

upload_router = APIRouter(tags=["uploads"])


@upload_router.post("/upload")
async def upload_file(
    request: Request,
    file: UploadFile | None = File(default=None),
    blob_store: LocalBlobStore = Depends(get_blob_store),
):
    """Store an uploaded file and return {"filePath": ...}."""
    if file is None:
        logger.warning("Upload rejected: no file attached", path=request.url.path)
        return PlainTextResponse("No file uploaded.", status_code=400)

    content = await file.read()
    try:
        file_path = await blob_store.store(file.filename, content)
    except ValidationError as e:
        return PlainTextResponse(e.user_friendly, status_code=413)
    finally:
        await file.close()

    return {"filePath": file_path}
