"""Document endpoints.

Provides:
- POST /documents - Multipart upload (file, name, keys)
- GET /documents - Caller's catalog
- GET /documents/{id} - Content download
- DELETE /documents/{id} - Document removal

Every operation is scoped to the account in the bearer token.
"""

from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from fastapi.responses import StreamingResponse

from pds.core.exceptions import ValidationError
from pds.core.logging import get_api_logger
from pds.core.security import TokenClaims, get_current_claims
from pds.models.schemas import DocumentResponse
from pds.services.document_service import DocumentService
from .dependencies import get_document_service

logger = get_api_logger()

router = APIRouter()


def content_disposition(filename: str) -> str:
    """Attachment header value; non-ASCII names also get an RFC 5987 form."""
    quoted = filename.replace("\\", "\\\\").replace('"', '\\"')
    try:
        quoted.encode("ascii")
        return f'attachment; filename="{quoted}"'
    except UnicodeEncodeError:
        fallback = quoted.encode("ascii", "replace").decode("ascii")
        return (
            f'attachment; filename="{fallback}"; '
            f"filename*=UTF-8''{quote(filename, safe='')}"
        )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Upload Document",
    operation_id="uploadDocument",
    response_class=Response,
    description="""Store a document for the authenticated account.

**Form fields:**
- **file**: Document content (required, non-empty)
- **name**: File name, unique per account; a single path component
- **keys**: Opaque key material returned as-is by the listing endpoint

**Example Request:**
```bash
curl -X POST "http://localhost:8080/documents" \\
  -H "Authorization: Bearer <token>" \\
  -F "file=@a.pdf.enc" -F "name=a.pdf" -F "keys=k1"
```""",
    responses={
        201: {"description": "Document stored"},
        400: {"description": "Missing or empty file, invalid name or keys"},
        401: {"description": "Missing, invalid or expired token"},
        409: {"description": "Name already used by this account"},
        503: {"description": "Storage unavailable"},
    },
)
async def upload_document(
    file: Optional[UploadFile] = File(None, description="Document content"),
    name: Optional[str] = Form(None, description="Document file name"),
    keys: Optional[str] = Form(None, description="Opaque key material"),
    claims: TokenClaims = Depends(get_current_claims),
    document_service: DocumentService = Depends(get_document_service),
) -> Response:
    if file is None:
        raise ValidationError("file is required", field="file")

    file_bytes = await file.read()
    if not file_bytes:
        raise ValidationError("file cannot be empty", field="file")

    document = await document_service.create(name, file_bytes, keys, claims.subject)
    logger.info(
        "Document uploaded",
        document_id=document.id,
        owner_id=claims.subject,
        size=len(file_bytes),
    )
    return Response(status_code=status.HTTP_201_CREATED)


@router.get(
    "",
    response_model=List[DocumentResponse],
    summary="List Documents",
    operation_id="listDocuments",
    responses={
        401: {"description": "Missing, invalid or expired token"},
        503: {"description": "Storage unavailable"},
    },
)
async def list_documents(
    claims: TokenClaims = Depends(get_current_claims),
    document_service: DocumentService = Depends(get_document_service),
) -> List[DocumentResponse]:
    """All documents of the caller in upload order."""
    documents = await document_service.find_all(claims.subject)
    return [DocumentResponse.from_document(document) for document in documents]


@router.get(
    "/{document_id}",
    summary="Download Document",
    operation_id="downloadDocument",
    response_class=StreamingResponse,
    responses={
        200: {
            "description": "Document content",
            "content": {"application/octet-stream": {}},
        },
        401: {"description": "Missing, invalid or expired token"},
        404: {"description": "Unknown document id for this account"},
        503: {"description": "Storage unavailable"},
    },
)
async def download_document(
    document_id: int,
    claims: TokenClaims = Depends(get_current_claims),
    document_service: DocumentService = Depends(get_document_service),
) -> StreamingResponse:
    document, content = await document_service.open(document_id, claims.subject)
    return StreamingResponse(
        content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": content_disposition(document.name)},
    )


@router.delete(
    "/{document_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete Document",
    operation_id="deleteDocument",
    response_class=Response,
    responses={
        401: {"description": "Missing, invalid or expired token"},
        404: {"description": "Unknown document id for this account"},
        500: {"description": "Storage left inconsistent"},
        503: {"description": "Storage unavailable"},
    },
)
async def delete_document(
    document_id: int,
    claims: TokenClaims = Depends(get_current_claims),
    document_service: DocumentService = Depends(get_document_service),
) -> Response:
    await document_service.remove(document_id, claims.subject)
    return Response(status_code=status.HTTP_200_OK)
