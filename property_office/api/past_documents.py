"""
過去資料のエンドポイント
"""

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from property_office.api.common import load_or_raise, raise_for_alert
from property_office.core.screens import PastDocumentsScreen
from property_office.services.backend_client import BackendClient, get_backend_client

router = APIRouter()


@router.get("/past-documents")
def list_past_documents(property_id: int, client: BackendClient = Depends(get_backend_client)):
    return load_or_raise(PastDocumentsScreen(client, property_id)).view()


@router.post("/past-documents/upload", status_code=201)
def upload_past_document(
    property_id: int,
    file: UploadFile = File(...),
    client: BackendClient = Depends(get_backend_client),
):
    """アップロード後に一覧を再取得"""
    screen = PastDocumentsScreen(client, property_id)
    screen.upload(file.filename, file.file.read(), file.content_type)
    raise_for_alert(screen)
    return screen.view()


@router.get("/past-documents/{document_id}/download")
def download_past_document(
    property_id: int, document_id: int, client: BackendClient = Depends(get_backend_client)
):
    """バックエンドのファイルをそのまま返す"""
    screen = PastDocumentsScreen(client, property_id)
    backend_response = screen.download(document_id)
    raise_for_alert(screen)

    headers = {}
    disposition = backend_response.headers.get("Content-Disposition")
    if disposition:
        headers["Content-Disposition"] = disposition
    return Response(
        content=backend_response.content,
        media_type=backend_response.headers.get("Content-Type", "application/octet-stream"),
        headers=headers,
    )


@router.delete("/past-documents/{document_id}")
def delete_past_document(
    property_id: int, document_id: int, client: BackendClient = Depends(get_backend_client)
):
    screen = PastDocumentsScreen(client, property_id)
    screen.delete(document_id)
    raise_for_alert(screen)
    return screen.view()
