from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from flix.core.rate_limit import api_limit
from flix.api.v1.dependencies import (
    get_admin_user,
    get_stream_service,
    get_video_service,
)
from flix.db.models.users import User
from flix.features.streaming.errors import (
    InvalidContent,
    MalformedRange,
    RangeNotSatisfiable,
    StreamError,
    UpstreamError,
    UpstreamNotFound,
    VideoNotFound,
)
from flix.features.streaming.services import StreamService
from flix.features.videos.schemas import SignedUrlsOut, VideoInfoOut, VideoRecord, VideoSummary
from flix.features.videos.services import VideoService
from flix.features.videos.validation import (
    VideoValidationError,
    validate_video_create,
    validate_video_update,
)

router = APIRouter(
    prefix="/videos",
    tags=["videos"],
    responses={404: {"description": "Not Found"}},
)

# -------- Helpers --------

async def video_form_fields(
    request: Request,
    title: Optional[str] = Form(None),
    genre: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    duration: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    is_featured: Optional[str] = Form(None),
) -> Dict[str, Optional[str]]:
    # tout est reçu en texte : la conversion/validation est faite dans flix.features.videos.validation
    fields = {
        "title": title,
        "genre": genre,
        "description": description,
        "duration": duration,
        "year": year,
        "is_featured": is_featured,
    }
    # FastAPI ramène un champ vide ("") à None : on relit le formulaire brut pour
    # distinguer "absent" de "envoyé vide" (ex. description="" pour l'effacer)
    form = await request.form()
    for name, value in fields.items():
        raw = form.get(name)
        if value is None and isinstance(raw, str):
            fields[name] = raw
    return fields

async def _read_upload(upload: Optional[UploadFile]) -> Optional[bytes]:
    if upload is None or not upload.filename:
        return None
    return await upload.read()

def _unprocessable(e: VideoValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"message": "Validation failed", "errors": e.errors},
    )

def _stream_http_error(e: StreamError) -> HTTPException:
    if isinstance(e, VideoNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    if isinstance(e, InvalidContent):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, UpstreamNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video file not found")
    if isinstance(e, UpstreamError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error fetching content")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")

# -----------------------------
# Public list / detail
# -----------------------------
@router.get(
    "",
    summary="Lister les vidéos (plus récentes d'abord)",
    response_model=List[VideoSummary],
)
@api_limit
def list_videos(
    request: Request,
    featured: Optional[bool] = Query(None, description="true : seulement les vidéos mises en avant"),
    svc: VideoService = Depends(get_video_service),
):
    return svc.list_videos(featured=featured)

@router.get(
    "/featured",
    summary="Lister les vidéos mises en avant",
    response_model=List[VideoSummary],
)
@api_limit
def list_featured(request: Request, svc: VideoService = Depends(get_video_service)):
    return svc.list_featured()

@router.get(
    "/{video_id}",
    summary="Détail d'une vidéo",
    response_model=VideoRecord,
)
@api_limit
def get_video(video_id: int, request: Request, svc: VideoService = Depends(get_video_service)):
    return svc.get_video(video_id)

@router.get(
    "/{video_id}/info",
    summary="Détail enrichi (durée formatée, URLs de streaming)",
    response_model=VideoInfoOut,
)
@api_limit
def get_video_info(video_id: int, request: Request, svc: VideoService = Depends(get_video_service)):
    return svc.get_video_info(
        video_id,
        stream_url=str(request.url_for("stream_video", video_id=video_id)),
        thumbnail_url=str(request.url_for("get_thumbnail", video_id=video_id)),
    )

@router.get(
    "/{video_id}/signed",
    summary="Obtenir des URL GET signées (temporaires) vers la vidéo et la miniature",
    response_model=SignedUrlsOut,
)
@api_limit
def get_signed_urls(video_id: int, request: Request, svc: VideoService = Depends(get_video_service)):
    return svc.signed_urls(video_id)

# -----------------------------
# Streaming (proxy)
# -----------------------------
@router.get(
    "/{video_id}/stream",
    summary="Streamer la vidéo (support des requêtes Range)",
    response_class=StreamingResponse,
    responses={
        200: {"description": "Vidéo complète"},
        206: {"description": "Contenu partiel"},
        416: {"description": "Plage invalide ou hors limites"},
        404: {"description": "Vidéo ou fichier introuvable"},
        500: {"description": "Erreur du stockage"},
    },
)
@api_limit
def stream_video(
    video_id: int,
    request: Request,
    range_header: Optional[str] = Header(default=None, alias="Range"),
    svc: StreamService = Depends(get_stream_service),
):
    try:
        result = svc.stream_video(video_id, range_header)
    except MalformedRange:
        return PlainTextResponse("Invalid range", status_code=416)
    except RangeNotSatisfiable as e:
        return Response(
            status_code=416,
            headers={"Content-Range": f"bytes */{e.total_length}"},
        )
    except StreamError as e:
        raise _stream_http_error(e)

    return StreamingResponse(
        result.body,
        status_code=result.status_code,
        headers=result.headers,
        media_type=result.media_type,
    )

@router.get(
    "/{video_id}/thumbnail",
    summary="Miniature de la vidéo",
    response_class=Response,
)
@api_limit
def get_thumbnail(video_id: int, request: Request, svc: StreamService = Depends(get_stream_service)):
    try:
        result = svc.thumbnail(video_id)
    except StreamError as e:
        raise _stream_http_error(e)
    return Response(
        content=b"".join(result.body),
        status_code=result.status_code,
        headers=result.headers,
        media_type=result.media_type,
    )

# -----------------------------
# Admin : create / update / delete
# -----------------------------
@router.post(
    "",
    summary="Créer une vidéo (upload miniature + vidéo → stockage → DB)",
    status_code=status.HTTP_201_CREATED,
    response_model=VideoRecord,
    responses={
        401: {"description": "Non authentifié"},
        403: {"description": "Réservé aux admins"},
        422: {"description": "Données invalides"},
        502: {"description": "Erreur du stockage"},
    },
)
@api_limit
async def create_video(
    request: Request,
    fields: Dict[str, Optional[str]] = Depends(video_form_fields),
    thumbnail: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    admin: User = Depends(get_admin_user),
    svc: VideoService = Depends(get_video_service),
):
    try:
        submission = validate_video_create(
            fields,
            thumbnail=await _read_upload(thumbnail),
            video=await _read_upload(video),
        )
    except VideoValidationError as e:
        raise _unprocessable(e)
    return svc.create(submission)

@router.put("/{video_id}", summary="Mettre à jour une vidéo", response_model=VideoRecord)
@router.patch("/{video_id}", summary="Mettre à jour une vidéo (partiel)", response_model=VideoRecord)
@router.post(
    "/{video_id}/update",
    summary="Mettre à jour une vidéo (alternative POST pour les clients form-data)",
    response_model=VideoRecord,
)
@api_limit
async def update_video(
    video_id: int,
    request: Request,
    fields: Dict[str, Optional[str]] = Depends(video_form_fields),
    thumbnail: Optional[UploadFile] = File(None),
    video: Optional[UploadFile] = File(None),
    admin: User = Depends(get_admin_user),
    svc: VideoService = Depends(get_video_service),
):
    try:
        submission = validate_video_update(
            fields,
            thumbnail=await _read_upload(thumbnail),
            video=await _read_upload(video),
        )
    except VideoValidationError as e:
        raise _unprocessable(e)
    return svc.update(video_id, submission)

@router.delete(
    "/{video_id}",
    summary="Supprimer une vidéo (objets du bucket + ligne DB)",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Supprimée"},
        401: {"description": "Non authentifié"},
        403: {"description": "Interdit"},
        404: {"description": "Introuvable"},
    },
)
@api_limit
def delete_video(
    video_id: int,
    request: Request,
    admin: User = Depends(get_admin_user),
    svc: VideoService = Depends(get_video_service),
):
    svc.delete(video_id)
    return None
