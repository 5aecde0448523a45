# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Research endpoints – list, upload, edit and delete papers.

Upload and edit are multipart (the PDF travels in the ``paper`` field).  The
caller identifies itself with ``userId``; edit and delete succeed only when
it equals the paper's ``authorId`` (see :mod:`research.service`).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from auth.schemas import MessageResponse
from research.schemas import DeletePaperRequest, PaperMutationResponse, PaperResponse
from research.service import PaperService, get_paper_service

router = APIRouter(prefix="/api/research", tags=["research"])


# ---------------------------------------------------------------------------
# GET /api/research  – all papers, newest first
# ---------------------------------------------------------------------------


@router.get("", response_model=List[PaperResponse])
def list_papers(
    authorId: Optional[str] = Query(None, description="Only papers by this author"),
    papers: PaperService = Depends(get_paper_service),
):
    return papers.list_papers(authorId)


# ---------------------------------------------------------------------------
# POST /api/research/upload  – publish a new paper
# ---------------------------------------------------------------------------


@router.post("/upload", response_model=PaperMutationResponse, status_code=status.HTTP_201_CREATED)
def upload_paper(
    title: Optional[str] = Form(None),
    abstract: Optional[str] = Form(None),
    tags: Optional[str] = Form(None, description="Comma-separated"),
    authorId: Optional[str] = Form(None),
    userId: Optional[str] = Form(None),
    authorName: Optional[str] = Form(None),
    paper: Optional[UploadFile] = File(None),
    papers: PaperService = Depends(get_paper_service),
):
    created = papers.create(
        title,
        paper,
        caller_id=authorId or userId,
        author_name=authorName,
        abstract=abstract,
        tags=tags,
    )
    return PaperMutationResponse(
        message="Research paper uploaded successfully",
        paper=PaperResponse.model_validate(created),
    )


# ---------------------------------------------------------------------------
# PUT /api/research/{id}  – edit (author only)
# ---------------------------------------------------------------------------


@router.put("/{paper_id}", response_model=PaperMutationResponse)
def edit_paper(
    paper_id: str,
    userId: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    abstract: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    paper: Optional[UploadFile] = File(None),
    papers: PaperService = Depends(get_paper_service),
):
    updated = papers.edit(paper_id, userId, title=title, abstract=abstract, tags=tags, file=paper)
    return PaperMutationResponse(
        message="Research paper updated successfully",
        paper=PaperResponse.model_validate(updated),
    )


# ---------------------------------------------------------------------------
# DELETE /api/research/{id}  – delete (author only)
# ---------------------------------------------------------------------------


@router.delete("/{paper_id}", response_model=MessageResponse)
def delete_paper(
    paper_id: str,
    body: Optional[DeletePaperRequest] = None,
    userId: Optional[str] = Query(None, description="Alternative to the JSON body"),
    papers: PaperService = Depends(get_paper_service),
):
    caller_id = (body.user_id if body else None) or userId
    papers.delete(paper_id, caller_id)
    return MessageResponse(message="Research paper deleted successfully")
