from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session
from campusnet.db.database import get_session
from campusnet.models.reaction import SubjectType
from campusnet.models.shared_file import SharedFile, FileCategory
from campusnet.models.user import User
from campusnet.schemas.shared_file import FileCreate, FileResponse, FileUpdate
from campusnet.core.security import get_current_active_user, get_optional_current_user
from campusnet.services.subject_store import SubjectStore
from typing import List, Optional

router = APIRouter()

def _visible_file(session: Session, file_id: str, current_user: Optional[User]) -> SharedFile:
    shared = session.get(SharedFile, file_id)
    if not shared or (not shared.is_public and (current_user is None or current_user.id != shared.uploader_id)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found"
        )
    return shared

@router.post("", response_model=FileResponse, status_code=status.HTTP_201_CREATED, summary="Register an uploaded file")
def create_file(
    file_in: FileCreate,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """Register the metadata of an uploaded file"""
    if session.scalar(select(SharedFile.id).where(SharedFile.filename == file_in.filename)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Filename already registered"
        )
    shared = SharedFile(uploader_id=current_user.id, **file_in.model_dump())
    session.add(shared)
    session.commit()
    session.refresh(shared)
    return shared

@router.get("", response_model=List[FileResponse], summary="List shared files")
def list_files(
    subject: Optional[str] = None,
    category: Optional[FileCategory] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """List public files and the caller's own, best rated first"""
    query = select(SharedFile)
    if current_user is not None:
        query = query.where(or_(SharedFile.is_public.is_(True), SharedFile.uploader_id == current_user.id))
    else:
        query = query.where(SharedFile.is_public.is_(True))
    if subject:
        query = query.where(SharedFile.subject == subject)
    if category:
        query = query.where(SharedFile.category == category)
    return session.scalars(
        query.order_by(SharedFile.vote_score.desc(), SharedFile.created_at.desc()).offset(offset).limit(limit)
    ).all()

@router.get("/discover/popular", response_model=List[FileResponse], summary="Most downloaded public files")
def popular_files(
    limit: int = Query(10, ge=1, le=50),
    session: Session = Depends(get_session)
):
    """List public files by downloads, then by score"""
    return session.scalars(
        select(SharedFile).where(SharedFile.is_public.is_(True)).order_by(
            SharedFile.download_count.desc(), SharedFile.vote_score.desc(), SharedFile.created_at.desc()
        ).limit(limit)
    ).all()

@router.get("/{file_id}", response_model=FileResponse, summary="Get file metadata")
def get_file(
    file_id: str,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """Get file metadata"""
    return _visible_file(session, file_id, current_user)

@router.post("/{file_id}/download", response_model=FileResponse, summary="Count a download")
def download_file(
    file_id: str,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """Count a download and return the metadata holding the file path"""
    _visible_file(session, file_id, current_user)
    session.execute(
        update(SharedFile).where(SharedFile.id == file_id).values(download_count=SharedFile.download_count + 1),
        execution_options={"synchronize_session": "fetch"}
    )
    session.commit()
    return _visible_file(session, file_id, current_user)

@router.put("/{file_id}", response_model=FileResponse, summary="Update file metadata")
def update_file(
    file_id: str,
    file_update: FileUpdate,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """Update description, subject, category or visibility of a file"""
    shared = _visible_file(session, file_id, current_user)
    if shared.uploader_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to edit this file"
        )
    for field, value in file_update.model_dump(exclude_none=True).items():
        setattr(shared, field, value)
    session.commit()
    session.refresh(shared)
    return shared

@router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a file and its votes")
def delete_file(
    file_id: str,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """Delete file metadata and every vote on it"""
    shared = _visible_file(session, file_id, current_user)
    if shared.uploader_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to delete this file"
        )
    SubjectStore(session).delete(SubjectType.FILE, file_id)
