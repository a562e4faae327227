"""Pydantic schemas for admin API."""

from typing import List

from pydantic import BaseModel

from inquiry_service.shared.contact.schemas import SubmissionOut


class LoginResponse(BaseModel):
    success: bool
    message: str
    token: str


class SubmissionListResponse(BaseModel):
    success: bool
    submissions: List[SubmissionOut]
    count: int


class DeleteResponse(BaseModel):
    success: bool
    message: str
