from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    # Anything but an array is stored as []
    preferences: Any = None


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class PreferencesUpdateRequest(BaseModel):
    # Checked in the route so a non-array gets its own message
    preferences: Any = None


class MessageResponse(BaseModel):
    message: str


class LoginResponse(BaseModel):
    message: str
    token: str


class PreferencesResponse(BaseModel):
    message: str
    preferences: list


class NewsResponse(BaseModel):
    news: list
