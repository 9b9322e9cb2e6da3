"""Lightweight shared DTOs for the credential payload and session snapshots."""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ClientSecret(BaseModel):
    """임시 인증키 본문."""

    value: str = Field(..., description="Bearer 토큰으로 사용되는 임시 키")
    expires_at: Optional[int] = Field(default=None, description="만료 시각 (epoch seconds)")


class CredentialPayload(BaseModel):
    """인증키 발급 응답 (`{client_secret: {value}}` 또는 `{error}`)."""

    client_secret: Optional[ClientSecret] = None
    error: Optional[Any] = None


class Credential(BaseModel):
    """검증이 끝난 임시 인증키."""

    model_config = {"frozen": True}

    value: str
    expires_at: Optional[int] = None


class ErrorInfo(BaseModel):
    """외부에 노출되는 오류 정보."""

    type: str
    kind: Optional[str] = None
    detail: str = ""
    message: str = ""


class SessionSnapshot(BaseModel):
    """표현 계층이 읽을 수 있는 세션 상태 스냅샷."""

    state: str
    connected: bool = False
    muted: bool = False
    has_stream: bool = False
    error: Optional[ErrorInfo] = None
    log: List[str] = Field(default_factory=list)
    transcript: str = ""
