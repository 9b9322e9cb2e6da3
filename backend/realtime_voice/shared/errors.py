"""세션 오류 분류 모듈.

연결 파이프라인에서 발생하는 모든 오류는 RealtimeSessionError 하위 클래스로
표현됩니다. 각 오류는 kind(분류)와 detail(상세 내용)을 가지며, 외부 에러
싱크에 그대로 전달됩니다.

Classes:
    RealtimeSessionError: 모든 세션 오류의 기반 클래스
    CredentialError: 임시 인증키 획득 실패
    MediaAccessError: 마이크 접근 실패
    NegotiationError: offer/answer 교환 실패
    MessageDecodeError: 데이터 채널 메시지 디코딩 실패 (비치명적)
    TransportError: 피어 연결 자체의 예기치 않은 실패
"""

from enum import Enum
from typing import Optional


class CredentialErrorKind(str, Enum):
    HTTP_FAILURE = "HttpFailure"
    REJECTED = "Rejected"
    STRATEGY_MISSING = "StrategyMissing"
    TIMEOUT = "Timeout"


class MediaAccessErrorKind(str, Enum):
    PERMISSION_DENIED = "PermissionDenied"
    UNSUPPORTED = "Unsupported"


class NegotiationErrorKind(str, Enum):
    HTTP_FAILURE = "HttpFailure"


class RealtimeSessionError(Exception):
    """세션 오류 기반 클래스.

    Attributes:
        kind (Optional[str]): 오류 분류 값
        detail (str): 사람이 읽을 수 있는 상세 내용
    """

    def __init__(self, kind: Optional[Enum] = None, detail: str = ""):
        self.kind = kind
        self.detail = detail
        super().__init__(self.describe())

    @property
    def kind_name(self) -> Optional[str]:
        if self.kind is None:
            return None
        return self.kind.value if isinstance(self.kind, Enum) else str(self.kind)

    def describe(self) -> str:
        """`<Class>(<kind>): <detail>` 형식의 설명을 반환합니다."""
        name = type(self).__name__
        if self.kind_name:
            name = f"{name}({self.kind_name})"
        return f"{name}: {self.detail}" if self.detail else name


class CredentialError(RealtimeSessionError):
    """임시 인증키(ephemeral key) 획득 실패.

    Attributes:
        status (Optional[int]): HTTP_FAILURE일 때의 응답 상태 코드
    """

    def __init__(
        self,
        kind: CredentialErrorKind,
        detail: str = "",
        status: Optional[int] = None,
    ):
        self.status = status
        if status is not None and not detail:
            detail = f"status {status}"
        super().__init__(kind, detail)


class MediaAccessError(RealtimeSessionError):
    """마이크 접근 실패 (권한 거부 또는 캡처 장치 없음)."""

    def __init__(self, kind: MediaAccessErrorKind, reason: str = ""):
        self.reason = reason
        super().__init__(kind, reason)


class NegotiationError(RealtimeSessionError):
    """SDP offer/answer 교환 실패.

    Attributes:
        status (Optional[int]): 응답 상태 코드 (네트워크 오류 시 None)
        status_text (str): 응답 상태 메시지
    """

    def __init__(self, status: Optional[int], status_text: str = ""):
        self.status = status
        self.status_text = status_text
        if status is None:
            detail = status_text
        else:
            detail = f"{status} - {status_text}" if status_text else str(status)
        super().__init__(NegotiationErrorKind.HTTP_FAILURE, detail)


class MessageDecodeError(RealtimeSessionError):
    """데이터 채널 메시지를 구조화된 이벤트로 해석할 수 없음."""

    def __init__(self, raw: str, detail: str = ""):
        self.raw = raw
        super().__init__(None, detail)


class TransportError(RealtimeSessionError):
    """피어 연결 또는 SDP 처리 중 예기치 않은 실패."""

    def __init__(self, detail: str = ""):
        super().__init__(None, detail)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "TransportError":
        return cls(f"{type(exc).__name__} - {exc}")
