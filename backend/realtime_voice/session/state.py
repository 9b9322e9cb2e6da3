"""세션 상태 모듈.

세션 컨트롤러가 단독으로 소유하고 변경하는 Session 집합체와 상태 정의.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from ..shared import Credential, ErrorInfo, RealtimeSessionError, SessionSnapshot


class SessionState(str, Enum):
    """세션 상태.

    IDLE → ACQUIRING_RESOURCES → NEGOTIATING → CONNECTED,
    ERROR와 IDLE(cancel 이후)은 언제든 돌아올 수 있는 지점입니다.
    """

    IDLE = "Idle"
    ACQUIRING_RESOURCES = "AcquiringResources"
    NEGOTIATING = "Negotiating"
    CONNECTED = "Connected"
    ERROR = "Error"


@dataclass
class Session:
    """하나의 connect → negotiate → connected → cancel 생명주기 상태.

    Attributes:
        state (SessionState): 현재 상태
        local_stream: 획득한 마이크 스트림 (없으면 None)
        transport: 피어 전송 (NEGOTIATING/CONNECTED에서만 존재)
        credential (Optional[Credential]): 연결 시도마다 한 번만 기록되는 인증키
        muted (bool): 음소거 여부 (스트림이 없으면 의미 없음)
        transcript_fragments (List[str]): 수신 순서대로 쌓인 텍스트 조각
        log (List[str]): 사람이 읽을 수 있는 상태 메시지
        error (Optional[RealtimeSessionError]): 가장 최근의 치명적 오류
    """

    state: SessionState = SessionState.IDLE
    local_stream: Optional[Any] = None
    transport: Optional[Any] = None
    credential: Optional[Credential] = None
    muted: bool = False
    transcript_fragments: List[str] = field(default_factory=list)
    log: List[str] = field(default_factory=list)
    error: Optional[RealtimeSessionError] = None

    @property
    def is_muted(self) -> bool:
        return self.muted if self.local_stream is not None else False

    @property
    def transcript(self) -> str:
        return "".join(self.transcript_fragments)

    def begin_attempt(self) -> None:
        """새 연결 시도를 위해 로그, 트랜스크립트, 오류, 인증키를 초기화합니다."""
        self.log = []
        self.transcript_fragments = []
        self.error = None
        self.credential = None

    def set_credential(self, credential: Credential) -> None:
        if self.credential is not None:
            raise RuntimeError("credential already acquired for this connection attempt")
        self.credential = credential

    def append_log(self, line: str) -> None:
        self.log.append(line)

    def append_transcript(self, fragment: str) -> None:
        self.transcript_fragments.append(fragment)

    def snapshot(self) -> SessionSnapshot:
        error = None
        if self.error is not None:
            error = ErrorInfo(
                type=type(self.error).__name__,
                kind=self.error.kind_name,
                detail=self.error.detail,
                message=self.error.describe(),
            )
        return SessionSnapshot(
            state=self.state.value,
            connected=self.state == SessionState.CONNECTED,
            muted=self.is_muted,
            has_stream=self.local_stream is not None,
            error=error,
            log=list(self.log),
            transcript=self.transcript,
        )
