"""인증키 모듈.

임시 인증키 획득 전략과 cross-context 메시지 포트를 제공합니다.
"""

from .config import CredentialConfig, credential_config
from .message_port import LocalMessagePort, MessagePort, Subscription
from .provider import (
    CredentialFetcher,
    CredentialProvider,
    HttpCredentialProvider,
    InjectedCredentialProvider,
    MessagePortCredentialProvider,
    create_credential_provider,
    parse_credential_payload,
)

__all__ = [
    "CredentialConfig",
    "credential_config",
    "MessagePort",
    "LocalMessagePort",
    "Subscription",
    "CredentialFetcher",
    "CredentialProvider",
    "InjectedCredentialProvider",
    "HttpCredentialProvider",
    "MessagePortCredentialProvider",
    "create_credential_provider",
    "parse_credential_payload",
]
