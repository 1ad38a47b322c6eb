"""
streamfinder.core
=================
Módulos principais do streamfinder.

- policy: Classificação de requisições (allow / abort / candidate).
- network_capture: Interceptação de rede e detecção do stream candidato.
- interaction: Clique no botão de play através de todos os frames.
- browser_profile: Perfil de lançamento e ciclo de vida do Chromium.
- session: Sessão de descoberta com prazo limitado.
- extractor: Orquestrador da descoberta.
"""

from streamfinder.core.extractor import StreamExtractor
from streamfinder.core.policy import (
    BLOCK_PRESETS,
    Disposition,
    ResourceKind,
    ResourcePolicy,
    is_stream_url,
)
from streamfinder.core.network_capture import CandidateDetector, RequestInterceptor
from streamfinder.core.interaction import DEFAULT_PLAY_SELECTORS, InteractionDriver
from streamfinder.core.session import DiscoveryResult, DiscoverySession, SessionState

__all__ = [
    "StreamExtractor",
    "BLOCK_PRESETS",
    "Disposition",
    "ResourceKind",
    "ResourcePolicy",
    "is_stream_url",
    "CandidateDetector",
    "RequestInterceptor",
    "DEFAULT_PLAY_SELECTORS",
    "InteractionDriver",
    "DiscoveryResult",
    "DiscoverySession",
    "SessionState",
]
