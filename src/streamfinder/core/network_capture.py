"""
network_capture.py
==================
Interceptação de requisições e detecção da URL de stream candidata durante a
navegação automatizada com Playwright.

- ``CandidateDetector``: slot de escrita única com a primeira URL de stream.
- ``RequestInterceptor``: rota catch-all no BrowserContext que consulta a
  ResourcePolicy e resolve cada requisição (continue / abort) antes que o
  navegador prossiga.

Toda rota recebida é resolvida exatamente uma vez. Uma rota esquecida trava o
carregamento da página indefinidamente.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import BrowserContext, Error as PlaywrightError, Route

from streamfinder.core.policy import (
    Disposition,
    ResourceKind,
    ResourcePolicy,
    StreamPredicate,
    is_stream_url,
)

logger = logging.getLogger(__name__)

ROUTE_PATTERN = "**/*"


# ---------------------------------------------------------------------------
# Detector de candidatos
# ---------------------------------------------------------------------------

class CandidateDetector:
    """
    Guarda a primeira URL que satisfaz o predicado de stream.

    Uma vez preenchido, o slot nunca é sobrescrito nem limpo.

    Uso típico
    ----------
    >>> detector = CandidateDetector()
    >>> detector.offer("https://cdn.example/video/abc.m3u8")
    True
    >>> detector.peek()
    'https://cdn.example/video/abc.m3u8'
    """

    def __init__(self, predicate: StreamPredicate = is_stream_url):
        self.predicate = predicate
        self._match: Optional[str] = None

    def offer(self, url: str) -> bool:
        """Registra a URL se ela casar e o slot estiver vazio. Retorna True se registrou."""
        if self._match is not None or not self.predicate(url):
            return False
        self._match = url
        logger.info("[✓] Stream encontrado: %s", url)
        return True

    def peek(self) -> Optional[str]:
        """Leitura não bloqueante do slot."""
        return self._match

    def has_match(self) -> bool:
        return self._match is not None

    def __repr__(self) -> str:
        return f"CandidateDetector(match={self._match!r})"


# ---------------------------------------------------------------------------
# Interceptador de requisições
# ---------------------------------------------------------------------------

@dataclass
class InterceptorStats:
    """Contadores de disposição das requisições de uma sessão."""
    allowed: int = 0
    aborted: int = 0
    candidates: int = 0
    unresolved_errors: int = 0

    @property
    def total(self) -> int:
        return self.allowed + self.aborted + self.candidates


class RequestInterceptor:
    """
    Aplica a ResourcePolicy a cada requisição do contexto do navegador.

    Disposições:
    - ALLOW     → ``route.continue_()``
    - ABORT     → ``route.abort()`` (nenhum payload é transferido)
    - CANDIDATE → entrega a URL ao detector e aborta (só a URL interessa)
    """

    def __init__(self, policy: ResourcePolicy, detector: CandidateDetector):
        self.policy = policy
        self.detector = detector
        self.stats = InterceptorStats()

    async def attach(self, context: BrowserContext) -> None:
        """Registra a rota catch-all. Cobre todas as páginas e frames do contexto."""
        await context.route(ROUTE_PATTERN, self.handle_route)

    def decide(self, resource_type: str, url: str) -> Disposition:
        """
        Disposição de uma requisição. Falhas da própria política resultam em
        ALLOW para que a requisição nunca fique pendente.
        """
        try:
            return self.policy.classify(ResourceKind.from_resource_type(resource_type), url)
        except Exception:
            logger.exception("[!] Erro ao classificar %s; liberando requisição.", url)
            return Disposition.ALLOW

    async def handle_route(self, route: Route) -> None:
        request = route.request
        url = request.url
        disposition = self.decide(request.resource_type, url)

        if disposition is Disposition.CANDIDATE:
            self.stats.candidates += 1
            self.detector.offer(url)
            await self._resolve(route, abort=True)
        elif disposition is Disposition.ABORT:
            self.stats.aborted += 1
            await self._resolve(route, abort=True)
        else:
            self.stats.allowed += 1
            await self._resolve(route, abort=False)

    async def _resolve(self, route: Route, abort: bool) -> None:
        try:
            if abort:
                await route.abort()
            else:
                await route.continue_()
        except PlaywrightError as e:
            # Página ou contexto já fechados.
            self.stats.unresolved_errors += 1
            logger.debug("Rota não resolvida (%s): %s", route.request.url, e)
