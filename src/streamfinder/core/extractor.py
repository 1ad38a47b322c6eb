"""
extractor.py
============
Orquestrador da descoberta de streams.

Recebe o endereço de uma página de embed, abre exatamente uma
``DiscoverySession``, aguarda o estado terminal e devolve a URL do stream ou
ausência. Nenhuma falha interna é propagada ao chamador: tudo vira um
``DiscoveryResult`` sem URL acompanhado de um registro de diagnóstico.
"""

import ipaddress
import logging
from typing import Callable, Optional, Sequence
from urllib.parse import urlsplit

import validators

from streamfinder.config import Settings
from streamfinder.core.interaction import InteractionDriver
from streamfinder.core.policy import ResourcePolicy
from streamfinder.core.session import DiscoveryResult, DiscoverySession, SessionState

logger = logging.getLogger(__name__)

# Nomes locais que nunca são carregados no navegador. IPs literais são
# checados por faixa (privada, loopback, link-local, reservada, não especificada).
_LOCAL_HOSTNAMES = ("localhost",)


class StreamExtractor:
    """
    Descobre a URL de stream (.m3u8 / .mp4) de páginas de embed.

    Parâmetros
    ----------
    settings : Settings, opcional
        Configuração (padrão: ``Settings()``).
    policy : ResourcePolicy, opcional
        Política de recursos compartilhada pelas sessões (é imutável).
    launcher_factory : callable, opcional
        Recebe ``Settings`` e retorna um launcher novo por sessão.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        policy: Optional[ResourcePolicy] = None,
        launcher_factory: Optional[Callable[[Settings], object]] = None,
    ):
        self.settings = settings or Settings()
        self.policy = policy or ResourcePolicy.from_preset(self.settings.block_preset)
        self.launcher_factory = launcher_factory

    # -----------------------------------------------------------------------
    # Validação de URL
    # -----------------------------------------------------------------------

    def validate_url(self, url: str) -> bool:
        """Valida se a URL é segura e bem formatada."""
        if not validators.url(url):
            return False
        if not url.lower().startswith(("http://", "https://")):
            return False
        try:
            host = urlsplit(url).hostname
        except ValueError:
            return False
        if not host:
            return False
        if host in _LOCAL_HOSTNAMES or host.endswith(".localhost"):
            return False
        try:
            address = ipaddress.ip_address(host)
        except ValueError:
            return True
        return not (
            address.is_private
            or address.is_loopback
            or address.is_link_local
            or address.is_unspecified
            or address.is_reserved
        )

    # -----------------------------------------------------------------------
    # Descoberta
    # -----------------------------------------------------------------------

    def new_session(self, target_url: str, selectors: Optional[Sequence[str]] = None) -> DiscoverySession:
        launcher = self.launcher_factory(self.settings) if self.launcher_factory else None
        return DiscoverySession(
            target_url,
            self.settings,
            policy=self.policy,
            launcher=launcher,
            driver=InteractionDriver(selectors),
        )

    async def extract(self, target_url: str, selectors: Optional[Sequence[str]] = None) -> DiscoveryResult:
        """
        Executa uma sessão de descoberta para ``target_url``.

        Parâmetros
        ----------
        target_url : str
            Página de embed.
        selectors : Sequence[str], opcional
            Seletores de play específicos do provedor.

        Retorna
        -------
        DiscoveryResult (estado RESOLVED, TIMED_OUT ou FAILED).
        """
        logger.info("[*] Analisando: %s", target_url)
        if not self.validate_url(target_url):
            logger.warning("[!] URL inválida ou insegura: %s", target_url)
            return DiscoveryResult(target_url=target_url, error="URL inválida ou insegura")

        try:
            session = self.new_session(target_url, selectors)
            return await session.run()
        except Exception as e:
            logger.exception("[!] Falha ao executar a sessão de %s", target_url)
            return DiscoveryResult(target_url=target_url, state=SessionState.FAILED, error=str(e))

    async def discover(self, target_url: str, selectors: Optional[Sequence[str]] = None) -> Optional[str]:
        """Atalho: retorna apenas a URL do stream, ou None."""
        result = await self.extract(target_url, selectors)
        return result.stream_url if result.found else None
