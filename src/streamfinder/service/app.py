"""
app.py
======
Serviço HTTP compatível com addons do Stremio.

Rotas:
- ``GET /manifest.json``: manifesto do addon.
- ``GET /stream/{type}/{id}.json``: zero ou um descritor de stream com os
  cabeçalhos (Referer, User-Agent) exigidos pelo servidor de mídia.

Qualquer falha vira ``{"streams": []}``; o serviço nunca expõe estados
parciais.
"""

import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from streamfinder import __version__
from streamfinder.config import Settings
from streamfinder.core.extractor import StreamExtractor
from streamfinder.metadata import CONTENT_KINDS, TmdbResolver, parse_content_id
from streamfinder.providers.generic.base import BaseProvider
from streamfinder.providers.manager import ProviderManager

logger = logging.getLogger(__name__)


def build_manifest(provider: BaseProvider) -> Dict[str, Any]:
    return {
        "id": "community.streamfinder." + provider.name.lower().replace(" ", ""),
        "version": __version__,
        "name": f"{provider.name} (streamfinder)",
        "description": f"Clica no play do {provider.name} e captura o link do stream",
        "resources": ["stream"],
        "types": list(CONTENT_KINDS),
        "catalogs": [],
        "idPrefixes": ["tt"],
    }


class StreamService:
    """
    Liga a resolução de metadados à descoberta de streams.

    Parâmetros
    ----------
    settings : Settings
    extractor : StreamExtractor, opcional
    resolver : objeto com ``async resolve(external_id, kind, season, episode)``, opcional
    provider : BaseProvider, opcional
        Padrão: o provedor principal do ProviderManager.
    """

    def __init__(
        self,
        settings: Settings,
        extractor: Optional[StreamExtractor] = None,
        resolver=None,
        provider: Optional[BaseProvider] = None,
    ):
        self.settings = settings
        self.provider = provider or ProviderManager().default
        self.extractor = extractor or StreamExtractor(settings)
        self.resolver = resolver or TmdbResolver(settings.tmdb_api_key, self.provider)

    def describe(self, stream_url: str) -> Dict[str, Any]:
        """Descritor de stream no formato do Stremio."""
        return {
            "title": f"▶️ {self.provider.name}",
            "url": stream_url,
            "behaviorHints": {
                "notWebReady": True,
                "proxyHeaders": {
                    "request": {
                        "Referer": self.provider.referer,
                        "User-Agent": self.settings.user_agent,
                    },
                },
            },
        }

    async def streams(self, kind: str, content_id: str) -> List[Dict[str, Any]]:
        if kind not in CONTENT_KINDS:
            return []
        try:
            content = parse_content_id(content_id)
            target_url = await self.resolver.resolve(
                content.imdb_id, kind, content.season, content.episode
            )
            if not target_url:
                return []

            stream_url = await self.extractor.discover(target_url, self.provider.play_selectors)
            if not stream_url:
                logger.info("[-] Falha ao capturar link para: %s", target_url)
                return []
            return [self.describe(stream_url)]
        except Exception:
            logger.exception("[!] Erro no handler de streams (%s %s)", kind, content_id)
            return []


def create_app(settings: Optional[Settings] = None, service: Optional[StreamService] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    service = service or StreamService(settings)

    app = FastAPI(title="streamfinder", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.state.service = service

    @app.get("/manifest.json")
    async def manifest():
        return build_manifest(service.provider)

    @app.get("/stream/{kind}/{content_id}.json")
    async def stream(kind: str, content_id: str):
        return {"streams": await service.streams(kind, content_id)}

    return app


def serve(settings: Settings, host: str = "0.0.0.0") -> None:
    """Sobe o serviço com uvicorn na porta configurada."""
    logger.info("[*] Servidor rodando na porta %d", settings.port)
    uvicorn.run(create_app(settings), host=host, port=settings.port)
