"""
metadata.py
===========
Resolução de metadados: converte um ID externo (IMDb) no endereço da página
de embed do provedor.

Fluxo: ``tt1234567`` → TMDB ``/find`` → ID do TMDB → URL de embed do
provedor. Qualquer falha (chave ausente, erro HTTP, título desconhecido)
resulta em None, antes de qualquer navegador ser iniciado.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from streamfinder.providers.generic.base import BaseProvider

logger = logging.getLogger(__name__)

TMDB_BASE_URL = "https://api.themoviedb.org/3"

CONTENT_KINDS = ("movie", "series")


@dataclass(frozen=True)
class ContentRequest:
    """ID de conteúdo no formato do Stremio: ``tt123`` ou ``tt123:temporada:episódio``."""
    imdb_id: str
    season: Optional[int] = None
    episode: Optional[int] = None


def parse_content_id(content_id: str) -> ContentRequest:
    """
    Separa o ID do IMDb da temporada e do episódio.

    >>> parse_content_id("tt0944947:1:2")
    ContentRequest(imdb_id='tt0944947', season=1, episode=2)
    """
    parts = content_id.split(":")
    imdb_id = parts[0]
    season = episode = None
    try:
        if len(parts) > 1 and parts[1]:
            season = int(parts[1])
        if len(parts) > 2 and parts[2]:
            episode = int(parts[2])
    except ValueError:
        raise ValueError(f"ID de conteúdo inválido: {content_id!r}") from None
    return ContentRequest(imdb_id, season, episode)


class TmdbResolver:
    """
    Resolve IDs do IMDb em URLs de embed via API do TMDB.

    Parâmetros
    ----------
    api_key : str, opcional
        Chave da API do TMDB. Sem chave, toda resolução retorna None.
    provider : BaseProvider
        Provedor que monta a URL de embed a partir do ID do TMDB.
    client : httpx.AsyncClient, opcional
        Cliente HTTP (injetável para testes).
    timeout : float
        Tempo limite das requisições ao TMDB, em segundos.
    """

    def __init__(
        self,
        api_key: Optional[str],
        provider: BaseProvider,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.provider = provider
        self.client = client
        self.timeout = timeout

    async def find_tmdb_id(self, imdb_id: str, kind: str) -> Optional[int]:
        """Consulta ``/find`` e retorna o ID do TMDB do primeiro resultado do tipo."""
        if not self.api_key:
            logger.error("[!] TMDB_API_KEY ausente; não é possível resolver %s", imdb_id)
            return None

        url = f"{TMDB_BASE_URL}/find/{imdb_id}"
        params = {"api_key": self.api_key, "external_source": "imdb_id"}
        try:
            if self.client is not None:
                resp = await self.client.get(url, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    resp = await client.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("[!] Falha ao consultar o TMDB para %s: %s", imdb_id, e)
            return None

        key = "movie_results" if kind == "movie" else "tv_results"
        results = data.get(key) or []
        if not results:
            logger.info("[-] %s não encontrado no TMDB (%s)", imdb_id, kind)
            return None
        return results[0].get("id")

    async def resolve(
        self,
        external_id: str,
        kind: str,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> Optional[str]:
        """
        Retorna a URL de embed do provedor para o conteúdo, ou None.
        """
        if kind not in CONTENT_KINDS:
            return None
        tmdb_id = await self.find_tmdb_id(external_id, kind)
        if not tmdb_id:
            return None
        return self.provider.build_embed_url(tmdb_id, kind, season, episode)
