"""
vidking.py
==========
Provedor VidKing (www.vidking.net).

As páginas de embed são endereçadas pelo ID do TMDB. O player só começa a
buscar o stream depois de um clique no botão de play, e o servidor de mídia
rejeita requisições sem o Referer do site.
"""

from typing import Optional

from streamfinder.providers.generic.base import BaseProvider


class VidKingProvider(BaseProvider):

    BASE_URL = "https://www.vidking.net"

    @property
    def name(self) -> str:
        return "VidKing"

    @property
    def domain_pattern(self) -> str:
        return r"vidking\.net"

    @property
    def referer(self) -> str:
        return f"{self.BASE_URL}/"

    def build_embed_url(
        self,
        tmdb_id: int,
        kind: str,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> Optional[str]:
        if kind == "movie":
            return f"{self.BASE_URL}/embed/movie/{tmdb_id}"
        if kind == "series":
            if season is None or episode is None:
                return None
            return f"{self.BASE_URL}/embed/tv/{tmdb_id}/{season}/{episode}"
        return None
