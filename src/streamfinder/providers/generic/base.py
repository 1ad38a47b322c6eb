from abc import ABC, abstractmethod
from typing import List, Optional

from streamfinder.core.interaction import DEFAULT_PLAY_SELECTORS


class BaseProvider(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        """Nome do provedor"""
        pass

    @property
    @abstractmethod
    def domain_pattern(self) -> str:
        """Regex para casar o domínio das páginas de embed"""
        pass

    @property
    @abstractmethod
    def referer(self) -> str:
        """Referer exigido pelo servidor de mídia do provedor"""
        pass

    @abstractmethod
    def build_embed_url(
        self,
        tmdb_id: int,
        kind: str,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> Optional[str]:
        """Monta a URL da página de embed (None se o tipo não for suportado)"""
        pass

    @property
    def play_selectors(self) -> List[str]:
        """Seletores de play tentados pelo InteractionDriver"""
        return list(DEFAULT_PLAY_SELECTORS)


class GenericProvider(BaseProvider):
    """Fallback para URLs de embed informadas diretamente (sem TMDB)."""

    @property
    def name(self) -> str:
        return "Generic Embed"

    @property
    def domain_pattern(self) -> str:
        return r".*"

    @property
    def referer(self) -> str:
        return ""

    def build_embed_url(self, tmdb_id, kind, season=None, episode=None):
        return None
