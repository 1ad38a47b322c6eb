"""
manager.py
==========
Gerenciador de provedores do streamfinder.

Responsável por registrar provedores e selecionar o mais adequado para uma
URL ou nome. Provedores específicos têm prioridade sobre o genérico.
"""

import re
from typing import List, Optional

from streamfinder.providers.generic.base import BaseProvider, GenericProvider
from streamfinder.providers.specific_sites.vidking import VidKingProvider


class ProviderManager:
    """
    Gerencia o registro e seleção de provedores.

    Provedores são avaliados em ordem de registro. O primeiro cujo
    domain_pattern casar com a URL fornecida será utilizado. Se nenhum casar,
    o GenericProvider é retornado como fallback.
    """

    def __init__(self):
        self.providers: List[BaseProvider] = []
        self.generic_provider = GenericProvider()
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Registra os provedores incluídos no pacote."""
        self.register_provider(VidKingProvider())

    def register_provider(self, provider: BaseProvider) -> None:
        """Registra um provedor no gerenciador."""
        self.providers.append(provider)

    @property
    def default(self) -> BaseProvider:
        """Primeiro provedor registrado (usado pelo serviço)."""
        return self.providers[0] if self.providers else self.generic_provider

    def get(self, name: str) -> Optional[BaseProvider]:
        """Busca um provedor pelo nome (case-insensitive)."""
        for provider in self.providers:
            if provider.name.lower() == name.lower():
                return provider
        return None

    def get_provider_for_url(self, url: str) -> BaseProvider:
        """
        Retorna o provedor mais adequado para a URL fornecida.
        Fallback: GenericProvider.
        """
        for provider in self.providers:
            if re.search(provider.domain_pattern, url, re.IGNORECASE):
                return provider
        return self.generic_provider
