"""
policy.py
=========
Política de carregamento de recursos aplicada a cada requisição interceptada.

A decisão é uma função pura: recebe o tipo declarado do recurso e a URL e
retorna uma ``Disposition`` (ALLOW, ABORT ou CANDIDATE). Não há estado nem
efeitos colaterais, o que permite testar a política sem navegador.

Ordem de decisão:
1. URL que casa com o predicado de stream → CANDIDATE (qualquer tipo).
2. Tipo presente no block-set → ABORT.
3. Caso contrário → ALLOW.
"""

import enum
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Iterable


# ---------------------------------------------------------------------------
# Tipos de recurso e disposições
# ---------------------------------------------------------------------------

class ResourceKind(str, enum.Enum):
    """Tipo declarado de um recurso requisitado pela página."""
    DOCUMENT = "document"
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    IMAGE = "image"
    FONT = "font"
    MEDIA = "media"
    OTHER = "other"

    @classmethod
    def from_resource_type(cls, resource_type: str) -> "ResourceKind":
        """
        Converte o ``resource_type`` do Playwright para um ResourceKind.
        Tipos sem correspondência (xhr, fetch, websocket, manifest...) viram OTHER.
        """
        try:
            return cls((resource_type or "").lower())
        except ValueError:
            return cls.OTHER


class Disposition(str, enum.Enum):
    """Destino de uma requisição interceptada."""
    ALLOW = "allow"
    ABORT = "abort"
    CANDIDATE = "candidate"


# Tipos que podem compor um block-set.
BLOCKABLE_KINDS: FrozenSet[ResourceKind] = frozenset({
    ResourceKind.IMAGE,
    ResourceKind.STYLESHEET,
    ResourceKind.FONT,
    ResourceKind.MEDIA,
    ResourceKind.SCRIPT,
})

# Presets documentados, do mais fiel ao mais econômico.
# "lean" bloqueia tudo exceto document e script; "aggressive" bloqueia
# também scripts e quebra a maioria dos players.
BLOCK_PRESETS: Dict[str, FrozenSet[ResourceKind]] = {
    "none": frozenset(),
    "visual": frozenset({ResourceKind.IMAGE, ResourceKind.STYLESHEET, ResourceKind.FONT}),
    "lean": frozenset({
        ResourceKind.IMAGE, ResourceKind.STYLESHEET, ResourceKind.FONT, ResourceKind.MEDIA,
    }),
    "aggressive": BLOCKABLE_KINDS,
}


# ---------------------------------------------------------------------------
# Predicado de stream
# ---------------------------------------------------------------------------

def is_stream_url(url: str) -> bool:
    """
    Retorna True se a URL parecer um stream reproduzível.

    Casa com ``.m3u8`` ou com ``.mp4`` desde que a URL não contenha
    ``loader`` (placeholders de carregamento que também usam .mp4).
    """
    if ".m3u8" in url:
        return True
    return ".mp4" in url and "loader" not in url


StreamPredicate = Callable[[str], bool]


# ---------------------------------------------------------------------------
# Política
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResourcePolicy:
    """
    Classificador de requisições.

    Parâmetros
    ----------
    blocked : Iterable[ResourceKind]
        Tipos que devem ser abortados. Subconjunto de BLOCKABLE_KINDS.
    predicate : callable
        Predicado de stream (padrão: ``is_stream_url``).
    """
    blocked: FrozenSet[ResourceKind] = BLOCK_PRESETS["visual"]
    predicate: StreamPredicate = field(default=is_stream_url, compare=False)

    def __post_init__(self):
        blocked = frozenset(ResourceKind(k) for k in self.blocked)
        invalid = blocked - BLOCKABLE_KINDS
        if invalid:
            names = ", ".join(sorted(k.value for k in invalid))
            raise ValueError(f"Tipos não bloqueáveis no block-set: {names}")
        object.__setattr__(self, "blocked", blocked)

    @classmethod
    def from_preset(cls, name: str, predicate: StreamPredicate = is_stream_url) -> "ResourcePolicy":
        """Constrói a política a partir de um preset nomeado."""
        try:
            blocked = BLOCK_PRESETS[name]
        except KeyError:
            raise ValueError(f"Preset de bloqueio desconhecido: {name!r}") from None
        return cls(blocked=blocked, predicate=predicate)

    def classify(self, kind: ResourceKind, url: str) -> Disposition:
        if self.predicate(url):
            return Disposition.CANDIDATE
        if kind in self.blocked:
            return Disposition.ABORT
        return Disposition.ALLOW


def describe_presets() -> Iterable[str]:
    """Linhas legíveis com cada preset e seus tipos bloqueados (usado na CLI)."""
    for name, kinds in BLOCK_PRESETS.items():
        label = ", ".join(sorted(k.value for k in kinds)) or "(nada)"
        yield f"{name}: {label}"
