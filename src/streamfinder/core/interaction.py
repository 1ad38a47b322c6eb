"""
interaction.py
==============
Driver de interação: procura um botão de play em todos os frames da página
(documento principal e iframes aninhados, em ordem de documento) e dispara um
clique no primeiro elemento encontrado.

A interação é best-effort. Frames de outra origem que recusam a injeção de
script são contados como inacessíveis e ignorados; não encontrar nada não é
erro, pois algumas páginas começam a carregar o stream sem clique.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError, Frame, Page

logger = logging.getLogger(__name__)


# Seletores em ordem de especificidade: players conhecidos, controles
# genéricos com "play" no nome e, por último, o elemento <video>.
DEFAULT_PLAY_SELECTORS: List[str] = [
    ".vjs-big-play-button",
    ".jw-display-icon-container",
    ".play-button",
    "button[class*='play']",
    "div[class*='play']",
    "video",
]

# Retorna o seletor clicado ou null.
_CLICK_FIRST_MATCH_JS = """(selectors) => {
    for (const s of selectors) {
        const el = document.querySelector(s);
        if (el) {
            el.click();
            return s;
        }
    }
    return null;
}"""


@dataclass
class InteractionReport:
    """Resultado da tentativa de interação em uma página."""
    clicked: bool = False
    selector: Optional[str] = None
    frame_url: Optional[str] = None
    frames_scanned: int = 0
    no_match: int = 0
    inaccessible: int = 0


def iter_frames(page: Page) -> Iterator[Frame]:
    """Percorre os frames da página em profundidade, a partir do frame principal."""
    stack = [page.main_frame]
    while stack:
        frame = stack.pop()
        yield frame
        # Filhos empilhados ao contrário para manter a ordem de documento.
        stack.extend(reversed(frame.child_frames))


class InteractionDriver:
    """
    Localiza e ativa o primeiro gatilho de reprodução da página.

    Parâmetros
    ----------
    selectors : Sequence[str], opcional
        Lista ordenada de seletores CSS (padrão: DEFAULT_PLAY_SELECTORS).
    """

    def __init__(self, selectors: Optional[Sequence[str]] = None):
        self.selectors = list(selectors) if selectors else list(DEFAULT_PLAY_SELECTORS)

    async def activate(self, page: Page, report: Optional[InteractionReport] = None) -> InteractionReport:
        """
        Clica no primeiro gatilho de play encontrado.

        ``report`` pode ser fornecido pelo chamador: é preenchido frame a frame,
        então as contagens parciais sobrevivem a um cancelamento.
        """
        if report is None:
            report = InteractionReport()
        logger.debug("[*] Procurando botão de play em todos os frames...")

        for frame in iter_frames(page):
            if frame.is_detached():
                continue
            report.frames_scanned += 1
            try:
                selector = await frame.evaluate(_CLICK_FIRST_MATCH_JS, self.selectors)
            except PlaywrightError as e:
                report.inaccessible += 1
                logger.debug("Frame inacessível (%s): %s", frame.url, e)
                continue

            if selector:
                report.clicked = True
                report.selector = selector
                report.frame_url = frame.url
                logger.info("[▶] Clique em '%s' no frame %s", selector, frame.url)
                break
            report.no_match += 1

        if not report.clicked:
            logger.info(
                "[-] Nenhum botão de play ativado (%d frames, %d inacessíveis).",
                report.frames_scanned, report.inaccessible,
            )
        return report
