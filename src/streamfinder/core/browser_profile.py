"""
browser_profile.py
==================
Perfil de lançamento do navegador e ciclo de vida da instância do Chromium.

O perfil depende do ambiente de execução, informado explicitamente via
``Settings``:

- Local: Chromium embutido do Playwright (ou caminho explícito), sandbox
  desativado e mascaramento de automação.
- Gerenciado (Vercel / AWS Lambda): argumentos para containers com pouca
  memória compartilhada e processo único, sempre headless, usando o Chromium
  do sistema quando o do Playwright não estiver disponível.

Em ambos os casos o contexto usa um user agent realista e ignora erros de
certificado (páginas de embed com certificados defeituosos).
"""

import asyncio
import logging
import os
import platform
import shutil
from typing import Any, Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from streamfinder.config import Settings

logger = logging.getLogger(__name__)

# Limite de cada etapa do encerramento (browser.close e playwright.stop).
CLOSE_TIMEOUT = 5.0


COMMON_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--mute-audio",
    "--disable-blink-features=AutomationControlled",
]

MANAGED_ARGS: List[str] = [
    "--single-process",
    "--no-zygote",
    "--disable-accelerated-2d-canvas",
]


class LaunchError(RuntimeError):
    """O navegador não pôde ser iniciado (binário ausente, ambiente incorreto)."""


# ---------------------------------------------------------------------------
# Detecção de executáveis por sistema operacional
# ---------------------------------------------------------------------------

def _get_os() -> str:
    """Retorna 'windows', 'linux' ou 'macos'."""
    s = platform.system().lower()
    if s == "windows":
        return "windows"
    if s == "darwin":
        return "macos"
    return "linux"


_EXECUTABLES: Dict[str, List[str]] = {
    "windows": [
        r"%PROGRAMFILES%\Google\Chrome\Application\chrome.exe",
        r"%PROGRAMFILES(X86)%\Google\Chrome\Application\chrome.exe",
        r"%LOCALAPPDATA%\Chromium\Application\chrome.exe",
    ],
    "linux": [
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/snap/bin/chromium",
        "/opt/chromium/chromium",
    ],
    "macos": [
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Chromium.app/Contents/MacOS/Chromium",
    ],
}


def find_browser_executable() -> Optional[str]:
    """
    Localiza um executável Chromium/Chrome no sistema operacional atual.

    Retorna
    -------
    str ou None
        Caminho absoluto para o executável, ou None se não encontrado.
    """
    for path in _EXECUTABLES.get(_get_os(), []):
        expanded = os.path.expandvars(os.path.expanduser(path))
        if os.path.isfile(expanded):
            return expanded
    for name in ("chromium", "chromium-browser", "google-chrome"):
        found = shutil.which(name)
        if found:
            return found
    return None


# ---------------------------------------------------------------------------
# Construção dos kwargs de lançamento
# ---------------------------------------------------------------------------

def build_launch_kwargs(settings: Settings) -> Dict[str, Any]:
    """
    Constrói os argumentos de ``playwright.chromium.launch`` para o ambiente.

    Retorna
    -------
    dict com chaves "headless", "args" e, quando houver, "executable_path".
    """
    args = list(COMMON_ARGS)
    headless = settings.headless
    executable = settings.executable_path

    if settings.managed:
        args.extend(MANAGED_ARGS)
        headless = True
        if not executable:
            executable = find_browser_executable()

    kwargs: Dict[str, Any] = {"headless": headless, "args": args}
    if executable:
        kwargs["executable_path"] = executable
    return kwargs


def build_context_kwargs(settings: Settings) -> Dict[str, Any]:
    """Argumentos de ``browser.new_context``."""
    return {
        "user_agent": settings.user_agent,
        "ignore_https_errors": True,
    }


# ---------------------------------------------------------------------------
# Ciclo de vida do navegador
# ---------------------------------------------------------------------------

class BrowserHandle:
    """
    Instância de navegador pertencente a uma única sessão.

    ``close()`` encerra navegador e driver do Playwright; chamadas repetidas
    não têm efeito.
    """

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        close_timeout: float = CLOSE_TIMEOUT,
    ):
        self.playwright = playwright
        self.browser = browser
        self.context = context
        self.close_timeout = close_timeout
        self.closed = False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await asyncio.wait_for(self.browser.close(), timeout=self.close_timeout)
        except asyncio.TimeoutError:
            logger.warning("[!] Navegador não fechou em %.1fs; seguindo.", self.close_timeout)
        except Exception as e:
            logger.debug("Erro ao fechar o navegador: %s", e)
        finally:
            try:
                await asyncio.wait_for(self.playwright.stop(), timeout=self.close_timeout)
            except asyncio.TimeoutError:
                logger.warning("[!] Driver do Playwright não encerrou em %.1fs.", self.close_timeout)


class BrowserLauncher:
    """Inicia o Chromium com o perfil derivado de ``Settings``."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def launch(self) -> BrowserHandle:
        launch_kwargs = build_launch_kwargs(self.settings)
        logger.debug(
            "[*] Iniciando Chromium (gerenciado=%s, executável=%s)",
            self.settings.managed, launch_kwargs.get("executable_path", "embutido"),
        )

        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(**launch_kwargs)
        except Exception as e:
            await playwright.stop()
            raise LaunchError(f"Falha ao iniciar o navegador: {e}") from e

        try:
            context = await browser.new_context(**build_context_kwargs(self.settings))
        except Exception as e:
            await browser.close()
            await playwright.stop()
            raise LaunchError(f"Falha ao criar o contexto do navegador: {e}") from e

        return BrowserHandle(playwright, browser, context)
