"""
session.py
==========
Sessão de descoberta: uma única instância de navegador dedicada a encontrar o
stream de uma única página.

Máquina de estados::

    STARTING → LOADING → INTERACTING → POLLING → {RESOLVED | TIMED_OUT | FAILED} → CLOSED

Toda espera é limitada (navegação, atraso de estabilização, interação e
polling). O navegador é encerrado exatamente uma vez em qualquer caminho de
saída, inclusive em falhas de lançamento e cancelamento.
"""

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from playwright.async_api import (
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeoutError,
)

from streamfinder.config import Settings
from streamfinder.core.browser_profile import BrowserHandle, BrowserLauncher, LaunchError
from streamfinder.core.interaction import InteractionDriver, InteractionReport
from streamfinder.core.network_capture import (
    CandidateDetector,
    InterceptorStats,
    RequestInterceptor,
)
from streamfinder.core.policy import ResourcePolicy
from streamfinder.core.timing import Clock, Sleeper, poll_until

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    STARTING = "starting"
    LOADING = "loading"
    INTERACTING = "interacting"
    POLLING = "polling"
    RESOLVED = "resolved"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
    CLOSED = "closed"


TERMINAL_STATES = (SessionState.RESOLVED, SessionState.TIMED_OUT, SessionState.FAILED)


@dataclass
class DiscoveryResult:
    """Resultado de uma tentativa de descoberta."""
    target_url: str
    state: SessionState = SessionState.FAILED
    stream_url: Optional[str] = None
    error: Optional[str] = None
    navigation_timed_out: bool = False
    navigation_error: Optional[str] = None
    interaction: Optional[InteractionReport] = None
    stats: InterceptorStats = field(default_factory=InterceptorStats)
    elapsed: float = 0.0

    @property
    def found(self) -> bool:
        return self.state is SessionState.RESOLVED and bool(self.stream_url)


class DiscoverySession:
    """
    Orquestra uma instância de navegador para uma página alvo.

    Parâmetros
    ----------
    target_url : str
        Página de embed a ser carregada.
    settings : Settings
        Configuração explícita (ambiente, tempos, preset de bloqueio).
    policy : ResourcePolicy, opcional
        Política de recursos (padrão: preset de ``settings``).
    launcher : objeto com ``async launch() -> BrowserHandle``, opcional
        Padrão: ``BrowserLauncher(settings)``.
    driver : InteractionDriver, opcional
        Driver de interação (padrão: seletores genéricos de play).
    """

    def __init__(
        self,
        target_url: str,
        settings: Settings,
        policy: Optional[ResourcePolicy] = None,
        launcher=None,
        driver: Optional[InteractionDriver] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.target_url = target_url
        self.settings = settings
        self.policy = policy or ResourcePolicy.from_preset(settings.block_preset)
        self.launcher = launcher or BrowserLauncher(settings)
        self.driver = driver or InteractionDriver()
        self.detector = CandidateDetector(self.policy.predicate)
        self.interceptor = RequestInterceptor(self.policy, self.detector)
        self._clock = clock
        self._sleep = sleep
        self._handle: Optional[BrowserHandle] = None
        self.state = SessionState.STARTING
        self.history: List[SessionState] = [SessionState.STARTING]

    def _transition(self, state: SessionState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug("Sessão %s → %s", self.target_url, state.value)

    # -----------------------------------------------------------------------
    # Fluxo principal
    # -----------------------------------------------------------------------

    async def run(self) -> DiscoveryResult:
        """Executa a descoberta completa. Nunca levanta exceções comuns."""
        started = self._clock()
        result = DiscoveryResult(target_url=self.target_url, stats=self.interceptor.stats)

        try:
            page = await self._start()
            await self._load(page, result)
            await self._interact(page, result)
            result.stream_url = await self._poll()
            self._transition(SessionState.RESOLVED if result.stream_url else SessionState.TIMED_OUT)
        except LaunchError as e:
            result.error = str(e)
            self._transition(SessionState.FAILED)
            logger.error("[!] %s", e)
        except Exception as e:
            result.error = f"{type(e).__name__}: {e}"
            self._transition(SessionState.FAILED)
            logger.exception("[!] Erro inesperado na sessão de %s", self.target_url)
        finally:
            result.state = self.state if self.state in TERMINAL_STATES else SessionState.FAILED
            await self.close()
            result.elapsed = self._clock() - started

        if result.state is SessionState.TIMED_OUT:
            logger.info("[-] Nenhum stream em %.1fs para %s", result.elapsed, self.target_url)
        return result

    async def _start(self) -> Page:
        self._handle = await self.launcher.launch()
        return await self._handle.context.new_page()

    async def _load(self, page: Page, result: DiscoveryResult) -> None:
        self._transition(SessionState.LOADING)
        await self.interceptor.attach(self._handle.context)
        try:
            await page.goto(
                self.target_url,
                wait_until="domcontentloaded",
                timeout=self.settings.navigation_timeout * 1000,
            )
            logger.debug("[*] DOM carregado: %s", self.target_url)
        except PlaywrightTimeoutError:
            result.navigation_timed_out = True
            logger.info("[!] Timeout ao carregar a página (prosseguindo mesmo assim)")
        except PlaywrightError as e:
            result.navigation_error = str(e)
            logger.info("[!] Erro de navegação (prosseguindo mesmo assim): %s", e)

    async def _interact(self, page: Page, result: DiscoveryResult) -> None:
        self._transition(SessionState.INTERACTING)
        await self._sleep(self.settings.settle_delay)

        if self.detector.has_match():
            return
        result.interaction = InteractionReport()
        try:
            await asyncio.wait_for(
                self.driver.activate(page, result.interaction),
                timeout=self.settings.interaction_timeout,
            )
        except asyncio.TimeoutError:
            logger.info(
                "[!] Interação excedeu %.1fs; seguindo para o polling (%d frames, %d inacessíveis).",
                self.settings.interaction_timeout,
                result.interaction.frames_scanned,
                result.interaction.inaccessible,
            )
        except PlaywrightError as e:
            logger.info("[!] Falha na interação: %s", e)

    async def _poll(self) -> Optional[str]:
        self._transition(SessionState.POLLING)
        return await poll_until(
            self.detector.peek,
            timeout=self.settings.discovery_window,
            interval=self.settings.poll_interval,
            clock=self._clock,
            sleep=self._sleep,
        )

    # -----------------------------------------------------------------------
    # Encerramento
    # -----------------------------------------------------------------------

    async def close(self) -> None:
        """Encerra o navegador. Único caminho de destruição; idempotente."""
        if self.state is SessionState.CLOSED:
            return
        handle, self._handle = self._handle, None
        self._transition(SessionState.CLOSED)
        if handle is None:
            return
        try:
            await handle.close()
        except Exception as e:
            logger.warning("[!] Erro ao encerrar o navegador: %s", e)

    async def __aenter__(self) -> "DiscoverySession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
