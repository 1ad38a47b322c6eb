"""
timing.py
=========
Primitiva de espera limitada usada pela sessão de descoberta.

Substitui os vários blocos "espera até N ms" por um único laço cooperativo
com um prazo calculado uma só vez.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class Deadline:
    """Instante absoluto (no relógio monotônico) em que uma espera expira."""

    def __init__(self, seconds: float, clock: Clock = time.monotonic):
        self._clock = clock
        self.expires_at = clock() + max(0.0, seconds)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self.expires_at


async def poll_until(
    probe: Callable[[], Optional[T]],
    timeout: float,
    interval: float,
    clock: Clock = time.monotonic,
    sleep: Sleeper = asyncio.sleep,
) -> Optional[T]:
    """
    Consulta ``probe`` a cada ``interval`` segundos até que retorne um valor
    verdadeiro ou até o prazo expirar.

    O probe é avaliado ao menos uma vez, inclusive com ``timeout`` zero. Nenhum
    sleep ultrapassa o tempo restante, então o retorno acontece no máximo um
    intervalo após o prazo.

    Retorna
    -------
    O primeiro valor verdadeiro retornado pelo probe, ou None se expirou.
    """
    if interval <= 0:
        raise ValueError("interval deve ser maior que zero")

    deadline = Deadline(timeout, clock)
    while True:
        value = probe()
        if value:
            return value
        remaining = deadline.remaining()
        if remaining <= 0:
            return None
        await sleep(min(interval, remaining))
