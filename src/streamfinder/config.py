"""
config.py
=========
Configuração explícita do streamfinder.

Todas as flags de ambiente (execução local vs. gerenciada/serverless, caminho
do navegador, tempos de espera) são lidas uma única vez em
``Settings.from_env()`` e injetadas na sessão de descoberta no momento da
construção. Nenhum módulo consulta ``os.environ`` no meio do fluxo.
"""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from dotenv import load_dotenv


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/114.0.0.0 Safari/537.36"
)

# Variáveis que indicam um ambiente gerenciado (Vercel / AWS Lambda).
MANAGED_ENV_FLAGS = ("VERCEL", "AWS_LAMBDA_FUNCTION_VERSION")

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Valor booleano inválido para {name}: {value!r}")


def _parse_seconds(name: str, value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise ValueError(f"Valor numérico inválido para {name}: {value!r}") from None
    if seconds < 0:
        raise ValueError(f"{name} não pode ser negativo: {value!r}")
    return seconds


@dataclass(frozen=True)
class Settings:
    """
    Parâmetros de uma descoberta.

    Tempos em segundos. ``navigation_timeout`` limita o ``goto``;
    ``reaction_wait`` + ``poll_timeout`` formam o prazo único da fase de
    polling, verificado a cada ``poll_interval``.
    """
    managed: bool = False
    executable_path: Optional[str] = None
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    block_preset: str = "visual"
    navigation_timeout: float = 15.0
    settle_delay: float = 1.0
    interaction_timeout: float = 5.0
    reaction_wait: float = 3.0
    poll_timeout: float = 5.0
    poll_interval: float = 0.5
    tmdb_api_key: Optional[str] = None
    port: int = 7000

    def __post_init__(self):
        # streamfinder.core importa este módulo; importação tardia.
        from streamfinder.core.policy import BLOCK_PRESETS

        if self.block_preset not in BLOCK_PRESETS:
            raise ValueError(
                f"Preset de bloqueio desconhecido: {self.block_preset!r} "
                f"(opções: {', '.join(sorted(BLOCK_PRESETS))})"
            )
        if self.poll_interval <= 0:
            raise ValueError("poll_interval deve ser maior que zero")

    @property
    def discovery_window(self) -> float:
        """Janela total de polling, contada após a interação."""
        return self.reaction_wait + self.poll_timeout

    @property
    def session_budget(self) -> float:
        """Duração máxima de uma sessão após o lançamento do navegador."""
        return (
            self.navigation_timeout
            + self.settle_delay
            + self.interaction_timeout
            + self.discovery_window
            + self.poll_interval
        )

    def with_overrides(self, **changes) -> "Settings":
        """Retorna uma cópia com os campos informados (None é ignorado)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "Settings":
        """
        Constrói as configurações a partir das variáveis de ambiente.

        Parâmetros
        ----------
        environ : Mapping, opcional
            Ambiente a ser lido (padrão: ``os.environ``).
        dotenv : bool
            Se True (padrão) e ``environ`` não for informado, carrega um
            arquivo ``.env`` antes da leitura.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        kwargs = {
            "managed": (
                any(environ.get(flag) for flag in MANAGED_ENV_FLAGS)
                or _parse_bool("STREAMFINDER_MANAGED", environ.get("STREAMFINDER_MANAGED", ""))
            ),
            "executable_path": (
                environ.get("BROWSER_EXECUTABLE_PATH")
                or environ.get("PUPPETEER_EXECUTABLE_PATH")
                or None
            ),
            "tmdb_api_key": environ.get("TMDB_API_KEY") or None,
        }

        if "STREAMFINDER_HEADLESS" in environ:
            kwargs["headless"] = _parse_bool("STREAMFINDER_HEADLESS", environ["STREAMFINDER_HEADLESS"])
        if environ.get("STREAMFINDER_USER_AGENT"):
            kwargs["user_agent"] = environ["STREAMFINDER_USER_AGENT"]
        if environ.get("STREAMFINDER_BLOCK_PRESET"):
            kwargs["block_preset"] = environ["STREAMFINDER_BLOCK_PRESET"].strip().lower()

        seconds_fields = {
            "navigation_timeout": "STREAMFINDER_NAVIGATION_TIMEOUT",
            "settle_delay": "STREAMFINDER_SETTLE_DELAY",
            "interaction_timeout": "STREAMFINDER_INTERACTION_TIMEOUT",
            "reaction_wait": "STREAMFINDER_REACTION_WAIT",
            "poll_timeout": "STREAMFINDER_POLL_TIMEOUT",
            "poll_interval": "STREAMFINDER_POLL_INTERVAL",
        }
        for field_name, env_name in seconds_fields.items():
            if environ.get(env_name):
                kwargs[field_name] = _parse_seconds(env_name, environ[env_name])

        if environ.get("PORT"):
            try:
                kwargs["port"] = int(environ["PORT"])
            except ValueError:
                raise ValueError(f"Porta inválida: {environ['PORT']!r}") from None

        return cls(**kwargs)
