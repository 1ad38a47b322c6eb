"""
cli/main.py
===========
Interface de linha de comando do streamfinder.

Modos:
  streamfinder URL [URL ...]                 : descobre o stream de páginas de embed.
  streamfinder --imdb tt123 --type movie     : resolve via TMDB e descobre o stream.
  streamfinder --serve                       : sobe o serviço HTTP (addon Stremio).
"""

import argparse
import asyncio
import logging
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from streamfinder.config import Settings
from streamfinder.core.extractor import StreamExtractor
from streamfinder.core.policy import BLOCK_PRESETS, describe_presets
from streamfinder.metadata import TmdbResolver
from streamfinder.providers.manager import ProviderManager
from streamfinder.service.app import serve

console = Console()


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
    )


async def process_url(
    url: str,
    extractor: StreamExtractor,
    provider_manager: ProviderManager,
    progress: Progress,
) -> Dict[str, Any]:
    provider = provider_manager.get_provider_for_url(url)
    task_id = progress.add_task(f"[cyan]Processando: {url}", total=None)

    result = await extractor.extract(url, provider.play_selectors)
    if result.found:
        progress.update(task_id, completed=True, description=f"[green]Concluído: {url}")
    else:
        progress.update(task_id, completed=True, description=f"[red]Sem stream: {url}")

    return {
        "source_url": url,
        "provider": provider,
        "stream_url": result.stream_url if result.found else None,
        "state": result.state.value,
        "elapsed": result.elapsed,
        "error": result.error,
    }


def write_playlist(path: str, results: List[Dict[str, Any]], user_agent: str) -> None:
    """Grava um .m3u com os cabeçalhos exigidos por cada stream (formato VLC)."""
    with open(path, "w", encoding="utf-8") as f:
        f.write("#EXTM3U\n")
        for res in results:
            if not res["stream_url"]:
                continue
            f.write(f'#EXTINF:-1 group-title="STREAMFINDER", {res["source_url"]}\n')
            if res["provider"].referer:
                f.write(f"#EXTVLCOPT:http-referrer={res['provider'].referer}\n")
            f.write(f"#EXTVLCOPT:http-user-agent={user_agent}\n")
            f.write(f"{res['stream_url']}\n")


def print_results(results: List[Dict[str, Any]]) -> None:
    table = Table(title="Resultados da Descoberta")
    table.add_column("Página", style="cyan", overflow="fold")
    table.add_column("Estado")
    table.add_column("Tempo", justify="right")
    table.add_column("Stream", overflow="fold")
    for res in results:
        stream = f"[green]{res['stream_url']}[/]" if res["stream_url"] else "[red]-[/]"
        table.add_row(res["source_url"], res["state"], f"{res['elapsed']:.1f}s", stream)
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="streamfinder: descobre URLs .m3u8/.mp4 de páginas de embed.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exemplos de uso:
  streamfinder https://www.vidking.net/embed/movie/550
  streamfinder --imdb tt0137523 --type movie
  streamfinder --imdb tt0944947 --type series --season 1 --episode 2
  streamfinder --serve --port 7000

Presets de bloqueio:
  """ + "\n  ".join(describe_presets()),
    )

    parser.add_argument(
        "urls",
        nargs="*",
        help="Uma ou mais URLs de páginas de embed.",
    )

    meta_group = parser.add_argument_group("Resolução via TMDB")
    meta_group.add_argument("--imdb", metavar="ID", help="ID do IMDb (ex: tt0137523).")
    meta_group.add_argument(
        "--type",
        dest="kind",
        choices=["movie", "series"],
        default="movie",
        help="Tipo do conteúdo (padrão: movie).",
    )
    meta_group.add_argument("--season", type=int, help="Temporada (séries).")
    meta_group.add_argument("--episode", type=int, help="Episódio (séries).")
    meta_group.add_argument(
        "--provider",
        default=None,
        help="Nome do provedor de embed (padrão: o primeiro registrado).",
    )

    exec_group = parser.add_argument_group("Opções de Execução")
    exec_group.add_argument(
        "--preset",
        choices=sorted(BLOCK_PRESETS),
        default=None,
        help="Preset de bloqueio de recursos (padrão: visual).",
    )
    exec_group.add_argument(
        "--no-headless",
        action="store_false",
        dest="headless",
        default=None,
        help="Executa o navegador com interface gráfica.",
    )
    exec_group.add_argument(
        "--navigation-timeout",
        type=float,
        default=None,
        help="Tempo limite de carregamento da página em segundos (padrão: 15).",
    )
    exec_group.add_argument(
        "--poll-timeout",
        type=float,
        default=None,
        help="Tempo máximo de espera pelo stream após a interação (padrão: 5).",
    )
    exec_group.add_argument("--verbose", "-v", action="store_true", help="Logs de depuração.")

    serve_group = parser.add_argument_group("Serviço")
    serve_group.add_argument("--serve", action="store_true", help="Sobe o serviço HTTP.")
    serve_group.add_argument("--port", type=int, default=None, help="Porta do serviço (padrão: 7000).")

    output_group = parser.add_argument_group("Saída")
    output_group.add_argument(
        "--output", "-o",
        help="Caminho para salvar o arquivo .m3u resultante.",
    )
    return parser


async def resolve_imdb(args, settings: Settings, provider_manager: ProviderManager) -> Optional[str]:
    provider = provider_manager.get(args.provider) if args.provider else provider_manager.default
    if provider is None:
        console.print(f"[bold red]Erro:[/] provedor desconhecido: {args.provider}")
        return None
    resolver = TmdbResolver(settings.tmdb_api_key, provider)
    target = await resolver.resolve(args.imdb, args.kind, args.season, args.episode)
    if not target:
        console.print(f"[bold red]Erro:[/] não foi possível resolver {args.imdb}.")
    return target


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = Settings.from_env().with_overrides(
            block_preset=args.preset,
            headless=args.headless,
            navigation_timeout=args.navigation_timeout,
            poll_timeout=args.poll_timeout,
            port=args.port,
        )
    except ValueError as e:
        console.print(f"[bold red]Erro de configuração:[/] {e}")
        return 2

    if args.serve:
        serve(settings)
        return 0

    if not args.urls and not args.imdb:
        parser.print_help()
        console.print("\n[bold red]Erro:[/] Forneça ao menos uma URL, --imdb ou --serve.")
        return 1

    return asyncio.run(discover_all(args, settings))


async def discover_all(args, settings: Settings) -> int:
    provider_manager = ProviderManager()
    urls = list(args.urls)
    if args.imdb:
        target = await resolve_imdb(args, settings, provider_manager)
        if target:
            urls.append(target)

    if not urls:
        return 1

    extractor = StreamExtractor(settings)
    results = []
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        for url in urls:
            results.append(await process_url(url, extractor, provider_manager, progress))

    if args.output:
        write_playlist(args.output, results, settings.user_agent)
        console.print(f"\n[bold green]✓[/] Arquivo '[bold cyan]{args.output}[/]' gerado com sucesso!")
    else:
        print_results(results)

    return 0 if any(r["stream_url"] for r in results) else 1


def main_entry():
    raise SystemExit(main())


if __name__ == "__main__":
    main_entry()
