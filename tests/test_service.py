"""
Testes ponta a ponta do serviço HTTP (streamfinder.service.app).

O TMDB é substituído por um resolvedor falso e o navegador pelos dublês de
browser_fakes.
"""

from fastapi.testclient import TestClient

from streamfinder.config import DEFAULT_USER_AGENT, Settings
from streamfinder.core.extractor import StreamExtractor
from streamfinder.service.app import StreamService, build_manifest, create_app
from streamfinder.providers.specific_sites.vidking import VidKingProvider

from browser_fakes import FakeFrame, build_launcher

FAST = Settings(
    navigation_timeout=0.05,
    settle_delay=0.0,
    interaction_timeout=0.2,
    reaction_wait=0.0,
    poll_timeout=0.1,
    poll_interval=0.01,
)


class FakeResolver:
    def __init__(self, target=None):
        self.target = target
        self.calls = []

    async def resolve(self, external_id, kind, season=None, episode=None):
        self.calls.append((external_id, kind, season, episode))
        return self.target


def _client(launcher, resolver):
    extractor = StreamExtractor(FAST, launcher_factory=lambda settings: launcher)
    service = StreamService(FAST, extractor=extractor, resolver=resolver, provider=VidKingProvider())
    return TestClient(create_app(FAST, service=service))


def test_manifest():
    client = _client(build_launcher(), FakeResolver())
    response = client.get("/manifest.json")
    assert response.status_code == 200
    manifest = response.json()
    assert manifest["resources"] == ["stream"]
    assert manifest["types"] == ["movie", "series"]
    assert manifest["idPrefixes"] == ["tt"]
    assert manifest["catalogs"] == []


def test_build_manifest_id():
    assert build_manifest(VidKingProvider())["id"] == "community.streamfinder.vidking"


def test_scenario_stream_requested_during_load():
    """Cenário A: a página requisita o .m3u8 durante o carregamento."""
    target = "https://www.vidking.net/embed/movie/550"
    launcher = build_launcher(on_load=[("https://cdn.example/video/abc.m3u8", "xhr")])
    resolver = FakeResolver(target)

    response = _client(launcher, resolver).get("/stream/movie/tt0137523.json")

    assert response.status_code == 200
    streams = response.json()["streams"]
    assert len(streams) == 1
    assert streams[0]["url"] == "https://cdn.example/video/abc.m3u8"
    assert streams[0]["behaviorHints"]["notWebReady"] is True
    assert streams[0]["behaviorHints"]["proxyHeaders"]["request"] == {
        "Referer": "https://www.vidking.net/",
        "User-Agent": DEFAULT_USER_AGENT,
    }
    assert launcher.context.page.goto_calls[0]["url"] == target


def test_scenario_no_stream_within_deadline():
    """Cenário B: nenhuma requisição qualificada; resposta vazia e navegador fechado."""
    launcher = build_launcher(on_load=[("https://cdn.example/loader.mp4", "media")])
    response = _client(launcher, FakeResolver("https://www.vidking.net/embed/movie/550")).get(
        "/stream/movie/tt0137523.json"
    )
    assert response.json() == {"streams": []}
    assert launcher.handles[0].close_calls == 1


def test_scenario_click_in_third_level_iframe():
    """Cenário C: o .mp4 só é requisitado após o clique num iframe de terceiro nível."""
    target = "https://www.vidking.net/embed/tv/1399/1/2"
    button_frame = FakeFrame(
        "https://player.example/level3",
        elements=[".vjs-big-play-button"],
        on_click=[("https://cdn.example/episodes/s01e02.mp4", "media")],
    )
    main = FakeFrame(target, children=[
        FakeFrame("https://player.example/level1", children=[
            FakeFrame("https://player.example/level2", children=[button_frame]),
        ]),
    ])
    launcher = build_launcher(main)
    resolver = FakeResolver(target)

    response = _client(launcher, resolver).get("/stream/series/tt0944947:1:2.json")

    streams = response.json()["streams"]
    assert [s["url"] for s in streams] == ["https://cdn.example/episodes/s01e02.mp4"]
    assert button_frame.clicked == [".vjs-big-play-button"]
    assert resolver.calls == [("tt0944947", "series", 1, 2)]


def test_scenario_unresolved_identifier_skips_browser():
    """Cenário D: sem endereço alvo, nenhum navegador é iniciado."""
    launcher = build_launcher()
    response = _client(launcher, FakeResolver(None)).get("/stream/movie/tt0000000.json")
    assert response.json() == {"streams": []}
    assert launcher.launch_calls == 0


def test_unknown_type_returns_empty_streams():
    launcher = build_launcher()
    resolver = FakeResolver("https://www.vidking.net/embed/movie/550")
    response = _client(launcher, resolver).get("/stream/channel/tt0137523.json")
    assert response.json() == {"streams": []}
    assert resolver.calls == []


def test_malformed_id_returns_empty_streams():
    launcher = build_launcher()
    response = _client(launcher, FakeResolver("https://x.example/")).get(
        "/stream/series/tt0944947:um:dois.json"
    )
    assert response.json() == {"streams": []}
    assert launcher.launch_calls == 0


def test_resolver_failure_returns_empty_streams():
    class BrokenResolver:
        async def resolve(self, *args):
            raise RuntimeError("TMDB fora do ar")

    response = _client(build_launcher(), BrokenResolver()).get("/stream/movie/tt0137523.json")
    assert response.status_code == 200
    assert response.json() == {"streams": []}


def test_cors_header():
    client = _client(build_launcher(), FakeResolver())
    response = client.get("/manifest.json", headers={"Origin": "https://web.stremio.com"})
    assert response.headers["access-control-allow-origin"] == "*"
