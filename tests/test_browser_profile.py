"""
Testes para o módulo streamfinder.core.browser_profile.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from streamfinder.config import Settings
from streamfinder.core.browser_profile import (
    COMMON_ARGS,
    MANAGED_ARGS,
    BrowserHandle,
    BrowserLauncher,
    LaunchError,
    _get_os,
    build_context_kwargs,
    build_launch_kwargs,
    find_browser_executable,
)


def test_get_os_returns_valid_value():
    os_name = _get_os()
    assert os_name in ("windows", "linux", "macos")


def test_find_browser_executable_returns_path_or_none():
    result = find_browser_executable()
    assert result is None or isinstance(result, str)


def test_find_browser_executable_uses_path_lookup():
    with patch("streamfinder.core.browser_profile.os.path.isfile", return_value=False), \
         patch("streamfinder.core.browser_profile.shutil.which", return_value="/usr/local/bin/chromium"):
        assert find_browser_executable() == "/usr/local/bin/chromium"


def test_build_launch_kwargs_local():
    """Localmente usa o Chromium embutido do Playwright e o sandbox desativado."""
    kwargs = build_launch_kwargs(Settings())
    assert kwargs["headless"] is True
    assert "--no-sandbox" in kwargs["args"]
    assert "--disable-setuid-sandbox" in kwargs["args"]
    assert "--single-process" not in kwargs["args"]
    assert "executable_path" not in kwargs


def test_build_launch_kwargs_local_explicit_executable():
    kwargs = build_launch_kwargs(Settings(executable_path="/opt/chrome/chrome", headless=False))
    assert kwargs["executable_path"] == "/opt/chrome/chrome"
    assert kwargs["headless"] is False


def test_build_launch_kwargs_managed():
    """Ambiente gerenciado: argumentos extras, headless forçado e Chromium do sistema."""
    with patch("streamfinder.core.browser_profile.find_browser_executable", return_value="/usr/bin/chromium"):
        kwargs = build_launch_kwargs(Settings(managed=True, headless=False))
    assert kwargs["headless"] is True
    assert kwargs["executable_path"] == "/usr/bin/chromium"
    for arg in COMMON_ARGS + MANAGED_ARGS:
        assert arg in kwargs["args"]


def test_build_launch_kwargs_managed_prefers_explicit_executable():
    with patch("streamfinder.core.browser_profile.find_browser_executable") as finder:
        kwargs = build_launch_kwargs(Settings(managed=True, executable_path="/var/task/chromium"))
    finder.assert_not_called()
    assert kwargs["executable_path"] == "/var/task/chromium"


def test_build_context_kwargs():
    kwargs = build_context_kwargs(Settings(user_agent="UA-teste"))
    assert kwargs == {"user_agent": "UA-teste", "ignore_https_errors": True}


# ---------------------------------------------------------------------------
# BrowserLauncher / BrowserHandle
# ---------------------------------------------------------------------------

def _mock_playwright(launch_side_effect=None):
    playwright = MagicMock()
    playwright.stop = AsyncMock()
    browser = MagicMock()
    browser.close = AsyncMock()
    browser.new_context = AsyncMock(return_value=MagicMock())
    playwright.chromium.launch = AsyncMock(return_value=browser, side_effect=launch_side_effect)
    starter = MagicMock()
    starter.start = AsyncMock(return_value=playwright)
    return starter, playwright, browser


def test_launcher_creates_context_with_profile():
    starter, playwright, browser = _mock_playwright()
    settings = Settings(user_agent="UA-teste")
    with patch("streamfinder.core.browser_profile.async_playwright", return_value=starter):
        handle = asyncio.run(BrowserLauncher(settings).launch())

    playwright.chromium.launch.assert_awaited_once_with(**build_launch_kwargs(settings))
    browser.new_context.assert_awaited_once_with(user_agent="UA-teste", ignore_https_errors=True)
    assert handle.browser is browser


def test_launcher_failure_raises_launch_error_and_stops_driver():
    starter, playwright, _ = _mock_playwright(launch_side_effect=Exception("Executable doesn't exist"))
    with patch("streamfinder.core.browser_profile.async_playwright", return_value=starter):
        with pytest.raises(LaunchError):
            asyncio.run(BrowserLauncher(Settings()).launch())
    playwright.stop.assert_awaited_once()


def test_handle_close_is_idempotent():
    _, playwright, browser = _mock_playwright()
    handle = BrowserHandle(playwright, browser, MagicMock())

    async def run():
        await handle.close()
        await handle.close()

    asyncio.run(run())
    browser.close.assert_awaited_once()
    playwright.stop.assert_awaited_once()
    assert handle.closed


def test_handle_close_stops_driver_even_if_browser_close_fails():
    _, playwright, browser = _mock_playwright()
    browser.close.side_effect = Exception("Browser has been closed")
    handle = BrowserHandle(playwright, browser, MagicMock())
    asyncio.run(handle.close())
    playwright.stop.assert_awaited_once()


async def _never_returns(*args, **kwargs):
    await asyncio.sleep(3600)


def test_handle_close_is_bounded_when_browser_hangs():
    _, playwright, browser = _mock_playwright()
    browser.close.side_effect = _never_returns
    handle = BrowserHandle(playwright, browser, MagicMock(), close_timeout=0.05)
    asyncio.run(handle.close())
    playwright.stop.assert_awaited_once()
    assert handle.closed


def test_handle_close_is_bounded_when_driver_hangs():
    _, playwright, browser = _mock_playwright()
    playwright.stop.side_effect = _never_returns
    handle = BrowserHandle(playwright, browser, MagicMock(), close_timeout=0.05)
    asyncio.run(handle.close())
    browser.close.assert_awaited_once()
    assert handle.closed
