"""streamfinder: descobre a URL de stream de páginas de embed via Playwright."""

__version__ = "1.1.0"
