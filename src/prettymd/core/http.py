"""HTTP helpers with explicit proxy configuration and TLS guidance."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

import certifi
import requests


DEFAULT_CHUNK_SIZE = 64 * 1024
USER_AGENT = "prettymd"


class TLSCertificateError(RuntimeError):
    """Raised when TLS certificate verification fails during downloads."""


def _tls_help(url: str) -> str:
    return (
        "TLS certificate verification failed while downloading "
        f"'{url}'. On macOS run the Python 'Install Certificates.command' "
        "(from the python.org installer). On Windows run 'py -m pip install --upgrade certifi'. "
        "On Linux install your 'ca-certificates' package (apt/yum/apk). "
        "Also check system date/time and any proxy or corporate SSL inspection."
    )


@dataclass(frozen=True, slots=True)
class Transport:
    """Connection settings for one download session.

    The proxy applies to this transport only; process environment variables
    such as ``HTTPS_PROXY`` are neither read nor written.
    """

    proxy: str | None = None
    timeout: float | None = None
    verify: str | bool = True

    @property
    def proxies(self) -> dict[str, str]:
        if not self.proxy:
            return {}
        return {"http": self.proxy, "https": self.proxy}

    def session(self) -> requests.Session:
        session = requests.Session()
        # Only the explicit proxy mapping applies.
        session.trust_env = False
        session.proxies.update(self.proxies)
        session.verify = certifi.where() if self.verify is True else self.verify
        session.headers["User-Agent"] = USER_AGENT
        return session


ProgressCallback = Callable[[int, int], None]


def _iter_chunks(response: requests.Response, chunk_size: int) -> Iterator[bytes]:
    for chunk in response.iter_content(chunk_size=chunk_size):
        if chunk:
            yield chunk


def download_file(
    url: str,
    destination: Path,
    *,
    transport: Transport | None = None,
    session: requests.Session | None = None,
    progress: ProgressCallback | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Path:
    """Stream ``url`` into ``destination``, reporting ``(received, total)`` bytes."""
    transport = transport or Transport()
    client = session or transport.session()
    try:
        with client.get(url, stream=True, timeout=transport.timeout) as response:
            response.raise_for_status()
            total = int(response.headers.get("Content-Length") or 0)
            received = 0
            with destination.open("wb") as handle:
                for chunk in _iter_chunks(response, chunk_size):
                    handle.write(chunk)
                    received += len(chunk)
                    if progress is not None:
                        progress(received, total)
    except requests.exceptions.SSLError as exc:
        raise TLSCertificateError(_tls_help(url)) from exc
    finally:
        if session is None:
            client.close()
    return destination


def progress_percent(received: int, total: int) -> int:
    """Return the integer download percentage, ``0`` when the size is unknown."""
    if total <= 0:
        return 0
    return int(received / total * 100)


__all__ = [
    "ProgressCallback",
    "TLSCertificateError",
    "Transport",
    "download_file",
    "progress_percent",
]
