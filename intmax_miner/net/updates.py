"""Release check backing the CheckUpdate mode.

Fetches the latest release document (GitHub ``releases/latest`` shape, only
``tag_name`` and ``html_url`` are read) and compares its tag with the
running version.  The check only reports; it never replaces the installed
package.
"""

from __future__ import annotations

import logging
import re

import httpx
from pydantic import BaseModel, ValidationError

from intmax_miner.core.exceptions import RemoteRejection, TransientNetworkError
from intmax_miner.net.retry import RetryExecutor

__all__ = ["ReleaseInfo", "UpdateCheck", "check_for_update", "parse_version"]

logger = logging.getLogger(__name__)

_SOURCE = "releases"
_VERSION_RE = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


class ReleaseInfo(BaseModel):
    tag_name: str
    html_url: str = ""


class UpdateCheck(BaseModel):
    current_version: str
    latest_version: str
    url: str = ""

    @property
    def update_available(self) -> bool:
        return parse_version(self.latest_version) > parse_version(self.current_version)


def parse_version(tag: str) -> tuple[int, int, int]:
    """Parse ``"v1.2.3"`` / ``"1.2"`` into a comparable ``(major, minor, patch)``.

    Raises:
        ValueError: If *tag* contains no version number.
    """
    match = _VERSION_RE.search(tag)
    if match is None:
        raise ValueError(f"No version number in {tag!r}")
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return major, minor, patch


async def _fetch_release(http: httpx.AsyncClient, url: str) -> ReleaseInfo:
    try:
        response = await http.get(url, headers={"Accept": "application/vnd.github+json"})
    except httpx.TransportError as exc:
        raise TransientNetworkError(_SOURCE, f"{type(exc).__name__}: {exc}") from exc

    if response.status_code == 404:
        raise RemoteRejection(_SOURCE, f"no release published at {url}", code="404")
    if not response.is_success:
        raise TransientNetworkError(_SOURCE, f"HTTP {response.status_code} from {url}")

    try:
        return ReleaseInfo.model_validate_json(response.content)
    except ValidationError as exc:
        raise TransientNetworkError(_SOURCE, f"malformed release document: {exc}") from exc


async def check_for_update(
    current_version: str,
    release_url: str,
    executor: RetryExecutor,
    *,
    http: httpx.AsyncClient | None = None,
    timeout: float = 15.0,
) -> UpdateCheck:
    """Compare *current_version* with the latest published release.

    Raises:
        PersistentFailure: The release endpoint stayed unreachable.
        RemoteRejection: No release is published at *release_url*.
    """
    owns_client = http is None
    client = http or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
    try:
        release = await executor.execute(
            lambda: _fetch_release(client, release_url),
            label="latest release",
        )
    finally:
        if owns_client:
            await client.aclose()

    result = UpdateCheck(
        current_version=current_version,
        latest_version=release.tag_name,
        url=release.html_url,
    )
    if result.update_available:
        logger.info(
            "A new version is available: %s (running %s). Download: %s",
            result.latest_version,
            current_version,
            result.url or release_url,
        )
    else:
        logger.info("You are running the latest version (%s).", current_version)
    return result
