import logging
import random
import time
from typing import Optional

import httpx

from sheetsync.jobs.sync.errors import UpstreamFetchError

from .config import SheetsConfig

logger = logging.getLogger(__name__)

RETRY_STATUSES = {429, 500, 502, 503, 504}


def mask_bearer(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    parts = value.split(" ", 1)
    if len(parts) != 2:
        return "****"
    scheme, token = parts
    if len(token) <= 6:
        return f"{scheme} ****"
    return f"{scheme} ****{token[-4:]}"


def log_request(request: httpx.Request) -> None:
    logger.debug("HTTP %s %s", request.method, request.url)
    logger.debug("HTTP Authorization: %s", mask_bearer(request.headers.get("authorization")))


def make_client(cfg: SheetsConfig, auth: Optional[httpx.Auth] = None, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    timeout = httpx.Timeout(cfg.read_timeout, connect=cfg.connect_timeout)
    return httpx.Client(
        base_url=cfg.base_url,
        auth=auth,
        timeout=timeout,
        transport=transport,
        headers={"Accept": "application/json"},
        event_hooks={"request": [log_request]},
    )


def sleep_backoff(cfg: SheetsConfig, *, attempt: int, path: str) -> None:
    sleep_s = cfg.backoff_base * (2 ** (attempt - 1))
    sleep_s += random.uniform(0, 0.5) if cfg.backoff_base > 0 else 0
    logger.info("Sleeping %.2fs before retrying %s", sleep_s, path)
    time.sleep(sleep_s)


def get_with_retry(cfg: SheetsConfig, client: httpx.Client, path: str, params: Optional[dict] = None) -> dict:
    """
    GET with bounded retries on timeouts and RETRY_STATUSES.
    Anything that still fails comes out as UpstreamFetchError.
    """
    last_err: Exception | None = None
    attempts = max(cfg.retries, 1)

    for attempt in range(1, attempts + 1):
        t0 = time.perf_counter()
        try:
            r = client.get(path, params=params)
            elapsed = time.perf_counter() - t0

            if r.status_code in RETRY_STATUSES:
                snippet = (r.text or "")[:300]
                logger.warning(
                    "Retryable HTTP %d (attempt %d/%d) GET %s after %.2fs body_snippet=%r",
                    r.status_code,
                    attempt,
                    attempts,
                    path,
                    elapsed,
                    snippet,
                )
                raise httpx.HTTPStatusError("Retryable status", request=r.request, response=r)

            logger.debug("GET %s completed in %.2fs status=%d", path, elapsed, r.status_code)

            r.raise_for_status()
            try:
                return r.json()
            except ValueError as e:
                raise UpstreamFetchError(f"unreadable JSON from {path}") from e

        except (httpx.ReadTimeout, httpx.ConnectTimeout) as e:
            elapsed = time.perf_counter() - t0
            last_err = e
            logger.warning(
                "%s (attempt %d/%d) GET %s after %.2fs",
                e.__class__.__name__,
                attempt,
                attempts,
                path,
                elapsed,
            )

        except httpx.HTTPStatusError as e:
            elapsed = time.perf_counter() - t0
            last_err = e
            status = e.response.status_code if e.response is not None else None
            if status not in RETRY_STATUSES:
                snippet = (e.response.text or "")[:300] if e.response is not None else None
                logger.error(
                    "Non-retryable HTTP %s GET %s after %.2fs body_snippet=%r",
                    status,
                    path,
                    elapsed,
                    snippet,
                )
                raise UpstreamFetchError(f"HTTP {status} reading {path}") from e

        except httpx.HTTPError as e:
            elapsed = time.perf_counter() - t0
            last_err = e
            logger.warning(
                "Request failed (attempt %d/%d) GET %s after %.2fs error=%r",
                attempt,
                attempts,
                path,
                elapsed,
                e,
            )

        if attempt < attempts:
            sleep_backoff(cfg, attempt=attempt, path=path)

    raise UpstreamFetchError(f"giving up on {path} after {attempts} attempts: {last_err!r}") from last_err
