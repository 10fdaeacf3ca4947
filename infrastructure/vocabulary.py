"""Loading of the sparse-vector vocabulary produced at ingestion time.

The vocabulary is a JSON object mapping stemmed terms to sparse indices. It
is read from a local file, a plain HTTP(S) URL (public or SAS signed), or an
Azure Blob Storage URL authenticated with an account shared key.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

import requests
from azure.core.exceptions import AzureError
from azure.storage.blob import BlobClient

logger = logging.getLogger(__name__)


def _split_blob_path(url: str) -> tuple[str, str]:
    parts = [unquote(part) for part in urlparse(url).path.split("/") if part]
    if len(parts) < 2:
        raise ValueError(f"Invalid Azure Blob Storage URL, expected /<container>/<blob>: {url}")
    return parts[0], "/".join(parts[1:])


def _download_blob(url: str, account_name: str, account_key: str, timeout: float) -> bytes:
    container, blob = _split_blob_path(url)
    logger.info("Downloading vocabulary blob %s/%s from account %s", container, blob, account_name)
    client = BlobClient(
        account_url=f"https://{account_name}.blob.core.windows.net",
        container_name=container,
        blob_name=blob,
        credential={"account_name": account_name, "account_key": account_key},
    )
    return client.download_blob(timeout=int(timeout)).readall()


def load_vocabulary(
    path_or_url: str,
    *,
    timeout: float = 60.0,
    account_name: str | None = None,
    account_key: str | None = None,
) -> dict[str, int] | None:
    """Load ``term -> index`` from a local JSON file or a URL.

    With both ``account_name`` and ``account_key`` set, URLs are read through
    the Azure Blob client using the account shared key; otherwise they are
    fetched directly. Failures are logged and reported as ``None``; hybrid
    search then falls back to dense-only queries.
    """

    try:
        if path_or_url.startswith(("http://", "https://")):
            if account_name and account_key:
                payload = json.loads(_download_blob(path_or_url, account_name, account_key, timeout))
            else:
                logger.info("Loading vocabulary from URL: %s", path_or_url)
                response = requests.get(path_or_url, timeout=timeout)
                response.raise_for_status()
                payload = response.json()
        else:
            path = Path(path_or_url).expanduser().resolve()
            logger.info("Loading vocabulary from local file: %s", path)
            payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError, requests.RequestException, AzureError):
        logger.exception("Failed to load vocabulary from %s", path_or_url)
        return None

    if not isinstance(payload, dict):
        logger.error("Vocabulary at %s is not a JSON object", path_or_url)
        return None

    vocabulary = {str(term): int(index) for term, index in payload.items() if isinstance(index, int)}
    logger.info("Loaded vocabulary with %d terms", len(vocabulary))
    return vocabulary


__all__ = ["load_vocabulary"]
