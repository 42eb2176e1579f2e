"""
Fetching and opening externallinks dumps.

Dumps are large enough that decompressing them to disk first is wasteful;
open_dump streams .gz and .bz2 files directly.
"""

import bz2
import gzip
import logging
import os
import sys
import time
from typing import BinaryIO, Optional
from urllib.parse import urljoin

import requests
from tqdm import tqdm

logger = logging.getLogger(__name__)

# --- CONFIG ---
DATA_DIR = "data"
BASE_URL = "https://dumps.wikimedia.org/enwiki/latest/"
DEFAULT_DUMP = "enwiki-latest-externallinks.sql.gz"
MAX_RETRIES = 3
RETRY_DELAY = 10
CHUNK_SIZE = 1024 * 1024
# ----------------

SESSION = requests.Session()
SESSION.headers.update({
    'User-Agent': 'WikiExplorer-ETL/1.0 (externallinks dump extractor)'
})


def format_bytes(bytes_val: float) -> str:
    """Format bytes into human-readable format."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_val < 1024.0:
            return f"{bytes_val:.2f} {unit}"
        bytes_val /= 1024.0
    return f"{bytes_val:.2f} PB"


def open_dump(path: Optional[str]) -> BinaryIO:
    """Open a dump for binary line reading. None or '-' means stdin."""
    if path is None or path == "-":
        return sys.stdin.buffer
    if path.endswith('.gz'):
        return gzip.open(path, 'rb')
    if path.endswith('.bz2'):
        return bz2.open(path, 'rb')
    return open(path, 'rb')


def download_dump(
    filename: str = DEFAULT_DUMP,
    data_dir: str = DATA_DIR,
    base_url: str = BASE_URL,
    session: requests.Session = SESSION,
    show_progress: bool = True
) -> Optional[str]:
    """
    Download a dump file from Wikimedia with retries.

    Returns the local path, or None if every attempt failed. An existing
    local file is reused without contacting the server.
    """
    url = urljoin(base_url, filename)
    local_path = os.path.join(data_dir, filename)

    if os.path.exists(local_path):
        logger.info(f"[SKIP] File already exists: {local_path}")
        return local_path

    os.makedirs(data_dir, exist_ok=True)
    # Download to temp file first
    tmp_path = local_path + ".tmp"
    logger.info(f"[DOWNLOAD] Fetching {url}")

    try:
        for attempt in range(MAX_RETRIES):
            wait_time = RETRY_DELAY * (attempt + 1)
            try:
                with session.get(url, stream=True, timeout=60) as response:
                    if response.status_code >= 500:
                        logger.warning(
                            f"Server error ({response.status_code}). "
                            f"Retry {attempt + 1}/{MAX_RETRIES} in {wait_time}s..."
                        )
                        time.sleep(wait_time)
                        continue

                    response.raise_for_status()

                    total_size = int(response.headers.get('content-length', 0))
                    if total_size:
                        logger.info(f"File size: {format_bytes(total_size)}")

                    start_time = time.time()
                    with open(tmp_path, 'wb') as f, tqdm(
                        total=total_size or None,
                        unit='B',
                        unit_scale=True,
                        desc=filename,
                        disable=not show_progress
                    ) as pbar:
                        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                            f.write(chunk)
                            pbar.update(len(chunk))

                os.replace(tmp_path, local_path)

                elapsed = time.time() - start_time
                final_size = os.path.getsize(local_path)
                logger.info(f"[OK] Downloaded {format_bytes(final_size)} in {elapsed:.1f}s")
                return local_path

            except requests.RequestException as e:
                logger.warning(f"Network error: {e}")
                if attempt < MAX_RETRIES - 1:
                    logger.info(f"Retrying in {wait_time}s...")
                    time.sleep(wait_time)
                else:
                    logger.error("[FAIL] Max retries exceeded")
    finally:
        # Cleanup partial download on failure or interrupt
        if os.path.exists(tmp_path):
            os.remove(tmp_path)

    return None
