"""
Run configuration for the externallinks extractor.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

# --- DEFAULTS ---
TARGET_TABLE = "externallinks"
TARGET_COLUMNS = ("el_to_domain_index", "el_to_path")
QUEUE_SIZE = 1024
EXCERPT_LENGTH = 150
# ----------------


def default_num_workers() -> int:
    return os.cpu_count() or 1


@dataclass(frozen=True)
class Config:
    """System configuration parameters"""

    # Target table and the (url, path) column pair
    table: str = TARGET_TABLE
    columns: Tuple[str, str] = TARGET_COLUMNS

    # Parallelism: 0 workers runs extraction inline in the calling process
    num_workers: int = default_num_workers()
    queue_size: int = QUEUE_SIZE

    # Error reporting
    excerpt_length: int = EXCERPT_LENGTH
    errors_file: Optional[str] = None
    fail_on_error: bool = False

    # Logging
    log_file: Optional[str] = None
    show_progress: bool = False
    verbose: bool = False

    def __post_init__(self):
        if len(self.columns) != 2:
            raise ValueError(f"Exactly two target columns are required, got {self.columns!r}")
        if self.num_workers < 0:
            raise ValueError("num_workers must be >= 0")
        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        # Normalise lists coming from argparse into the tuple form workers receive
        object.__setattr__(self, "columns", tuple(self.columns))
