from __future__ import annotations

import logging
import os
import random
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from bulkcopy.errors import CleanupError

logger = logging.getLogger(__name__)


def _run_in_parallel(action: str, paths: list[Path], task: Callable[[Path], None]) -> None:
    """Run `task` for every path concurrently; all are attempted, any failure fails the whole set."""
    if not paths:
        return

    failures: list[tuple[str, BaseException]] = []
    with ThreadPoolExecutor(max_workers=len(paths)) as executor:
        futures = {executor.submit(task, p): p for p in paths}
        for fut, path in futures.items():
            error = fut.exception()
            if error is not None:
                failures.append((str(path), error))

    if failures:
        raise CleanupError(action, failures) from failures[0][1]


@dataclass(frozen=True)
class TempFileLayout:
    """Naming and lifecycle of the format/data files a Bcp operation generates.

    Layout:
      tmp_root/
        <epochMillis>_<random>_<pid>_format.xml
        <epochMillis>_<random>_<pid>_export.dat
        <epochMillis>_<random>_<pid>_import.dat
    """

    tmp_root: Path

    # ----------------------------
    # Paths
    # ----------------------------
    def new_base(self) -> Path:
        stamp = int(time.time() * 1000)
        token = random.randrange(4_000_000_000)
        return self.tmp_root / f"{stamp}_{token}_{os.getpid()}"

    def format_path(self, base: Path) -> Path:
        return base.with_name(f"{base.name}_format.xml")

    def export_path(self, base: Path) -> Path:
        return base.with_name(f"{base.name}_export.dat")

    def import_path(self, base: Path) -> Path:
        return base.with_name(f"{base.name}_import.dat")

    # ----------------------------
    # IO helpers
    # ----------------------------
    @staticmethod
    def ensure_parent_directories(paths: Iterable[str | Path]) -> None:
        dirs: list[Path] = []
        for p in paths:
            d = Path(p).resolve().parent
            if d not in dirs:
                dirs.append(d)

        _run_in_parallel("create directories for", dirs, lambda d: d.mkdir(parents=True, exist_ok=True))

    @staticmethod
    def delete_files(paths: Iterable[str | Path]) -> None:
        targets = [Path(p) for p in paths]
        logger.debug("Deleting %s", ", ".join(str(p) for p in targets))
        _run_in_parallel("delete", targets, lambda p: p.unlink())
