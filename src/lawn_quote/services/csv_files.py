"""
CSV file helpers shared by the file-backed stores.

Full rewrites go to a temp file in the same directory and are moved into
place with os.replace, so a crash mid-write leaves the previous file intact.
"""
import csv
import os
import tempfile
from pathlib import Path


def read_rows(path: Path) -> list[dict]:
    """All rows with an id, or [] when the file does not exist yet."""
    if not path.exists():
        return []
    with open(path, 'r', encoding='utf-8', newline='') as f:
        return [row for row in csv.DictReader(f) if row.get('id')]


def write_rows(path: Path, fieldnames: list[str], rows: list[dict]):
    """Replace the file with `rows`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise


def append_row(path: Path, fieldnames: list[str], row: dict):
    """Add one row, writing the header first if the file is new or empty."""
    path.parent.mkdir(parents=True, exist_ok=True)
    is_new = not path.exists() or path.stat().st_size == 0
    with open(path, 'a', encoding='utf-8', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        if is_new:
            writer.writeheader()
        writer.writerow(row)
