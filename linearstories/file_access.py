#!/usr/bin/env python3
"""
File access used by the importer (read + write-back) and exporter (write).

Kept behind a tiny interface so runs can be pointed at something other than
the local disk.
"""

from pathlib import Path


class LocalFileAccess:
    """UTF-8 text files on the local filesystem."""

    def read_text(self, path: str) -> str:
        # newline='' keeps CRLF line endings intact for byte-exact write-back
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()

    def write_text(self, path: str, text: str) -> None:
        target = Path(path)
        if target.parent and not target.parent.exists():
            target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8', newline='') as f:
            f.write(text)
