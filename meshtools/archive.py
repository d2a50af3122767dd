"""Detection and extraction of zip and tar.gz archives."""

from __future__ import annotations

import os
import shutil
import tarfile
import zipfile
from collections.abc import Callable
from pathlib import Path

_SNIFF_LENGTH = 512
_WHITESPACE = b"\t\n\x0c\r "
_HTML_SIGNATURES = (
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1",
    b"<DIV", b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B",
    b"<BODY", b"<BR", b"<P", b"<!--",
)
_EXACT_SIGNATURES = (
    (b"%PDF-", "application/pdf"),
    (b"%!PS-Adobe-", "application/postscript"),
    (b"\xfe\xff", "text/plain; charset=utf-16be"),
    (b"\xff\xfe", "text/plain; charset=utf-16le"),
    (b"\xef\xbb\xbf", "text/plain; charset=utf-8"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"BM", "image/bmp"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"PK\x03\x04", "application/zip"),
    (b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    (b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),
    (b"\x00asm", "application/wasm"),
)
_BINARY_BYTES = frozenset(
    [*range(0x00, 0x09), 0x0B, *range(0x0E, 0x1B), *range(0x1C, 0x20)]
)


class ArchiveError(Exception):
    """Raised when an archive or directory cannot be read or extracted."""

    def __init__(self, message: str, path: str | os.PathLike[str]) -> None:
        super().__init__(f"{message}: {path}")
        self.path = os.fspath(path)


def _sniff(data: bytes) -> str:
    stripped = data.lstrip(_WHITESPACE)
    for signature in _HTML_SIGNATURES:
        head = stripped[: len(signature)]
        if head.upper() == signature and stripped[len(signature):len(signature) + 1] in (b" ", b">"):
            return "text/html; charset=utf-8"
    if stripped.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"
    for signature, content_type in _EXACT_SIGNATURES:
        if data.startswith(signature):
            return content_type
    if any(byte in _BINARY_BYTES for byte in data):
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def _content_type(name: str | os.PathLike[str]) -> str | None:
    try:
        with open(name, "rb") as handle:
            head = handle.read(_SNIFF_LENGTH)
    except OSError:
        return None
    return _sniff(head) if head else None


def is_tar_gz(name: str | os.PathLike[str]) -> bool:
    """Return whether the file looks like gzip-compressed data."""
    return _content_type(name) == "application/x-gzip"


def is_zip(name: str | os.PathLike[str]) -> bool:
    """Return whether the file looks like a zip archive."""
    return _content_type(name) == "application/zip"


def is_yaml(name: str | os.PathLike[str]) -> bool:
    """Return whether the file looks like plain text, as YAML does."""
    content_type = _content_type(name)
    return content_type is not None and "text/plain" in content_type


def _safe_join(root: Path, name: str) -> Path:
    target = (root / name).resolve()
    base = root.resolve()
    if target != base and base not in target.parents:
        raise ArchiveError("archive entry escapes the destination", name)
    return target


def extract_zip(path: str | os.PathLike[str], artifact_path: str | os.PathLike[str]) -> None:
    """Extract the zip archive at artifact_path into the directory path."""
    destination = Path(path)
    try:
        with zipfile.ZipFile(artifact_path) as archive:
            for info in archive.infolist():
                target = _safe_join(destination, info.filename)
                mode = (info.external_attr >> 16) & 0o777
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as source, open(target, "wb") as sink:
                    shutil.copyfileobj(source, sink)
                if mode:
                    os.chmod(target, mode)
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArchiveError("failed to extract zip archive", path) from exc


def extract_tar_gz(path: str | os.PathLike[str], archive_path: str | os.PathLike[str]) -> None:
    """Extract the gzip-compressed tar archive into the directory path.

    Only directories and regular files are accepted; any other entry type
    raises ArchiveError.
    """
    destination = Path(path)
    try:
        stream = open(archive_path, "rb")
    except OSError as exc:
        raise ArchiveError("failed to read file", archive_path) from exc
    with stream:
        try:
            with tarfile.open(fileobj=stream, mode="r:gz") as archive:
                for member in archive:
                    target = _safe_join(destination, member.name)
                    if member.isdir():
                        os.makedirs(target, 0o755, exist_ok=True)
                    elif member.isreg():
                        os.makedirs(target.parent, 0o755, exist_ok=True)
                        source = archive.extractfile(member)
                        if source is None:
                            raise ArchiveError("cannot read archive entry", member.name)
                        with source, open(target, "wb") as sink:
                            shutil.copyfileobj(source, sink)
                    else:
                        raise ArchiveError(
                            f"unsupported entry type for {member.name!r}", path
                        )
        except (OSError, EOFError, tarfile.TarError) as exc:
            raise ArchiveError("failed to extract tar.gz archive", path) from exc


def process_content(
    file_path: str | os.PathLike[str], func: Callable[[str], object]
) -> None:
    """Call func on file_path, or on each entry of it when it is a directory.

    Entries are visited in name order; an exception from func stops the walk
    and propagates.
    """
    file_path = os.fspath(file_path)
    try:
        is_dir = os.path.isdir(file_path) if os.stat(file_path) else False
        entries = sorted(os.listdir(file_path)) if is_dir else None
    except OSError as exc:
        raise ArchiveError("failed to read directory", file_path) from exc
    if entries is None:
        func(file_path)
        return
    for entry in entries:
        func(os.path.join(file_path, entry))