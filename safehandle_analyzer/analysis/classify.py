"""Classify finalizable objects by SafeHandle type name."""

from __future__ import annotations

SAFE_HANDLE_NAMESPACE = "Microsoft.Win32.SafeHandles"
SAFE_FILE_HANDLE = "Microsoft.Win32.SafeHandles.SafeFileHandle"

_CATEGORIES: list[tuple[str, str]] = [
    ("SafeMemoryMappedFileHandle", "memory_mapped_file"),
    ("SafeX509StackHandle", "x509_stack"),
    ("SafeX509StoreHandle", "x509_store"),
    ("SafeX509Handle", "x509"),
    ("SafeWaitHandle", "wait"),
    ("SafeHmacCtxHandle", "hmac"),
    ("SafeEvpCipherCtxHandle", "evp_cipher"),
    ("SafeFileHandle", "file"),
]


def is_safe_handle(type_name: str | None) -> bool:
    return bool(type_name) and type_name.startswith(SAFE_HANDLE_NAMESPACE)


def handle_category(type_name: str) -> str:
    """Short label for a SafeHandle family, ``"other"`` if unknown."""
    if not is_safe_handle(type_name):
        return "other"
    short = type_name[len(SAFE_HANDLE_NAMESPACE):].lstrip(".")
    for prefix, label in _CATEGORIES:
        if short.startswith(prefix):
            return label
    return "other"


def parse_type_list(value: str | None) -> list[str]:
    """Split a comma separated option value, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def wants_root_analysis(type_name: str, suffixes: list[str] | None) -> bool:
    """True when *type_name* ends with one of the configured suffixes."""
    if not suffixes:
        return False
    return any(type_name.endswith(suffix) for suffix in suffixes)
