"""Tests for SafeHandle classification."""

from safehandle_analyzer.analysis.classify import (
    handle_category,
    is_safe_handle,
    parse_type_list,
    wants_root_analysis,
)


def test_is_safe_handle():
    assert is_safe_handle("Microsoft.Win32.SafeHandles.SafeFileHandle")
    assert not is_safe_handle("System.Threading.Timer")
    assert not is_safe_handle("")
    assert not is_safe_handle(None)


def test_handle_category():
    ns = "Microsoft.Win32.SafeHandles."
    assert handle_category(ns + "SafeFileHandle") == "file"
    assert handle_category(ns + "SafeMemoryMappedFileHandle") == "memory_mapped_file"
    assert handle_category(ns + "SafeX509StackHandle") == "x509_stack"
    assert handle_category(ns + "SafeX509StoreHandle") == "x509_store"
    assert handle_category(ns + "SafeX509Handle") == "x509"
    assert handle_category(ns + "SafeWaitHandle") == "wait"
    assert handle_category(ns + "SafeHmacCtxHandle") == "hmac"
    assert handle_category(ns + "SafeEvpCipherCtxHandle") == "evp_cipher"
    assert handle_category(ns + "SafeRegistryHandle") == "other"
    assert handle_category("System.Object") == "other"


def test_parse_type_list():
    assert parse_type_list("SafeFileHandle, SafeWaitHandle,,") == ["SafeFileHandle", "SafeWaitHandle"]
    assert parse_type_list(None) == []
    assert parse_type_list("") == []


def test_wants_root_analysis_matches_suffix():
    name = "Microsoft.Win32.SafeHandles.SafeFileHandle"
    assert wants_root_analysis(name, ["SafeFileHandle"])
    assert wants_root_analysis(name, ["SafeWaitHandle", "FileHandle"])
    assert not wants_root_analysis(name, ["SafeWaitHandle"])
    assert not wants_root_analysis(name, [])
    assert not wants_root_analysis(name, None)
