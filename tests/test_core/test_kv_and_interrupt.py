"""Tests for KV records and the interrupt flag."""

import signal
import threading

import pytest

from iterflow import KV, InterruptFlag
from iterflow.core import sigint_sets


def test_kv_push_keeps_order_and_replaces():
    kv = KV().push("a", 1).push("b", 2).push("a", 3)
    assert list(kv.keys()) == ["a", "b"]
    assert kv["a"] == 3
    assert len(kv) == 2
    assert "b" in kv
    assert kv.get("missing", 0) == 0


def test_kv_merge_other_wins():
    kv = KV(a=1, b=2).merge(KV(b=5, c=6))
    assert kv.as_dict() == {"a": 1, "b": 5, "c": 6}
    assert kv.merge(None) is kv


def test_kv_equality_and_iteration():
    assert KV({"x": 1.0}) == KV(x=1.0)
    assert list(KV(x=1.0)) == [("x", 1.0)]
    assert repr(KV(x=1)) == "KV(x=1)"


def test_interrupt_flag_set_and_clear():
    flag = InterruptFlag()
    assert not flag.is_set()
    flag.set()
    assert flag.is_set()
    flag.clear()
    assert not flag.is_set()


def test_interrupt_flag_set_from_other_thread():
    flag = InterruptFlag()
    thread = threading.Thread(target=flag.set)
    thread.start()
    thread.join()
    assert flag.is_set()


@pytest.mark.skipif(threading.current_thread() is not threading.main_thread(), reason="needs main thread")
def test_sigint_sets_flag_and_restores_handler():
    previous = signal.getsignal(signal.SIGINT)
    flag = InterruptFlag()
    with sigint_sets(flag):
        signal.raise_signal(signal.SIGINT)
    assert flag.is_set()
    assert signal.getsignal(signal.SIGINT) is previous
