#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: 0BSD

import sys
import threading

from concurrent.futures import ThreadPoolExecutor, as_completed

import pytest

from wrapt import decorator

if sys.version_info >= (3, 11):
    WaitTimeout = TimeoutError
else:
    from concurrent.futures import TimeoutError as WaitTimeout


def _run_concurrently(*functions, timeout=1):
    barrier = threading.Barrier(len(functions))
    stopped = threading.Event()

    @decorator
    def _repeat(wrapped, instance, args, kwargs):
        barrier.wait()

        while not stopped.is_set():
            wrapped(*args, **kwargs)

    interval = sys.getswitchinterval()
    sys.setswitchinterval(min(1e-6, interval))

    try:
        with ThreadPoolExecutor(len(functions)) as executor:
            futures = [executor.submit(_repeat(f)) for f in functions]

            try:
                for future in as_completed(futures, timeout=timeout):
                    future.result()  # reraise
            except WaitTimeout:
                pass
            finally:
                stopped.set()

            for future in futures:
                future.result()  # reraise
    finally:
        sys.setswitchinterval(interval)


@pytest.fixture
def test_thread_safety():
    return _run_concurrently


def pytest_addoption(parser):
    parser.addoption(
        "--thread-safety",
        action="store_true",
        default=False,
        help="run thread-safety tests",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "threadsafe: mark test as thread-safety test",
    )


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "test_thread_safety" in item.fixturenames:
            item.add_marker(pytest.mark.threadsafe)

        if "threadsafe" in item.keywords:
            if not config.getoption("--thread-safety"):
                item.add_marker(
                    pytest.mark.skip(
                        reason="need --thread-safety option to run",
                    )
                )
