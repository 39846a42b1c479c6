# SPDX-License-Identifier: MIT
"""Tests for the pending upload store."""

import threading
from datetime import datetime, timedelta, timezone

from hypothesis import given, settings, strategies as st

from repub_api.services import PendingUploadStore


class TestPendingUploadStore:
    """Tests for staging and taking uploads."""

    def test_stage_then_take(self):
        store = PendingUploadStore()
        token = store.stage(b"archive", "alice")

        upload = store.take(token)
        assert upload is not None
        assert upload.archive == b"archive"
        assert upload.uploader == "alice"

    def test_take_is_single_use(self):
        store = PendingUploadStore()
        token = store.stage(b"archive", "alice")

        assert store.take(token) is not None
        assert store.take(token) is None
        assert len(store) == 0

    def test_unknown_token(self):
        assert PendingUploadStore().take("not-a-token") is None

    def test_tokens_do_not_depend_on_payload(self):
        """Identical payloads still get distinct tokens."""
        store = PendingUploadStore()
        first = store.stage(b"same bytes", "alice")
        second = store.stage(b"same bytes", "bob")

        assert first != second
        assert store.take(second).uploader == "bob"
        assert store.take(first).uploader == "alice"

    def test_contains_and_len(self):
        store = PendingUploadStore()
        token = store.stage(b"x", "alice")
        assert token in store
        assert len(store) == 1

    def test_purge_expired(self):
        store = PendingUploadStore()
        old = store.stage(b"old", "alice")
        fresh = store.stage(b"fresh", "alice")

        now = datetime.now(timezone.utc) + timedelta(minutes=30)
        store._uploads[old].staged_at = now - timedelta(hours=2)

        removed = store.purge_expired(timedelta(hours=1), now=now)
        assert removed == 1
        assert old not in store
        assert fresh in store

    def test_concurrent_take_yields_one_winner(self):
        store = PendingUploadStore()
        token = store.stage(b"archive", "alice")
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(store.take(token))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sum(1 for r in results if r is not None) == 1

    def test_concurrent_stage_loses_nothing(self):
        store = PendingUploadStore()
        tokens = []
        lock = threading.Lock()

        def worker(i: int):
            token = store.stage(str(i).encode(), f"user{i}")
            with lock:
                tokens.append(token)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(32)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(set(tokens)) == 32
        assert len(store) == 32


class TestPendingUploadStoreProperties:
    """Property-based tests for the pending upload store."""

    @given(payloads=st.lists(st.binary(max_size=64), min_size=1, max_size=20))
    @settings(max_examples=50)
    def test_every_staged_upload_taken_exactly_once(self, payloads: list[bytes]):
        store = PendingUploadStore()
        tokens = [store.stage(payload, "alice") for payload in payloads]

        assert len(set(tokens)) == len(tokens)
        for token, payload in zip(tokens, payloads):
            assert store.take(token).archive == payload
            assert store.take(token) is None
        assert len(store) == 0
