from snowscore.core.rate_limit import BatchedWorkerPool, CallSpacer


def test_call_spacer_sleeps_for_remaining_interval(monkeypatch):
    monotonic_values = iter([0.0, 0.05, 0.2, 1.0])
    monkeypatch.setattr("snowscore.core.rate_limit.time.monotonic", lambda: next(monotonic_values))
    sleeps: list[float] = []
    monkeypatch.setattr("snowscore.core.rate_limit.time.sleep", lambda s: sleeps.append(round(float(s), 3)))

    spacer = CallSpacer(min_interval_seconds=0.2)
    spacer.wait()  # first call: no wait
    spacer.wait()  # 0.05s later: sleep 0.15s
    spacer.wait()  # 0.8s later: no wait

    assert sleeps == [0.15]
    assert spacer.calls == 3


def test_pool_preserves_order_and_pauses_only_after_live_batches(monkeypatch):
    sleeps: list[float] = []
    monkeypatch.setattr("snowscore.core.rate_limit.time.sleep", lambda s: sleeps.append(float(s)))
    spacer = CallSpacer(min_interval_seconds=0.0)
    pool = BatchedWorkerPool(max_workers=3, batch_pause_seconds=2.0, spacer=spacer)

    def work(n: int) -> int:
        # Only the first batch (items 0..2) "goes to the network".
        if n < 3:
            spacer.wait()
        return n * n

    assert pool.map(work, list(range(8))) == [n * n for n in range(8)]
    # Three batches; only the first issued live calls, and no pause follows the last batch.
    assert sleeps == [2.0]
    assert spacer.calls == 3


def test_pool_without_spacer_never_pauses(monkeypatch):
    sleeps: list[float] = []
    monkeypatch.setattr("snowscore.core.rate_limit.time.sleep", lambda s: sleeps.append(float(s)))
    pool = BatchedWorkerPool(max_workers=2, batch_pause_seconds=2.0)

    assert pool.map(str, [1, 2, 3, 4, 5]) == ["1", "2", "3", "4", "5"]
    assert pool.map(str, []) == []
    assert sleeps == []
