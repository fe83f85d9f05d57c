import threading

from jobs import BackgroundJobs


class LoopStub:
    """Records calls and blocks on the stop event like the real loops"""

    def __init__(self, workers=0):
        self.workers = workers
        self.runs = 0
        self.wakes = []
        self.lock = threading.Lock()

    def _count(self):
        with self.lock:
            self.runs += 1

    def run(self, stop, wake=None):
        self._count()
        if wake is not None:
            wake.wait(5)
            self.wakes.append(wake.is_set())
        stop.wait(5)

    def produce(self, stop):
        self._count()
        stop.wait(5)

    def work(self, stop):
        self._count()
        stop.wait(5)


def test_start_spawns_one_thread_per_loop_and_stop_joins():
    retry, pool, reconciler = LoopStub(), LoopStub(workers=3), LoopStub()
    jobs = BackgroundJobs(retry, pool, reconciler)

    assert jobs.start() is True
    assert len(jobs.threads) == 6
    assert jobs.start() is False

    jobs.stop(timeout=2)

    assert jobs.threads == []
    assert retry.runs == 1
    assert reconciler.runs == 1
    assert pool.runs == 4


def test_trigger_reconcile_wakes_the_loop():
    reconciler = LoopStub()
    jobs = BackgroundJobs(LoopStub(), LoopStub(), reconciler)
    jobs.start()

    jobs.trigger_reconcile()
    jobs.stop(timeout=2)

    assert reconciler.wakes == [True]


def test_relay_wiring_uses_config():
    from app import Relay
    from conftest import make_config

    relay = Relay(make_config(BONUS_WORKERS="4", MAX_RETRIES="3"))

    assert relay.jobs.bonus_pool.workers == 4
    assert relay.ledger.max_retries == 3
    assert {"webhook", "health"} <= set(relay.app.view_functions)
    assert relay.jobs.threads == []
    relay.close()


def test_restart_clears_the_reconcile_wake():
    reconciler = LoopStub()
    jobs = BackgroundJobs(LoopStub(), LoopStub(), reconciler)
    jobs.start()
    jobs.stop(timeout=2)
    assert jobs.reconcile_wake.is_set()

    jobs.start()
    assert not jobs.reconcile_wake.is_set()
    jobs.stop(timeout=2)
