import threading
import unittest

from quotedesk.errors import UpstreamError
from quotedesk.services.quote_cache import QuoteCache
from quotedesk.services.quote_gateway import QuoteGatewayService


class BlockingRestClient:
    """Holds every upstream call until released so concurrent misses overlap."""

    def __init__(self, payload: dict | None = None, error: Exception | None = None) -> None:
        self.payload = payload or {"price": 42.0}
        self.error = error
        self.release = threading.Event()
        self.entered = threading.Event()
        self._lock = threading.Lock()
        self.calls = 0

    def has_credential(self) -> bool:
        return True

    def get_quote(self, symbol: str) -> dict:
        with self._lock:
            self.calls += 1
        self.entered.set()
        self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        data = dict(self.payload)
        data["symbol"] = symbol
        return data


def _run_concurrently(service, symbol: str, n: int):
    results: list = []
    errors: list = []
    lock = threading.Lock()

    def worker() -> None:
        try:
            quote = service.get_quote(symbol)
            with lock:
                results.append(quote)
        except Exception as exc:
            with lock:
                errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(n)]
    return threads, results, errors


class SingleFlightTest(unittest.TestCase):
    def _wait_for_followers(self, service, expected: int) -> None:
        for _ in range(500):
            if service.metrics()["coalesced"] >= expected:
                return
            threading.Event().wait(0.01)

    def test_concurrent_misses_share_one_upstream_call(self):
        rest_client = BlockingRestClient()
        service = QuoteGatewayService(quote_cache=QuoteCache(), rest_client=rest_client, single_flight=True)
        threads, results, errors = _run_concurrently(service, "AAPL", 5)

        for t in threads:
            t.start()
        rest_client.entered.wait(timeout=5)
        self._wait_for_followers(service, 4)
        rest_client.release.set()
        for t in threads:
            t.join(timeout=5)

        self.assertEqual(errors, [])
        self.assertEqual(len(results), 5)
        self.assertEqual(rest_client.calls, 1)
        self.assertEqual(len({id(q) for q in results}), 1)

    def test_followers_receive_leader_error(self):
        rest_client = BlockingRestClient(error=UpstreamError(503))
        cache = QuoteCache()
        service = QuoteGatewayService(quote_cache=cache, rest_client=rest_client, single_flight=True)
        threads, results, errors = _run_concurrently(service, "AAPL", 3)

        for t in threads:
            t.start()
        rest_client.entered.wait(timeout=5)
        self._wait_for_followers(service, 2)
        rest_client.release.set()
        for t in threads:
            t.join(timeout=5)

        self.assertEqual(results, [])
        self.assertEqual(len(errors), 3)
        self.assertTrue(all(isinstance(e, UpstreamError) and e.status == 503 for e in errors))
        self.assertEqual(rest_client.calls, 1)
        self.assertEqual(len(cache), 0)

    def test_without_single_flight_each_miss_calls_upstream(self):
        rest_client = BlockingRestClient()
        service = QuoteGatewayService(quote_cache=QuoteCache(), rest_client=rest_client)
        threads, results, errors = _run_concurrently(service, "AAPL", 3)

        for t in threads:
            t.start()
        for _ in range(500):
            if rest_client.calls >= 3:
                break
            threading.Event().wait(0.01)
        rest_client.release.set()
        for t in threads:
            t.join(timeout=5)

        self.assertEqual(errors, [])
        self.assertEqual(rest_client.calls, 3)


if __name__ == "__main__":
    unittest.main()
