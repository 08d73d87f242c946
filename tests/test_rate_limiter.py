import unittest
from types import SimpleNamespace
from unittest import mock

from fastapi import HTTPException

from ibdl.utils.rate_limiter import SimpleRateLimiter


def fake_request(host="10.0.0.1"):
    return SimpleNamespace(client=SimpleNamespace(host=host))


class TestSimpleRateLimiter(unittest.TestCase):
    def test_blocks_after_limit_per_client(self):
        limiter = SimpleRateLimiter(requests_per_minute=2)
        self.assertTrue(limiter.check(fake_request()))
        self.assertTrue(limiter.check(fake_request()))
        with self.assertRaises(HTTPException) as ctx:
            limiter.check(fake_request())
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertFalse(limiter.check(fake_request(), raise_exception=False))
        self.assertTrue(limiter.check(fake_request("10.0.0.2")))

    def test_window_slides(self):
        limiter = SimpleRateLimiter(requests_per_minute=1)
        with mock.patch("ibdl.utils.rate_limiter.time.time", return_value=1000.0):
            self.assertTrue(limiter.check(fake_request()))
            self.assertFalse(limiter.check(fake_request(), raise_exception=False))
        with mock.patch("ibdl.utils.rate_limiter.time.time", return_value=1061.0):
            self.assertTrue(limiter.check(fake_request()))


if __name__ == "__main__":
    unittest.main()
