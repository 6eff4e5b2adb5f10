import pytest
from wabridge.core.retry import TransientError, retry_async


@pytest.mark.asyncio
async def test_retry_async_retries_transient_errors():
    calls = {"n": 0}

    async def flaky():
        calls["n"] += 1
        if calls["n"] < 3:
            raise TransientError("boom", status_code=502)
        return "ok"

    assert await retry_async(flaky, max_attempts=3, min_wait=0, max_wait=0) == "ok"
    assert calls["n"] == 3


@pytest.mark.asyncio
async def test_retry_async_does_not_retry_other_errors():
    calls = {"n": 0}

    async def broken():
        calls["n"] += 1
        raise KeyError("nope")

    with pytest.raises(KeyError):
        await retry_async(broken, max_attempts=5, min_wait=0, max_wait=0)
    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_retry_async_reraises_last_error():
    async def down():
        raise TransientError("still down", status_code=503)

    with pytest.raises(TransientError) as exc:
        await retry_async(down, max_attempts=2, min_wait=0, max_wait=0)
    assert exc.value.status_code == 503
