"""
캐시 프로바이더 수명주기 관리

프로세스 진입 시 저장소 연결을 획득하고, 종료 시 정확히 한 번
연결을 해제합니다.

주요 기능:
    - managed_cache: 연결/해제를 보장하는 비동기 컨텍스트 매니저
    - install_shutdown_handlers: SIGTERM/SIGINT 수신 시 disconnect 예약
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional

import structlog

from geocache.cache.geojson_cache import GeoJSONCache
from geocache.cache.models import CacheConfig
from geocache.cache.store import FieldStore

logger = structlog.get_logger(__name__)

DEFAULT_SIGNALS = (signal.SIGTERM, signal.SIGINT)


@asynccontextmanager
async def managed_cache(
    config: Optional[CacheConfig] = None,
    store: Optional[FieldStore] = None,
) -> AsyncIterator[GeoJSONCache]:
    """
    연결된 GeoJSONCache를 제공하고 블록 종료 시 연결 해제

    예외가 발생해도 항상 disconnect()가 호출됩니다.

    사용 예시:
        ```python
        async with managed_cache(settings.to_cache_config()) as cache:
            install_shutdown_handlers(cache)
            await serve(cache)
        ```
    """
    cache = GeoJSONCache(config, store=store)
    await cache.connect()
    try:
        yield cache
    finally:
        await cache.disconnect()


def install_shutdown_handlers(
    cache: GeoJSONCache,
    loop: Optional[asyncio.AbstractEventLoop] = None,
    signals: Iterable[signal.Signals] = DEFAULT_SIGNALS,
) -> asyncio.Future:
    """
    종료 시그널 수신 시 캐시 연결 해제를 예약

    첫 번째 시그널에서만 disconnect 태스크를 만들고 이후 시그널은
    무시합니다. 반환된 Future는 연결 해제가 끝나면 완료됩니다.

    Args:
        cache: 종료 시 연결을 해제할 캐시
        loop: 대상 이벤트 루프 (기본값: 실행 중인 루프)
        signals: 처리할 시그널 목록

    Returns:
        asyncio.Future: 연결 해제 완료 시 결과가 설정되는 Future
    """
    loop = loop or asyncio.get_running_loop()
    done: asyncio.Future = loop.create_future()
    signals = tuple(signals)

    fired = False

    def _on_signal(sig: signal.Signals) -> None:
        nonlocal fired
        if fired:
            return
        fired = True
        logger.info("종료 시그널 수신, 캐시 연결 해제", signal=sig.name)
        for s in signals:
            loop.remove_signal_handler(s)
        task = loop.create_task(cache.disconnect())
        task.add_done_callback(_propagate)

    def _propagate(task: asyncio.Task) -> None:
        if task.cancelled():
            done.cancel()
        elif task.exception() is not None:
            done.set_exception(task.exception())
        else:
            done.set_result(None)

    for sig in signals:
        loop.add_signal_handler(sig, _on_signal, sig)

    return done
