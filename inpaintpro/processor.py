"""
Processor Module
인페인팅 작업을 백그라운드 스레드에서 실행 (시작 지연, 중복 실행 방지, 취소)
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from config.settings import get_inpaint_config

from .buffers import MaskBuffer, PixelBuffer, check_buffers
from .inpainter import DiffusionFillEngine, FillResult, create_inpainter

logger = logging.getLogger(__name__)


class ProcessorBusyError(RuntimeError):
    """이전 작업이 끝나기 전에 새 작업을 요청한 경우"""


class InpaintProcessor:
    """
    DiffusionFillEngine 을 단일 워커 스레드에서 실행

    작업 중에는 전달된 버퍼를 다른 곳에서 읽거나 쓰면 안 됩니다.
    Future 가 끝나면 소유권이 호출자에게 돌아옵니다.
    """

    def __init__(
        self,
        engine: Optional[DiffusionFillEngine] = None,
        start_delay_ms: Optional[int] = None
    ):
        config = get_inpaint_config()
        self.engine = engine or create_inpainter(config["method"], max_passes=config["max_passes"])
        self.start_delay_ms = config["start_delay_ms"] if start_delay_ms is None else start_delay_ms

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="inpaint")
        self._lock = threading.Lock()
        self._future: Optional[Future] = None
        self._cancel_event: Optional[threading.Event] = None

    @property
    def is_processing(self) -> bool:
        with self._lock:
            return self._future is not None and not self._future.done()

    def submit(self, pixels: PixelBuffer, mask: MaskBuffer) -> Future:
        """
        채우기 작업 예약

        Returns:
            FillResult 를 돌려주는 Future

        Raises:
            InvalidInputError: 버퍼 검사 실패 (작업 예약 전, 동기적으로)
            ProcessorBusyError: 이미 실행 중인 작업이 있음
        """
        check_buffers(pixels, mask)

        with self._lock:
            if self._future is not None and not self._future.done():
                raise ProcessorBusyError("인페인팅 작업이 이미 진행 중입니다")

            cancel_event = threading.Event()
            self._cancel_event = cancel_event
            self._future = self._executor.submit(self._run, pixels, mask, cancel_event)
            logger.debug("Submitted fill job %dx%d", pixels.width, pixels.height)
            return self._future

    def process(self, pixels: PixelBuffer, mask: MaskBuffer) -> FillResult:
        """submit 후 결과까지 대기"""
        return self.submit(pixels, mask).result()

    def cancel(self) -> bool:
        """진행 중인 작업에 취소 요청 (다음 패스 전에 중단)"""
        with self._lock:
            if self._future is None or self._future.done():
                return False
            logger.warning("Fill cancellation requested")
            self._cancel_event.set()
            return True

    def shutdown(self, wait: bool = True) -> None:
        self.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> 'InpaintProcessor':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def _run(self, pixels: PixelBuffer, mask: MaskBuffer, cancel_event: threading.Event) -> FillResult:
        if self.start_delay_ms > 0:
            # 취소되면 대기 없이 바로 진행 (엔진이 CANCELLED 반환)
            cancel_event.wait(self.start_delay_ms / 1000.0)
        try:
            return self.engine.fill(pixels, mask, cancel_event=cancel_event)
        except Exception:
            logger.exception("Error in InpaintProcessor._run()")
            raise
