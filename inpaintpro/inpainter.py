"""
Inpainter Module
마스크로 지정된 손상 영역을 주변 픽셀 평균 확산(Diffusion)으로 복원하는 모듈

경계에서 안쪽으로 한 겹(ring)씩 8-이웃 평균을 채워 넣는 방식으로,
Fast Marching 인페인팅을 거리 계산 없이 근사합니다.
"""
import logging
import threading
import time
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np

from .buffers import ALPHA, MaskBuffer, PixelBuffer, check_buffers

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 500

# (dx, dy), 자기 자신 (0, 0) 제외
NEIGHBOR_OFFSETS = tuple(
    (dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)
)


class FillStatus(Enum):
    RESOLVED = "resolved"
    STUCK = "stuck"
    CAP_EXHAUSTED = "cap_exhausted"
    CANCELLED = "cancelled"


@dataclass
class DamagedPixel:
    x: int
    y: int
    index: int
    solved: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class FillResult:
    pixels: PixelBuffer
    status: FillStatus
    damaged_count: int
    remaining: int
    passes: int
    elapsed_ms: float = 0.0

    @property
    def is_complete(self) -> bool:
        return self.status is FillStatus.RESOLVED

    @property
    def resolved_count(self) -> int:
        return self.damaged_count - self.remaining

    def to_dict(self) -> Dict:
        """JSON 리포트용 요약 (픽셀 데이터 제외)"""
        return {
            'status': self.status.value,
            'width': self.pixels.width,
            'height': self.pixels.height,
            'damaged_count': self.damaged_count,
            'resolved_count': self.resolved_count,
            'remaining': self.remaining,
            'passes': self.passes,
            'elapsed_ms': round(self.elapsed_ms, 1),
        }


def scan_damage(mask: MaskBuffer) -> List[DamagedPixel]:
    """
    마스크 알파 > 0 인 픽셀 목록 생성 (row-major: y 바깥, x 안쪽)
    """
    # np.nonzero 는 C 순서(행 우선)로 인덱스를 반환
    ys, xs = np.nonzero(mask.alpha())
    width = mask.width
    return [
        DamagedPixel(x=int(x), y=int(y), index=(int(y) * width + int(x)) * 4)
        for y, x in zip(ys, xs)
    ]


class PassSolver:
    """한 패스 동안 미해결 손상 픽셀을 유효한 이웃의 평균으로 채움"""

    def __init__(self, pixels: PixelBuffer, mask: MaskBuffer, records: Sequence[DamagedPixel]):
        self.records = records
        self._image = pixels.as_image()
        self._mask_alpha = mask.alpha()
        self._height, self._width = self._image.shape[:2]

        self._xs = np.fromiter((p.x for p in records), dtype=np.intp, count=len(records))
        self._ys = np.fromiter((p.y for p in records), dtype=np.intp, count=len(records))
        self._pending = np.fromiter((not p.solved for p in records), dtype=bool, count=len(records))

    def solve_pass(self) -> List[DamagedPixel]:
        """
        미해결 픽셀 전체를 한 번 시도

        유효 여부는 패스 시작 시점의 마스크 스냅샷으로만 판단하므로,
        같은 패스에서 채워진 픽셀은 다른 픽셀의 입력이 되지 않습니다.
        마스크 해제는 호출자(ConvergenceController)가 패스 종료 후 수행합니다.

        Returns:
            이번 패스에서 해결된 DamagedPixel 리스트
        """
        todo = np.flatnonzero(self._pending)
        if todo.size == 0:
            return []

        xs = self._xs[todo]
        ys = self._ys[todo]
        valid = self._mask_alpha == 0

        sums = np.zeros((todo.size, 3), dtype=np.int64)
        counts = np.zeros(todo.size, dtype=np.int64)

        for dx, dy in NEIGHBOR_OFFSETS:
            nx = xs + dx
            ny = ys + dy
            inside = (nx >= 0) & (nx < self._width) & (ny >= 0) & (ny < self._height)
            # 범위 밖 좌표는 clip 후 inside 로 제외
            cx = np.clip(nx, 0, self._width - 1)
            cy = np.clip(ny, 0, self._height - 1)
            use = inside & valid[cy, cx]

            sums += self._image[cy, cx, :3].astype(np.int64) * use[:, None]
            counts += use

        hit = counts > 0
        if not np.any(hit):
            return []

        # Uint8 clamped 저장과 동일하게 반올림 (half to even)
        means = np.rint(sums[hit] / counts[hit, None]).astype(np.uint8)
        hx, hy = xs[hit], ys[hit]
        self._image[hy, hx, :3] = means
        self._image[hy, hx, ALPHA] = 255

        solved_idx = todo[hit]
        self._pending[solved_idx] = False

        solved = []
        for k in solved_idx:
            record = self.records[int(k)]
            record.solved = True
            solved.append(record)
        return solved


class ConvergenceController:
    """패스 결과 반영 및 반복 종료 판단"""

    def __init__(self, mask: MaskBuffer, damaged_count: int, max_passes: int):
        self.mask = mask
        self.remaining = damaged_count
        self.passes_left = max_passes
        self.passes = 0

    def commit(self, solved: Sequence[DamagedPixel]) -> None:
        """해결된 픽셀의 마스크 알파를 0 으로 - 다음 패스부터 유효 픽셀이 됨"""
        if not solved:
            return
        alpha_idx = np.fromiter((p.index + ALPHA for p in solved), dtype=np.intp, count=len(solved))
        self.mask.data[alpha_idx] = 0
        self.remaining -= len(solved)

    def run(
        self,
        solver: PassSolver,
        cancel_event: Optional[threading.Event] = None
    ) -> FillStatus:
        while self.remaining > 0:
            if self.passes_left <= 0:
                return FillStatus.CAP_EXHAUSTED
            if cancel_event is not None and cancel_event.is_set():
                return FillStatus.CANCELLED

            solved = solver.solve_pass()
            self.passes_left -= 1
            self.passes += 1
            self.commit(solved)
            logger.debug("Pass %d: solved %d, remaining %d", self.passes, len(solved), self.remaining)

            if self.remaining == 0:
                break
            if not solved:
                return FillStatus.STUCK

        return FillStatus.RESOLVED


class DiffusionFillEngine:
    """손상 영역 확산 채우기 엔진"""

    method = "diffusion"

    def __init__(self, max_passes: int = DEFAULT_MAX_PASSES):
        if max_passes < 0:
            raise ValueError(f"max_passes 는 0 이상이어야 합니다: {max_passes}")
        self.max_passes = max_passes

    def fill(
        self,
        pixels: PixelBuffer,
        mask: MaskBuffer,
        cancel_event: Optional[threading.Event] = None
    ) -> FillResult:
        """
        손상 영역 복원 (pixels, mask 모두 제자리 수정)

        Args:
            pixels: RGBA 픽셀 버퍼
            mask: 같은 크기의 마스크 버퍼 (알파 > 0 = 손상)
            cancel_event: 설정되면 다음 패스 전에 중단

        Returns:
            FillResult (pixels 는 전달된 버퍼 그대로)

        Raises:
            InvalidInputError: 크기 불일치 또는 잘못된 버퍼 (수정 전에 발생)
        """
        check_buffers(pixels, mask)
        started = time.perf_counter()

        records = scan_damage(mask)
        if not records:
            logger.debug("No damaged pixels, nothing to fill")
            return FillResult(pixels, FillStatus.RESOLVED, 0, 0, 0,
                              (time.perf_counter() - started) * 1000)

        solver = PassSolver(pixels, mask, records)
        controller = ConvergenceController(mask, len(records), self.max_passes)
        status = controller.run(solver, cancel_event)

        result = FillResult(
            pixels=pixels,
            status=status,
            damaged_count=len(records),
            remaining=controller.remaining,
            passes=controller.passes,
            elapsed_ms=(time.perf_counter() - started) * 1000,
        )

        if result.is_complete:
            logger.info("Inpaint: %d px resolved in %d passes (%.1f ms)",
                        result.damaged_count, result.passes, result.elapsed_ms)
        else:
            logger.warning("Inpaint %s: %d of %d px unresolved after %d passes",
                           status.value, result.remaining, result.damaged_count, result.passes)
        return result


def create_inpainter(method: str = 'diffusion', **kwargs) -> DiffusionFillEngine:
    if method != 'diffusion':
        raise ValueError(f"지원하지 않는 인페인팅 방식: {method}")
    return DiffusionFillEngine(**kwargs)


def fill(
    pixels: PixelBuffer,
    mask: MaskBuffer,
    max_passes: Optional[int] = None
) -> FillResult:
    engine = DiffusionFillEngine(DEFAULT_MAX_PASSES if max_passes is None else max_passes)
    return engine.fill(pixels, mask)
