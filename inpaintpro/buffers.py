"""
Buffer Module
RGBA 픽셀 버퍼와 손상 마스크 버퍼 정의 및 이미지 변환 유틸리티
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

CHANNELS = 4
ALPHA = 3


class InvalidInputError(ValueError):
    """버퍼 크기/형식이 맞지 않을 때 발생"""


@dataclass(eq=False)
class RGBABuffer:
    """
    row-major 1차원 uint8 배열 (R, G, B, A 순서)

    data[(y * width + x) * 4 + c] 가 (x, y) 픽셀의 c 채널 값입니다.
    """
    width: int
    height: int
    data: np.ndarray

    @property
    def expected_length(self) -> int:
        return self.width * self.height * CHANNELS

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def index_of(self, x: int, y: int) -> int:
        return (y * self.width + x) * CHANNELS

    def as_image(self) -> np.ndarray:
        """(height, width, 4) 뷰 반환 - 원본 데이터와 메모리를 공유"""
        return self.data.reshape(self.height, self.width, CHANNELS)

    def alpha(self) -> np.ndarray:
        """알파 채널 (height, width) 뷰"""
        return self.as_image()[:, :, ALPHA]

    def validate(self, name: str = "buffer") -> None:
        """형식 검사 (실패 시 InvalidInputError)"""
        if self.width <= 0 or self.height <= 0:
            raise InvalidInputError(f"{name}: 잘못된 크기 {self.width}x{self.height}")
        if not isinstance(self.data, np.ndarray) or self.data.dtype != np.uint8:
            raise InvalidInputError(f"{name}: uint8 numpy 배열이 필요합니다")
        if self.data.ndim != 1 or not self.data.flags['C_CONTIGUOUS']:
            raise InvalidInputError(f"{name}: 연속된 1차원 배열이 필요합니다")
        if not self.data.flags.writeable:
            raise InvalidInputError(f"{name}: 읽기 전용 배열은 수정할 수 없습니다")
        if self.data.size != self.expected_length:
            raise InvalidInputError(
                f"{name}: 길이 {self.data.size} != {self.width}*{self.height}*4 "
                f"({self.expected_length})"
            )


@dataclass(eq=False)
class PixelBuffer(RGBABuffer):
    """복원 대상 이미지 버퍼"""

    @classmethod
    def blank(cls, width: int, height: int, color=(0, 0, 0, 255)) -> 'PixelBuffer':
        image = np.empty((height, width, CHANNELS), dtype=np.uint8)
        image[:, :] = color
        return cls(width, height, image.reshape(-1))

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> 'PixelBuffer':
        """(H, W, 4) RGBA 배열에서 생성 (복사본)"""
        if rgba.ndim != 3 or rgba.shape[2] != CHANNELS:
            raise InvalidInputError(f"RGBA (H, W, 4) 배열이 필요합니다: {rgba.shape}")
        height, width = rgba.shape[:2]
        data = np.ascontiguousarray(rgba, dtype=np.uint8).reshape(-1).copy()
        return cls(width, height, data)

    @classmethod
    def from_bgr(cls, image: np.ndarray) -> 'PixelBuffer':
        """OpenCV 이미지 (Gray / BGR / BGRA) 를 RGBA 버퍼로 변환"""
        if image.dtype == np.uint16:
            image = (image >> 8).astype(np.uint8)

        if image.ndim == 2:
            rgba = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
        elif image.shape[2] == 3:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
        elif image.shape[2] == 4:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
        else:
            raise InvalidInputError(f"지원하지 않는 채널 수: {image.shape}")
        return cls.from_array(rgba)

    def to_rgba(self) -> np.ndarray:
        return self.as_image().copy()

    def to_bgr(self) -> np.ndarray:
        """OpenCV BGR 이미지로 변환"""
        return cv2.cvtColor(self.as_image(), cv2.COLOR_RGBA2BGR)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.to_rgba())

    def copy(self) -> 'PixelBuffer':
        return PixelBuffer(self.width, self.height, self.data.copy())

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        i = self.index_of(x, y)
        return tuple(int(v) for v in self.data[i:i + CHANNELS])


@dataclass(eq=False)
class MaskBuffer(RGBABuffer):
    """
    손상 영역 마스크 (알파 채널만 의미 있음)

    알파 > 0 이면 손상 픽셀. 채우기 과정에서 복원된 픽셀의 알파는 0 으로 지워집니다.
    """

    @classmethod
    def blank(cls, width: int, height: int) -> 'MaskBuffer':
        return cls(width, height, np.zeros(width * height * CHANNELS, dtype=np.uint8))

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> 'MaskBuffer':
        if rgba.ndim != 3 or rgba.shape[2] != CHANNELS:
            raise InvalidInputError(f"RGBA (H, W, 4) 배열이 필요합니다: {rgba.shape}")
        height, width = rgba.shape[:2]
        data = np.ascontiguousarray(rgba, dtype=np.uint8).reshape(-1).copy()
        return cls(width, height, data)

    @classmethod
    def from_alpha(cls, alpha: np.ndarray) -> 'MaskBuffer':
        """(H, W) 알파(또는 bool) 배열에서 생성"""
        height, width = alpha.shape[:2]
        mask = cls.blank(width, height)
        mask.alpha()[:, :] = np.where(alpha > 0, 255, 0).astype(np.uint8)
        return mask

    def mark(self, x: int, y: int, alpha: int = 255) -> None:
        self.data[self.index_of(x, y) + ALPHA] = alpha

    def mark_rect(self, x: int, y: int, w: int, h: int, alpha: int = 255) -> None:
        self.alpha()[y:y + h, x:x + w] = alpha

    def is_damaged(self, x: int, y: int) -> bool:
        return bool(self.data[self.index_of(x, y) + ALPHA] > 0)

    def damaged_count(self) -> int:
        return int(np.count_nonzero(self.alpha()))

    def clear(self) -> None:
        self.data[:] = 0


def check_buffers(pixels: PixelBuffer, mask: MaskBuffer) -> None:
    """픽셀/마스크 버퍼 쌍 검사 - 변경 작업 전에 호출"""
    pixels.validate("pixels")
    mask.validate("mask")
    if (pixels.width, pixels.height) != (mask.width, mask.height):
        raise InvalidInputError(
            f"크기 불일치: pixels {pixels.width}x{pixels.height}, "
            f"mask {mask.width}x{mask.height}"
        )


def decode_image(image_bytes: bytes) -> PixelBuffer:
    """업로드된 파일 바이트를 PixelBuffer 로 디코딩"""
    image_array = np.frombuffer(image_bytes, np.uint8)
    image = cv2.imdecode(image_array, cv2.IMREAD_UNCHANGED) if image_array.size else None
    if image is None:
        raise InvalidInputError("이미지를 디코딩할 수 없습니다")

    buffer = PixelBuffer.from_bgr(image)
    logger.info("Decoded image %dx%d (%d ch)", buffer.width, buffer.height,
                1 if image.ndim == 2 else image.shape[2])
    return buffer


def mask_from_canvas(
    image_data: Optional[np.ndarray],
    width: int,
    height: int
) -> MaskBuffer:
    """
    브러시 캔버스 레이어 (표시 크기 RGBA) 를 이미지 해상도의 마스크로 변환

    Args:
        image_data: st_canvas 가 반환한 (h, w, 4) 배열 또는 None
        width, height: 원본 이미지 크기

    Returns:
        MaskBuffer (캔버스가 비어 있으면 손상 픽셀 없음)
    """
    if image_data is None:
        return MaskBuffer.blank(width, height)

    layer = np.asarray(image_data)
    if layer.ndim != 3 or layer.shape[2] != CHANNELS:
        raise InvalidInputError(f"캔버스 레이어는 RGBA 여야 합니다: {layer.shape}")
    layer = layer.astype(np.uint8, copy=False)

    # 스트로크 경계가 번지지 않도록 최근접 보간
    if layer.shape[:2] != (height, width):
        layer = cv2.resize(layer, (width, height), interpolation=cv2.INTER_NEAREST)

    return MaskBuffer.from_array(layer)
