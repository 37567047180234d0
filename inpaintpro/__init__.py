"""
InpaintPro Modules Package
"""

# 픽셀/마스크 버퍼
from .buffers import (
    PixelBuffer,
    MaskBuffer,
    InvalidInputError,
    check_buffers,
    decode_image,
    mask_from_canvas
)

# 이미지 복원 (인페인팅) 관련
from .inpainter import (
    DamagedPixel,
    DiffusionFillEngine,
    FillResult,
    FillStatus,
    PassSolver,
    ConvergenceController,
    scan_damage,
    create_inpainter,
    fill
)

# 백그라운드 실행
from .processor import InpaintProcessor, ProcessorBusyError

# 히스토리
from .history import EditHistory

# 내보내기 및 메타데이터 관련
from .exporter import MultiFormatExporter
from .metadata_builder import MetadataBuilder
