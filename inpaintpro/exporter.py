"""
Exporter Module
복원 결과 출력 (JPEG, PNG, PDF)
"""
import json
import logging
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from PIL import Image

from config.settings import OUTPUTS_DIR

# PDF 관련 임포트
try:
    from reportlab.lib.pagesizes import A4, letter
    from reportlab.pdfgen import canvas
    from reportlab.lib.utils import ImageReader
    HAS_REPORTLAB = True
except ImportError:
    HAS_REPORTLAB = False

from .buffers import PixelBuffer

logger = logging.getLogger(__name__)


def _write_sidecar(output_path: Path, metadata: Optional[Dict]) -> None:
    """메타데이터를 같은 이름의 JSON 으로 저장"""
    if not metadata:
        return
    meta_path = output_path.with_suffix('.json')
    with open(meta_path, 'w', encoding='utf-8') as f:
        json.dump(metadata, f, ensure_ascii=False, indent=2)


def _to_rgb(buffer: PixelBuffer) -> Image.Image:
    return buffer.to_pil().convert('RGB')


class PNGExporter:
    """PNG 이미지 출력 (알파 유지)"""

    def __init__(self, dpi: int = 150):
        self.dpi = dpi

    def export(
        self,
        buffer: PixelBuffer,
        output_path: str,
        metadata: Optional[Dict] = None
    ) -> str:
        """
        PNG 파일로 내보내기

        Args:
            buffer: RGBA 픽셀 버퍼
            output_path: 출력 파일 경로
            metadata: 메타데이터 (별도 JSON 으로 저장)

        Returns:
            저장된 파일 경로
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        buffer.to_pil().save(str(output_path), 'PNG', dpi=(self.dpi, self.dpi))
        _write_sidecar(output_path, metadata)
        return str(output_path)

    def export_to_bytes(self, buffer: PixelBuffer) -> bytes:
        """메모리에서 PNG 바이트로 변환"""
        out = BytesIO()
        buffer.to_pil().save(out, format='PNG', dpi=(self.dpi, self.dpi))
        return out.getvalue()


class JPEGExporter:
    """JPEG 이미지 출력 (알파 제거)"""

    def __init__(self, quality: int = 90):
        self.quality = quality

    def export(
        self,
        buffer: PixelBuffer,
        output_path: str,
        metadata: Optional[Dict] = None
    ) -> str:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        _to_rgb(buffer).save(str(output_path), 'JPEG', quality=self.quality)
        _write_sidecar(output_path, metadata)
        return str(output_path)

    def export_to_bytes(self, buffer: PixelBuffer) -> bytes:
        """메모리에서 JPEG 바이트로 변환"""
        out = BytesIO()
        _to_rgb(buffer).save(out, format='JPEG', quality=self.quality)
        return out.getvalue()


class PDFExporter:
    """PDF 문서 출력 (단일 페이지, 비율 유지 중앙 정렬)"""

    def __init__(
        self,
        page_size: str = "A4",
        margin: int = 20
    ):
        if not HAS_REPORTLAB:
            raise ImportError("reportlab 패키지가 필요합니다: pip install reportlab")

        self.page_size = A4 if page_size == "A4" else letter
        self.margin = margin

    def _draw(self, target, buffer: PixelBuffer, title: str) -> None:
        pil_image = _to_rgb(buffer)

        c = canvas.Canvas(target, pagesize=self.page_size)
        page_width, page_height = self.page_size

        # 이미지 크기 계산 (마진 적용)
        available_width = page_width - (self.margin * 2)
        available_height = page_height - (self.margin * 2)

        img_width, img_height = pil_image.size
        ratio = min(available_width / img_width, available_height / img_height)
        new_width = img_width * ratio
        new_height = img_height * ratio

        # 중앙 정렬
        x = (page_width - new_width) / 2
        y = (page_height - new_height) / 2

        img_buffer = BytesIO()
        pil_image.save(img_buffer, format='PNG')
        img_buffer.seek(0)

        c.drawImage(ImageReader(img_buffer), x, y, width=new_width, height=new_height)
        c.setTitle(title)
        c.setAuthor("InpaintPro")
        c.save()

    def export(
        self,
        buffer: PixelBuffer,
        output_path: str,
        title: str = "InpaintPro",
        metadata: Optional[Dict] = None
    ) -> str:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        self._draw(str(output_path), buffer, title)
        _write_sidecar(output_path, metadata)
        return str(output_path)

    def export_to_bytes(self, buffer: PixelBuffer, title: str = "InpaintPro") -> bytes:
        """메모리에서 PDF 바이트로 변환"""
        out = BytesIO()
        self._draw(out, buffer, title)
        return out.getvalue()


class MultiFormatExporter:
    """다중 포맷 출력 통합 클래스"""

    EXTENSIONS = {"jpeg": "jpg", "png": "png", "pdf": "pdf"}
    MIME_TYPES = {"jpeg": "image/jpeg", "png": "image/png", "pdf": "application/pdf"}

    def __init__(
        self,
        jpeg_quality: int = 90,
        png_dpi: int = 150,
        pdf_page_size: str = "A4",
        pdf_margin: int = 20
    ):
        self.exporters = {
            "jpeg": JPEGExporter(quality=jpeg_quality),
            "png": PNGExporter(dpi=png_dpi),
        }

        try:
            self.exporters["pdf"] = PDFExporter(page_size=pdf_page_size, margin=pdf_margin)
        except ImportError as e:
            logger.warning("PDF export disabled: %s", e)

    def export_all(
        self,
        buffer: PixelBuffer,
        output_dir: Optional[str] = None,
        filename_base: str = "cleaned",
        formats: Sequence[str] = ("jpeg", "png"),
        metadata: Optional[Dict] = None
    ) -> Dict[str, Optional[str]]:
        """
        여러 포맷으로 동시 내보내기

        Args:
            buffer: 결과 픽셀 버퍼
            output_dir: 출력 디렉토리 (기본값 OUTPUTS_DIR)
            filename_base: 기본 파일명 (확장자 제외)
            formats: 출력 포맷 리스트 ["jpeg", "png", "pdf"]
            metadata: 메타데이터 (첫 번째 파일 옆에 JSON 으로 저장)

        Returns:
            {format: filepath} 딕셔너리 (실패한 포맷은 None)
        """
        output_dir = Path(output_dir) if output_dir is not None else OUTPUTS_DIR
        output_dir.mkdir(parents=True, exist_ok=True)

        results = {}
        sidecar = metadata

        for fmt in formats:
            fmt = fmt.lower()
            exporter = self.exporters.get(fmt)
            if exporter is None:
                logger.warning("Export format not available: %s", fmt)
                results[fmt] = None
                continue

            path = output_dir / f"{filename_base}.{self.EXTENSIONS[fmt]}"
            try:
                results[fmt] = exporter.export(buffer, str(path), metadata=sidecar)
                sidecar = None
            except Exception:
                logger.exception("%s export failed", fmt)
                results[fmt] = None

        return results

    def export_to_bytes(self, buffer: PixelBuffer, fmt: str) -> bytes:
        exporter = self.exporters.get(fmt.lower())
        if exporter is None:
            raise ValueError(f"사용할 수 없는 포맷: {fmt}")
        return exporter.export_to_bytes(buffer)

    def get_available_formats(self) -> List[str]:
        """사용 가능한 포맷 목록 반환"""
        return list(self.exporters.keys())
