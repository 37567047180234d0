"""
History Module
실행 취소/다시 실행 스택과 비교용 원본 보관
"""
from typing import List, Optional

from .buffers import PixelBuffer


class EditHistory:
    """픽셀 버퍼 스냅샷 히스토리 (최대 limit 개 유지)"""

    def __init__(self, limit: int = 20):
        if limit < 1:
            raise ValueError(f"limit 는 1 이상이어야 합니다: {limit}")
        self.limit = limit
        self.original: Optional[PixelBuffer] = None
        self.source: Optional[str] = None
        self._states: List[PixelBuffer] = []
        self._redo: List[PixelBuffer] = []

    def reset(self, buffer: PixelBuffer, source: Optional[str] = None) -> None:
        """새 이미지 로드 - 원본 저장 후 히스토리 초기화"""
        self.source = source
        self.original = buffer.copy()
        self._states = [buffer.copy()]
        self._redo = []

    def is_loaded(self, source: str) -> bool:
        """같은 업로드가 이미 로드되어 있는지 (Streamlit 재실행 시 초기화 방지)"""
        return self.original is not None and self.source == source

    def commit(self, buffer: PixelBuffer) -> None:
        """편집 결과를 새 상태로 저장 (redo 스택은 비움)"""
        self._states.append(buffer.copy())
        if len(self._states) > self.limit:
            # 가장 오래된 상태부터 버림
            del self._states[0]
        self._redo = []

    @property
    def current(self) -> Optional[PixelBuffer]:
        return self._states[-1] if self._states else None

    @property
    def can_undo(self) -> bool:
        return len(self._states) > 1

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def undo(self) -> Optional[PixelBuffer]:
        if self.can_undo:
            self._redo.append(self._states.pop())
        return self.current

    def redo(self) -> Optional[PixelBuffer]:
        if self._redo:
            self._states.append(self._redo.pop())
        return self.current

    def __len__(self) -> int:
        return len(self._states)
