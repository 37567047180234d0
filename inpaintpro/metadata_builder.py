"""
Metadata Builder Module
복원 작업 리포트(JSON 메타데이터) 생성 및 관리
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List

from .inpainter import FillResult


class MetadataBuilder:
    """메타데이터 생성 및 관리 클래스"""

    def __init__(self):
        self.metadata = {
            'version': '1.0',
            'created_at': None,
            'updated_at': None,
            'image_info': {},
            'fill_summary': {},
            'fills': []
        }
        self._update_summary()

    def set_image_info(
        self,
        filename: str,
        width: int,
        height: int,
        **kwargs
    ) -> 'MetadataBuilder':
        """이미지 정보 설정"""
        self.metadata['image_info'] = {
            'filename': filename,
            'width': width,
            'height': height,
            **kwargs
        }
        return self

    def add_fill_result(self, result: FillResult) -> 'MetadataBuilder':
        """채우기 결과 추가"""
        entry = result.to_dict()
        entry['timestamp'] = datetime.now().isoformat()
        self.metadata['fills'].append(entry)
        self._update_summary()
        return self

    def _update_summary(self):
        """요약 정보 업데이트"""
        fills = self.metadata['fills']

        self.metadata['fill_summary'] = {
            'total_fills': len(fills),
            'damaged_pixels': sum(f['damaged_count'] for f in fills),
            'resolved_pixels': sum(f['resolved_count'] for f in fills),
            'unresolved_pixels': sum(f['remaining'] for f in fills),
            'partial_fills': len([f for f in fills if f['status'] != 'resolved']),
            'total_passes': sum(f['passes'] for f in fills),
        }

    def build(self) -> Dict:
        """최종 메타데이터 생성"""
        now = datetime.now().isoformat()

        if self.metadata['created_at'] is None:
            self.metadata['created_at'] = now
        self.metadata['updated_at'] = now

        return self.metadata

    def to_json(self, indent: int = 2) -> str:
        """JSON 문자열로 변환"""
        return json.dumps(self.build(), ensure_ascii=False, indent=indent)

    def save(self, filepath: str) -> None:
        """파일로 저장"""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(self.to_json())

    @classmethod
    def load(cls, filepath: str) -> 'MetadataBuilder':
        """파일에서 로드"""
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)

        builder = cls()
        builder.metadata = data
        return builder

    def get_fills(self) -> List[Dict]:
        return self.metadata['fills']
