"""
InpaintPro - Configuration Settings
"""
import os
from pathlib import Path

# ============================================
# 경로 설정
# ============================================
BASE_DIR = Path(__file__).parent.parent
OUTPUTS_DIR = BASE_DIR / "outputs"
LOGS_DIR = BASE_DIR / "logs"

# ============================================
# 인페인팅 설정
# ============================================
INPAINT_CONFIG = {
    "method": "diffusion",
    "max_passes": 500,      # 확산 링 최대 개수 (초과 시 부분 결과 반환)
    "start_delay_ms": 50,   # 로딩 UI 가 먼저 그려지도록 시작 지연
}

# ============================================
# 브러시 설정
# ============================================
BRUSH_CONFIG = {
    "default_size": 30,
    "min_size": 1,
    "max_size": 100,
    "stroke_color": "rgba(255, 50, 50, 0.8)",
}

# ============================================
# 히스토리 설정
# ============================================
HISTORY_CONFIG = {
    "limit": 20,
}

# ============================================
# 출력 설정
# ============================================
EXPORT_CONFIG = {
    "jpeg": {
        "quality": 90,
        "filename": "wmremove-cleaned.jpg",
    },
    "png": {
        "dpi": 150,
    },
    "pdf": {
        "page_size": "A4",
        "margin": 20,
    },
}

# ============================================
# UI 설정
# ============================================
UI_CONFIG = {
    "canvas_width": 800,
    "canvas_max_height": 900,
    "upload_types": ["png", "jpg", "jpeg", "webp"],
}

# ============================================
# 로그 설정
# ============================================
LOG_CONFIG = {
    "level": "INFO",
    "file_name": "inpaintpro.log",
    "to_file": False,
}

# ============================================
# 환경 변수 로드
# ============================================
def load_env():
    """환경 변수 로드"""
    from dotenv import load_dotenv
    load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} 는 정수여야 합니다: {value!r}") from None


def get_inpaint_config() -> dict:
    """INPAINT_CONFIG + 환경 변수 오버라이드 (INPAINT_MAX_PASSES, INPAINT_START_DELAY_MS)"""
    config = dict(INPAINT_CONFIG)
    config["max_passes"] = _env_int("INPAINT_MAX_PASSES", config["max_passes"])
    config["start_delay_ms"] = _env_int("INPAINT_START_DELAY_MS", config["start_delay_ms"])
    return config


def get_log_level() -> str:
    return os.getenv("INPAINT_LOG_LEVEL", LOG_CONFIG["level"]).upper()
