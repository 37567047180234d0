import logging
import sys
from typing import Optional

from config.settings import LOG_CONFIG, LOGS_DIR, get_log_level


def setup_logging(level: Optional[str] = None, to_file: Optional[bool] = None):
    """
    전역 로거 설정
    - 메시지 형식 지정
    - 콘솔(stdout) 출력
    - 선택적으로 logs/inpaintpro.log 파일 저장
    """
    level = (level or get_log_level()).upper()
    if to_file is None:
        to_file = LOG_CONFIG["to_file"]

    handlers = [logging.StreamHandler(sys.stdout)]
    if to_file:
        LOGS_DIR.mkdir(exist_ok=True)
        handlers.append(
            logging.FileHandler(LOGS_DIR / LOG_CONFIG["file_name"], mode="a", encoding="utf-8")
        )

    logging.basicConfig(
        level=level,
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s:%(lineno)d | %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True,  # Streamlit 재실행 시 핸들러 중복 방지
    )

    logging.getLogger("inpaintpro").setLevel(level)
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("watchdog").setLevel(logging.WARNING)
