import streamlit as st
import io
import base64
import logging
import uuid
from datetime import datetime

# [필수] 캔버스 라이브러리
from streamlit_drawable_canvas import st_canvas

from config.settings import BRUSH_CONFIG, EXPORT_CONFIG, HISTORY_CONFIG, UI_CONFIG, load_env

# Modules
from inpaintpro import (
    EditHistory,
    InpaintProcessor,
    InvalidInputError,
    MetadataBuilder,
    MultiFormatExporter,
    ProcessorBusyError,
    decode_image,
    mask_from_canvas
)
from inpaintpro.logging_setup import setup_logging

logger = logging.getLogger("inpaintpro.app")

# 페이지 설정
st.set_page_config(layout="wide", page_title="InpaintPro - 영역 지우기")


@st.cache_resource
def get_processor() -> InpaintProcessor:
    load_env()
    setup_logging()
    return InpaintProcessor()


@st.cache_resource
def get_exporter() -> MultiFormatExporter:
    return MultiFormatExporter(
        jpeg_quality=EXPORT_CONFIG["jpeg"]["quality"],
        png_dpi=EXPORT_CONFIG["png"]["dpi"],
        pdf_page_size=EXPORT_CONFIG["pdf"]["page_size"],
        pdf_margin=EXPORT_CONFIG["pdf"]["margin"]
    )


def init_session_state():
    if 'current_step' not in st.session_state:
        st.session_state.current_step = 1
    if 'history' not in st.session_state:
        st.session_state.history = EditHistory(limit=HISTORY_CONFIG["limit"])
    if 'report' not in st.session_state:
        st.session_state.report = MetadataBuilder()
    if 'canvas_key' not in st.session_state:
        st.session_state.canvas_key = "canvas_v1"
    if 'brush_size' not in st.session_state:
        st.session_state.brush_size = BRUSH_CONFIG["default_size"]
    if 'status_text' not in st.session_state:
        st.session_state.status_text = None


def reset_canvas():
    st.session_state.canvas_key = f"canvas_{uuid.uuid4()}"


def to_data_url(pil_img) -> str:
    # 캔버스 배경은 문자열(Base64 URL)로 전달 (버전 호환성 문제 회피)
    with io.BytesIO() as buffer:
        pil_img.convert("RGB").save(buffer, format="JPEG", quality=85)
        img_str = base64.b64encode(buffer.getvalue()).decode()
    return f"data:image/jpeg;base64,{img_str}"


def show_status():
    status = st.session_state.status_text
    if not status:
        return
    level, message = status
    if level == "success":
        st.success(message)
    elif level == "warning":
        st.warning(message)
    else:
        st.error(message)


def render_step1_upload():
    st.header("1. 이미지 업로드")
    uploaded_file = st.file_uploader("지울 영역이 있는 이미지를 업로드하세요", type=UI_CONFIG["upload_types"])
    if uploaded_file is not None:
        history = st.session_state.history
        # 재실행마다 같은 파일이 다시 들어오므로 새 업로드일 때만 초기화
        upload_key = getattr(uploaded_file, "file_id", None) or uploaded_file.name
        if not history.is_loaded(upload_key):
            try:
                buffer = decode_image(uploaded_file.read())
            except InvalidInputError as e:
                logger.warning("Upload rejected: %s", e)
                st.error(f"이미지를 불러올 수 없습니다: {e}")
                return

            history.reset(buffer, source=upload_key)
            st.session_state.report = MetadataBuilder().set_image_info(
                uploaded_file.name, buffer.width, buffer.height
            )
            st.session_state.uploaded_filename = uploaded_file.name
            st.session_state.status_text = None
            reset_canvas()

        st.image(history.original.to_rgba(), caption="원본 이미지", use_container_width=True)
        if st.button("다음 단계로 이동", type="primary"):
            st.session_state.current_step = 2
            st.rerun()


def run_fill(canvas_image_data):
    history = st.session_state.history
    current = history.current
    mask = mask_from_canvas(canvas_image_data, current.width, current.height)
    if mask.damaged_count() == 0:
        st.warning("브러시로 지울 영역을 먼저 칠해주세요.")
        return

    processor = get_processor()
    working = current.copy()
    with st.spinner("처리 중..."):
        try:
            result = processor.submit(working, mask).result()
        except ProcessorBusyError:
            st.warning("이미 처리 중입니다. 잠시 후 다시 시도하세요.")
            return
        except Exception as e:
            logger.exception("Fill failed")
            st.session_state.status_text = ("error", f"오류: {e}")
            st.rerun()

    history.commit(result.pixels)
    st.session_state.report.add_fill_result(result)

    if result.is_complete:
        st.session_state.status_text = (
            "success", f"완료! {result.damaged_count}px 복원 ({result.passes}회 반복, {result.elapsed_ms:.0f}ms)"
        )
    else:
        st.session_state.status_text = (
            "warning",
            f"일부만 복원되었습니다: {result.remaining}/{result.damaged_count}px 미해결 ({result.status.value})"
        )
    reset_canvas()
    st.rerun()


def render_step2_edit():
    st.header("Step 2: 지울 영역 칠하기")
    history = st.session_state.history
    if history.current is None:
        st.warning("이미지를 먼저 업로드해주세요."); return

    current = history.current
    h_orig, w_orig = current.height, current.width

    with st.sidebar:
        st.subheader("브러시")
        st.session_state.brush_size = st.slider(
            "브러시 크기 (px)",
            BRUSH_CONFIG["min_size"], BRUSH_CONFIG["max_size"],
            st.session_state.brush_size
        )
        compare = st.toggle("원본과 비교", value=False)

    # 표시 크기 (캔버스는 화면 크기로 그리고, 마스크는 원본 크기로 되돌림)
    scale_factor = max(w_orig / UI_CONFIG["canvas_width"], h_orig / UI_CONFIG["canvas_max_height"], 1.0)
    disp_w = int(w_orig / scale_factor)
    disp_h = int(h_orig / scale_factor)

    show_status()

    if compare:
        st.image(history.original.to_rgba(), caption="원본", width=disp_w)
        return

    display_img = current.to_pil().resize((disp_w, disp_h))
    brush_px = max(1, int(round(st.session_state.brush_size / scale_factor)))

    try:
        canvas_result = st_canvas(
            fill_color="rgba(255, 50, 50, 0.8)",
            stroke_width=brush_px,
            stroke_color=BRUSH_CONFIG["stroke_color"],
            background_image=to_data_url(display_img),
            update_streamlit=True,
            height=disp_h,
            width=disp_w,
            drawing_mode="freedraw",
            key=st.session_state.canvas_key,
            display_toolbar=False
        )
    except Exception as e:
        logger.exception("Canvas load failed")
        st.error(f"캔버스 로드 실패: {e}")
        st.stop()

    c1, c2, c3, c4, c5 = st.columns(5)
    with c1:
        if st.button("🩹 영역 지우기", type="primary", disabled=get_processor().is_processing):
            run_fill(canvas_result.image_data)
    with c2:
        if st.button("↩️ 실행 취소", disabled=not history.can_undo):
            history.undo(); reset_canvas(); st.rerun()
    with c3:
        if st.button("↪️ 다시 실행", disabled=not history.can_redo):
            history.redo(); reset_canvas(); st.rerun()
    with c4:
        if st.button("🔄 브러시 지우기"):
            reset_canvas(); st.rerun()
    with c5:
        if st.button("📤 내보내기"):
            st.session_state.current_step = 3; st.rerun()


def render_step3_export():
    st.header("📤 Step 3: 결과물 저장")
    history = st.session_state.history
    if history.current is None: return

    result = history.current
    st.image(result.to_rgba(), caption="완성본", use_container_width=True)

    exporter = get_exporter()
    stamp = datetime.now().strftime('%H%M%S')
    cols = st.columns(len(exporter.get_available_formats()) + 1)
    for col, fmt in zip(cols, exporter.get_available_formats()):
        with col:
            try:
                data = exporter.export_to_bytes(result, fmt)
            except Exception as e:
                logger.exception("%s export failed", fmt)
                st.error(f"{fmt} 변환 오류: {e}")
                continue
            if fmt == "jpeg":
                file_name = EXPORT_CONFIG["jpeg"]["filename"]
            else:
                file_name = f"cleaned_{stamp}.{exporter.EXTENSIONS[fmt]}"
            st.download_button(f"{fmt.upper()} 다운로드", data=data, file_name=file_name,
                               mime=exporter.MIME_TYPES[fmt])
    with cols[-1]:
        st.download_button("리포트(JSON)", data=st.session_state.report.to_json(),
                           file_name=f"report_{stamp}.json", mime="application/json")

    c1, c2 = st.columns(2)
    with c1:
        if st.button("⬅️ 계속 편집"): st.session_state.current_step = 2; st.rerun()
    with c2:
        if st.button("처음으로"): st.session_state.current_step = 1; st.rerun()


def main():
    get_processor()
    init_session_state()
    step = st.session_state.current_step
    if step == 1: render_step1_upload()
    elif step == 2: render_step2_edit()
    elif step == 3: render_step3_export()

if __name__ == "__main__":
    main()
