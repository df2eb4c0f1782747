"""
pages/2_Bulk_Resize.py

Bulk Resize

Upload many images at once, scale them down to a maximum dimension, optionally
compress each one to a target size, and download everything as a ZIP together
with an Excel report of what happened to each file.

The ZIP is written to EXPORT_DIR and deleted by the cleanup scheduler after
CLEANUP_CONFIG["max_age_seconds"].
"""

import os
import traceback

import pandas as pd
import streamlit as st

from config import APP_NAME, BULK_CONFIG, CLEANUP_CONFIG, IMAGE_FORMATS, UPLOAD_TYPES

# ---------------------------------------------------------------------------
# Page config — must be the very first Streamlit call
# ---------------------------------------------------------------------------

st.set_page_config(page_title=f"Bulk Resize - {APP_NAME}", layout="wide")

from modules.bulk_processor import BulkOptions, process_batch
from modules.cleanup import get_cleanup_scheduler, save_export
from modules.excel_generator import generate_bulk_report

get_cleanup_scheduler()

# ---------------------------------------------------------------------------
# Session state initialisation
# ---------------------------------------------------------------------------

_state_defaults = {
    "bulk_rows": None,
    "bulk_archive_path": None,
}
for k, v in _state_defaults.items():
    if k not in st.session_state:
        st.session_state[k] = v

# ---------------------------------------------------------------------------
# SECTION 1 — Files and options
# ---------------------------------------------------------------------------

st.title("Bulk Resize")
st.caption("Resize and compress a whole batch of images in one go.")

uploaded_files = st.file_uploader(
    "Upload images",
    type=UPLOAD_TYPES,
    accept_multiple_files=True,
    key="bulk_uploader",
)

if uploaded_files:
    st.write(f"You have selected {len(uploaded_files)} images.")
    if len(uploaded_files) > BULK_CONFIG["max_files"]:
        st.warning(f"Only the first {BULK_CONFIG['max_files']} images will be processed.")

output_formats = [fmt for fmt in IMAGE_FORMATS if fmt != "application/pdf"]

col1, col2, col3 = st.columns(3)
with col1:
    max_dimension = st.number_input(
        "Max width / height (px)",
        min_value=1,
        value=BULK_CONFIG["default_max_dimension"],
        step=1,
    )
with col2:
    output_format = st.selectbox(
        "Output format",
        output_formats,
        index=output_formats.index(BULK_CONFIG["default_format"]),
        format_func=lambda f: IMAGE_FORMATS[f]["extension"].upper(),
    )
with col3:
    use_target = st.checkbox("Compress to target size", value=False)
    target_kb = st.number_input(
        "Target size per image (KB)",
        min_value=1,
        value=200,
        step=1,
        disabled=not use_target,
    )

if use_target and not IMAGE_FORMATS[output_format]["lossy"]:
    st.info("PNG and BMP are lossless — images are encoded once and the target size is ignored.")

# ---------------------------------------------------------------------------
# SECTION 2 — Process
# ---------------------------------------------------------------------------

if st.button("Process All", type="primary", disabled=not uploaded_files):
    with st.status("Processing images...", expanded=True) as status:
        try:
            options = BulkOptions(
                max_dimension=int(max_dimension),
                fmt=output_format,
                target_kb=int(target_kb) if use_target else None,
            )

            files = [(f.name, f.getvalue()) for f in uploaded_files[:BULK_CONFIG["max_files"]]]
            st.write(f"Step 1: Resizing {len(files)} images...")
            result = process_batch(files, options)

            st.write("Step 2: Saving archive...")
            st.session_state["bulk_archive_path"] = save_export(result.archive) if result.succeeded else None
            st.session_state["bulk_rows"] = result.rows

            if result.failed:
                status.update(
                    label=f"Done with errors: {result.succeeded} ok, {result.failed} failed",
                    state="error",
                    expanded=False,
                )
            else:
                status.update(label=f"Done! Processed {result.succeeded} images.", state="complete", expanded=False)

        except ValueError as e:
            status.update(label="Invalid options", state="error", expanded=False)
            st.error(str(e))

        except Exception as e:
            status.update(label="Bulk resize failed", state="error", expanded=False)
            st.error(f"Unexpected error ({type(e).__name__}): {str(e)}")
            with st.expander("Error Details", expanded=False):
                st.code(traceback.format_exc(), language="text")

# ---------------------------------------------------------------------------
# SECTION 3 — Results
# ---------------------------------------------------------------------------

rows = st.session_state["bulk_rows"]
if rows:
    st.divider()
    st.subheader("Results")

    df = pd.DataFrame(rows)
    ok = df[df["status"] == "OK"]

    col_m1, col_m2, col_m3 = st.columns(3)
    col_m1.metric("Processed", f"{len(ok)} / {len(df)}")
    col_m2.metric("Original Total", f"{df['original_kb'].sum():,} KB")
    if not ok.empty:
        saved = ok["original_kb"].sum() - ok["new_kb"].sum()
        col_m3.metric("New Total", f"{int(ok['new_kb'].sum()):,} KB", delta=f"{-saved:,.0f} KB")

    st.dataframe(df, use_container_width=True, hide_index=True)

    col_zip, col_xlsx = st.columns(2)

    archive_path = st.session_state["bulk_archive_path"]
    with col_zip:
        if archive_path and os.path.exists(archive_path):
            with open(archive_path, "rb") as f:
                st.download_button(
                    "Download ZIP",
                    data=f.read(),
                    file_name="soloresizer_bulk.zip",
                    mime="application/zip",
                    type="primary",
                    use_container_width=True,
                )
        elif archive_path:
            minutes = CLEANUP_CONFIG["max_age_seconds"] // 60
            st.info(f"The archive was deleted after {minutes} minutes. Process the images again to download it.")

    with col_xlsx:
        st.download_button(
            "Download Report (Excel)",
            data=generate_bulk_report(rows),
            file_name="soloresizer_bulk_report.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            use_container_width=True,
        )
