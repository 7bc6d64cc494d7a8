from __future__ import annotations

import streamlit as st

from costapp.state import get_conn_ready, get_dataset

st.set_page_config(page_title="Cost App", page_icon="💴", layout="wide")

st.title("💴 Cost App: Unit Cost Workbench")
st.caption("Register master data, attach per-product cost lines, and review unit-cost summaries. Saved locally as one snapshot.")

settings, conn = get_conn_ready()
data = get_dataset()

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Data directory:** `{settings.data_dir}`")
    st.write(f"**Database:** `{settings.db_path.name}`")
    st.write(f"**Storage key:** `{settings.storage_key}`")

c1, c2, c3 = st.columns(3)
c1.metric("Master records", f"{data.master_count()}")
c2.metric("Products", f"{len(data.products)}")
c3.metric("Cost lines", f"{data.cost_entries.count()}")

st.info(
    "Use the left sidebar navigation. Start with **🗂️ Master Data**, register a product in **🏷️ Product Registration**, "
    "then check **💴 Cost Summary**. **🧪 Data Management** loads the demo data or clears the local snapshot.",
    icon="ℹ️",
)
