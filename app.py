from __future__ import annotations

import streamlit as st

st.set_page_config(page_title="Cost App", page_icon="💴", layout="wide")

pages = [
    st.Page("home.py", title="Home", icon="🏠"),
    st.Page("pages/1_💴_Cost_Summary.py", title="Cost Summary", icon="💴"),
    st.Page("pages/2_🏷️_Product_Registration.py", title="Product Registration", icon="🏷️"),
    st.Page("pages/3_🗂️_Master_Data.py", title="Master Data", icon="🗂️"),
    st.Page("pages/4_📋_Product_List.py", title="Product List", icon="📋"),
    st.Page("pages/5_🧪_Data_Management.py", title="Data Management", icon="🧪"),
]

st.navigation(pages).run()
