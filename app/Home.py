import copy
import os

import streamlit as st
from dotenv import load_dotenv

from lst_ndvi.config import CONFIG
from lst_ndvi.analyze import build_source
from src.data.earth_engine import credentials_present
from src.data.sources import RasterSourceError
from src.pipeline import run_analysis
from src.presentation.renderer import render_map
from src.presentation.view_state import DROPDOWN_ITEMS, MapViewState
from src.region import Region
from src.statistics import UNDEFINED
from src.utils.plot_utils import correlation_scatter

load_dotenv()

st.set_page_config(page_title="LST & NDVI Analyzer", layout="wide")

st.title("🌡️ LST & NDVI Analyzer")
st.markdown("Land Surface Temperature and vegetation index from Landsat 8, and how they correlate.")

default_project = os.getenv("GEE_PROJECT_ID", "")
default_service_account = os.getenv("GEE_SERVICE_ACCOUNT", "")

with st.expander("Google Earth Engine Credentials", expanded=not credentials_present()):
    if not credentials_present():
        st.warning("Credentials not found in .env file. Please enter them below, or continue in demo mode.")

    project_id = st.text_input("GEE Project ID", value=default_project)
    service_account = st.text_input("GEE Service Account", value=default_service_account)

    # Update environment variables so authenticate() uses the user input
    os.environ["GEE_PROJECT_ID"] = project_id
    os.environ["GEE_SERVICE_ACCOUNT"] = service_account

demo_mode = not credentials_present()
if demo_mode:
    st.warning("⚠️ No credentials provided. Switching to **Demo Mode** with synthetic scenes over the region.")

# --- Sidebar ---
st.sidebar.header("Analysis Parameters")
start_date = st.sidebar.text_input("Start date", value=CONFIG.imagery.start_date)
end_date = st.sidebar.text_input("End date (exclusive)", value=CONFIG.imagery.end_date)
max_cloud = st.sidebar.slider("Max cloud cover (%)", 0, 100, int(CONFIG.imagery.max_cloud_cover))


@st.cache_resource(show_spinner=False)
def get_analysis(demo: bool, start: str, end: str, cloud: int):
    """One analysis per parameter set; dropdown changes only re-render."""
    cfg = copy.deepcopy(CONFIG)
    cfg.imagery.start_date = start
    cfg.imagery.end_date = end
    cfg.imagery.max_cloud_cover = cloud
    region = Region.from_config(cfg)
    source = build_source(cfg, region, demo)
    return source, run_analysis(source, region, cfg), cfg


with st.spinner("Computing composite, LST and NDVI..."):
    try:
        source, ctx, cfg = get_analysis(demo_mode, start_date, end_date, max_cloud)
    except RasterSourceError as e:
        st.error(f"Analysis failed: {e}")
        st.stop()

# --- Map ---
if 'view_state' not in st.session_state or st.session_state.get('view_key') != (demo_mode, start_date, end_date, max_cloud):
    st.session_state['view_state'] = MapViewState.from_context(ctx, cfg)
    st.session_state['view_key'] = (demo_mode, start_date, end_date, max_cloud)

selected = st.selectbox("Select a Map", DROPDOWN_ITEMS, index=0, label_visibility="collapsed")
plan = st.session_state['view_state'].select(selected)

m = render_map(plan, ctx, source)
m.to_streamlit(height=cfg.display.height)

# --- Correlation ---
st.header("Correlation between LST and NDVI")
correlation_text = ctx.correlation_text(cfg.correlation.digits)
col1, col2 = st.columns([1, 3])
col1.metric("Pearson r", correlation_text)
col1.metric("Sampled pixels", 0 if ctx.sample is None else len(ctx.sample))
if correlation_text == UNDEFINED:
    col1.warning("The sample is degenerate (constant values or too few pixels); no correlation can be computed.")

fig, _ = correlation_scatter(ctx.sample, correlation_text=correlation_text)
col2.pyplot(fig)
