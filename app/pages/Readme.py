import streamlit as st

st.set_page_config(page_title="LST & NDVI Analyzer - README", layout="wide")

st.title("About the LST & NDVI Analyzer")

st.header("Goal")
st.markdown("""
The **LST & NDVI Analyzer** maps Land Surface Temperature (LST) and the Normalized Difference Vegetation Index (NDVI) over an area of interest, summarizes LST, and measures how strongly surface temperature follows vegetation cover.
""")

st.info(" The emissivity and radiance conversions reuse the same linear rescale constants (0.0003342, 0.1). Treat absolute LST values as indicative only.", icon="💡")

st.header("Method")
st.markdown("""
1.  **Composite:** Landsat 8 Collection 2 Tier 1 scenes in the date range with less than 10% cloud cover are reduced to a per-pixel median and clipped to the region.
2.  **NDVI:** `(B5 - B4) / (B5 + B4)`.
3.  **Emissivity:** `NDVI * 0.0003342 + 0.1`.
4.  **LST:** thermal band B10 is converted to TOA radiance (`DN * 0.0003342 + 0.1`), then to brightness temperature `K2 / ln(K1 / L + 1) - 273.15` with K1 = 774.8853 and K2 = 1321.0789, then corrected with `BT / (1 + (0.00115 * BT / 1.4388) * ln(emissivity))`.
5.  **Statistics:** min, max and mean LST over the region at 30 m.
6.  **Correlation:** Pearson r between LST and NDVI over 1000 random pixels. A new sample is drawn on each run unless a seed is configured, so r varies slightly.
""")

st.header("How to Use")
st.markdown("""
*   Provide Google Earth Engine credentials (`GEE_PROJECT_ID`, `GEE_SERVICE_ACCOUNT` and `.private-key.json`) to analyze real imagery. Without them the app runs in **demo mode** on synthetic scenes.
*   Use the dropdown above the map to switch between the region outline, the LST map (with legend and statistics) and the NDVI map (with legend).
""")
