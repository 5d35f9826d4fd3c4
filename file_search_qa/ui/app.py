# file_search_qa/ui/app.py
import os

import streamlit as st

from file_search_qa.ui.api_client import ApiClient, ApiError, DEFAULT_API_BASE

api = ApiClient(os.getenv("FILE_SEARCH_QA_API", DEFAULT_API_BASE))

st.set_page_config(page_title="File Search Q&A", layout="centered")

st.title("File Search Q&A")
st.write("Group documents into stores and ask questions grounded in them.")

if "pending_force_delete" not in st.session_state:
    st.session_state.pending_force_delete = None


# ---------------- Sidebar: stores ----------------

st.sidebar.header("File Search Stores")

stores = []
try:
    stores = api.list_stores()
except ApiError as e:
    st.sidebar.error(f"API Error: {e.detail}")

store_labels = {f"{s.get('display_name') or s['name']}": s["name"] for s in stores}

selected_labels = st.sidebar.multiselect("Stores to query", options=list(store_labels.keys()))
selected_stores = [store_labels[label] for label in selected_labels]

with st.sidebar.form("create_store", clear_on_submit=True):
    new_store = st.text_input("New store name", placeholder="My Knowledge Base")
    if st.form_submit_button("Create store"):
        try:
            api.create_store(new_store)
            st.rerun()
        except ApiError as e:
            st.error(f"Create failed: {e.detail}")

for store in stores:
    with st.sidebar.expander(store.get("display_name") or store["name"]):
        st.write(f"ID: {store['name']}")
        if store.get("active_documents_count") is not None:
            st.write(f"Documents: {store['active_documents_count']}")
        if st.button("Delete", key=f"delete_store_{store['name']}"):
            try:
                api.delete_store(store["name"])
                st.rerun()
            except ApiError as e:
                if e.store_not_empty:
                    st.session_state.pending_force_delete = store["name"]
                else:
                    st.error(f"Delete failed: {e.detail}")

pending = st.session_state.pending_force_delete
if pending:
    st.sidebar.warning(f"{pending} still contains files. Delete it and all its documents?")
    col1, col2 = st.sidebar.columns(2)
    if col1.button("Force delete", type="primary"):
        try:
            api.delete_store(pending, force=True)
            st.session_state.pending_force_delete = None
            st.rerun()
        except ApiError as e:
            st.sidebar.error(f"Delete failed: {e.detail}")
    if col2.button("Cancel"):
        st.session_state.pending_force_delete = None
        st.rerun()


# ---------------- Upload ----------------

st.header("Upload Document")

uploaded_file = st.file_uploader("Choose a file")

if uploaded_file:
    if len(selected_stores) != 1:
        st.info("Select exactly one store in the sidebar to upload into.")
    elif st.button("Upload", type="primary"):
        with st.spinner("Uploading and importing into store..."):
            try:
                result = api.upload_to_store(
                    selected_stores[0],
                    uploaded_file.name,
                    uploaded_file.getvalue(),
                    uploaded_file.type,
                )
                st.success(f"Imported {uploaded_file.name}")
                st.caption(f"Operation: {result['operation_name']}")
            except ApiError as e:
                st.error(f"Upload failed: {e.detail}")


# ---------------- Files ----------------

with st.expander("Uploaded files"):
    try:
        files = api.list_files()
    except ApiError as e:
        files = []
        st.error(f"API Error: {e.detail}")
    if not files:
        st.info("No files uploaded yet")
    for f in files:
        col1, col2 = st.columns([4, 1])
        col1.write(f"{f.get('display_name') or f['name']} ({f.get('state') or 'unknown'})")
        if col2.button("Delete", key=f"delete_file_{f['name']}"):
            try:
                api.delete_file(f["name"])
                st.rerun()
            except ApiError as e:
                st.error(f"Delete failed: {e.detail}")

st.divider()


# ---------------- Query ----------------

st.header("Ask a Question")

question = st.text_area("Enter your question", placeholder="What are the key findings?")
create_slides = st.checkbox("Also export as Google Slides")

if st.button("Ask", type="primary"):
    if not selected_stores:
        st.warning("Select at least one store")
    elif not question.strip():
        st.warning("Enter a question")
    else:
        with st.spinner("Thinking..."):
            try:
                result = api.query(question.strip(), selected_stores, create_slides)
                st.markdown(result["answer"])

                if result["citations"]:
                    with st.expander(f"Citations ({len(result['citations'])})"):
                        for c in result["citations"]:
                            score = c.get("confidence_score")
                            suffix = f" ({score:.0%})" if score is not None else ""
                            st.write(f"- {c['segment'] or 'unknown source'}{suffix}")

                if result.get("slides"):
                    slides = result["slides"]
                    st.success(f"Created \"{slides['title']}\" ({slides['slide_count']} slides)")
                    st.link_button("Open presentation", slides["presentation_url"])
            except ApiError as e:
                st.error(f"Query failed: {e.detail}")
