import logging
import os
import sys
from datetime import date
from pathlib import Path

# Ensure src/ is on the path so buji_core can be imported
sys.path.append(str(Path(__file__).resolve().parent))

import streamlit as st
from dotenv import load_dotenv
from buji_core import (
    MODELS,
    clear_transcript,
    extract_code,
    get_host,
    init_state,
    input_disabled,
    probe,
    select_model,
    send,
)

load_dotenv(override=False)
logging.basicConfig(
    level=os.environ.get("BUJI_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def render_message(content: str) -> None:
    code = extract_code(content)
    if code is None:
        st.markdown(content)
    else:
        language, body = code
        st.code(body, language=language)


def on_model_change() -> None:
    select_model(st.session_state, st.session_state.model)


# ------------------
# Page config
# ------------------
st.set_page_config(
    page_title="myBuji",
    page_icon="🧠",
    layout="centered",
)

# ------------------
# Session state
# ------------------
init_state(st.session_state)
state = st.session_state

# ------------------
# Sidebar
# ------------------
with st.sidebar:
    st.title("🧠 Settings")

    st.selectbox(
        "Model",
        MODELS,
        key="model",
        on_change=on_model_change,
    )

    debug = st.checkbox("Debug", value=False)

    if st.button("Clear chat"):
        clear_transcript(state)

# ------------------
# Header
# ------------------
st.title("🧠 myBuji")
st.caption(f"Model: {state['model']}")

if debug:
    st.json(
        {
            "host": get_host(),
            "model": state["model"],
            "error": state["error"],
            "messages": len(state["messages"]),
        }
    )

# ------------------
# Error banner
# ------------------
if state["error"]:
    st.error(state["error"], icon="⚠️")
    if st.button("Retry Connection", disabled=state["checking"]):
        with st.spinner("Checking..."):
            probe(state)
        st.rerun()

# Render chat history
for m in state["messages"]:
    with st.chat_message(m["role"]):
        render_message(m["content"])

# ------------------
# Chat input
# ------------------
placeholder = "Cannot connect to Ollama API..." if state["error"] else "Type your message..."
prompt = st.chat_input(placeholder, disabled=input_disabled(state))

if prompt and prompt.strip():
    with st.chat_message("user"):
        render_message(prompt)

    with st.chat_message("assistant"):
        with st.spinner("Thinking…"):
            send(state, prompt)

    st.rerun()

st.divider()
st.caption(f"© {date.today().year} Bujisoft")
