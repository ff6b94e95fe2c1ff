# Role: Streamlit chat UI.
# - The proxy is authoritative (it holds the Langflow token; the UI never sees it).
# - Sidebar holds the flow ids used for every turn.

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

import requests
import streamlit as st

PROXY_URL = os.getenv("PROXY_URL", "http://127.0.0.1:8000")


# ----------------------------
# Session helpers
# ----------------------------
def ensure_session() -> None:
    if "messages" not in st.session_state:
        st.session_state["messages"] = []
    if "busy" not in st.session_state:
        st.session_state["busy"] = False
    if "flow_id" not in st.session_state:
        st.session_state["flow_id"] = os.getenv("LANGFLOW_FLOW_ID", "")
    if "flow_group_id" not in st.session_state:
        st.session_state["flow_group_id"] = os.getenv("LANGFLOW_FLOW_GROUP_ID", "")


# ----------------------------
# Proxy calls
# ----------------------------
def send_to_proxy(flow_id: str, flow_group_id: str, user_message: str) -> Dict[str, Any]:
    resp = requests.post(
        f"{PROXY_URL}/api/rag",
        json={"flowId": flow_id, "flowGroupId": flow_group_id, "inputValue": user_message},
        timeout=120,
    )
    # Key line: the proxy answers 500 with a JSON envelope on flow errors, so don't raise_for_status here.
    return resp.json()


def extract_text(data: Dict[str, Any]) -> Optional[str]:
    # Same path FlowResponse.message_text() reads, guarded at every level.
    outputs = data.get("outputs") or []
    inner = (outputs[0].get("outputs") or []) if outputs else []
    first = inner[0] if inner else {}
    message = ((first.get("outputs") or {}).get("message") or {}).get("message") or {}
    text = message.get("text")
    return text if isinstance(text, str) else None


# ----------------------------
# Sidebar
# ----------------------------
def render_sidebar() -> None:
    st.sidebar.title("Flow")
    st.sidebar.text_input("Flow ID", key="flow_id", disabled=st.session_state["busy"])
    st.sidebar.text_input("Flow group ID", key="flow_group_id", disabled=st.session_state["busy"])

    st.sidebar.divider()

    if st.sidebar.button("📝 New chat", use_container_width=True, disabled=st.session_state["busy"]):
        st.session_state["messages"] = []
        st.rerun()


# ----------------------------
# Chat
# ----------------------------
def render_chat() -> None:
    for msg in st.session_state["messages"]:
        with st.chat_message(msg["role"]):
            if msg.get("error"):
                st.error(msg["content"])
            else:
                st.write(msg["content"])


# ----------------------------
# Main
# ----------------------------
def main() -> None:
    st.set_page_config(page_title="Langflow Chat", page_icon="💬", layout="wide")

    st.title("💬 Langflow Chat")
    st.caption(f"Messages go through the proxy at {PROXY_URL}.")

    ensure_session()
    render_sidebar()
    render_chat()

    user_input = st.chat_input("Ask something…", disabled=st.session_state["busy"])
    if not user_input:
        return

    if not st.session_state["flow_id"] or not st.session_state["flow_group_id"]:
        st.warning("Set the flow ID and flow group ID in the sidebar first.")
        return

    # Echo user message immediately
    st.session_state["messages"].append({"role": "user", "content": user_input})
    with st.chat_message("user"):
        st.write(user_input)

    st.session_state["busy"] = True
    try:
        with st.spinner("Running flow..."):
            envelope = send_to_proxy(
                st.session_state["flow_id"],
                st.session_state["flow_group_id"],
                user_input,
            )

        if envelope.get("success"):
            data = envelope.get("data") or {}
            text = extract_text(data) or f"```json\n{json.dumps(data, indent=2)}\n```"
            entry = {"role": "assistant", "content": text}
        else:
            entry = {"role": "assistant", "content": envelope.get("error") or "Unknown error", "error": True}

        st.session_state["messages"].append(entry)
        with st.chat_message("assistant"):
            if entry.get("error"):
                st.error(entry["content"])
            else:
                st.write(entry["content"])

    except (requests.RequestException, ValueError):
        msg = f"I couldn’t reach the proxy. Make sure the API is running on {PROXY_URL}."
        st.session_state["messages"].append({"role": "assistant", "content": msg, "error": True})
        with st.chat_message("assistant"):
            st.error(msg)
    finally:
        st.session_state["busy"] = False


if __name__ == "__main__":
    main()
