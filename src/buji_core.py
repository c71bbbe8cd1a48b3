from __future__ import annotations

import logging
import os
import re
from typing import Any, MutableMapping, Optional, Tuple

import requests
from ollama_client import ollama_generate, ollama_show, ollama_version


logger = logging.getLogger(__name__)

# ------------------
# Settings
# ------------------
MODELS = ("llama2", "codellama", "mistral")
DEFAULT_MODEL = "llama2"

HOST_ENV = "OLLAMA_HOST"

PROBE_TIMEOUT = 10
GENERATE_TIMEOUT = 120

API_URL_MISSING = (
    f"Ollama API URL is not configured. Please set {HOST_ENV} in your environment variables."
)
CANNOT_CONNECT = (
    "Cannot connect to Ollama API. Please check the API configuration "
    "and ensure the server is running."
)
MODEL_MISSING = "Model {model} is not available. Please ensure it's installed on the Ollama server."
SEND_FAILED = "Failed to get response from Ollama. Please check the API configuration and try again."

DEFAULT_CODE_LANGUAGE = "javascript"

_FENCE = "```"
_CODE_BLOCK = re.compile(r"```(\w+)?\n([\s\S]*?)```")

State = MutableMapping[str, Any]


def get_host() -> Optional[str]:
    host = os.environ.get(HOST_ENV, "").strip()
    return host or None


# ------------------
# Connectivity check
# ------------------
def check_connection(model: str, host: Optional[str] = None) -> Optional[str]:
    """
    Version probe, then "is this model installed" probe.
    Returns None when both pass, otherwise the text for the error banner.
    """
    host = host or get_host()
    if not host:
        return API_URL_MISSING

    try:
        version = ollama_version(host, timeout=PROBE_TIMEOUT)
    except requests.HTTPError as exc:
        return f"Ollama API returned status {exc.response.status_code}"
    except requests.RequestException as exc:
        logger.warning("Version probe against %s failed: %s", host, exc)
        return CANNOT_CONNECT

    try:
        ollama_show(model, host, timeout=PROBE_TIMEOUT)
    except requests.HTTPError:
        return MODEL_MISSING.format(model=model)
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Model probe for %s failed: %s", model, exc)
        return CANNOT_CONNECT

    logger.info("Ollama %s reachable at %s, model %s installed", version or "?", host, model)
    return None


def probe(state: State) -> bool:
    state["checking"] = True
    try:
        error = check_connection(state["model"])
    finally:
        state["checking"] = False

    if error:
        logger.warning("Connection check failed: %s", error)
    state["error"] = error
    return error is None


def init_state(state: State) -> None:
    """
    Seeds per-session defaults. The startup probe runs once per session;
    Streamlit reruns call this every time but only the first one probes.
    """
    state.setdefault("messages", [])
    state.setdefault("model", DEFAULT_MODEL)
    state.setdefault("loading", False)
    state.setdefault("checking", False)
    if "error" not in state:
        state["error"] = None
        probe(state)


# ------------------
# Model picker
# ------------------
def select_model(state: State, model: str) -> bool:
    if model not in MODELS:
        raise ValueError(f"Unknown model {model!r}; expected one of {', '.join(MODELS)}")
    state["model"] = model
    return probe(state)


# ------------------
# Transcript
# ------------------
def input_disabled(state: State) -> bool:
    return bool(state.get("loading")) or bool(state.get("error"))


def clear_transcript(state: State) -> None:
    state["messages"] = []


def send(state: State, prompt: str) -> bool:
    """
    Appends the user's prompt, asks the selected model for a reply and
    appends it. On failure only the user's entry stays and the error
    banner is set, which disables input until a retry probe passes.
    """
    if not prompt or not prompt.strip() or state.get("loading"):
        return False

    state["messages"].append({"role": "user", "content": prompt})

    host = get_host()
    if not host:
        logger.error(API_URL_MISSING)
        state["error"] = SEND_FAILED
        return False

    state["loading"] = True
    state["error"] = None

    try:
        reply = ollama_generate(
            model=state["model"],
            prompt=prompt,
            host=host,
            timeout=GENERATE_TIMEOUT,
        )
    except (requests.RequestException, ValueError):
        logger.exception("Generate request for %s failed", state["model"])
        state["error"] = SEND_FAILED
        return False
    finally:
        state["loading"] = False

    state["messages"].append({"role": "assistant", "content": reply})
    return True


def extract_code(content: str) -> Optional[Tuple[str, str]]:
    """
    Returns (language, code) for the first fenced block, or None when the
    message has no fence at all. A fence without a well-formed block
    yields empty code.
    """
    if _FENCE not in content:
        return None
    match = _CODE_BLOCK.search(content)
    if not match:
        return DEFAULT_CODE_LANGUAGE, ""
    return match.group(1) or DEFAULT_CODE_LANGUAGE, match.group(2)
