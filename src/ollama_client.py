# src/ollama_client.py
from __future__ import annotations

from typing import Any, Dict, Optional
import requests


DEFAULT_HOST = "http://localhost:11434"


def _url(host: str, path: str) -> str:
    return f"{host.rstrip('/')}{path}"


def ollama_version(host: str = DEFAULT_HOST, timeout: float = 10) -> Optional[str]:
    """
    Calls Ollama's /api/version endpoint. Any 2xx counts as reachable.
    Returns the reported version, or None if the body doesn't carry one.
    """
    r = requests.get(_url(host, "/api/version"), timeout=timeout)
    r.raise_for_status()
    try:
        data = r.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return data.get("version")


def ollama_show(model: str, host: str = DEFAULT_HOST, timeout: float = 10) -> Dict[str, Any]:
    """
    Calls Ollama's /api/show endpoint; raises HTTPError if the model isn't installed.
    """
    r = requests.post(_url(host, "/api/show"), json={"name": model}, timeout=timeout)
    r.raise_for_status()
    return r.json()


def ollama_generate(
    model: str,
    prompt: str,
    host: str = DEFAULT_HOST,
    timeout: float = 120,
) -> str:
    """
    Calls Ollama's /api/generate endpoint (non-streaming) and returns the response text.
    """
    payload: Dict[str, Any] = {
        "model": model,
        "prompt": prompt,
        "stream": False,
    }

    r = requests.post(_url(host, "/api/generate"), json=payload, timeout=timeout)
    r.raise_for_status()
    data = r.json()
    if not isinstance(data, dict) or not isinstance(data.get("response"), str):
        raise ValueError(f"Unexpected /api/generate body: {data!r}")
    return data["response"]
