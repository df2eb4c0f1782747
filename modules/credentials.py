"""
modules/credentials.py — API key lookup.

Keys are read from .streamlit/secrets.toml first, then from the environment.
"""

import os

import streamlit as st
from streamlit.errors import StreamlitAPIException


class MissingAPIKey(Exception):
    """No API key configured for an AI provider."""


def get_api_key(secret_name: str, env_var: str) -> str:
    """
    Look up an API key.

    Args:
        secret_name: Key in st.secrets (e.g. "gemini_api_key")
        env_var: Environment variable used when st.secrets has no value (e.g. "GEMINI_API_KEY")

    Raises:
        MissingAPIKey: If neither source has a non-empty value
    """
    try:
        key = st.secrets[secret_name]
    except (KeyError, FileNotFoundError, StreamlitAPIException):
        key = None

    if not key:
        key = os.environ.get(env_var)

    if not key:
        raise MissingAPIKey(
            f"{secret_name} is missing. Add it to .streamlit/secrets.toml "
            f"or set the {env_var} environment variable."
        )
    return key
