"""Persistence helpers."""

from .player_state import coerce_bool, coerce_float, load_player_state, save_player_state

__all__ = ["coerce_bool", "coerce_float", "load_player_state", "save_player_state"]
