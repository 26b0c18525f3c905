from .instance_state_mapper import is_gone, is_terminal_state, map_instance_state

__all__ = ["is_gone", "is_terminal_state", "map_instance_state"]
