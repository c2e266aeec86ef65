from .bootstrap import acquire_single_instance_lock, configure_logging, debug_requested, release_single_instance_lock

__all__ = [
    "acquire_single_instance_lock",
    "configure_logging",
    "debug_requested",
    "release_single_instance_lock",
]
