"""Storage data node toolkit: rebuild bookkeeping, spot checks, slice comparison and housekeeping."""

__version__ = "0.1.0"

__all__ = [
    "base58",
    "debug_tools",
    "netstat",
    "paths",
    "recover_counters",
    "recover_tasks",
    "relay",
    "runtime_status",
    "schedule",
    "slice_compare",
    "spot_check",
    "storage_node",
]