"""
imbued Core

Core abstractions used by the daemon:
- auth: per-process authentication grants
- secrets: pluggable secret backends
- tracking: append-only audit log
- project_config: `.imbued` discovery and parsing
- protocol: Command/Response wire format
"""
