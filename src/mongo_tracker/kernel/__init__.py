"""Kernel utilities shared across the tracker.

Rules:
- Kernel code must not import from tracking, session or sink modules.
- Kernel utilities should stay small and stable; avoid tracking policy here.
"""
