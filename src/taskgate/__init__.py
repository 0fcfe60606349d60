"""
Dependency-aware task board.

Components:
- engine/: TaskGraph snapshot, state evaluation, convergence worklist
- sync/: best-effort write-back of converged states
- backends/: system-of-record adapters (HTTP, in-memory)
- core/board.py: edit -> refresh -> converge -> sync orchestration
"""

__version__ = "0.1.0"
