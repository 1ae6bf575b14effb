"""
wfspec - Workflow reference resolution and distribution.

Subpackages:
- wfspec.spec: spec value types, parsing and version helpers
- wfspec.runtime: ref resolution, remote fetch and import collection
- wfspec.config: runtime configuration (github host, binaries, timeouts)
- wfspec.tools: command line entry points
"""

__version__ = "0.1.0"
