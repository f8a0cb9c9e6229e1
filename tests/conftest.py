"""
Pytest conftest: make src/ importable when running from a checkout without
``pip install -e .``.
"""
import os
import sys

_src = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if os.path.isdir(_src) and _src not in sys.path:
    sys.path.insert(0, _src)
