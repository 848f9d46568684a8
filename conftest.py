"""
Root conftest.py — puts the repo root on sys.path so tests can import the
`src.utils` modules the same way app.py does.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(__file__))
