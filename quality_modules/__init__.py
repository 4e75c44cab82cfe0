"""
Per-kind workflow modules.

Each sub-package (``observation``, ``training``, ``task``) declares its
state graph in ``workflows.py`` and validates caller payloads in
``payloads.py``.  ``registry`` collects and validates them.
"""
