"""
Reporting modules -- founder-facing workflows built on the kernel, the
configuration layer and the pure engines.
"""
