"""Core module - ERP-neutral order models and observability.

ERP-specific logic (NetSuite request signing, record endpoints, SuiteQL)
belongs in /connectors/.
"""

__version__ = "1.0.0"
