"""Application composition layer for the storefront.

``AppController`` wires adapters and use cases from settings so the web
runtime never constructs backend clients itself.
"""
