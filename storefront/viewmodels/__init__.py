"""ViewModel package for storefront page state and display rows.

Call context:
    ``storefront/web_ui/runtime.py`` builds these viewmodels per browser
    session and feeds them the results of use-case calls.

Dependencies:
    Modules in this package depend on domain types and formatting helpers
    only. Backend adapters and use-case orchestration remain outside.

Responsibilities:
    - Hold mutable page state (cart, checkout form, tabs, busy flags).
    - Turn domain snapshots into display rows with labels and amounts.
    - Derive which actions a dashboard shows; the backend still decides.
"""
