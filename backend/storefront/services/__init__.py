"""
Service Layer - multi-step business operations

Services coordinate several repositories: order placement and cascade
delete, store creation and staff management, product registration, signup
and signin.
"""
