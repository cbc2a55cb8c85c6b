"""Pure rules of the session and progression engine.

Nothing in this package touches the database or the clock; the services in
``focusflow.services`` load state, apply these rules and persist the result.
"""
