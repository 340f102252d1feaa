"""
API blueprints. Each sub-package creates a ``bp`` and imports its routes.
"""
