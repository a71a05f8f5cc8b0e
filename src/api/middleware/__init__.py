# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

This package provides middleware for request processing:
- RequestContextMiddleware: Request id and logging context.
"""

from src.api.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
