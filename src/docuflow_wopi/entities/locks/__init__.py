# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Locks entity: admin view over the WOPI lock table."""

from .endpoint import LockEndpoint

__all__ = ["LockEndpoint"]
