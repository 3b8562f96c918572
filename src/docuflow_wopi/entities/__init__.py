# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Admin entities. Each subpackage exposes an endpoint.py discovered at startup."""
