"""Compatibility tests for ipfsdag.

These tests resolve real identifiers against a live IPFS RPC endpoint.
They require network connectivity and may be flaky due to external dependencies.

These tests are NOT run by default - set IPFSDAG_LIVE_TESTS=1 to enable them.
"""

from __future__ import annotations

import pytest

pytestmark = [pytest.mark.compatibility]
