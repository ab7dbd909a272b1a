"""Scenario tests for booker-scenarios.

These tests drive the real restful-booker service and the installed CLI.

Layers:
  Layer 1 (no backend): CLI subprocess checks
  Layer 2 (live service): the booking steps against BOOKER_BASE_URL
"""
