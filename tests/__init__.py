"""Unit tests for AITrans.

This package contains test modules for the translation, analysis, cache and configuration components.
Tests use pytest with asyncio support and replace HTTP calls with mocks or fake transports.
"""
