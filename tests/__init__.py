"""
Tests for the party notification bridge.

This package contains tests for:
- Frame decoding and chat line tokenizing
- Party event classification
- Pushover delivery
- Stream session lifecycle against a local WebSocket server
- Configuration loading and the command-line interface
"""
