"""Tests for the wemo_local integration."""
