"""Tests for the MPT node decoding circuits."""
