"""Numeric environment shared across torchlm."""
