"""Cadence - recurring team task scheduling."""
