"""Validators, credential flows, image storage and query services."""
