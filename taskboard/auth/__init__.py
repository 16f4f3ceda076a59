"""Credential issuing and verification."""
