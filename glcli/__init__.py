"""Installer and operator CLI for the gpt-load service."""
