"""Test doubles for the window manager adapter and the session bus."""
