"""Packaged catalog resources."""
