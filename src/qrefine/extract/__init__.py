"""Embedded SQL extraction from host-language source text."""
