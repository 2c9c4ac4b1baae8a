"""Repeated-trial statistics over detection results."""
