"""Competitor price tracking and repricing suggestions."""
