"""Parsing and formatting helpers for microvm and container commands."""