"""Knit CLI commands"""
