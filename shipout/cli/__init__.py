"""Command line interface for shipout"""
