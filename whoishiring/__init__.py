"""Sync Hacker News "Who is hiring?" threads and job posts into a relational store."""

__version__ = "0.1.0"
