"""Memo Tracking package.

This package is organized by feature modules (users, memos, notifications, reports)
with a thin Flask controller layer over service/repository layers.
"""
